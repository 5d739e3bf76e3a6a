# src/release_flow/core/pipeline/registry.py
"""
Lista validada dos Steps de um Stage.

Construída pelo executor a partir de `StageSpec.build_steps()`, antes do
primeiro Step rodar. Uma definição inválida falha o Stage inteiro, nunca
um Step isolado.

Regras:
    - o objeto cumpre o contrato `Step` (id, kind, always_run, run)
    - `id` é string não vazia e única no Stage
    - `kind` é um `StepKind`

A ordem de registro é a ordem de execução.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .step import Step
from .types import StepKind


class DuplicateStepIdError(ValueError):
    """Dois Steps com o mesmo `id` no mesmo Stage."""


@dataclass
class StepRegistry:
    _steps: Dict[str, Step] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def of(cls, steps: Iterable[Step]) -> "StepRegistry":
        registry = cls()
        for step in steps:
            registry.add(step)
        return registry

    def add(self, step: Step) -> None:
        if not isinstance(step, Step):
            raise TypeError(f"{type(step).__name__} does not implement the Step contract")

        step_id = step.id
        if not isinstance(step_id, str) or not step_id.strip():
            raise ValueError("step.id must be a non-empty string")
        if step_id in self._steps:
            raise DuplicateStepIdError(f"Duplicate step id: {step_id}")
        if not isinstance(step.kind, StepKind):
            raise ValueError(f"step '{step_id}' has invalid kind: {step.kind!r}")

        # dict preserva a ordem de inserção
        self._steps[step_id] = step

    def get(self, step_id: str) -> Step:
        return self._steps[step_id]

    def list(self) -> List[Step]:
        return list(self._steps.values())

    def ids(self) -> List[str]:
        return list(self._steps)

    def always_run_ids(self) -> List[str]:
        """Steps tentados mesmo após uma falha anterior no Stage."""
        return [sid for sid, step in self._steps.items() if step.always_run]

    def __len__(self) -> int:
        return len(self._steps)
