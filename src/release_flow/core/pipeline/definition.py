# src/release_flow/core/pipeline/definition.py
"""
Definições declarativas de Stages e pipelines.

Um `StageSpec` descreve um Stage antes de ele existir: nome, dependência,
Steps (construídos sob demanda), estados da run associados e segredos
que o Stage pode receber. O runner só instancia o `Stage` quando o
agenda, de modo que um Stage barrado pelo Release Gate nunca existe na
run.

Invariantes:
    - `build_steps` produz Steps novos a cada chamada (sem estado entre runs)
    - Apenas Stages que declaram `secrets` recebem credenciais
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from .run import PUBLISH_TERMINAL_STATES
from .step import Step
from .types import RunState


@dataclass(frozen=True)
class StageSpec:
    """Definição de um Stage."""

    name: str
    build_steps: Callable[[], Sequence[Step]]
    running_state: RunState
    success_state: RunState
    depends_on: Optional[str] = None
    secrets: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PipelineDefinition:
    """Definição de um pipeline fixo: Stages em ordem de declaração."""

    name: str
    title: str
    stages: List[StageSpec] = field(default_factory=list)
    terminal_states: FrozenSet[RunState] = PUBLISH_TERMINAL_STATES

    @property
    def secret_names(self) -> Tuple[str, ...]:
        names: List[str] = []
        for spec in self.stages:
            for name in spec.secrets:
                if name not in names:
                    names.append(name)
        return tuple(names)
