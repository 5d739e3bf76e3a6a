# src/release_flow/core/pipeline/run.py
"""
PipelineRun e Stage: instâncias de execução.

Uma `PipelineRun` é criada pelo Trigger Listener no estado `pending` e
avança por uma máquina de estados explícita, com transições em uma
única direção:

    pending → building → (failed | tested)
    tested  → publishing → (failed | published)

Um `Stage` só existe dentro da run depois de agendado: o Stage de
publicação de uma run cujo build falhou nunca é instanciado.

Invariantes:
    - Transições fora da tabela levantam `InvalidTransitionError`
    - Nenhuma transição sai de um estado terminal
    - Um Stage com dependência só entra em RUNNING com upstream SUCCESS
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from release_flow.core.exceptions import GateDenied, InvalidTransitionError

from .event import RepositoryEvent
from .types import RunState, StageOutcome, StepResult, StepStatus


TRANSITIONS: Dict[RunState, FrozenSet[RunState]] = {
    RunState.PENDING: frozenset({RunState.BUILDING}),
    RunState.BUILDING: frozenset({RunState.FAILED, RunState.TESTED}),
    RunState.TESTED: frozenset({RunState.PUBLISHING}),
    RunState.PUBLISHING: frozenset({RunState.FAILED, RunState.PUBLISHED}),
    RunState.FAILED: frozenset(),
    RunState.PUBLISHED: frozenset(),
}

PUBLISH_TERMINAL_STATES: FrozenSet[RunState] = frozenset({RunState.FAILED, RunState.PUBLISHED})
CI_TERMINAL_STATES: FrozenSet[RunState] = frozenset({RunState.FAILED, RunState.TESTED})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Stage:
    """Instância de um Stage dentro de uma run."""

    name: str
    depends_on: Optional[str] = None
    outcome: StageOutcome = StageOutcome.PENDING
    results: Dict[str, StepResult] = field(default_factory=dict)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    failed_step_id: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

    def start(self, upstream: Mapping[str, str]) -> None:
        """Move o Stage para RUNNING, validando o sinal upstream quando há dependência."""
        if self.outcome != StageOutcome.PENDING:
            raise InvalidTransitionError(
                message=f"Stage '{self.name}' já foi iniciado",
                details={"stage": self.name, "outcome": self.outcome.value},
            )
        if self.depends_on is not None:
            upstream_outcome = upstream.get(self.depends_on)
            if upstream_outcome != StageOutcome.SUCCESS.value:
                raise GateDenied(
                    message=f"Stage '{self.name}' requer sucesso de '{self.depends_on}'",
                    details={
                        "stage": self.name,
                        "upstream": self.depends_on,
                        "upstream_outcome": upstream_outcome,
                    },
                )
        self.outcome = StageOutcome.RUNNING
        self.started_at = _now_iso()

    def finish(self, *, success: bool, failed_step: Optional[str] = None) -> None:
        if self.outcome != StageOutcome.RUNNING:
            raise InvalidTransitionError(
                message=f"Stage '{self.name}' não está em execução",
                details={"stage": self.name, "outcome": self.outcome.value},
            )
        self.outcome = StageOutcome.SUCCESS if success else StageOutcome.FAILURE
        self.failed_step_id = None if success else failed_step
        self.finished_at = _now_iso()

    def abort(self, error: Dict[str, Any]) -> None:
        """Falha o Stage antes de qualquer Step (preparação do workdir, gate)."""
        if self.outcome not in (StageOutcome.PENDING, StageOutcome.RUNNING):
            raise InvalidTransitionError(
                message=f"Stage '{self.name}' já terminou",
                details={"stage": self.name, "outcome": self.outcome.value},
            )
        self.outcome = StageOutcome.FAILURE
        self.error = dict(error)
        self.finished_at = _now_iso()

    @property
    def failed_step(self) -> Optional[StepResult]:
        """Step que falhou o Stage; falhas de Steps `always_run` não contam."""
        if self.outcome != StageOutcome.FAILURE:
            return None
        if self.failed_step_id in self.results:
            return self.results[self.failed_step_id]
        for result in self.results.values():
            if result.status == StepStatus.FAILED:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "depends_on": self.depends_on,
            "outcome": self.outcome.value,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "steps": {
                sid: {
                    "kind": r.kind.value,
                    "status": r.status.value,
                    "summary": r.summary,
                    "metrics": dict(r.metrics),
                    "warnings": list(r.warnings),
                    "artifacts": dict(r.artifacts),
                    "payload": dict(r.payload),
                }
                for sid, r in self.results.items()
            },
        }


@dataclass
class PipelineRun:
    """
    Uma execução de um pipeline disparada por um evento.

    Campos:
        - run_id: identificador único da execução
        - pipeline: nome do pipeline (`publish` | `ci`)
        - event: evento que disparou a run
        - terminal_states: estados em que a run termina
        - state: estado corrente
        - stages: Stages efetivamente instanciados, na ordem de agendamento
        - history: sequência de estados visitados
    """

    run_id: str
    pipeline: str
    event: RepositoryEvent
    terminal_states: FrozenSet[RunState] = PUBLISH_TERMINAL_STATES
    state: RunState = RunState.PENDING
    stages: Dict[str, Stage] = field(default_factory=dict)
    history: List[RunState] = field(default_factory=lambda: [RunState.PENDING])
    created_at: str = field(default_factory=_now_iso)

    def transition(self, target: RunState) -> None:
        if self.is_terminal or target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                message=f"Transição inválida: {self.state.value} → {target.value}",
                details={
                    "run_id": self.run_id,
                    "from": self.state.value,
                    "to": target.value,
                },
            )
        self.state = target
        self.history.append(target)

    @property
    def is_terminal(self) -> bool:
        return self.state in self.terminal_states

    @property
    def outcome(self) -> Optional[str]:
        """`success` | `failure` quando terminal; None enquanto em andamento."""
        if not self.is_terminal:
            return None
        return "failure" if self.state == RunState.FAILED else "success"

    @property
    def failure_detail(self) -> Optional[Dict[str, Any]]:
        """Diagnóstico do Step, ou da preparação do Stage, que falhou (única informação de erro exposta)."""
        for stage in self.stages.values():
            failed = stage.failed_step
            if failed is not None:
                return {
                    "stage": stage.name,
                    "step": failed.step_id,
                    "summary": failed.summary,
                    "error": failed.payload.get("error"),
                    "output": failed.payload.get("output", ""),
                }
            if stage.outcome == StageOutcome.FAILURE and stage.error is not None:
                return {
                    "stage": stage.name,
                    "step": None,
                    "summary": stage.error.get("message", ""),
                    "error": stage.error,
                    "output": "",
                }
        return None
