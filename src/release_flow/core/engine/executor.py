# src/release_flow/core/engine/executor.py
"""
Executor de Stage do Release Flow.

Executa os Steps de um Stage estritamente em sequência, na ordem de
declaração, com política fail-fast:

- O primeiro Step FAILED falha o Stage; os Steps seguintes não executam.
- Steps `always_run` (ex.: `cache.save`) ainda são tentados após a falha;
  seu resultado não altera o outcome do Stage. Se o próprio Step falhar,
  o resultado fica FAILED com um warning, e o Stage segue com o outcome
  dos demais Steps.
- Exceções levantadas por Steps são convertidas em ReleaseErrorPayload e
  gravadas em `StepResult.payload["error"]` (sem stack trace).
- O executor **não** muta StepResult (frozen): enriquecimentos criam uma
  nova instância via `dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from release_flow.core.errors import (
    ReleaseErrorPayload,
    engine_configuration_error,
    engine_execution_error,
)
from release_flow.core.exceptions import ReleaseException
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.registry import StepRegistry
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StageOutcome, StepKind, StepResult, StepStatus


@dataclass(frozen=True)
class StageExecution:
    """Resultado agregado da execução de um Stage."""

    outcome: StageOutcome
    results: Dict[str, StepResult] = field(default_factory=dict)
    failed_step: Optional[str] = None


class StageExecutor:
    """Executor sequencial fail-fast dos Steps de um Stage."""

    def __init__(self, *, steps: Sequence[Step], ctx: StageContext):
        registry = StepRegistry.of(steps)
        self.steps: List[Step] = registry.list()
        self.always_run: List[str] = registry.always_run_ids()
        self.ctx: StageContext = ctx

    # ------------------------------------------------------------------
    # Exceção -> ReleaseErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, exc: Exception, step_id: str) -> ReleaseErrorPayload:
        """Converte exceções em ReleaseErrorPayload.

        - ReleaseException: já traz code/message/details/hint.
        - Outras exceções: ENGINE_EXECUTION_ERROR, sem stack trace.
        """
        if isinstance(exc, ReleaseException):
            details = dict(exc.details or {})
            details.setdefault("step", step_id)
            return ReleaseErrorPayload(
                type=exc.code,
                message=self.ctx.mask(str(exc) or "Erro de execução"),
                details=self.ctx.mask(details),
                hint=exc.hint,
            )

        return engine_execution_error(
            step=step_id,
            exception_class=exc.__class__.__name__,
            message=self.ctx.mask(str(exc)),
        )

    # ------------------------------------------------------------------
    # Enriquecimento de StepResult
    # ------------------------------------------------------------------

    def _enrich(self, *, step: Step, result: StepResult, duration_ms: int) -> StepResult:
        """Retorna NOVA instância com warnings do contexto e saídas mascaradas."""
        merged: List[str] = []
        for msg in list(result.warnings) + list(self.ctx.warnings.get(step.id, [])):
            msg = self.ctx.mask(msg)
            if msg not in merged:
                merged.append(msg)

        metrics = dict(result.metrics)
        metrics.setdefault("duration_ms", duration_ms)

        return replace(
            result,
            step_id=step.id,
            kind=result.kind or getattr(step, "kind", StepKind.BUILD),
            summary=self.ctx.mask(result.summary),
            metrics=metrics,
            warnings=merged,
            artifacts=self.ctx.mask(dict(result.artifacts)),
            payload=self.ctx.mask(dict(result.payload)),
        )

    def _failed(self, *, step: Step, error: ReleaseErrorPayload, duration_ms: int) -> StepResult:
        r = StepResult(
            step_id=step.id,
            kind=getattr(step, "kind", StepKind.BUILD) or StepKind.BUILD,
            status=StepStatus.FAILED,
            summary=error.message,
            payload={"error": error.to_dict()},
        )
        return self._enrich(step=step, result=r, duration_ms=duration_ms)

    def run(self) -> StageExecution:
        results: Dict[str, StepResult] = {}
        failed_step: Optional[str] = None

        for step in self.steps:
            sid = step.id
            if failed_step is not None and sid not in self.always_run:
                continue

            self.ctx.log(step_id=sid, level="info", message="step started")
            started = datetime.now(timezone.utc)

            try:
                step_result = step.run(self.ctx)
                duration_ms = _elapsed_ms(started)
                if not isinstance(step_result, StepResult):
                    error = engine_configuration_error(
                        message="Step retornou tipo inválido",
                        details={
                            "step": sid,
                            "expected": "StepResult",
                            "received": type(step_result).__name__,
                        },
                        hint="Ajuste o Step para retornar StepResult",
                    )
                    result = self._failed(step=step, error=error, duration_ms=duration_ms)
                else:
                    result = self._enrich(step=step, result=step_result, duration_ms=duration_ms)

            except Exception as e:
                error = self._exception_to_error(e, sid)
                result = self._failed(step=step, error=error, duration_ms=_elapsed_ms(started))

            failed = result.status == StepStatus.FAILED
            ignored = failed and sid in self.always_run
            if ignored:
                # always_run: a falha vira warning e não decide o outcome
                msg = self.ctx.mask(f"{sid} failed (ignored): {result.summary}")
                self.ctx.add_warning(step_id=sid, message=msg)
                result = replace(result, warnings=list(result.warnings) + [msg])

            results[sid] = result
            self.ctx.log(
                step_id=sid,
                level="warning" if ignored else ("error" if failed else "info"),
                message="step finished",
                status=result.status.value,
                summary=result.summary,
            )

            if failed and not ignored and failed_step is None:
                failed_step = sid

        outcome = StageOutcome.FAILURE if failed_step is not None else StageOutcome.SUCCESS
        return StageExecution(outcome=outcome, results=results, failed_step=failed_step)


def _elapsed_ms(started: datetime) -> int:
    return max(0, int((datetime.now(timezone.utc) - started).total_seconds() * 1000))
