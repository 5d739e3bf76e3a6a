"""Step canônico: comando com contrato de shell (build / test).

O Step executa um único comando no checkout do Stage. Status zero é
sucesso; qualquer outro status (ou timeout) é FAILED com:
    - payload["error"]: STEP_FAILURE (exit_code, comando)
    - payload["output"]: últimas linhas de stdout+stderr, mascaradas

A saída não influencia o controle de fluxo: só o status de saída importa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from release_flow.collaborators.shell import CommandRunner, run_command
from release_flow.core.errors import step_failure
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

from ..source.checkout import source_dir

DEFAULT_TAIL_LINES = 200


@dataclass
class CommandStep(Step):
    id: str
    kind: StepKind
    command: List[str]
    name: str = ""
    timeout: Optional[float] = None
    tail_lines: int = DEFAULT_TAIL_LINES
    always_run: bool = False
    runner: CommandRunner = field(default=run_command, repr=False)

    def run(self, ctx: StageContext) -> StepResult:
        label = self.name or self.id
        cwd = source_dir(ctx)
        outcome = self.runner(self.command, cwd=cwd, env=ctx.env, timeout=self.timeout)
        output = ctx.mask(outcome.tail(self.tail_lines))
        metrics = {"exit_code": outcome.exit_code, "command_ms": outcome.duration_ms}

        if outcome.ok:
            ctx.log(step_id=self.id, level="info", message=f"{label} succeeded", command=outcome.display)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary=f"{label} succeeded",
                metrics=metrics,
                payload={"output": output},
            )

        extra = {}
        if outcome.timed_out:
            extra["hint"] = f"O comando excedeu o timeout de {self.timeout}s."
        error = step_failure(step=self.id, exit_code=outcome.exit_code, command=outcome.display, **extra)

        ctx.log(
            step_id=self.id,
            level="error",
            message=f"{label} failed",
            command=outcome.display,
            exit_code=outcome.exit_code,
        )
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.FAILED,
            summary=f"{label} failed (exit {outcome.exit_code})",
            metrics=metrics,
            payload={"error": error.to_dict(), "output": output},
        )


def tail_lines_from_config(config: Dict[str, Any]) -> int:
    """`engine.output_tail_lines`; só a ausência (None) cai no default, 0 é válido."""
    value = (config.get("engine") or {}).get("output_tail_lines")
    return DEFAULT_TAIL_LINES if value is None else int(value)


def command_step_from_config(
    config: Dict[str, Any],
    *,
    section: str,
    kind: StepKind,
) -> CommandStep:
    """Constrói o Step `build` ou `test` a partir da seção homônima da configuração."""
    cfg = config.get(section) or {}
    engine = config.get("engine") or {}
    return CommandStep(
        id=section,
        kind=kind,
        command=[str(part) for part in cfg.get("command") or []],
        name=str(cfg.get("name") or section),
        timeout=engine.get("step_timeout_seconds"),
        tail_lines=tail_lines_from_config(config),
    )
