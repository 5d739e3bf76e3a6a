"""Step canônico: registry.login (v1).

Autentica no registry com o segredo injetado no Stage. A credencial é
entregue ao comando via stdin e nunca aparece em logs ou resultados.

- segredo ausente no contexto: CredentialMissing (REGISTRY_AUTH_FAILED)
- comando de login com status não-zero: FAILED (REGISTRY_AUTH_FAILED)
"""

from __future__ import annotations

from dataclasses import dataclass

from release_flow.collaborators.registry import RegistryClient
from release_flow.core.errors import registry_auth_failed
from release_flow.core.exceptions import CredentialMissing
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

from ..source.checkout import source_dir


@dataclass
class RegistryLoginStep(Step):
    registry: RegistryClient
    secret_name: str = "CRATES_IO_TOKEN"
    tail_lines: int = 200
    id: str = "registry.login"
    kind: StepKind = StepKind.AUTH
    always_run: bool = False

    def run(self, ctx: StageContext) -> StepResult:
        credential = ctx.get_secret(self.secret_name)
        if credential is None:
            raise CredentialMissing(
                message=f"Segredo '{self.secret_name}' não disponível no Stage",
                details={"secret_name": self.secret_name, "missing": True},
                hint=f"Configure o segredo '{self.secret_name}' para o Stage de publicação.",
            )

        outcome = self.registry.login(credential, cwd=source_dir(ctx), env=ctx.env)
        if outcome.ok:
            ctx.log(step_id=self.id, level="info", message="registry login succeeded")
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary="authenticated",
                metrics={"exit_code": outcome.exit_code},
            )

        error = registry_auth_failed(secret_name=self.secret_name, missing=False, step=self.id)
        ctx.log(step_id=self.id, level="error", message="registry login failed", exit_code=outcome.exit_code)
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.FAILED,
            summary=f"registry login failed (exit {outcome.exit_code})",
            metrics={"exit_code": outcome.exit_code},
            payload={
                "error": error.to_dict(),
                "output": ctx.mask(outcome.tail(self.tail_lines)),
            },
        )
