"""Step canônico: registry.publish (v1).

Publica o pacote do checkout na versão declarada no manifest. Falhas
são classificadas e reportadas como estão (sem bump, sem retry):

    duplicate_version | network_error | rejected
"""

from __future__ import annotations

from dataclasses import dataclass

from release_flow.collaborators.registry import RegistryClient, read_package_version
from release_flow.core.errors import registry_rejection
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

from ..source.checkout import source_dir


@dataclass
class RegistryPublishStep(Step):
    registry: RegistryClient
    manifest: str = "Cargo.toml"
    tail_lines: int = 200
    id: str = "registry.publish"
    kind: StepKind = StepKind.PUBLISH
    always_run: bool = False

    def run(self, ctx: StageContext) -> StepResult:
        root = source_dir(ctx)
        version = read_package_version(root / self.manifest)
        ctx.log(step_id=self.id, level="info", message="publishing package", version=version)

        outcome = self.registry.publish(cwd=root, env=ctx.env)
        output = ctx.mask(outcome.tail(self.tail_lines))

        if outcome.ok:
            ctx.log(step_id=self.id, level="info", message="package published", version=version)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary=f"published {version}" if version else "published",
                metrics={"exit_code": outcome.exit_code},
                artifacts={"version": version},
                payload={"output": output},
            )

        reason = outcome.reason or "rejected"
        error = registry_rejection(reason=reason, step=self.id, exit_code=outcome.exit_code)
        ctx.log(
            step_id=self.id,
            level="error",
            message="registry rejected publish",
            reason=reason,
            version=version,
            exit_code=outcome.exit_code,
        )
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.FAILED,
            summary=f"publish rejected: {reason}",
            metrics={"exit_code": outcome.exit_code},
            artifacts={"version": version},
            payload={"error": error.to_dict(), "output": output},
        )
