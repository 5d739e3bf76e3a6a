"""Step canônico: source.checkout (v1).

Responsabilidades:
- materializar o source na revisão do evento, em um diretório novo
  dentro do workdir efêmero do Stage
- publicar o diretório como artifact `source.dir` para os Steps seguintes

Limites explícitos:
- NÃO reutiliza checkouts de outros Stages ou runs
- NÃO faz retry
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from release_flow.collaborators.source import SourceProvider
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

SOURCE_DIR_ARTIFACT = "source.dir"
CHECKOUT_DIRNAME = "checkout"


def source_dir(ctx: StageContext) -> Path:
    """Diretório do checkout do Stage (workdir quando ainda não há checkout)."""
    if ctx.has_artifact(SOURCE_DIR_ARTIFACT):
        return Path(ctx.get_artifact(SOURCE_DIR_ARTIFACT))
    return ctx.workdir


@dataclass
class CheckoutStep(Step):
    """Checkout isolado do source na revisão da run."""

    source: SourceProvider
    id: str = "source.checkout"
    kind: StepKind = StepKind.SOURCE
    always_run: bool = False

    def run(self, ctx: StageContext) -> StepResult:
        dest = ctx.workdir / CHECKOUT_DIRNAME
        if dest.exists():
            # nunca reaproveita um checkout existente
            raise FileExistsError(f"checkout dir already exists: {dest}")

        # SourceCheckoutError propaga: o executor converte em payload de erro
        resolved = self.source.checkout(revision=ctx.revision, dest=dest, env=ctx.env)
        ctx.set_artifact(SOURCE_DIR_ARTIFACT, str(dest))

        ctx.log(
            step_id=self.id,
            level="info",
            message="source checked out",
            ref=ctx.ref,
            revision=resolved,
        )

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"checked out {resolved or ctx.ref}",
            artifacts={
                "source_dir": str(dest),
                "revision": resolved,
            },
        )
