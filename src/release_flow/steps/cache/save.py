"""Step canônico: cache.save (v1).

Tentado mesmo quando um Step anterior do Stage falhou (`always_run`).

- sem `cache.key` (restore não executou): SKIPPED
- chave já presente no store: SKIPPED (primeira escrita vence)
- falha ao empacotar/gravar: warning CACHE_SAVE_FAILED, nunca FAILED
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from release_flow.collaborators.cache_store import DependencyCache, pack_paths, resolve_paths
from release_flow.core.errors import CACHE_SAVE_FAILED
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

from ..source.checkout import source_dir
from .restore import CACHE_KEY_ARTIFACT


@dataclass
class CacheSaveStep(Step):
    cache: DependencyCache
    paths: List[str] = field(default_factory=list)
    id: str = "cache.save"
    kind: StepKind = StepKind.CACHE
    always_run: bool = True

    def _skipped(self, summary: str, **artifacts) -> StepResult:
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SKIPPED,
            summary=summary,
            artifacts=dict(artifacts),
        )

    def run(self, ctx: StageContext) -> StepResult:
        if not ctx.has_artifact(CACHE_KEY_ARTIFACT):
            ctx.log(step_id=self.id, level="info", message="no cache key computed, skipping save")
            return self._skipped("no cache key")

        key = ctx.get_artifact(CACHE_KEY_ARTIFACT)
        try:
            data, included = pack_paths(resolve_paths(self.paths, source_dir(ctx)))
            saved = self.cache.save(key, data)
        except OSError as e:
            msg = f"cache save failed for key {key}: {e}"
            ctx.add_warning(step_id=self.id, message=msg)
            ctx.log(step_id=self.id, level="warning", message=msg, code=CACHE_SAVE_FAILED)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary="cache save failed (ignored)",
                artifacts={"key": key, "saved": False},
            )

        if not saved:
            ctx.log(step_id=self.id, level="info", message="cache key already present", key=key)
            return self._skipped("cache key already present", key=key, saved=False)

        ctx.log(step_id=self.id, level="info", message="cache saved", key=key, bytes=len(data))
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary="cache saved",
            metrics={"bytes": len(data), "paths": included},
            artifacts={"key": key, "saved": True},
        )
