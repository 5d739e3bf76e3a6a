"""Step canônico: cache.restore (v1).

Responsabilidades:
- calcular a chave `<os>-<prefix>-<hash dos lock files>` no checkout
- restaurar a entrada exata ou, na falta dela, a mais recente com o
  prefixo `<os>-<prefix>-`
- publicar a chave como artifact `cache.key` (consumido por `cache.save`)

Um miss, um lock file ou store ilegível, ou um blob corrompido nunca
falha o Stage: vira warning (CACHE_MISS) e o build segue a frio.
"""

from __future__ import annotations

import tarfile
from dataclasses import dataclass, field
from typing import List, Optional

from release_flow.collaborators.cache_store import (
    DependencyCache,
    cache_key,
    fallback_prefixes,
    hash_lock_files,
    resolve_paths,
    runner_os,
    unpack_paths,
)
from release_flow.core.errors import CACHE_MISS
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

from ..source.checkout import source_dir

CACHE_KEY_ARTIFACT = "cache.key"
CACHE_HIT_ARTIFACT = "cache.hit"


@dataclass
class CacheRestoreStep(Step):
    cache: DependencyCache
    key_prefix: str = "cargo"
    lock_glob: str = "**/Cargo.lock"
    paths: List[str] = field(default_factory=list)
    os_family: Optional[str] = None
    id: str = "cache.restore"
    kind: StepKind = StepKind.CACHE
    always_run: bool = False

    def _cold(self, ctx: StageContext, msg: str, summary: str, key: Optional[str]) -> StepResult:
        ctx.add_warning(step_id=self.id, message=msg)
        ctx.log(step_id=self.id, level="warning", message=msg, code=CACHE_MISS)
        ctx.set_artifact(CACHE_HIT_ARTIFACT, False)
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=summary,
            artifacts={"key": key, "restored_key": None},
        )

    def run(self, ctx: StageContext) -> StepResult:
        root = source_dir(ctx)
        family = self.os_family or runner_os()
        try:
            key = cache_key(family, self.key_prefix, hash_lock_files(root, self.lock_glob))
        except OSError as e:
            # sem chave o cache.save também é pulado
            return self._cold(ctx, f"cache key could not be computed: {e}", "cache key unavailable, continuing cold", None)
        prefixes = fallback_prefixes(family, self.key_prefix)
        ctx.set_artifact(CACHE_KEY_ARTIFACT, key)

        try:
            hit = self.cache.restore(key, prefixes)
        except (tarfile.TarError, OSError) as e:
            return self._cold(ctx, f"cache store unreadable for key {key}: {e}", "cache store unreadable, continuing cold", key)
        if hit is None:
            return self._cold(ctx, f"cache miss for key {key}", "cache miss, continuing cold", key)

        try:
            restored = unpack_paths(hit.data, resolve_paths(self.paths, root))
        except (tarfile.TarError, OSError) as e:
            return self._cold(
                ctx,
                f"cache entry {hit.key} could not be restored: {e}",
                "cache entry unreadable, continuing cold",
                key,
            )

        ctx.set_artifact(CACHE_HIT_ARTIFACT, hit.exact)
        ctx.log(
            step_id=self.id,
            level="info",
            message="cache restored",
            key=key,
            restored_key=hit.key,
            exact=hit.exact,
        )
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary="cache hit" if hit.exact else f"cache restored from fallback {hit.key}",
            metrics={"bytes": len(hit.data), "restored_paths": restored},
            artifacts={"key": key, "restored_key": hit.key, "exact": hit.exact},
        )
