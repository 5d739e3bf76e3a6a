# src/release_flow/trigger/listener.py
"""
Trigger Listener.

Dado um `RepositoryEvent`, decide iniciar zero, uma ou duas PipelineRuns:

    - publish: push de tag cujo nome inteiro casa `pipelines.publish.tag_pattern`
      (nenhum outro campo do evento é consultado)
    - ci: push em branch casando `push_branches`, ou pull request cuja
      branch alvo casa `pull_request_branches`, desde que os paths
      alterados não estejam todos na ignore-list

Regras:
    - Tags nunca disparam o CI
    - Sem lista de paths (None ou vazia) a ignore-list não é avaliada
      e o CI roda (fail-open)
    - Evento malformado é no-op silencioso (TRIGGER_MISMATCH nunca é
      levantado)
"""

from __future__ import annotations

import re
import uuid
from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Optional, Sequence

from release_flow.core.pipeline.event import EventType, RepositoryEvent
from release_flow.core.pipeline.run import CI_TERMINAL_STATES, PUBLISH_TERMINAL_STATES, PipelineRun
from release_flow.pipelines.definitions import PIPELINE_CI, PIPELINE_PUBLISH

DEFAULT_TAG_PATTERN = r"^v\d+\.\d+\.\d+$"


def _matches_any(value: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(value, p) for p in patterns)


def all_paths_ignored(changed_paths: Optional[Sequence[str]], ignore: Sequence[str]) -> bool:
    """True somente quando há paths e todos casam a ignore-list."""
    if not changed_paths:
        return False
    return all(_matches_any(path, ignore) for path in changed_paths)


class TriggerListener:
    def __init__(self, config: Dict[str, Any]):
        pipelines = config.get("pipelines") or {}
        publish = pipelines.get(PIPELINE_PUBLISH) or {}
        ci = pipelines.get(PIPELINE_CI) or {}

        # ASCII: `\d` não aceita dígitos de outros scripts
        self.tag_pattern = re.compile(str(publish.get("tag_pattern") or DEFAULT_TAG_PATTERN), re.ASCII)
        self.push_branches: List[str] = list(ci.get("push_branches") or ["*"])
        self.pull_request_branches: List[str] = list(ci.get("pull_request_branches") or ["main"])
        self.paths_ignore: List[str] = list(ci.get("paths_ignore") or [])

    def matches_publish(self, event: RepositoryEvent) -> bool:
        tag = event.tag
        return tag is not None and self.tag_pattern.fullmatch(tag) is not None

    def matches_ci(self, event: RepositoryEvent) -> bool:
        if event.event_type == EventType.PUSH.value:
            branch = event.branch
            if branch is None or not _matches_any(branch, self.push_branches):
                return False
        elif event.event_type == EventType.PULL_REQUEST.value:
            target = event.target_branch
            if target is None or not _matches_any(target, self.pull_request_branches):
                return False
        else:
            return False
        return not all_paths_ignored(event.changed_paths, self.paths_ignore)

    def matched_pipelines(self, event: Optional[RepositoryEvent]) -> List[str]:
        if event is None:
            return []
        matched: List[str] = []
        if self.matches_publish(event):
            matched.append(PIPELINE_PUBLISH)
        if self.matches_ci(event):
            matched.append(PIPELINE_CI)
        return matched

    def dispatch(self, event: Optional[RepositoryEvent]) -> List[PipelineRun]:
        """Instancia uma PipelineRun `pending` por pipeline casado."""
        runs: List[PipelineRun] = []
        for pipeline in self.matched_pipelines(event):
            terminal = PUBLISH_TERMINAL_STATES if pipeline == PIPELINE_PUBLISH else CI_TERMINAL_STATES
            runs.append(
                PipelineRun(
                    run_id=f"{pipeline}-{uuid.uuid4().hex[:12]}",
                    pipeline=pipeline,
                    event=event,
                    terminal_states=terminal,
                )
            )
        return runs
