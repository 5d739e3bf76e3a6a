# src/release_flow/service.py
"""
Ponto de entrada programático: evento → runs executadas.

`handle_event` liga o Trigger Listener ao runner: cada pipeline casado
gera uma PipelineRun, executada até um estado terminal, com o Manifest
opcionalmente gravado em `manifest_dir/<run_id>.json`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from release_flow.collaborators import Collaborators, build_collaborators
from release_flow.core.engine.runner import PipelineRunner
from release_flow.core.pipeline.event import RepositoryEvent
from release_flow.core.pipeline.run import PipelineRun
from release_flow.core.traceability.manifest import RunManifest, save_manifest
from release_flow.pipelines.definitions import definition_for
from release_flow.trigger.listener import TriggerListener


@dataclass(frozen=True)
class RunReport:
    run: PipelineRun
    manifest: RunManifest
    manifest_path: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.run.outcome == "success"


def handle_event(
    event: Optional[RepositoryEvent],
    config: Dict[str, Any],
    *,
    collaborators: Optional[Collaborators] = None,
    manifest_dir: Optional[Path] = None,
    base_env: Optional[Mapping[str, str]] = None,
) -> List[RunReport]:
    """Despacha `event` e executa cada PipelineRun iniciada, em sequência."""
    runs = TriggerListener(config).dispatch(event)
    if not runs:
        return []

    collaborators = collaborators or build_collaborators(config)
    reports: List[RunReport] = []
    for run in runs:
        runner = PipelineRunner(
            run=run,
            definition=definition_for(run.pipeline, config, collaborators),
            config=config,
            secrets=collaborators.secrets,
            base_env=base_env,
        )
        runner.run()

        path = None
        if manifest_dir is not None:
            path = Path(manifest_dir) / f"{run.run_id}.json"
            save_manifest(runner.manifest, path)
        reports.append(RunReport(run=run, manifest=runner.manifest, manifest_path=path))
    return reports
