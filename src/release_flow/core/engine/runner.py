# src/release_flow/core/engine/runner.py
"""
Runner de PipelineRun.

Orquestra uma run do início ao estado terminal:

    1. planeja os Stages da definição (`plan_stages`)
    2. para cada Stage: avalia o Release Gate (se houver dependência),
       transiciona a run, cria um StageContext novo e isolado (workdir
       efêmero, ambiente sem segredos, segredos só se declarados) e
       executa os Steps via `StageExecutor`
    3. a primeira falha encerra a run (`failed`); não há rollback. Uma
       falha ao preparar o Stage (workdir, segredos) também falha a run,
       sempre com `run_finished` no Manifest

Invariantes:
    - Um Stage barrado pelo gate nunca é instanciado na run
    - O ambiente base de todos os Stages é limpo dos nomes de segredos
    - Workdirs efêmeros são removidos ao fim do Stage (salvo configuração)
    - Eventos de log dos Stages vão para o Manifest já mascarados
"""

from __future__ import annotations

import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from release_flow import __version__
from release_flow.core.config.hashing import compute_config_hash
from release_flow.core.errors import ReleaseErrorPayload, stage_setup_error
from release_flow.core.errors import gate_denied as gate_denied_error
from release_flow.core.exceptions import ReleaseException
from release_flow.core.pipeline.context import StageContext
from release_flow.core.pipeline.definition import PipelineDefinition, StageSpec
from release_flow.core.pipeline.run import PipelineRun, Stage
from release_flow.core.pipeline.types import RunState, StageOutcome
from release_flow.core.traceability.manifest import (
    RunManifest,
    add_event,
    create_manifest,
    gate_denied,
    run_finished,
    stage_failed,
    stage_finished,
    stage_started,
)

from .executor import StageExecutor
from .gate import evaluate_gate
from .planner import plan_stages


class SecretSource(Protocol):
    def get(self, name: str) -> Optional[str]:
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PipelineRunner:
    """Executa uma PipelineRun segundo a sua PipelineDefinition."""

    def __init__(
        self,
        *,
        run: PipelineRun,
        definition: PipelineDefinition,
        config: Dict[str, Any],
        secrets: SecretSource,
        base_env: Optional[Mapping[str, str]] = None,
        manifest: Optional[RunManifest] = None,
    ):
        self.run_ = run
        self.definition = definition
        self.config = config
        self.secrets = secrets
        self.base_env: Dict[str, str] = dict(os.environ if base_env is None else base_env)
        self.manifest = manifest or create_manifest(
            run_id=run.run_id,
            pipeline=definition.name,
            started_at=_now(),
            tool_version=__version__,
            config_hash=compute_config_hash(config),
            event=run.event.to_dict(),
        )
        self.contexts: Dict[str, StageContext] = {}

    # ------------------------------------------------------------------
    # Ambiente e contexto por Stage
    # ------------------------------------------------------------------

    def _scrubbed_names(self) -> List[str]:
        names = list(self.definition.secret_names)
        configured = ((self.config.get("registry") or {}).get("secret_name"))
        if isinstance(configured, str) and configured and configured not in names:
            names.append(configured)
        return names

    def _stage_env(self) -> Dict[str, str]:
        scrub = set(self._scrubbed_names())
        env = {k: v for k, v in self.base_env.items() if k not in scrub}
        for key, value in (self.config.get("env") or {}).items():
            if key not in scrub and value is not None:
                env[str(key)] = str(value)
        return env

    def _workspace_root(self) -> Optional[str]:
        root = (self.config.get("source") or {}).get("workspace_root")
        if not root:
            return None
        path = Path(str(root)).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return str(path)

    def _new_context(self, spec: StageSpec, upstream: Dict[str, str]) -> StageContext:
        workdir = Path(
            tempfile.mkdtemp(prefix=f"{self.run_.run_id}-{spec.name}-", dir=self._workspace_root())
        )
        env = self._stage_env()
        secrets: Dict[str, str] = {}
        try:
            for name in spec.secrets:
                value = self.secrets.get(name)
                if value:
                    secrets[name] = value
                    env[name] = value
        except Exception:
            shutil.rmtree(workdir, ignore_errors=True)
            raise

        return StageContext(
            run_id=self.run_.run_id,
            stage=spec.name,
            created_at=_now(),
            config=self.config,
            workdir=workdir,
            ref=self.run_.event.ref,
            revision=self.run_.event.revision,
            env=env,
            secrets=secrets,
            upstream=dict(upstream),
            meta={"pipeline": self.definition.name},
        )

    def _keep_workdirs(self) -> bool:
        return bool((self.config.get("engine") or {}).get("keep_workdirs", False))

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def _setup_error(self, spec: StageSpec, exc: Exception) -> Dict[str, Any]:
        """Payload da falha ao preparar o Stage (workdir, segredos, sinal upstream)."""
        if isinstance(exc, ReleaseException):
            details = dict(exc.details or {})
            details.setdefault("stage", spec.name)
            payload = ReleaseErrorPayload(
                type=exc.code,
                message=str(exc) or "Erro ao preparar o Stage",
                details=details,
                hint=exc.hint,
            )
        else:
            payload = stage_setup_error(
                stage=spec.name,
                exception_class=type(exc).__name__,
                message=str(exc) or None,
            )
        return payload.to_dict()

    def _fail(self) -> None:
        if not self.run_.is_terminal:
            self.run_.transition(RunState.FAILED)

    def _run_stage(self, spec: StageSpec, upstream: Dict[str, str]) -> bool:
        self.run_.transition(spec.running_state)
        stage = Stage(name=spec.name, depends_on=spec.depends_on)
        self.run_.stages[spec.name] = stage

        ctx: Optional[StageContext] = None
        try:
            ctx = self._new_context(spec, upstream)
            stage.start(ctx.upstream)
        except Exception as e:  # noqa: BLE001
            if ctx is not None and not self._keep_workdirs():
                shutil.rmtree(ctx.workdir, ignore_errors=True)
            error = self._setup_error(spec, e)
            stage.abort(error)
            stage_failed(self.manifest, stage=spec.name, ts=_now(), steps={}, failed_step=None, error=error)
            self.manifest.stages[spec.name]["logs"] = []
            return False

        self.contexts[spec.name] = ctx
        stage_started(self.manifest, stage=spec.name, ts=_now(), depends_on=spec.depends_on)

        try:
            execution = StageExecutor(steps=spec.build_steps(), ctx=ctx).run()
        finally:
            if not self._keep_workdirs():
                shutil.rmtree(ctx.workdir, ignore_errors=True)

        stage.results = dict(execution.results)
        success = execution.outcome == StageOutcome.SUCCESS
        stage.finish(success=success, failed_step=execution.failed_step)

        steps = stage.to_dict()["steps"]
        if success:
            stage_finished(self.manifest, stage=spec.name, ts=_now(), steps=steps)
        else:
            failed = execution.results.get(execution.failed_step or "")
            stage_failed(
                self.manifest,
                stage=spec.name,
                ts=_now(),
                steps=steps,
                failed_step=execution.failed_step,
                error=failed.payload.get("error") if failed is not None else None,
            )
        self.manifest.stages[spec.name]["logs"] = list(ctx.events)
        return success

    def run(self) -> PipelineRun:
        add_event(
            self.manifest,
            event_type="run_started",
            ts=_now(),
            payload={"ref": self.run_.event.ref, "revision": self.run_.event.revision},
        )

        for spec in plan_stages(self.definition.stages):
            upstream: Dict[str, str] = {}
            if spec.depends_on is not None:
                decision = evaluate_gate(self.run_, spec)
                if not decision.allowed:
                    error = gate_denied_error(
                        stage=spec.name,
                        upstream=decision.upstream,
                        upstream_outcome=str(decision.upstream_outcome),
                    )
                    gate_denied(self.manifest, stage=spec.name, ts=_now(), error=error.to_dict())
                    self._fail()
                    break
                upstream = decision.upstream_flags()

            if self.run_.is_terminal:
                break

            if not self._run_stage(spec, upstream):
                # a run termina aqui; o gate do Stage seguinte ainda registra a negação
                self._fail()
                continue

            self.run_.transition(spec.success_state)

        run_finished(
            self.manifest,
            state=self.run_.state.value,
            outcome=self.run_.outcome,
            ts=_now(),
        )
        return self.run_
