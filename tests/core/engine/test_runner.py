# tests/core/engine/test_runner.py
"""
Testes do PipelineRunner.

Os testes asseguram que:
- a run percorre a máquina de estados até `published` no caminho feliz
- uma falha no build-and-test encerra a run em `failed` e o Stage de
  publicação nunca é instanciado (evento `gate_denied`)
- cada Stage recebe workdir e ambiente próprios; o segredo só existe
  no Stage que o declara
- o Manifest registra o Event Log na ordem de execução
"""
import pytest

try:
    from release_flow.collaborators.secrets import SecretStore
    from release_flow.core.engine.runner import PipelineRunner
    from release_flow.core.pipeline.definition import PipelineDefinition, StageSpec
    from release_flow.core.pipeline.event import RepositoryEvent
    from release_flow.core.pipeline.run import CI_TERMINAL_STATES, PipelineRun
    from release_flow.core.pipeline.types import RunState, StepKind, StepResult, StepStatus
except Exception as e:  # noqa: BLE001
    PipelineRunner = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing runner. Import error: {_IMPORT_ERR}")


class RecordingStep:
    """Step que captura o contexto recebido e termina com o status pedido."""

    kind = StepKind.BUILD
    always_run = False

    def __init__(self, step_id, seen, status=None):
        self.id = step_id
        self.seen = seen
        self.status = status or StepStatus.SUCCESS

    def run(self, ctx):
        self.seen.append(
            {
                "stage": ctx.stage,
                "workdir": ctx.workdir,
                "workdir_existed": ctx.workdir.is_dir(),
                "env": dict(ctx.env),
                "secrets": dict(ctx.secrets),
                "upstream": dict(ctx.upstream),
                "artifacts_from_other_stage": ctx.has_artifact("shared"),
            }
        )
        ctx.set_artifact("shared", True)
        return StepResult(step_id=self.id, kind=self.kind, status=self.status, summary=self.status.value)


def _definition(seen, *, build_status=None, built=None, terminal=None):
    built = built if built is not None else []

    def build_steps():
        built.append("build-and-test")
        return [RecordingStep("build", seen, build_status)]

    def publish_steps():
        built.append("publish")
        return [RecordingStep("registry.publish", seen)]

    stages = [
        StageSpec(
            name="build-and-test",
            build_steps=build_steps,
            running_state=RunState.BUILDING,
            success_state=RunState.TESTED,
        )
    ]
    if terminal is None:
        stages.append(
            StageSpec(
                name="publish",
                build_steps=publish_steps,
                running_state=RunState.PUBLISHING,
                success_state=RunState.PUBLISHED,
                depends_on="build-and-test",
                secrets=("CRATES_IO_TOKEN",),
            )
        )
        return PipelineDefinition(name="publish", title="Publish", stages=stages)
    return PipelineDefinition(name="ci", title="CI", stages=stages, terminal_states=terminal)


def _runner(dummy_config, definition, *, terminal=None, base_env=None):
    run = PipelineRun(
        run_id="run-1",
        pipeline=definition.name,
        event=RepositoryEvent.tag_push("v1.2.3", revision="abc"),
        **({"terminal_states": terminal} if terminal else {}),
    )
    return PipelineRunner(
        run=run,
        definition=definition,
        config=dummy_config,
        secrets=SecretStore({"CRATES_IO_TOKEN": "tok-xyz"}, environ={}),
        base_env=base_env if base_env is not None else {"PATH": "/usr/bin"},
    )


def test_successful_run_reaches_published(dummy_config):
    _require_imports()
    seen = []
    runner = _runner(dummy_config, _definition(seen))

    run = runner.run()

    assert run.state == RunState.PUBLISHED
    assert run.outcome == "success"
    assert run.history == [
        RunState.PENDING,
        RunState.BUILDING,
        RunState.TESTED,
        RunState.PUBLISHING,
        RunState.PUBLISHED,
    ]
    assert [e["event_type"] for e in runner.manifest.events] == [
        "run_started",
        "stage_started",
        "stage_finished",
        "stage_started",
        "stage_finished",
        "run_finished",
    ]
    assert runner.manifest.run["state"] == "published"
    assert seen[1]["upstream"] == {"build-and-test": "success"}


def test_build_failure_never_instantiates_publish(dummy_config):
    """
    Verifica o Release Gate no runner.

    Com o build falhando, a run termina em `failed`, os Steps do Stage
    `publish` nunca são construídos e o Manifest registra `gate_denied`.
    """
    _require_imports()
    seen, built = [], []
    runner = _runner(dummy_config, _definition(seen, build_status=StepStatus.FAILED, built=built))

    run = runner.run()

    assert run.state == RunState.FAILED
    assert run.outcome == "failure"
    assert built == ["build-and-test"]
    assert "publish" not in run.stages
    assert len(seen) == 1

    events = [e["event_type"] for e in runner.manifest.events]
    assert events == ["run_started", "stage_started", "stage_failed", "gate_denied", "run_finished"]
    denied = runner.manifest.events[3]
    assert denied["stage"] == "publish"
    assert denied["payload"]["error"]["type"] == "GATE_DENIED"
    assert run.failure_detail["step"] == "build"


def test_stages_are_isolated_and_secret_only_in_publish(dummy_config):
    _require_imports()
    seen = []
    runner = _runner(
        dummy_config,
        _definition(seen),
        base_env={"PATH": "/usr/bin", "CRATES_IO_TOKEN": "leaked-from-host"},
    )

    runner.run()

    build, publish = seen
    assert build["workdir"] != publish["workdir"]
    assert build["workdir_existed"] and publish["workdir_existed"]
    assert not build["workdir"].exists()
    assert not publish["workdir"].exists()
    assert publish["artifacts_from_other_stage"] is False

    assert "CRATES_IO_TOKEN" not in build["env"]
    assert build["secrets"] == {}
    assert publish["env"]["CRATES_IO_TOKEN"] == "tok-xyz"
    assert publish["secrets"] == {"CRATES_IO_TOKEN": "tok-xyz"}
    assert build["env"]["CARGO_TERM_COLOR"] == "always"


def test_keep_workdirs(dummy_config, tmp_path):
    _require_imports()
    dummy_config["source"]["workspace_root"] = str(tmp_path / "work")
    dummy_config["engine"]["keep_workdirs"] = True
    seen = []

    _runner(dummy_config, _definition(seen)).run()

    assert all(s["workdir"].is_dir() for s in seen)


def test_ci_run_is_terminal_at_tested(dummy_config):
    _require_imports()
    seen = []
    definition = _definition(seen, terminal=CI_TERMINAL_STATES)
    runner = _runner(dummy_config, definition, terminal=CI_TERMINAL_STATES)

    run = runner.run()

    assert run.state == RunState.TESTED
    assert run.outcome == "success"
    assert runner.manifest.run["pipeline"] == "ci"


def test_stage_logs_are_recorded_in_manifest(dummy_config):
    _require_imports()
    runner = _runner(dummy_config, _definition([]))

    runner.run()

    logs = runner.manifest.stages["build-and-test"]["logs"]
    assert [e["message"] for e in logs] == ["step started", "step finished"]
    assert all(e["stage"] == "build-and-test" for e in logs)


def test_workdir_creation_failure_fails_run_and_finishes_manifest(dummy_config, monkeypatch):
    """Sem workdir o Stage falha antes dos Steps; a run termina em `failed` com `run_finished`."""
    _require_imports()

    def no_space(*args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("release_flow.core.engine.runner.tempfile.mkdtemp", no_space)
    seen, built = [], []
    runner = _runner(dummy_config, _definition(seen, built=built))

    run = runner.run()

    assert run.state == RunState.FAILED
    assert run.history == [RunState.PENDING, RunState.BUILDING, RunState.FAILED]
    assert built == [] and seen == []
    events = [e["event_type"] for e in runner.manifest.events]
    assert events == ["run_started", "stage_failed", "gate_denied", "run_finished"]
    assert runner.manifest.run["state"] == "failed"
    assert runner.manifest.stages["build-and-test"]["outcome"] == "failure"

    detail = run.failure_detail
    assert detail["stage"] == "build-and-test"
    assert detail["step"] is None
    assert detail["error"]["type"] == "ENGINE_EXECUTION_ERROR"
    assert detail["error"]["details"]["exception_class"] == "OSError"


def test_secret_lookup_failure_fails_publish_and_removes_workdir(dummy_config, tmp_path):
    _require_imports()
    work = tmp_path / "work"
    dummy_config["source"]["workspace_root"] = str(work)

    class UnreachableSecrets:
        def get(self, name):
            raise RuntimeError("secret backend unreachable")

    seen = []
    runner = _runner(dummy_config, _definition(seen))
    runner.secrets = UnreachableSecrets()

    run = runner.run()

    assert run.state == RunState.FAILED
    assert run.history[-2:] == [RunState.PUBLISHING, RunState.FAILED]
    assert [s["stage"] for s in seen] == ["build-and-test"]
    assert list(work.iterdir()) == []
    assert runner.manifest.events[-1]["event_type"] == "run_finished"
    failed = runner.manifest.stages["publish"]
    assert failed["outcome"] == "failure"
    assert failed["error"]["details"] == {"stage": "publish", "exception_class": "RuntimeError"}
