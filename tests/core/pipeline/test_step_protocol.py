# tests/core/pipeline/test_step_protocol.py
"""
Testes do contrato canônico de Step.

O contrato é estrutural (`@runtime_checkable`): qualquer objeto com
`id`, `kind`, `always_run` e `run(ctx)` é um Step, sem herança. Os
Steps concretos do Release Flow também precisam satisfazê-lo.
"""
import pytest

try:
    from release_flow.core.pipeline.step import Step
    from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus
except Exception as e:  # noqa: BLE001
    Step = None
    StepKind = None
    StepResult = None
    StepStatus = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing Step protocol. Implement:\n"
            "- src/release_flow/core/pipeline/step.py (Step)\n"
            "- src/release_flow/core/pipeline/types.py (StepKind, StepStatus, StepResult)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_dummy_step_satisfies_protocol(DummyStep):
    _require_imports()
    assert isinstance(DummyStep(), Step)


def test_object_without_run_is_not_a_step():
    _require_imports()

    class NotAStep:
        id = "x"
        kind = StepKind.BUILD
        always_run = False

    assert not isinstance(NotAStep(), Step)


def test_concrete_steps_satisfy_protocol(tmp_path):
    """Os Steps dos pipelines são Steps pelo contrato estrutural."""
    _require_imports()
    from release_flow.collaborators.cache_store import DependencyCache
    from release_flow.collaborators.registry import RegistryClient
    from release_flow.collaborators.source import DirectorySource
    from release_flow.steps.cache.restore import CacheRestoreStep
    from release_flow.steps.cache.save import CacheSaveStep
    from release_flow.steps.command.run import CommandStep
    from release_flow.steps.registry.login import RegistryLoginStep
    from release_flow.steps.registry.publish import RegistryPublishStep
    from release_flow.steps.source.checkout import CheckoutStep

    cache = DependencyCache(tmp_path / "store")
    registry = RegistryClient(login_command=["true"], publish_command=["true"])
    steps = [
        CheckoutStep(source=DirectorySource(tmp_path)),
        CommandStep(id="build", kind=StepKind.BUILD, command=["true"]),
        CacheRestoreStep(cache=cache),
        RegistryLoginStep(registry=registry),
        RegistryPublishStep(registry=registry),
        CacheSaveStep(cache=cache),
    ]

    for step in steps:
        assert isinstance(step, Step)
    assert [s.always_run for s in steps] == [False, False, False, False, False, True]


def test_step_result_is_immutable():
    _require_imports()
    r = StepResult(step_id="build", kind=StepKind.BUILD, status=StepStatus.SUCCESS, summary="ok")

    with pytest.raises(Exception):
        r.status = StepStatus.FAILED  # type: ignore[misc]

    assert r.ok is True
    assert StepResult(step_id="t", kind=StepKind.TEST, status=StepStatus.FAILED, summary="x").ok is False
