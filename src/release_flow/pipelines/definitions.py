# src/release_flow/pipelines/definitions.py
"""
Pipelines do Release Flow.

    publish:  build-and-test ──(Release Gate)──► publish
    ci:       build-and-test

Os Steps são construídos sob demanda (`build_steps`), de modo que cada
Stage de cada run recebe instâncias novas. O Stage `publish` é o único
que declara o segredo do registry.
"""

from __future__ import annotations

from typing import Any, Dict, List

from release_flow.collaborators import Collaborators
from release_flow.core.engine.gate import BUILD_AND_TEST_STAGE, PUBLISH_STAGE
from release_flow.core.exceptions import EngineConfigurationError
from release_flow.core.pipeline.definition import PipelineDefinition, StageSpec
from release_flow.core.pipeline.run import CI_TERMINAL_STATES, PUBLISH_TERMINAL_STATES
from release_flow.core.pipeline.step import Step
from release_flow.core.pipeline.types import RunState, StepKind
from release_flow.steps.cache.restore import CacheRestoreStep
from release_flow.steps.cache.save import CacheSaveStep
from release_flow.steps.command.run import command_step_from_config, tail_lines_from_config
from release_flow.steps.registry.login import RegistryLoginStep
from release_flow.steps.registry.publish import RegistryPublishStep
from release_flow.steps.source.checkout import CheckoutStep

PIPELINE_PUBLISH = "publish"
PIPELINE_CI = "ci"


def build_and_test_spec(config: Dict[str, Any], collaborators: Collaborators) -> StageSpec:
    def steps() -> List[Step]:
        return [
            CheckoutStep(source=collaborators.source),
            command_step_from_config(config, section="build", kind=StepKind.BUILD),
            command_step_from_config(config, section="test", kind=StepKind.TEST),
        ]

    return StageSpec(
        name=BUILD_AND_TEST_STAGE,
        build_steps=steps,
        running_state=RunState.BUILDING,
        success_state=RunState.TESTED,
    )


def publish_spec(config: Dict[str, Any], collaborators: Collaborators) -> StageSpec:
    cache_cfg = config.get("cache") or {}
    registry_cfg = config.get("registry") or {}
    secret_name = str(registry_cfg.get("secret_name") or "CRATES_IO_TOKEN")
    cache_paths = [str(p) for p in cache_cfg.get("paths") or []]
    tail = tail_lines_from_config(config)

    def steps() -> List[Step]:
        return [
            CheckoutStep(source=collaborators.source),
            CacheRestoreStep(
                cache=collaborators.cache,
                key_prefix=str(cache_cfg.get("key_prefix") or "cargo"),
                lock_glob=str(cache_cfg.get("lock_glob") or "**/Cargo.lock"),
                paths=cache_paths,
            ),
            RegistryLoginStep(registry=collaborators.registry, secret_name=secret_name, tail_lines=tail),
            RegistryPublishStep(
                registry=collaborators.registry,
                manifest=str(registry_cfg.get("manifest") or "Cargo.toml"),
                tail_lines=tail,
            ),
            CacheSaveStep(cache=collaborators.cache, paths=cache_paths),
        ]

    return StageSpec(
        name=PUBLISH_STAGE,
        build_steps=steps,
        running_state=RunState.PUBLISHING,
        success_state=RunState.PUBLISHED,
        depends_on=BUILD_AND_TEST_STAGE,
        secrets=(secret_name,),
    )


def publish_definition(config: Dict[str, Any], collaborators: Collaborators) -> PipelineDefinition:
    cfg = (config.get("pipelines") or {}).get(PIPELINE_PUBLISH) or {}
    return PipelineDefinition(
        name=PIPELINE_PUBLISH,
        title=str(cfg.get("name") or PIPELINE_PUBLISH),
        stages=[build_and_test_spec(config, collaborators), publish_spec(config, collaborators)],
        terminal_states=PUBLISH_TERMINAL_STATES,
    )


def ci_definition(config: Dict[str, Any], collaborators: Collaborators) -> PipelineDefinition:
    cfg = (config.get("pipelines") or {}).get(PIPELINE_CI) or {}
    return PipelineDefinition(
        name=PIPELINE_CI,
        title=str(cfg.get("name") or PIPELINE_CI),
        stages=[build_and_test_spec(config, collaborators)],
        terminal_states=CI_TERMINAL_STATES,
    )


def definition_for(pipeline: str, config: Dict[str, Any], collaborators: Collaborators) -> PipelineDefinition:
    if pipeline == PIPELINE_PUBLISH:
        return publish_definition(config, collaborators)
    if pipeline == PIPELINE_CI:
        return ci_definition(config, collaborators)
    raise EngineConfigurationError(
        message=f"Pipeline desconhecido: {pipeline}",
        details={"pipeline": pipeline, "supported": [PIPELINE_PUBLISH, PIPELINE_CI]},
    )
