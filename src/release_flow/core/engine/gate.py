# src/release_flow/core/engine/gate.py
"""
Release Gate.

O gate é uma função pura do estado dos Stages de uma run, não uma unidade
agendável. É avaliado uma única vez por run, imediatamente após o Stage
upstream terminar. Quando permite, a decisão é transmitida como dado
(`upstream`) ao contexto novo do Stage dependente, que não compartilha
nada com o Stage upstream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from release_flow.core.pipeline.definition import StageSpec
from release_flow.core.pipeline.run import PipelineRun
from release_flow.core.pipeline.types import StageOutcome

BUILD_AND_TEST_STAGE = "build-and-test"
PUBLISH_STAGE = "publish"


@dataclass(frozen=True)
class GateDecision:
    stage: str
    upstream: str
    upstream_outcome: Optional[str]
    allowed: bool

    def upstream_flags(self) -> Dict[str, str]:
        """Sinal upstream entregue ao StageContext do Stage dependente."""
        return {self.upstream: self.upstream_outcome or StageOutcome.PENDING.value}


def can_run_publish(run: PipelineRun) -> bool:
    """`run.stages["build-and-test"].outcome == success`."""
    stage = run.stages.get(BUILD_AND_TEST_STAGE)
    return stage is not None and stage.outcome == StageOutcome.SUCCESS


def evaluate_gate(run: PipelineRun, spec: StageSpec) -> GateDecision:
    """Avalia a dependência declarada de `spec` contra os Stages já executados."""
    if spec.depends_on is None:
        return GateDecision(stage=spec.name, upstream="", upstream_outcome=None, allowed=True)

    upstream = run.stages.get(spec.depends_on)
    outcome = upstream.outcome.value if upstream is not None else None
    if spec.name == PUBLISH_STAGE and spec.depends_on == BUILD_AND_TEST_STAGE:
        allowed = can_run_publish(run)
    else:
        allowed = outcome == StageOutcome.SUCCESS.value
    return GateDecision(
        stage=spec.name,
        upstream=spec.depends_on,
        upstream_outcome=outcome,
        allowed=allowed,
    )
