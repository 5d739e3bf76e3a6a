# src/release_flow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Release Flow.

Este módulo define as estruturas e enums que padronizam a comunicação
entre Steps, executor de Stages, runner e Manifest.

Componentes principais:
    - StepKind     → classificação semântica do Step (source, build, ...)
    - StepStatus   → estado final de um Step (SUCCESS, SKIPPED, FAILED)
    - StepResult   → resultado imutável de um Step
    - StageOutcome → estado de um Stage (pending, running, success, failure)
    - RunState     → estados da máquina de estados da run

Invariantes:
    - Enums possuem valores textuais canônicos (persistidos no Manifest)
    - StepResult é imutável
    - Nenhuma lógica de execução vive neste módulo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StepKind(str, Enum):
    """
    Tipos semânticos de Steps.

    O tipo é puramente informativo: o executor não decide nada com base
    no `kind`, apenas o registra no Manifest.

    Tipos definidos:
        - SOURCE: aquisição do source na revisão da run
        - BUILD: compilação
        - TEST: execução da suíte de testes
        - CACHE: restore/save do cache de dependências
        - AUTH: autenticação no registry
        - PUBLISH: publicação no registry
    """
    SOURCE = "source"
    BUILD = "build"
    TEST = "test"
    CACHE = "cache"
    AUTH = "auth"
    PUBLISH = "publish"


class StepStatus(str, Enum):
    """
    Estados finais de um Step.

    Estados definidos:
        - SUCCESS: comando terminou com status zero
        - SKIPPED: Step decidiu não agir (ex.: cache.save sem chave)
        - FAILED: status não-zero ou exceção; falha o Stage imediatamente

    Estados intermediários (running) pertencem ao Stage, não ao Step.
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class StageOutcome(str, Enum):
    """
    Estado de um Stage durante a run.

    Invariante: um Stage com dependência declarada só passa para RUNNING
    se o outcome da dependência for SUCCESS.
    """
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class RunState(str, Enum):
    """
    Estados da máquina de estados de uma PipelineRun.

        pending → building → (failed | tested)
        tested  → publishing → (failed | published)

    `failed` e `published` são terminais. No pipeline de CI, `tested`
    também é terminal.
    """
    PENDING = "pending"
    BUILDING = "building"
    TESTED = "tested"
    PUBLISHING = "publishing"
    FAILED = "failed"
    PUBLISHED = "published"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um Step.

    Campos:
        - step_id: identificador do Step dentro do Stage
        - kind: tipo semântico do Step
        - status: estado final
        - summary: resumo textual
        - metrics: valores numéricos (ex.: exit_code, duration_ms, bytes)
        - warnings: avisos não fatais (ex.: cache miss)
        - artifacts: referências produzidas (ex.: workdir, cache key)
        - payload: dados livres; em falhas contém `error` e `output`

    Invariantes:
        - Uma instância nunca é alterada após criada
        - Saídas em `payload["output"]` já chegam com segredos mascarados
    """
    step_id: str
    kind: StepKind
    status: StepStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status != StepStatus.FAILED
