# src/release_flow/core/pipeline/step.py
"""
Contrato canônico de Step do Release Flow.

Um Step é a menor unidade executável de um Stage: normalmente a invocação
de um comando com contrato de shell (workdir, ambiente, segredos e status
de saída).

Princípios fundamentais:
    - Steps não conhecem o runner nem o Release Gate
    - Steps não controlam ordem de execução
    - Comunicação entre Steps do mesmo Stage passa pelo StageContext
    - Conformidade é garantida por duck typing (@runtime_checkable)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .context import StageContext
from .types import StepKind, StepResult


@runtime_checkable
class Step(Protocol):
    """
    Contrato canônico de um Step.

    Atributos obrigatórios:
        - id: identificador único e estável do Step no Stage
        - kind: classificação semântica (`StepKind`)
        - always_run: se True, o Step é tentado mesmo após uma falha
          anterior no Stage (ex.: `cache.save`); o outcome do Stage
          continua sendo failure

    Invariantes:
        - `id` é único no Stage
        - `run` é executado no máximo uma vez por Stage
        - O retorno de `run` é sempre um `StepResult`

    Limites explícitos:
        - Não define retry
        - Não registra eventos no Manifest diretamente
    """
    id: str
    kind: StepKind
    always_run: bool

    def run(self, ctx: StageContext) -> StepResult:
        """Executa o Step uma única vez usando exclusivamente o StageContext."""
        ...
