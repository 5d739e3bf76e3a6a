# src/release_flow/core/engine/planner.py
"""
Planejador de Stages.

Valida a definição de um pipeline e produz a ordem de execução dos
Stages. Os pipelines do Release Flow são fixos e lineares; o planner
existe para que uma definição inconsistente (dependência inexistente,
ciclo, nome duplicado) falhe antes de qualquer Stage ser executado.

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn)
    - Empates são resolvidos pela ordem de declaração
    - Erros estruturais são fatais

Invariantes:
    - Nenhum Stage aparece antes de sua dependência
    - Todos os Stages aparecem exatamente uma vez
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from release_flow.core.pipeline.definition import StageSpec


class UnknownDependencyError(ValueError):
    """Um Stage depende de um Stage não declarado no pipeline."""


class CycleDetectedError(ValueError):
    """As dependências entre Stages formam um ciclo."""


def plan_stages(stages: Iterable[StageSpec]) -> List[StageSpec]:
    """
    Valida e ordena os Stages de um pipeline.

    Args:
        stages (Iterable[StageSpec]): Stages na ordem de declaração.

    Returns:
        List[StageSpec]: Stages em ordem de execução.

    Raises:
        ValueError: Se algum Stage tiver nome inválido ou duplicado.
        UnknownDependencyError: Se um Stage declarar dependência inexistente.
        CycleDetectedError: Se houver ciclo entre Stages.
    """
    declared = list(stages)
    by_name: Dict[str, StageSpec] = {}
    position: Dict[str, int] = {}
    for index, spec in enumerate(declared):
        name = getattr(spec, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("stage.name must be a non-empty string")
        if name in by_name:
            raise ValueError(f"Duplicate stage name: {name}")
        by_name[name] = spec
        position[name] = index

    for name, spec in by_name.items():
        dep = spec.depends_on
        if dep is not None and dep not in by_name:
            raise UnknownDependencyError(f"Stage '{name}' depends on unknown stage '{dep}'")

    incoming: Dict[str, int] = {
        name: (1 if spec.depends_on is not None else 0) for name, spec in by_name.items()
    }
    children: Dict[str, List[str]] = {name: [] for name in by_name}
    for name, spec in by_name.items():
        if spec.depends_on is not None:
            children[spec.depends_on].append(name)

    ready: List[str] = sorted((n for n, c in incoming.items() if c == 0), key=position.__getitem__)
    order: List[str] = []

    while ready:
        name = ready.pop(0)
        order.append(name)
        for child in children[name]:
            incoming[child] -= 1
            if incoming[child] == 0:
                ready.append(child)
                ready.sort(key=position.__getitem__)

    if len(order) != len(by_name):
        raise CycleDetectedError("Cycle detected in stage dependency graph")

    return [by_name[name] for name in order]
