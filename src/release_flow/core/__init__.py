# src/release_flow/core/__init__.py
"""
Core do Release Flow.

Este pacote reúne as responsabilidades essenciais para planejar, executar
e rastrear runs dos pipelines de release, de forma independente dos
colaboradores concretos (git, cargo, registry, storage de cache).

O core é projetado para ser:
    - determinístico
    - testável de forma isolada
    - livre de dependências de ferramentas externas

Subpacotes:
    - config        → configuração declarativa (defaults + override local)
    - pipeline      → contratos canônicos (Step, StageContext, PipelineRun)
    - engine        → execução fail-fast de Stages e Release Gate
    - traceability  → Manifest e Event Log da run

Limites explícitos:
    - Não invoca subprocessos diretamente
    - Não conhece o formato de eventos do host de source control
"""
