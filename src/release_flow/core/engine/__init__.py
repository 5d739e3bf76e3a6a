# src/release_flow/core/engine/__init__.py
"""
Engine do Release Flow.

Este pacote planeja e executa as runs dos pipelines fixos, respeitando a
máquina de estados da run e o Release Gate.

Componentes principais:
    - planner  → validação estrutural e ordem dos Stages declarados
    - executor → execução sequencial fail-fast dos Steps de um Stage
    - gate     → Release Gate (função pura do estado dos Stages)
    - runner   → orquestração da run: contextos isolados, gate, transições

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - Steps de um Stage executam estritamente em sequência
    - Cada Stage recebe workdir, ambiente e contexto próprios
    - Nenhum retry implícito

Limites explícitos:
    - Não é um agendador de DAG genérico
    - Não invoca ferramentas externas diretamente (isso é dos Steps)
"""
