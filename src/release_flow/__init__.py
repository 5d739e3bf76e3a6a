# src/release_flow/__init__.py
"""
Release Flow: orquestração de release por tag com gate explícito.

Este pacote raiz define o namespace público do Release Flow, uma ferramenta
que reimplementa, de forma explícita e testável, dois pipelines fixos de
automação de release:

    - publish → build + testes e, somente em caso de sucesso, publicação
      do pacote no registry usando cache de dependências e credencial
    - ci      → build + testes a cada push / pull request

Princípios centrais:
    - Cada run é uma máquina de estados explícita
    - Stages executam em ambientes isolados (workdir, env e contexto próprios)
    - O Release Gate é um dado transmitido ao Stage dependente, não estado global
    - Segredos nunca atravessam a fronteira para o Stage de build/teste

Arquitetura em alto nível:
    - core.config        → carregamento, merge e hashing de configuração
    - core.pipeline      → tipos, protocolo de Step, contexto e PipelineRun
    - core.engine        → planner de Stages, executor, gate e runner
    - core.traceability  → Manifest da run e Event Log
    - collaborators      → clientes finos (shell, source, cache, registry, secrets)
    - steps              → Steps concretos (checkout, comando, cache, registry)
    - pipelines          → definições dos pipelines publish e ci
    - trigger            → parsing de eventos e Trigger Listener

Limites explícitos:
    - Não é um workflow engine genérico
    - Não reimplementa build tool, test runner ou API do registry
    - Não faz retry automático de Steps
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
