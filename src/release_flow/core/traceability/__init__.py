# src/release_flow/core/traceability/__init__.py
"""
Pacote de rastreabilidade do Release Flow: Run Manifest v1.

API pública:
    - RunManifest     → estrutura canônica do registro de uma run
    - create_manifest → criação explícita do Manifest
    - add_event       → registro explícito no Event Log
    - stage_started   → marca início de um Stage
    - stage_finished  → registra conclusão de um Stage (com Steps)
    - stage_failed    → registra falha de um Stage
    - gate_denied     → registra a negação do Release Gate
    - run_finished    → registra estado terminal da run
    - save_manifest / load_manifest → persistência JSON determinística

Decisões arquiteturais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem de chamada
    - O Manifest nunca contém valores de segredos (o runner grava apenas
      dados já mascarados pelo StageContext)
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    gate_denied,
    load_manifest,
    run_finished,
    save_manifest,
    stage_failed,
    stage_finished,
    stage_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "gate_denied",
    "load_manifest",
    "run_finished",
    "save_manifest",
    "stage_failed",
    "stage_finished",
    "stage_started",
]
