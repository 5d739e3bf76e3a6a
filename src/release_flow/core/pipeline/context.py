# src/release_flow/core/pipeline/context.py
"""
Contexto de execução isolado de um Stage.

Este módulo define o `StageContext`, a estrutura passada a todos os Steps
de um Stage. Cada Stage de cada run recebe um contexto novo: não há
memória, workdir ou ambiente compartilhados entre Stages.

O StageContext é o único meio permitido de:
    - acessar workdir, ambiente e segredos do Stage
    - trocar informações entre Steps do mesmo Stage (artifact store)
    - registrar logs estruturados
    - coletar warnings não fatais por Step
    - consultar o sinal upstream do Release Gate (`upstream`)

Invariantes:
    - Logs sempre incluem `run_id`, `stage` e `step_id`
    - Valores de segredos nunca aparecem em logs (mascarados como `***`)
    - `secrets` só é preenchido no Stage de publicação
    - Warnings são agrupados por `step_id`

Limites explícitos:
    - Não executa Steps
    - Não persiste dados automaticamente
    - Não registra eventos no Manifest
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

MASK = "***"


@dataclass
class StageContext:
    """
    Contexto de execução de um Stage de uma run.

    Campos:
        - run_id / stage: identidade do Stage dentro da run
        - created_at: timestamp UTC de criação
        - config: configuração efetiva (somente leitura por convenção)
        - workdir: diretório efêmero exclusivo do Stage
        - ref / revision: ref e sha do evento que disparou a run
        - env: ambiente passado aos comandos do Stage
        - secrets: segredos injetados (nome → valor), nunca logados
        - upstream: outcomes dos Stages dos quais este depende (gate)
        - meta: metadados livres (ex.: nome do pipeline)

    Decisões arquiteturais:
        - O gate é transmitido como dado (`upstream`) ao novo contexto
        - Segredos entram no `env` apenas quando injetados pelo runner
    """
    run_id: str
    stage: str
    created_at: datetime
    config: Dict[str, Any]
    workdir: Path
    ref: str = ""
    revision: str = ""
    env: Dict[str, str] = field(default_factory=dict)
    secrets: Dict[str, str] = field(default_factory=dict, repr=False)
    upstream: Dict[str, str] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Secrets
    # -----------------------------
    def get_secret(self, name: str) -> str | None:
        value = self.secrets.get(name)
        return value if value else None

    def mask(self, value: Any) -> Any:
        """Substitui valores de segredos por `***` em strings, listas e dicts."""
        if isinstance(value, str):
            for secret in self.secrets.values():
                if secret:
                    value = value.replace(secret, MASK)
            return value
        if isinstance(value, dict):
            return {k: self.mask(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.mask(v) for v in value]
        return value

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage": self.stage,
            "step_id": step_id,
            "level": level,
            "message": self.mask(message),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(self.mask(extra))
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(self.mask(message))
