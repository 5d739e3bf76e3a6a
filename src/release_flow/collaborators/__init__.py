# src/release_flow/collaborators/__init__.py
"""
Colaboradores externos do Release Flow.

Todos são invocados com contrato de shell (ou equivalente) e podem ser
substituídos em testes:

    - source: aquisição do código na revisão da run
    - cache: store de dependências endereçado por chave
    - registry: autenticação e publicação de pacotes
    - secrets: credenciais nomeadas
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .cache_store import DependencyCache
from .registry import RegistryClient, build_registry
from .secrets import SecretStore
from .source import SourceProvider, build_source


@dataclass
class Collaborators:
    source: SourceProvider
    cache: DependencyCache
    registry: RegistryClient
    secrets: SecretStore


def build_collaborators(
    config: Dict[str, Any],
    *,
    secrets: Optional[SecretStore] = None,
) -> Collaborators:
    cache_cfg = config.get("cache") or {}
    return Collaborators(
        source=build_source(config),
        cache=DependencyCache(Path(str(cache_cfg.get("store_dir") or "~/.cache/release-flow"))),
        registry=build_registry(config),
        secrets=secrets or SecretStore(),
    )


__all__ = [
    "Collaborators",
    "build_collaborators",
    "DependencyCache",
    "RegistryClient",
    "SecretStore",
    "SourceProvider",
]
