"""
Release Flow: Canonical Exceptions (v1)

Exceções tipadas internas do Release Flow.

Objetivo:
- Permitir que Steps/Engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ReleaseErrorPayload
- Evitar ValueError/RuntimeError genéricos nas fronteiras críticas

Regras:
- Exceções carregam apenas dados estruturados (serializáveis)
- Nunca carregam o valor de segredos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import (
    ENGINE_CONFIGURATION_ERROR,
    ENGINE_EXECUTION_ERROR,
    GATE_DENIED,
    REGISTRY_AUTH_FAILED,
    SOURCE_CHECKOUT_FAILED,
    STEP_FAILURE,
)


@dataclass(frozen=True)
class ReleaseException(Exception):
    """Base class para exceções internas do Release Flow.

    - `details` sempre estruturado
    - mensagem curta e humana
    - `code` é o tipo estável usado no ReleaseErrorPayload
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    code = ENGINE_EXECUTION_ERROR

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepFailure(ReleaseException):
    """Comando de build, teste, login ou publish terminou com falha."""

    code = STEP_FAILURE


@dataclass(frozen=True)
class SourceCheckoutError(ReleaseException):
    """Não foi possível materializar o source na revisão pedida."""

    code = SOURCE_CHECKOUT_FAILED


# ---------------------------------------------------------------------------
# Gate / Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GateDenied(ReleaseException):
    """Stage dependente recebeu um sinal upstream diferente de sucesso."""

    code = GATE_DENIED


@dataclass(frozen=True)
class CredentialMissing(ReleaseException):
    """Segredo do registry não foi injetado no Stage de publicação."""

    code = REGISTRY_AUTH_FAILED


# ---------------------------------------------------------------------------
# Engine / Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfigurationError(ReleaseException):
    """Definição de Stages ou configuração inválida para execução."""

    code = ENGINE_CONFIGURATION_ERROR


@dataclass(frozen=True)
class InvalidTransitionError(ReleaseException):
    """Transição não permitida pela máquina de estados da run."""

    code = ENGINE_CONFIGURATION_ERROR
