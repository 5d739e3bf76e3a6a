"""
Release Flow: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Release Flow.
Erros fazem parte do contrato operacional de uma run e devem ser:

- explícitos
- serializáveis (gravados em StepResult.payload["error"] e no Manifest)
- acionáveis (com `hint` para o operador)

Nenhum erro é remediado automaticamente: não há retry, bump de versão
nem rollback.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReleaseErrorPayload:
    """
    Payload canônico de erro do Release Flow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Trigger (nunca levantado: evento não casado é no-op)
TRIGGER_MISMATCH = "TRIGGER_MISMATCH"

# Steps
STEP_FAILURE = "STEP_FAILURE"
SOURCE_CHECKOUT_FAILED = "SOURCE_CHECKOUT_FAILED"

# Cache (nunca fatal)
CACHE_MISS = "CACHE_MISS"
CACHE_SAVE_FAILED = "CACHE_SAVE_FAILED"

# Gate
GATE_DENIED = "GATE_DENIED"

# Registry
REGISTRY_AUTH_FAILED = "REGISTRY_AUTH_FAILED"
REGISTRY_REJECTION = "REGISTRY_REJECTION"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def step_failure(
    *,
    step: str,
    exit_code: Optional[int],
    command: Optional[str] = None,
    hint: str = "Corrija a falha localmente e dispare um novo evento (push ou nova tag).",
) -> ReleaseErrorPayload:
    return ReleaseErrorPayload(
        type=STEP_FAILURE,
        message=f"Step '{step}' terminou com status de falha",
        details={
            "step": step,
            "exit_code": exit_code,
            "command": command,
        },
        hint=hint,
    )


def gate_denied(
    *,
    stage: str,
    upstream: str,
    upstream_outcome: str,
    hint: str = "O Stage de build/teste precisa terminar com sucesso antes da publicação.",
) -> ReleaseErrorPayload:
    return ReleaseErrorPayload(
        type=GATE_DENIED,
        message="Release Gate negou o agendamento do Stage",
        details={
            "stage": stage,
            "upstream": upstream,
            "upstream_outcome": upstream_outcome,
        },
        hint=hint,
    )


def registry_rejection(
    *,
    reason: str,
    step: Optional[str] = None,
    exit_code: Optional[int] = None,
    hint: Optional[str] = None,
) -> ReleaseErrorPayload:
    if hint is None:
        if reason == "duplicate_version":
            hint = "A versão já existe no registry: atualize a versão no manifest e crie uma nova tag."
        elif reason == "network_error":
            hint = "Falha de rede ao contatar o registry: dispare o pipeline novamente."
        else:
            hint = "Verifique a saída do comando de publicação."
    return ReleaseErrorPayload(
        type=REGISTRY_REJECTION,
        message=f"Registry rejeitou a publicação ({reason})",
        details={
            "reason": reason,
            "step": step,
            "exit_code": exit_code,
        },
        hint=hint,
    )


def registry_auth_failed(
    *,
    secret_name: str,
    missing: bool,
    step: Optional[str] = None,
) -> ReleaseErrorPayload:
    return ReleaseErrorPayload(
        type=REGISTRY_AUTH_FAILED,
        message=(
            "Credencial do registry ausente"
            if missing
            else "Autenticação no registry falhou"
        ),
        details={
            "secret_name": secret_name,
            "missing": missing,
            "step": step,
        },
        hint=f"Verifique o segredo '{secret_name}' disponível para o Stage de publicação.",
    )


def engine_execution_error(
    *,
    step: str,
    exception_class: str,
    message: Optional[str] = None,
    hint: str = "Verifique os eventos da run e a configuração do pipeline.",
) -> ReleaseErrorPayload:
    """Exceção não tipada levantada por um Step (sem stack trace)."""
    return ReleaseErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=message or "Erro inesperado durante execução",
        details={
            "step": step,
            "exception_class": exception_class,
        },
        hint=hint,
    )


def stage_setup_error(
    *,
    stage: str,
    exception_class: str,
    message: Optional[str] = None,
    hint: str = "Verifique permissões e espaço livre em `source.workspace_root` e reexecute.",
) -> ReleaseErrorPayload:
    """Falha ao preparar o Stage (workdir, contexto), antes de qualquer Step."""
    return ReleaseErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=message or f"Não foi possível preparar o Stage '{stage}'",
        details={
            "stage": stage,
            "exception_class": exception_class,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para execução do pipeline",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a configuração e a definição dos Stages antes de reexecutar.",
) -> ReleaseErrorPayload:
    return ReleaseErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
    )
