# src/release_flow/core/config/__init__.py
"""
Camada de configuração do Release Flow.

A configuração descreve, de forma declarativa, tudo o que os pipelines
precisam saber sobre o projeto alvo: padrão de tag, filtros de branch e
de paths, comandos de build/teste, política de cache e comandos do
registry.

Responsabilidades do pacote:
    - Carregar os defaults empacotados (`defaults.yaml`)
    - Aplicar um override local opcional via deep-merge determinístico
    - Validar os valores de domínio (padrões, comandos, timeouts)
    - Gerar hash canônico para rastreabilidade no Manifest

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - A mesma entrada sempre produz a mesma configuração final
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não contém segredos (a credencial vem do SecretStore)
    - Não executa pipeline
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import DEFAULTS_PATH, LOCAL_CONFIG_NAMES, find_local_config, load_config
from .merge import deep_merge
from .validate import validate_config

__all__ = [
    "DEFAULTS_PATH",
    "LOCAL_CONFIG_NAMES",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "deep_merge",
    "find_local_config",
    "load_config",
    "validate_config",
]
