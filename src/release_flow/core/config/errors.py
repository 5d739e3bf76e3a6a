# src/release_flow/core/config/errors.py
"""
Erros de configuração.

Todos são fatais e acontecem antes de qualquer run: um evento nunca é
despachado com uma configuração que não carregou ou não validou.
"""


class ConfigError(Exception):
    """Base de todos os erros de configuração (capturada pela CLI)."""


class DefaultsNotFoundError(ConfigError):
    """Arquivo de defaults, ou arquivo local pedido explicitamente, inexistente."""


class UnsupportedConfigFormatError(ConfigError):
    """Extensão diferente de `.yaml`, `.yml` ou `.json`."""


class InvalidConfigRootTypeError(ConfigError):
    """O documento carregado não é um mapa no nível raiz."""


class ConfigTypeConflictError(ConfigError):
    """
    Camadas com tipos incompatíveis para a mesma chave.

    Exemplo:
        - defaults: {"build": {"command": ["cargo", "build"]}}
        - local:    {"build": {"command": "cargo build"}}
    """


class InvalidConfigValueError(ConfigError):
    """
    Valor estruturalmente válido mas inutilizável pelos pipelines.

    Ex.: `tag_pattern` que não compila, comando vazio, timeout negativo.
    O caminho pontuado da chave fica em `key`.
    """

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key
