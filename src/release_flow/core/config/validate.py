# src/release_flow/core/config/validate.py
"""
Validação de domínio da configuração efetiva.

Roda depois do merge de todas as camadas. Só verifica chaves presentes:
uma seção ausente é responsabilidade de quem a consome (que aplica o
seu próprio default).

Regras:
    - `pipelines.publish.tag_pattern`: expressão regular válida
    - `pipelines.ci.*_branches` / `paths_ignore`: listas de strings
    - comandos (`build`, `test`, `registry.*_command`): lista não vazia de strings
    - `registry.secret_name` e `cache.key_prefix`: strings não vazias
    - `cache.paths`: lista de strings
    - `source.kind`: `git` | `directory`
    - `engine.step_timeout_seconds`: null ou número positivo
    - `engine.output_tail_lines`: inteiro >= 0
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from .errors import InvalidConfigValueError

SOURCE_KINDS = ("git", "directory")

_MISSING = object()


def _get(config: Dict[str, Any], dotted: str) -> Any:
    node: Any = config
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _string_list(key: str, value: Any, *, non_empty: bool = False) -> None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidConfigValueError(key, "deve ser uma lista de strings")
    if non_empty and not [v for v in value if v.strip()]:
        raise InvalidConfigValueError(key, "não pode ser vazio")


def _non_empty_str(key: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfigValueError(key, "deve ser uma string não vazia")


def _tag_pattern(key: str, value: Any) -> None:
    _non_empty_str(key, value)
    try:
        re.compile(value)
    except re.error as e:
        raise InvalidConfigValueError(key, f"expressão regular inválida ({e})") from e


def _source_kind(key: str, value: Any) -> None:
    if value not in SOURCE_KINDS:
        raise InvalidConfigValueError(key, f"deve ser um de {list(SOURCE_KINDS)}")


def _timeout(key: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise InvalidConfigValueError(key, "deve ser null ou um número positivo")


def _tail_lines(key: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidConfigValueError(key, "deve ser um inteiro >= 0")


def _command(key: str, value: Any) -> None:
    _string_list(key, value, non_empty=True)


def _string_list_rule(key: str, value: Any) -> None:
    _string_list(key, value)


_RULES = (
    ("pipelines.publish.tag_pattern", _tag_pattern),
    ("pipelines.ci.push_branches", _string_list_rule),
    ("pipelines.ci.pull_request_branches", _string_list_rule),
    ("pipelines.ci.paths_ignore", _string_list_rule),
    ("source.kind", _source_kind),
    ("build.command", _command),
    ("test.command", _command),
    ("cache.key_prefix", _non_empty_str),
    ("cache.paths", _string_list_rule),
    ("registry.secret_name", _non_empty_str),
    ("registry.login_command", _command),
    ("registry.publish_command", _command),
    ("engine.step_timeout_seconds", _timeout),
    ("engine.output_tail_lines", _tail_lines),
)


def validate_config(config: Dict[str, Any], *, keys: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Valida `config` e o devolve inalterado.

    Args:
        config: Configuração efetiva (após merge).
        keys: Restringe a validação a estas chaves pontuadas.

    Raises:
        InvalidConfigValueError: Na primeira regra violada, em ordem fixa.
    """
    for key, rule in _RULES:
        if keys is not None and key not in keys:
            continue
        value = _get(config, key)
        if value is _MISSING:
            continue
        rule(key, value)
    return config
