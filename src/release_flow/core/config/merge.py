# src/release_flow/core/config/merge.py
"""
Deep-merge das camadas de configuração (defaults → arquivo local → overrides).

Regras por tipo do valor no override:
    - dict sobre dict: merge recursivo por chave
    - list: substitui a lista inteira (`build.command`, `cache.paths`, ...)
    - None: desliga a chave; uma chave None na base aceita qualquer valor
    - escalar: substitui, desde que o tipo seja o mesmo da base

Conflitos de tipo abortam o merge inteiro com `ConfigTypeConflictError`,
indicando o caminho pontuado da chave (ex.: `engine.output_tail_lines`).
Nenhuma das entradas é mutada.
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _describe(value: Any) -> str:
    return type(value).__name__


def _merge_value(path: Tuple[str, ...], base_value: Any, override_value: Any) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        return _merge_dicts(path, base_value, override_value)

    if base_value is None or override_value is None:
        return deepcopy(override_value)

    if isinstance(override_value, list) and isinstance(base_value, list):
        return deepcopy(override_value)

    # bool é subclasse de int: a comparação é pelo tipo exato
    if type(base_value) is type(override_value):
        return deepcopy(override_value)

    raise ConfigTypeConflictError(
        f"Conflito de tipo na chave '{'.'.join(path)}': "
        f"{_describe(base_value)} vs {_describe(override_value)}"
    )


def _merge_dicts(path: Tuple[str, ...], base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, override_value in override.items():
        if key in merged:
            merged[key] = _merge_value(path + (str(key),), merged[key], override_value)
        else:
            merged[key] = deepcopy(override_value)
    return merged


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina `base` com `override` e devolve um novo dicionário.

    Raises:
        ConfigTypeConflictError: Se alguma das entradas não for dict, ou se
            uma chave tiver tipos incompatíveis entre as camadas.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{_describe(base)} vs {_describe(override)}"
        )
    return _merge_dicts((), base, override)
