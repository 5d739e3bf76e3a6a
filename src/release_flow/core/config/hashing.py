# src/release_flow/core/config/hashing.py
"""
Hash da configuração efetiva, gravado em `inputs.config_hash` do Manifest.

Chaves que só descrevem a máquina onde a run executou (diretório de
workdirs, store do cache) ficam fora do hash: a mesma configuração de
projeto produz o mesmo hash em qualquer host.
"""

import hashlib
import json
from copy import deepcopy
from typing import Any, Dict, Tuple

HOST_LOCAL_KEYS: Tuple[Tuple[str, str], ...] = (
    ("source", "workspace_root"),
    ("cache", "store_dir"),
    ("engine", "keep_workdirs"),
)


def _without_host_keys(config: Dict[str, Any]) -> Dict[str, Any]:
    portable = deepcopy(config)
    for section, key in HOST_LOCAL_KEYS:
        block = portable.get(section)
        if isinstance(block, dict):
            block.pop(key, None)
    return portable


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    SHA-256 do JSON canônico (chaves ordenadas, separadores compactos, UTF-8).

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical = json.dumps(
        _without_host_keys(config),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
