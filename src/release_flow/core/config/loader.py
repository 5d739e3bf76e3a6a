# src/release_flow/core/config/loader.py
"""
Loader da configuração efetiva dos pipelines.

Camadas, da menor para a maior precedência:
    1. defaults empacotados (`defaults.yaml`) ou `defaults_path`
    2. arquivo local do projeto (`release-flow.yaml`, `.yml` ou `.json`)
    3. overrides em memória (CLI, testes)

O resultado passa por `validate_config` antes de ser devolvido.

Limites explícitos:
    - Não lê segredos
    - Não resolve paths (`~`, relativos): quem consome a chave resolve
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import json

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge
from .validate import validate_config


DEFAULTS_PATH = Path(__file__).with_name("defaults.yaml")

LOCAL_CONFIG_NAMES = ("release-flow.yaml", "release-flow.yml", "release-flow.json")

PathLike = Union[str, Path]


def _parse(path: Path) -> Any:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    if suffix == ".json":
        return json.loads(text) if text.strip() else None
    raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Lê uma camada de configuração. Documento vazio vale `{}`.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o root não for um mapa.
    """
    if not path.is_file():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    data = _parse(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__} ({path})"
        )
    return data


def find_local_config(root: PathLike) -> Optional[Path]:
    """Primeiro arquivo de `LOCAL_CONFIG_NAMES` existente em `root`."""
    for name in LOCAL_CONFIG_NAMES:
        candidate = Path(root) / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    *,
    defaults_path: Optional[PathLike] = None,
    local_path: Optional[PathLike] = None,
    overrides: Optional[Dict[str, Any]] = None,
    validate: bool = True,
) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva.

    Args:
        defaults_path: Defaults alternativos (os empacotados quando None).
        local_path: Camada local opcional; ignorada se o arquivo não existir.
        overrides: Camada em memória, aplicada por último.
        validate: Aplica `validate_config` ao resultado.

    Raises:
        DefaultsNotFoundError: Defaults inexistentes.
        UnsupportedConfigFormatError: Extensão não suportada.
        InvalidConfigRootTypeError: Documento cujo root não é um mapa.
        ConfigTypeConflictError: Tipos incompatíveis entre camadas.
        InvalidConfigValueError: Valor de domínio inválido.
    """
    effective = _load_file(Path(defaults_path) if defaults_path is not None else DEFAULTS_PATH)

    if local_path is not None and Path(local_path).exists():
        effective = deep_merge(effective, _load_file(Path(local_path)))

    if overrides:
        effective = deep_merge(effective, overrides)

    return validate_config(effective) if validate else effective
