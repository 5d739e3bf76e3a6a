# src/release_flow/collaborators/secrets.py
"""Secret store: credenciais nomeadas, lidas do ambiente do processo."""

from __future__ import annotations

import os
from typing import Mapping, Optional


class SecretStore:
    """
    Fonte de segredos com escopo de processo.

    Os valores vêm de um mapa explícito ou, por padrão, do ambiente do
    processo. O runner injeta o valor apenas no Stage que o declara; os
    demais Stages recebem um ambiente sem esses nomes.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._values = dict(values or {})
        self._environ = os.environ if environ is None else environ

    def get(self, name: str) -> Optional[str]:
        value = self._values.get(name)
        if value is None:
            value = self._environ.get(name)
        return value or None

    def __repr__(self) -> str:
        return f"SecretStore(names={sorted(self._values)})"
