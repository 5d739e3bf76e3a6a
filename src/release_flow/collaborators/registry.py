# src/release_flow/collaborators/registry.py
"""
Cliente do registry de pacotes.

Autentica com uma credencial (entregue via stdin, nunca em argv) e
publica o pacote do checkout. Falhas de publicação são classificadas
pela saída do comando:

    - duplicate_version: a versão já existe no registry
    - network_error: falha de rede/transporte
    - rejected: qualquer outra recusa

Nenhuma falha é remediada aqui: não há retry nem bump de versão.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from .shell import CommandOutcome, CommandRunner, run_command

DUPLICATE_VERSION = "duplicate_version"
NETWORK_ERROR = "network_error"
REJECTED = "rejected"
AUTH_FAILED = "auth_failed"


@dataclass(frozen=True)
class RegistryOutcome:
    ok: bool
    reason: Optional[str]
    exit_code: Optional[int]
    output: str
    command: str = ""

    def tail(self, lines: int) -> str:
        if lines <= 0:
            return ""
        return "\n".join(self.output.splitlines()[-lines:])


def classify_failure(
    output: str,
    *,
    duplicate_patterns: Sequence[str],
    network_patterns: Sequence[str],
) -> str:
    text = (output or "").lower()
    if any(p.lower() in text for p in duplicate_patterns):
        return DUPLICATE_VERSION
    if any(p.lower() in text for p in network_patterns):
        return NETWORK_ERROR
    return REJECTED


def read_package_version(manifest: Path) -> Optional[str]:
    """Versão declarada no manifest TOML do pacote (`[package].version`)."""
    if not manifest.is_file():
        return None
    try:
        data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError:
        return None
    version = (data.get("package") or {}).get("version")
    return version if isinstance(version, str) else None


class RegistryClient:
    def __init__(
        self,
        *,
        login_command: Sequence[str],
        publish_command: Sequence[str],
        duplicate_patterns: Sequence[str] = (),
        network_patterns: Sequence[str] = (),
        timeout: Optional[float] = None,
        runner: CommandRunner = run_command,
    ):
        self.login_command = list(login_command)
        self.publish_command = list(publish_command)
        self.duplicate_patterns = list(duplicate_patterns)
        self.network_patterns = list(network_patterns)
        self.timeout = timeout
        self.runner = runner

    def _outcome(self, result: CommandOutcome, failure_reason: Optional[str]) -> RegistryOutcome:
        return RegistryOutcome(
            ok=result.ok,
            reason=None if result.ok else failure_reason,
            exit_code=result.exit_code,
            output=result.output,
            command=result.display,
        )

    def login(self, credential: str, *, cwd: Path, env: Mapping[str, str]) -> RegistryOutcome:
        result = self.runner(
            self.login_command,
            cwd=cwd,
            env=env,
            stdin=credential + "\n",
            timeout=self.timeout,
        )
        return self._outcome(result, AUTH_FAILED)

    def publish(self, *, cwd: Path, env: Mapping[str, str]) -> RegistryOutcome:
        result = self.runner(self.publish_command, cwd=cwd, env=env, timeout=self.timeout)
        reason = None
        if not result.ok:
            reason = NETWORK_ERROR if result.timed_out else classify_failure(
                result.output,
                duplicate_patterns=self.duplicate_patterns,
                network_patterns=self.network_patterns,
            )
        return self._outcome(result, reason)


def build_registry(config: Dict[str, Any]) -> RegistryClient:
    cfg = config.get("registry") or {}
    timeout = (config.get("engine") or {}).get("step_timeout_seconds")
    return RegistryClient(
        login_command=cfg.get("login_command") or ["cargo", "login"],
        publish_command=cfg.get("publish_command") or ["cargo", "publish"],
        duplicate_patterns=cfg.get("duplicate_version_patterns") or [],
        network_patterns=cfg.get("network_error_patterns") or [],
        timeout=timeout,
    )
