# src/release_flow/collaborators/source.py
"""
Aquisição do source na revisão de uma run.

Providers:
    - GitSource: `git clone` + `git checkout --detach <revision>`
    - DirectorySource: cópia de um diretório local (sem controle de versão)

Todo provider grava o checkout em `dest` (o workdir do Stage) e devolve
a revisão efetivamente materializada.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Dict, Mapping, Protocol

from release_flow.core.exceptions import EngineConfigurationError, SourceCheckoutError

from .shell import CommandRunner, run_command

_IGNORED_DIRS = (".git",)


class SourceProvider(Protocol):
    def checkout(self, *, revision: str, dest: Path, env: Mapping[str, str]) -> str:
        ...


class GitSource:
    """Clona `repository` e fixa o HEAD na revisão pedida (HEAD quando vazia)."""

    def __init__(self, repository: str, *, runner: CommandRunner = run_command):
        self.repository = repository
        self.runner = runner

    def _git(self, args, *, cwd: Path, env: Mapping[str, str], what: str) -> str:
        outcome = self.runner(["git", *args], cwd=cwd, env=env)
        if not outcome.ok:
            raise SourceCheckoutError(
                message=f"git {what} falhou",
                details={
                    "repository": self.repository,
                    "exit_code": outcome.exit_code,
                    "output": outcome.tail(50),
                },
                hint="Verifique se o repositório e a revisão existem e estão acessíveis.",
            )
        return outcome.output

    def checkout(self, *, revision: str, dest: Path, env: Mapping[str, str]) -> str:
        dest = Path(dest)
        self._git(["clone", "--quiet", self.repository, str(dest)], cwd=dest.parent, env=env, what="clone")
        if revision:
            self._git(["checkout", "--quiet", "--detach", revision], cwd=dest, env=env, what="checkout")
        resolved = self._git(["rev-parse", "HEAD"], cwd=dest, env=env, what="rev-parse")
        return resolved.strip()


class DirectorySource:
    """Copia `root` para o workdir. A revisão é apenas registrada."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def checkout(self, *, revision: str, dest: Path, env: Mapping[str, str]) -> str:
        if not self.root.is_dir():
            raise SourceCheckoutError(
                message="Diretório de source inexistente",
                details={"root": str(self.root)},
                hint="Ajuste `source.repository` para um diretório existente.",
            )
        shutil.copytree(
            self.root,
            dest,
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(*_IGNORED_DIRS),
        )
        return revision


def build_source(config: Dict[str, Any]) -> SourceProvider:
    """Constrói o provider a partir da seção `source` da configuração."""
    cfg = config.get("source") or {}
    kind = cfg.get("kind", "git")
    repository = cfg.get("repository") or "."
    if kind == "git":
        return GitSource(str(repository))
    if kind == "directory":
        return DirectorySource(Path(str(repository)))
    raise EngineConfigurationError(
        message=f"source.kind não suportado: {kind}",
        details={"kind": kind, "supported": ["git", "directory"]},
        hint="Use `git` ou `directory`.",
    )
