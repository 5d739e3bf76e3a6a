# src/release_flow/collaborators/cache_store.py
"""
Cache de dependências endereçado por chave.

Entradas são blobs opacos (tar.gz dos diretórios de dependências)
gravados em um diretório de store, uma entrada por chave.

Semântica:
    - `restore(key, fallback_prefixes)`: match exato primeiro; senão, para
      cada prefixo em ordem, a entrada mais recente cuja chave começa com
      o prefixo; senão, miss (`None`)
    - `save(key, data)`: idempotente por chave; a primeira escrita vence
      e escritas posteriores na mesma chave são no-op (`False`)
    - Escritas concorrentes na mesma chave: exatamente uma é preservada

Formato da chave:
    `<os>-<prefix>-<sha256 dos lock files>`

Limites explícitos:
    - Não há expiração nem limite de tamanho do store
    - Um miss nunca é erro: o build apenas fica mais lento
"""

from __future__ import annotations

import hashlib
import io
import os
import platform
import shutil
import tarfile
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote, unquote

ENTRY_SUFFIX = ".tar.gz"

_OS_FAMILIES = {
    "Linux": "Linux",
    "Darwin": "macOS",
    "Windows": "Windows",
}


@dataclass(frozen=True)
class CacheHit:
    key: str
    data: bytes
    exact: bool


# ---------------------------------------------------------------------------
# Chave
# ---------------------------------------------------------------------------

def runner_os() -> str:
    """Família do sistema operacional usada como primeiro segmento da chave."""
    system = platform.system()
    return _OS_FAMILIES.get(system, system or "unknown")


def hash_lock_files(root: Path, pattern: str) -> str:
    """
    SHA-256 sobre os digests dos arquivos que casam `pattern` sob `root`.

    Arquivos são considerados em ordem de path relativo. Sem nenhum
    arquivo casado o resultado é string vazia (a chave fica `<os>-<prefix>-`).
    """
    files = sorted(
        (p for p in Path(root).glob(pattern) if p.is_file()),
        key=lambda p: p.relative_to(root).as_posix(),
    )
    if not files:
        return ""
    outer = hashlib.sha256()
    for path in files:
        outer.update(hashlib.sha256(path.read_bytes()).digest())
    return outer.hexdigest()


def cache_key(os_family: str, prefix: str, lock_hash: str) -> str:
    return f"{os_family}-{prefix}-{lock_hash}"


def fallback_prefixes(os_family: str, prefix: str) -> List[str]:
    return [f"{os_family}-{prefix}-"]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class DependencyCache:
    """Store de entradas de cache em um diretório local."""

    def __init__(self, store_dir: Path):
        self.store_dir = Path(store_dir).expanduser()

    def _entry_path(self, key: str) -> Path:
        return self.store_dir / f"{quote(key, safe='')}{ENTRY_SUFFIX}"

    def _entries(self) -> List[Tuple[str, Path, int]]:
        if not self.store_dir.is_dir():
            return []
        entries: List[Tuple[str, Path, int]] = []
        for path in self.store_dir.iterdir():
            if not path.name.endswith(ENTRY_SUFFIX) or not path.is_file():
                continue
            key = unquote(path.name[: -len(ENTRY_SUFFIX)])
            entries.append((key, path, path.stat().st_mtime_ns))
        return entries

    def keys(self) -> List[str]:
        return sorted(key for key, _, _ in self._entries())

    def restore(self, key: str, fallback_prefixes: Sequence[str] = ()) -> Optional[CacheHit]:
        exact = self._entry_path(key)
        if exact.is_file():
            return CacheHit(key=key, data=exact.read_bytes(), exact=True)

        entries = self._entries()
        for prefix in fallback_prefixes:
            candidates = [e for e in entries if e[0].startswith(prefix)]
            if not candidates:
                continue
            # mais recente vence; empate decidido pela chave
            best_key, best_path, _ = max(candidates, key=lambda e: (e[2], e[0]))
            return CacheHit(key=best_key, data=best_path.read_bytes(), exact=False)
        return None

    def save(self, key: str, data: bytes) -> bool:
        """Grava a entrada se a chave ainda não existe. Retorna True se gravou."""
        if not key:
            raise ValueError("cache key must not be empty")
        final = self._entry_path(key)
        if final.exists():
            return False

        self.store_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".incoming-", dir=str(self.store_dir))
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            stamp = self._next_stamp()
            os.utime(tmp_name, ns=(stamp, stamp))
            try:
                # link atômico: falha se outra escrita já publicou a chave
                os.link(tmp_name, final)
            except FileExistsError:
                return False
        finally:
            os.unlink(tmp_name)
        return True

    def _next_stamp(self) -> int:
        """mtime estritamente crescente entre entradas do store."""
        newest = max((mtime for _, _, mtime in self._entries()), default=0)
        return max(time.time_ns(), newest + 1)


# ---------------------------------------------------------------------------
# Empacotamento dos diretórios de dependências
# ---------------------------------------------------------------------------

def resolve_paths(paths: Iterable[str], workdir: Path) -> Dict[str, Path]:
    """
    Mapeia cada path configurado para (rótulo no arquivo, path real).

    `~/...` é expandido para o home do usuário; paths relativos são
    relativos ao checkout do Stage.
    """
    resolved: Dict[str, Path] = {}
    for index, raw in enumerate(paths):
        raw = str(raw)
        if raw.startswith("~"):
            real = Path(raw).expanduser()
        elif Path(raw).is_absolute():
            real = Path(raw)
        else:
            real = Path(workdir) / raw
        label = f"{index:02d}-" + raw.replace("~", "home").strip("/").replace("/", "_")
        resolved[label] = real
    return resolved


def pack_paths(paths: Dict[str, Path]) -> Tuple[bytes, int]:
    """Empacota os paths existentes em um tar.gz. Retorna (blob, nº de paths incluídos)."""
    buffer = io.BytesIO()
    included = 0
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for label, real in sorted(paths.items()):
            if not real.exists():
                continue
            tar.add(str(real), arcname=label)
            included += 1
    return buffer.getvalue(), included


def unpack_paths(data: bytes, paths: Dict[str, Path]) -> int:
    """Restaura cada rótulo presente no blob para o seu path real. Retorna nº de paths restaurados."""
    restored = 0
    with tempfile.TemporaryDirectory(prefix="release-flow-cache-") as tmp:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            tar.extractall(tmp, filter="data")
        for label, real in paths.items():
            source = Path(tmp) / label
            if source.is_dir():
                shutil.copytree(source, real, dirs_exist_ok=True)
            elif source.is_file():
                real.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, real)
            else:
                continue
            restored += 1
    return restored
