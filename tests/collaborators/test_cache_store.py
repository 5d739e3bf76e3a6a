# tests/collaborators/test_cache_store.py
"""
Testes do DependencyCache.

Os testes asseguram que:
- restore de uma chave exata é idempotente (mesmo conteúdo sem save no meio)
- o fallback por prefixo devolve a entrada gravada mais recentemente
- save é first-write-wins e nunca sobrescreve uma entrada
- escritas concorrentes na mesma chave preservam exatamente uma
- a chave segue `<os>-<prefix>-<hash dos lock files>`
"""
import hashlib
import threading

import pytest

try:
    from release_flow.collaborators.cache_store import (
        DependencyCache,
        cache_key,
        fallback_prefixes,
        hash_lock_files,
        pack_paths,
        resolve_paths,
        runner_os,
        unpack_paths,
    )
except Exception as e:  # noqa: BLE001
    DependencyCache = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing cache store. Import error: {_IMPORT_ERR}")


def test_restore_exact_key_is_idempotent(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "store")
    assert cache.save("linux-hashA", b"payload-A")

    first = cache.restore("linux-hashA")
    second = cache.restore("linux-hashA")

    assert first.exact and second.exact
    assert first.data == second.data == b"payload-A"


def test_fallback_returns_most_recently_saved(tmp_path):
    """
    Verifica o fallback por prefixo.

    Com `linux-hashA` e `linux-hashB` no store, a busca por `linux-hashC`
    com prefixo `linux-` devolve a entrada salva por último.
    """
    _require_imports()
    cache = DependencyCache(tmp_path / "store")
    cache.save("linux-hashA", b"A")
    cache.save("linux-hashB", b"B")

    hit = cache.restore("linux-hashC", ["linux-"])

    assert hit is not None
    assert hit.key == "linux-hashB"
    assert hit.data == b"B"
    assert hit.exact is False


def test_prefixes_are_tried_in_order(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "store")
    cache.save("macOS-cargo-x", b"mac")
    cache.save("Linux-other-y", b"other")

    hit = cache.restore("Linux-cargo-z", ["Linux-cargo-", "Linux-"])

    assert hit.key == "Linux-other-y"


def test_total_miss_returns_none(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "never-created")

    assert cache.restore("Linux-cargo-abc", ["Linux-cargo-"]) is None


def test_save_is_first_write_wins(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "store")

    assert cache.save("Linux-cargo-abc", b"first") is True
    assert cache.save("Linux-cargo-abc", b"second") is False
    assert cache.restore("Linux-cargo-abc").data == b"first"
    assert cache.keys() == ["Linux-cargo-abc"]


def test_concurrent_saves_keep_exactly_one_entry(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "store")
    results = []
    barrier = threading.Barrier(8)

    def writer(i):
        barrier.wait()
        results.append((i, cache.save("Linux-cargo-race", f"writer-{i}".encode())))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [i for i, saved in results if saved]
    assert len(winners) == 1
    assert cache.restore("Linux-cargo-race").data == f"writer-{winners[0]}".encode()
    assert [p.name for p in (tmp_path / "store").iterdir() if p.name.startswith(".incoming-")] == []


def test_keys_with_special_characters_round_trip(tmp_path):
    _require_imports()
    cache = DependencyCache(tmp_path / "store")
    cache.save("Linux-cargo/with slash", b"x")

    assert cache.keys() == ["Linux-cargo/with slash"]
    assert cache.restore("Linux-cargo/with slash").data == b"x"


def test_hash_lock_files_is_hash_of_file_digests(tmp_path):
    _require_imports()
    (tmp_path / "Cargo.lock").write_bytes(b"root")
    (tmp_path / "crates" / "a").mkdir(parents=True)
    (tmp_path / "crates" / "a" / "Cargo.lock").write_bytes(b"nested")

    expected = hashlib.sha256(
        hashlib.sha256(b"root").digest() + hashlib.sha256(b"nested").digest()
    ).hexdigest()

    assert hash_lock_files(tmp_path, "**/Cargo.lock") == expected


def test_hash_without_lock_files_is_empty(tmp_path):
    _require_imports()
    assert hash_lock_files(tmp_path, "**/Cargo.lock") == ""
    assert cache_key("Linux", "cargo", "") == "Linux-cargo-"


def test_key_format_and_fallback_prefix():
    _require_imports()
    assert cache_key("Linux", "cargo", "abc") == "Linux-cargo-abc"
    assert fallback_prefixes("Linux", "cargo") == ["Linux-cargo-"]
    assert isinstance(runner_os(), str) and runner_os()


def test_pack_and_unpack_restore_directories(tmp_path):
    _require_imports()
    src = tmp_path / "src-checkout"
    (src / "target" / "debug").mkdir(parents=True)
    (src / "target" / "debug" / "demo").write_text("binary", encoding="utf-8")

    data, included = pack_paths(resolve_paths(["target", "missing-dir"], src))
    assert included == 1

    dest = tmp_path / "fresh-checkout"
    dest.mkdir()
    restored = unpack_paths(data, resolve_paths(["target", "missing-dir"], dest))

    assert restored == 1
    assert (dest / "target" / "debug" / "demo").read_text(encoding="utf-8") == "binary"
    assert not (dest / "missing-dir").exists()
