# tests/core/config/test_loader.py
"""
Testes do carregador de configuração (load_config).

Os testes asseguram que:
- os defaults são obrigatórios e o override local é opcional
- o override local é aplicado via deep-merge
- overrides em memória têm a maior precedência
- formatos e tipos raiz inválidos são rejeitados explicitamente
- os defaults empacotados trazem os valores dos workflows do projeto
"""
import pytest
from pathlib import Path

try:
    from release_flow.core.config.loader import DEFAULTS_PATH, load_config
    from release_flow.core.config.errors import (
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
except Exception as e:  # noqa: BLE001
    load_config = None
    DEFAULTS_PATH = None
    DefaultsNotFoundError = None
    InvalidConfigRootTypeError = None
    UnsupportedConfigFormatError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing loader/errors modules. Implement:\n"
            "- src/release_flow/core/config/loader.py (load_config)\n"
            "- src/release_flow/core/config/errors.py (typed exceptions)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_missing_defaults_raises(tmp_path: Path):
    """A ausência do arquivo de defaults é erro fatal."""
    _require_imports()
    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=str(tmp_path / "defaults.yaml"))


def test_missing_local_is_ok(tmp_path: Path, project_like_config_defaults_yaml):
    """
    Um override local inexistente é ignorado.

    O loader usa apenas os defaults quando o caminho local aponta para
    um arquivo que não existe (ex.: `release-flow.yaml` não criado).
    """
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "local.yaml"))

    assert out["build"]["command"] == ["cargo", "build", "--verbose"]
    assert out["engine"]["step_timeout_seconds"] is None


def test_load_defaults_and_local(tmp_path: Path, project_like_config_defaults_yaml, project_like_config_local_yaml):
    """
    Verifica o merge defaults + local.

    - listas do override substituem integralmente (`build.command`)
    - null dos defaults pode ser sobrescrito por um escalar
    - chaves não mencionadas no override são preservadas
    """
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(local))

    assert out["build"]["command"] == ["make", "all"]
    assert out["engine"]["step_timeout_seconds"] == 30
    assert out["engine"]["output_tail_lines"] == 200
    assert out["pipelines"]["ci"]["paths_ignore"] == ["README.md", "LICENSE"]


def test_overrides_take_precedence(tmp_path: Path, project_like_config_defaults_yaml, project_like_config_local_yaml):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    out = load_config(
        defaults_path=str(defaults),
        local_path=str(local),
        overrides={"engine": {"step_timeout_seconds": 5}},
    )

    assert out["engine"]["step_timeout_seconds"] == 5


def test_json_local_is_accepted(tmp_path: Path, project_like_config_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local = tmp_path / "local.json"
    local.write_text('{"pipelines": {"ci": {"push_branches": ["main"]}}}', encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(local))

    assert out["pipelines"]["ci"]["push_branches"] == ["main"]


def test_invalid_root_type_raises(tmp_path: Path):
    """O root da configuração precisa ser um dicionário."""
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("- just\n- a\n- list\n", encoding="utf-8")

    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))


def test_unsupported_extension_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.toml"
    defaults.write_text("engine = { step_timeout_seconds = 1 }\n", encoding="utf-8")

    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))


def test_packaged_defaults_match_project_workflows():
    """
    Verifica os defaults empacotados.

    Os valores reproduzem os workflows do projeto: tag vX.Y.Z para
    publicação, PRs para main, ignore-list de arquivos não-source,
    comandos cargo e o segredo CRATES_IO_TOKEN.
    """
    _require_imports()
    assert DEFAULTS_PATH.exists()

    out = load_config()

    assert out["pipelines"]["publish"]["tag_pattern"] == r"^v\d+\.\d+\.\d+$"
    assert out["pipelines"]["ci"]["pull_request_branches"] == ["main"]
    assert out["pipelines"]["ci"]["paths_ignore"] == ["README", "README.md", ".gitignore", "LICENSE.txt", "LICENSE"]
    assert out["env"] == {"CARGO_TERM_COLOR": "always"}
    assert out["build"]["command"] == ["cargo", "build", "--verbose"]
    assert out["test"]["command"] == ["cargo", "test", "--verbose"]
    assert out["registry"]["secret_name"] == "CRATES_IO_TOKEN"
    assert out["engine"]["keep_workdirs"] is False


def test_find_local_config_prefers_yaml(tmp_path: Path):
    _require_imports()
    from release_flow.core.config import find_local_config

    assert find_local_config(tmp_path) is None

    (tmp_path / "release-flow.json").write_text("{}", encoding="utf-8")
    assert find_local_config(tmp_path) == tmp_path / "release-flow.json"

    (tmp_path / "release-flow.yaml").write_text("{}", encoding="utf-8")
    assert find_local_config(tmp_path) == tmp_path / "release-flow.yaml"


def test_empty_local_file_is_noop(tmp_path: Path):
    _require_imports()
    local = tmp_path / "release-flow.yaml"
    local.write_text("", encoding="utf-8")

    assert load_config(local_path=local) == load_config()
