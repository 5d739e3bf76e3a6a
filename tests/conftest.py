# tests/conftest.py
"""
Fixtures compartilhados para testes do Release Flow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas
- contexto de Stage controlado (StageContext) com workdir em tmp_path
- Steps dummy para testes estruturais do executor e do runner
- colaboradores falsos (source, registry) para testes de pipeline
- comandos portáveis baseados em `sys.executable`

Decisões arquiteturais:
    - Steps dummy utilizam duck typing em vez de herança
    - Comandos de teste nunca dependem de ferramentas externas (cargo, git)
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture acessa o cache real do usuário (`~/.cache`)
    - Nenhuma fixture lê segredos do ambiente do processo

Este módulo existe como infraestrutura de teste e não
como validação funcional do Release Flow.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest


def py_command(code: str) -> list:
    """Comando portável: executa `code` com o interpretador dos testes."""
    return [sys.executable, "-c", code]


# =====================================================
# Config
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `defaults.yaml` empacotado.

    Fornecido como string para que os testes do loader controlem
    o arquivo gravado em `tmp_path`.
    """
    return """\
pipelines:
  publish:
    tag_pattern: '^v\\d+\\.\\d+\\.\\d+$'
  ci:
    push_branches: ["*"]
    paths_ignore: ["README.md", "LICENSE"]
build:
  command: ["cargo", "build", "--verbose"]
engine:
  step_timeout_seconds: null
  output_tail_lines: 200
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de override local: troca o comando de build e define timeout."""
    return """\
build:
  command: ["make", "all"]
engine:
  step_timeout_seconds: 30
"""


@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima já resolvida para testes do core.

    Contém apenas as chaves lidas pelo executor e pelo runner.
    """
    return {
        "env": {"CARGO_TERM_COLOR": "always"},
        "source": {"kind": "directory", "repository": ".", "workspace_root": None},
        "registry": {"secret_name": "CRATES_IO_TOKEN"},
        "engine": {"step_timeout_seconds": None, "output_tail_lines": 200, "keep_workdirs": False},
    }


@pytest.fixture
def py_cmd():
    """Fábrica de comandos portáveis (`sys.executable -c ...`)."""
    return py_command


# =====================================================
# Pipeline (Step + StageContext)
# =====================================================

@pytest.fixture
def dummy_ctx(dummy_config, tmp_path):
    """
    StageContext determinístico para testes.

    `run_id` e `created_at` são fixos; o workdir é um diretório
    exclusivo do teste e o contexto inicia sem segredos.
    """
    from release_flow.core.pipeline.context import StageContext

    workdir = tmp_path / "stage"
    workdir.mkdir()
    return StageContext(
        run_id="run-test-001",
        stage="build-and-test",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        workdir=workdir,
        ref="refs/tags/v1.2.3",
        revision="abc123",
        env={"PATH": "/usr/bin"},
        meta={"source": "pytest"},
    )


@pytest.fixture
def DummyStep():
    """
    Classe de Step mínima, duck-typed.

    Instâncias podem terminar com qualquer StepStatus e registram em
    `calls` (lista compartilhada opcional) a ordem em que foram executadas.
    """
    from release_flow.core.pipeline.types import StepKind, StepResult, StepStatus

    class _DummyStep:
        def __init__(
            self,
            step_id: str = "build",
            kind: StepKind = StepKind.BUILD,
            status: StepStatus = StepStatus.SUCCESS,
            always_run: bool = False,
            calls=None,
        ):
            self.id = step_id
            self.kind = kind
            self.status = status
            self.always_run = always_run
            self.calls = calls if calls is not None else []

        def run(self, ctx):
            self.calls.append(self.id)
            ctx.set_artifact(f"{self.id}.ok", self.status == StepStatus.SUCCESS)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=self.status,
                summary=f"dummy {self.status.value}",
                artifacts={"ok": f"{self.id}.ok"},
            )

    return _DummyStep


# =====================================================
# Colaboradores falsos
# =====================================================

@pytest.fixture
def project_dir(tmp_path) -> Path:
    """Diretório de projeto mínimo com manifest e lock file."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Cargo.toml").write_text(
        '[package]\nname = "demo"\nversion = "1.2.3"\n', encoding="utf-8"
    )
    (root / "Cargo.lock").write_text("# lock v1\n", encoding="utf-8")
    (root / "src").mkdir()
    (root / "src" / "lib.rs").write_text("pub fn answer() -> u32 { 42 }\n", encoding="utf-8")
    return root


@pytest.fixture
def FakeRegistry():
    """
    Registry falso que registra chamadas sem executar comandos.

    `publish_reason` != None simula uma rejeição classificada;
    `login_ok=False` simula credencial recusada.
    """
    from release_flow.collaborators.registry import RegistryOutcome

    class _FakeRegistry:
        def __init__(self, *, login_ok: bool = True, publish_reason=None, output: str = ""):
            self.login_ok = login_ok
            self.publish_reason = publish_reason
            self.output = output
            self.logins = []
            self.publishes = []

        def login(self, credential, *, cwd, env):
            self.logins.append({"credential": credential, "cwd": cwd, "env": dict(env)})
            return RegistryOutcome(
                ok=self.login_ok,
                reason=None if self.login_ok else "auth_failed",
                exit_code=0 if self.login_ok else 1,
                output=self.output,
            )

        def publish(self, *, cwd, env):
            self.publishes.append({"cwd": cwd, "env": dict(env)})
            ok = self.publish_reason is None
            return RegistryOutcome(
                ok=ok,
                reason=self.publish_reason,
                exit_code=0 if ok else 101,
                output=self.output,
            )

    return _FakeRegistry


@pytest.fixture
def e2e_config(tmp_path, project_dir):
    """
    Configuração efetiva para testes ponta a ponta.

    Usa os defaults empacotados com overrides que trocam cargo/git por
    comandos Python portáveis e isolam cache e workdirs em `tmp_path`.
    """
    from release_flow.core.config import load_config

    return load_config(
        overrides={
            "source": {
                "kind": "directory",
                "repository": str(project_dir),
                "workspace_root": str(tmp_path / "work"),
            },
            "build": {"command": py_command("print('compiling demo')")},
            "test": {"command": py_command("print('test result: ok')")},
            "cache": {
                "store_dir": str(tmp_path / "cache-store"),
                "paths": ["target"],
            },
        }
    )
