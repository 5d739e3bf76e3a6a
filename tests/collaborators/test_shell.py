# tests/collaborators/test_shell.py
"""Testes do runner de comandos: status, saída combinada, stdin, env e timeout."""
from pathlib import Path

import pytest

try:
    from release_flow.collaborators.shell import COMMAND_NOT_FOUND, run_command
except Exception as e:  # noqa: BLE001
    run_command = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing shell runner. Import error: {_IMPORT_ERR}")


def test_success_captures_stdout_and_stderr(tmp_path, py_cmd):
    _require_imports()
    code = "import sys; print('out'); print('err', file=sys.stderr)"

    outcome = run_command(py_cmd(code), cwd=tmp_path, env={})

    assert outcome.ok
    assert outcome.exit_code == 0
    assert "out" in outcome.output
    assert "err" in outcome.output


def test_non_zero_exit_is_not_ok(tmp_path, py_cmd):
    _require_imports()
    outcome = run_command(py_cmd("raise SystemExit(101)"), cwd=tmp_path, env={})

    assert not outcome.ok
    assert outcome.exit_code == 101


def test_stdin_env_and_cwd_are_explicit(tmp_path, py_cmd):
    _require_imports()
    code = "import os, sys; print(sys.stdin.read().strip(), os.environ['FLAG'], os.getcwd())"

    outcome = run_command(py_cmd(code), cwd=tmp_path, env={"FLAG": "on"}, stdin="hello\n")

    hello, flag, cwd = outcome.output.split()
    assert (hello, flag) == ("hello", "on")
    assert Path(cwd).resolve() == tmp_path.resolve()


def test_missing_executable_maps_to_127(tmp_path):
    _require_imports()
    outcome = run_command(["definitely-not-a-command-xyz"], cwd=tmp_path, env={})

    assert outcome.exit_code == COMMAND_NOT_FOUND
    assert not outcome.ok


def test_timeout_is_reported(tmp_path, py_cmd):
    _require_imports()
    outcome = run_command(py_cmd("import time; time.sleep(5)"), cwd=tmp_path, env={}, timeout=0.2)

    assert outcome.timed_out
    assert outcome.exit_code is None
    assert not outcome.ok


def test_tail_keeps_last_lines(tmp_path, py_cmd):
    _require_imports()
    outcome = run_command(py_cmd("for i in range(10): print(i)"), cwd=tmp_path, env={})

    assert outcome.tail(3) == "7\n8\n9"
    assert outcome.tail(0) == ""


def test_empty_command_is_rejected(tmp_path):
    _require_imports()
    with pytest.raises(ValueError):
        run_command([], cwd=tmp_path, env={})
