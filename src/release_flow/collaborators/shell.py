# src/release_flow/collaborators/shell.py
"""
Execução de comandos com contrato de shell.

Todo colaborador externo (git, build tool, test runner, registry CLI) é
invocado por aqui: workdir, ambiente e stdin explícitos; stdout e stderr
capturados juntos; o status de saída é o único sinal de controle.

Limites explícitos:
    - Não faz retry
    - Não interpreta a saída (isso é do chamador)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

# Convenção de shell para "comando não encontrado".
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandOutcome:
    command: tuple
    exit_code: Optional[int]
    output: str
    duration_ms: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def display(self) -> str:
        return subprocess.list2cmdline(list(self.command))

    def tail(self, lines: int) -> str:
        if lines <= 0:
            return ""
        return "\n".join(self.output.splitlines()[-lines:])


CommandRunner = Callable[..., CommandOutcome]


def run_command(
    command: Sequence[str],
    *,
    cwd: Path,
    env: Mapping[str, str],
    stdin: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandOutcome:
    """Executa `command` e devolve status e saída combinada (stdout + stderr)."""
    cmd = tuple(str(part) for part in command)
    if not cmd:
        raise ValueError("command must not be empty")

    started = datetime.now(timezone.utc)
    try:
        completed = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=dict(env),
            input=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        return CommandOutcome(
            command=cmd,
            exit_code=COMMAND_NOT_FOUND,
            output=f"command not found: {cmd[0]} ({e})",
            duration_ms=_elapsed_ms(started),
        )
    except subprocess.TimeoutExpired as e:
        output = e.output if isinstance(e.output, str) else (e.output or b"").decode("utf-8", "replace")
        return CommandOutcome(
            command=cmd,
            exit_code=None,
            output=output + f"\ncommand timed out after {timeout}s",
            duration_ms=_elapsed_ms(started),
            timed_out=True,
        )

    return CommandOutcome(
        command=cmd,
        exit_code=completed.returncode,
        output=completed.stdout or "",
        duration_ms=_elapsed_ms(started),
    )


def _elapsed_ms(started: datetime) -> int:
    return max(0, int((datetime.now(timezone.utc) - started).total_seconds() * 1000))
