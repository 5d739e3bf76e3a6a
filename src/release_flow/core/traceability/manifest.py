# src/release_flow/core/traceability/manifest.py
"""
Run Manifest v1: registro forense de uma PipelineRun.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, pipeline, started_at, versão da ferramenta)
    - entradas (hash da configuração e evento disparador)
    - estado incremental de cada Stage e dos Steps executados
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico de todos os timestamps
    - O formato de persistência é JSON determinístico (chaves ordenadas)

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas (fail-fast, gate)
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps naive são assumidos como UTC; os demais são convertidos."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração em milissegundos, nunca negativa."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Manifest v1: registro de uma execução de pipeline.

    Campos principais:
        - run: metadados da execução (run_id, pipeline, started_at, version,
          e, ao final, state/outcome/finished_at)
        - inputs: hash da configuração e evento disparador
        - stages: estado incremental de cada Stage instanciado
        - events: Event Log ordenado

    Invariantes:
        - `stages` é sempre um dicionário indexado pelo nome do Stage
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável
    """
    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável, independente do estado interno."""
        return json.loads(json.dumps(
            {
                "run": self.run,
                "inputs": self.inputs,
                "stages": self.stages,
                "events": self.events,
            },
            default=str,
        ))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrução permissiva: campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    pipeline: str,
    started_at: datetime,
    tool_version: str,
    config_hash: str,
    event: Dict[str, Any],
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Esta função **não emite eventos**: o Event Log inicia vazio e só é
    preenchido por chamadas explícitas (`add_event`, `stage_started`, ...).

    Args:
        run_id (str): Identificador único da execução.
        pipeline (str): Nome do pipeline (`publish` | `ci`).
        started_at (datetime): Início da execução.
        tool_version (str): Versão do Release Flow.
        config_hash (str): Hash canônico da configuração efetiva.
        event (Dict[str, Any]): Evento disparador serializado.

    Returns:
        RunManifest: Manifest inicializado.
    """
    started_at = _ensure_tzaware_utc(started_at)
    return RunManifest(
        run={
            "run_id": run_id,
            "pipeline": pipeline,
            "started_at": _iso(started_at),
            "tool_version": tool_version,
        },
        inputs={
            "config_hash": config_hash,
            "event": dict(event),
        },
        stages={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    stage: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Invariantes:
        - Cada chamada adiciona exatamente um evento
        - Eventos não são reordenados nem deduplicados
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if stage is not None:
        ev["stage"] = stage
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def stage_started(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    depends_on: Optional[str] = None,
) -> None:
    """Marca o Stage como `running` e registra `stage_started`."""
    ts = _ensure_tzaware_utc(ts)
    s = manifest.stages.setdefault(stage, {"stage": stage})
    s.update(
        {
            "outcome": "running",
            "depends_on": depends_on,
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="stage_started", ts=ts, stage=stage)


def _close_stage(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    outcome: str,
    steps: Dict[str, Any],
) -> Dict[str, Any]:
    ts = _ensure_tzaware_utc(ts)
    s = manifest.stages.setdefault(stage, {"stage": stage})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    s.update(
        {
            "outcome": outcome,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "steps": dict(steps),
        }
    )
    return s


def stage_finished(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    steps: Dict[str, Any],
) -> None:
    """Registra conclusão bem-sucedida do Stage e o resultado de seus Steps."""
    s = _close_stage(manifest, stage=stage, ts=ts, outcome="success", steps=steps)
    add_event(
        manifest,
        event_type="stage_finished",
        ts=ts,
        stage=stage,
        payload={"duration_ms": s["duration_ms"]},
    )


def stage_failed(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    steps: Dict[str, Any],
    failed_step: Optional[str],
    error: Optional[Dict[str, Any]],
) -> None:
    """Registra falha do Stage, apontando o Step que falhou."""
    s = _close_stage(manifest, stage=stage, ts=ts, outcome="failure", steps=steps)
    s["failed_step"] = failed_step
    s["error"] = error
    add_event(
        manifest,
        event_type="stage_failed",
        ts=ts,
        stage=stage,
        payload={"failed_step": failed_step, "error": error},
    )


def gate_denied(
    manifest: RunManifest,
    *,
    stage: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """Registra que o Stage dependente não foi instanciado."""
    add_event(manifest, event_type="gate_denied", ts=ts, stage=stage, payload={"error": error})


def run_finished(
    manifest: RunManifest,
    *,
    state: str,
    outcome: Optional[str],
    ts: datetime,
) -> None:
    """Registra o estado terminal da run."""
    ts = _ensure_tzaware_utc(ts)
    manifest.run.update(
        {
            "state": state,
            "outcome": outcome,
            "finished_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="run_finished", ts=ts, payload={"state": state, "outcome": outcome})


def save_manifest(manifest: RunManifest, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
