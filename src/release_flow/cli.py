# src/release_flow/cli.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from release_flow.core.config import ConfigError, DefaultsNotFoundError, find_local_config, load_config
from release_flow.core.pipeline.event import RepositoryEvent
from release_flow.service import handle_event
from release_flow.trigger.listener import TriggerListener


def _load_event(args: argparse.Namespace) -> Optional[RepositoryEvent]:
    payload = json.loads(Path(args.event).read_text(encoding="utf-8"))
    return RepositoryEvent.from_payload(payload, event_type=args.event_type)


def _config(args: argparse.Namespace) -> Dict[str, Any]:
    if args.config:
        local = Path(args.config)
        if not local.is_file():
            raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {local}")
    else:
        local = find_local_config(Path.cwd())
    return load_config(local_path=local)


def cmd_match(args: argparse.Namespace) -> int:
    event = _load_event(args)
    matched = TriggerListener(_config(args)).matched_pipelines(event)
    if not matched:
        print("no pipeline matched")
    for name in matched:
        print(name)
    return 0


def cmd_handle_event(args: argparse.Namespace) -> int:
    event = _load_event(args)
    reports = handle_event(
        event,
        _config(args),
        manifest_dir=Path(args.manifest_dir) if args.manifest_dir else None,
    )
    if not reports:
        print("no pipeline matched")
        return 0

    failed = 0
    for report in reports:
        run = report.run
        print(f"{run.run_id:28s} pipeline={run.pipeline:8s} state={run.state.value:10s} outcome={run.outcome}")
        if report.manifest_path is not None:
            print(f"  manifest: {report.manifest_path}")
        detail = run.failure_detail
        if detail is not None:
            failed += 1
            print(f"  failed step: {detail['stage']}/{detail['step'] or 'setup'} - {detail['summary']}")
            if detail.get("output"):
                print(detail["output"])
        elif not report.succeeded:
            failed += 1
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="release-flow")
    p.add_argument("--config", default=None, help="YAML/JSON override merged over the defaults (default: ./release-flow.yaml if present).")
    p.add_argument("--manifest-dir", default=None, help="Write one manifest JSON per run into this directory.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sph = sub.add_parser("handle-event", help="Dispatch an event and run every matched pipeline")
    sph.add_argument("--event", required=True, help="Event payload JSON file.")
    sph.add_argument("--event-type", default=None, help="push | pull_request (overrides the payload).")
    sph.set_defaults(func=cmd_handle_event)

    spm = sub.add_parser("match", help="Print which pipelines an event would start")
    spm.add_argument("--event", required=True, help="Event payload JSON file.")
    spm.add_argument("--event-type", default=None, help="push | pull_request (overrides the payload).")
    spm.set_defaults(func=cmd_match)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return int(args.func(args))
    except (ConfigError, OSError, json.JSONDecodeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
