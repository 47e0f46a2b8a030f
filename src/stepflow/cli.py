"""
Command-line interface for stepflow.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .errors import FlowCancelledError, RetriesExhaustedError, StepNotFoundError
from .config import load_config
from .flows import FixtureHandler, FlowExecutor
from .models import FlowModel
from .observability import configure_logging
from .parser import has_errors, parse_flow, validate_flow
from .version import __version__


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="stepflow", description="stepflow CLI")
    cli.add_argument(
        "--version",
        action="version",
        version=f"stepflow {__version__} (Python {sys.version.split()[0]})",
    )
    cli.add_argument("--log-level", default=None, help="Logging level (default: $STEPFLOW_LOG_LEVEL or INFO)")
    sub = cli.add_subparsers(dest="command", required=True)

    def register(name: str, **kwargs):
        return sub.add_parser(name, **kwargs)

    parse_cmd = register("parse", help="Parse a flow file and print the model JSON")
    parse_cmd.add_argument("file", type=Path)
    parse_cmd.add_argument("--flow-id", default=None, help="Use a fixed flow id instead of a random one")

    validate_cmd = register("validate", help="Check a flow file for undeclared steps and bad metadata")
    validate_cmd.add_argument("file", type=Path)
    validate_cmd.add_argument("--json", action="store_true", help="Print diagnostics as JSON")

    run_cmd = register("run", help="Run a flow file against canned step outputs")
    run_cmd.add_argument("file", type=Path)
    run_cmd.add_argument("--fixtures", type=Path, help="JSON object mapping step alias to outputs")
    run_cmd.add_argument("--flow-id", default=None)

    serve_cmd = register("serve", help="Start the HTTP control plane")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--fixtures", type=Path, help="JSON fixtures used by /api/flows/run")
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build app but do not start server")

    return cli


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc


def _load_fixtures(path: Path | None) -> dict:
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Cannot load fixtures from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SystemExit(f"Fixtures in {path} must be a JSON object")
    return data


def _load_flow(path: Path, flow_id: str | None = None) -> FlowModel:
    flow = parse_flow(_read_source(path), flow_id=flow_id)
    if not flow.success:
        print(json.dumps({"success": False, "error": flow.error}, indent=2))
        raise SystemExit(1)
    return flow


def main(argv: list[str] | None = None) -> None:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    config = load_config()
    configure_logging(args.log_level or config.log_level)

    if args.command == "parse":
        flow = parse_flow(_read_source(args.file), flow_id=args.flow_id)
        print(flow.to_json())
        if not flow.success:
            raise SystemExit(1)
        return

    if args.command == "validate":
        flow = _load_flow(args.file)
        diagnostics = validate_flow(flow)
        if args.json:
            print(json.dumps([diag.to_dict() for diag in diagnostics], indent=2))
        elif not diagnostics:
            print(f"{args.file}: no problems found")
        else:
            for diag in diagnostics:
                print(f"{args.file}:{diag.line or 0}: {diag.severity}: {diag.message} [{diag.code}]")
        if has_errors(diagnostics):
            raise SystemExit(1)
        return

    if args.command == "run":
        flow = _load_flow(args.file, flow_id=args.flow_id)
        executor = FlowExecutor(FixtureHandler(_load_fixtures(args.fixtures)), config=config)
        try:
            result = executor.run(flow)
        except (StepNotFoundError, RetriesExhaustedError, FlowCancelledError) as exc:
            print(json.dumps({"status": "failed", "error": str(exc), "flow": flow.to_dict()}, indent=2))
            raise SystemExit(1) from exc
        print(json.dumps({"status": result.status, "flow": result.flow.to_dict()}, indent=2))
        return

    if args.command == "serve":
        from .server import create_app

        executor = FlowExecutor(FixtureHandler(_load_fixtures(args.fixtures)), config=config)
        app = create_app(executor)
        if args.dry_run:
            print(json.dumps({"status": "ready", "host": args.host, "port": args.port}, indent=2))
            return
        try:
            import uvicorn
        except ImportError as exc:  # pragma: no cover - runtime check
            raise SystemExit("uvicorn is required to run the server") from exc
        uvicorn.run(app, host=args.host, port=args.port)
        return


if __name__ == "__main__":  # pragma: no cover
    main()
