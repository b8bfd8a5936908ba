"""Console entry point for scout."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from scout.src.context.store import ContextStore
from scout.src.executor.artifacts import FileArtifactSink
from scout.src.executor.planner import ExplorationPlanner
from scout.src.executor.playwright_driver import PlaywrightDriver
from scout.src.executor.runner import StepExecutor
from scout.src.oracle.gateway import OracleGateway
from scout.src.report import build_summary, format_summary
from scout.src.session.session_store import restore_context, save_context
from scout.src.utils.config import AppConfig
from scout.src.utils.errors import DriverInitError
from scout.src.utils.models import ChangeContext


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scout", description="Change-aware exploratory UI testing")
    subparsers = parser.add_subparsers(dest="command")

    run = subparsers.add_parser("run", help="Explore the app for a change context")
    run.add_argument("--context", required=True, help="Path to a change context JSON file")
    run.add_argument("--app-url", default=None, help="Application url (defaults to APP_URL)")
    run.add_argument("--disable-oracle", action="store_true", help="Use deterministic strategies only")
    run.add_argument("--session", default=None, help="Session key to restore and save the context store")
    run.add_argument("--headed", action="store_true", help="Show the browser window")
    run.add_argument("--output", default=None, help="Write the run result JSON to this path")

    subparsers.add_parser("models", help="List models known to the oracle backend")
    subparsers.add_parser("check", help="Check oracle availability")
    return parser


def _load_change_context(path: str) -> ChangeContext:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return ChangeContext.model_validate(raw)


def run_explore(args: argparse.Namespace, config: AppConfig) -> int:
    try:
        ctx = _load_change_context(args.context)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Invalid change context {args.context}: {exc}", file=sys.stderr)
        return 2

    if args.disable_oracle:
        config.explorer.disable_oracle = True
    if args.headed:
        config.explorer.headless = False
    app_url = args.app_url or config.explorer.app_url

    store = ContextStore(config.context)
    if args.session and restore_context(store, args.session):
        print(f"Restored session {args.session}: {store.summary()}")
    store.set_change_context(ctx)

    oracle = None if config.explorer.disable_oracle else OracleGateway(config.oracle)
    planner = ExplorationPlanner(config.explorer, oracle_enabled=oracle is not None)
    plan = planner.create_plan(ctx, app_url)

    sink = FileArtifactSink(config.explorer.artifacts_dir)
    executor = StepExecutor(
        PlaywrightDriver(headless=config.explorer.headless),
        store,
        oracle,
        config=config.explorer,
        relevance=config.relevance,
        artifact_sink=sink,
    )
    try:
        result = executor.run(plan)
    except DriverInitError as exc:
        print(f"Browser could not be started: {exc}", file=sys.stderr)
        return 1

    if args.session:
        path = save_context(store, args.session)
        print(f"Session saved to {path}")
    if args.output:
        Path(args.output).write_text(result.model_dump_json(indent=2), encoding="utf-8")

    summary = build_summary(result)
    print(format_summary(summary))
    print(f"Artifacts: {sink.run_dir}")
    return 1 if result.aborted else 0


def run_models(config: AppConfig) -> int:
    models = OracleGateway(config.oracle).list_models()
    if not models:
        print("No models reported by the oracle backend.")
        return 1
    for model in models:
        print(model.get("name") or model.get("model") or model)
    return 0


def run_check(config: AppConfig) -> int:
    gateway = OracleGateway(config.oracle)
    available = gateway.is_available()
    target = config.oracle.ollama_url if config.oracle.backend == "ollama" else "OpenAI API"
    print(f"{config.oracle.backend} ({target}): {'available' if available else 'unavailable'}")
    return 0 if available else 1


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    config = AppConfig()
    try:
        if args.command == "run":
            return run_explore(args, config)
        if args.command == "models":
            return run_models(config)
        if args.command == "check":
            return run_check(config)
        parser.print_help()
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
