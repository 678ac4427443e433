"""
Main CLI entry point for logingest.

``logingest serve`` runs the ingest service with the in-process queue, store
and consumer. ``logingest loadtest`` drives a running service and prints the
latency and throughput report.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

import uvicorn

from ..core.settings import Settings, load_settings
from ..loadtest.driver import RequestDriver, RequestOutcome
from ..loadtest.report import format_report, format_stats
from ..service.app import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logingest", description="Multi-tenant log ingestion pipeline"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the ingest HTTP service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument(
        "--no-worker",
        action="store_true",
        help="Accept and enqueue only; do not run the queue consumer",
    )

    load = sub.add_parser("loadtest", help="Drive the ingest endpoint")
    load.add_argument("--endpoint", default=None)
    load.add_argument("--duration", type=float, default=None, help="Minutes")
    load.add_argument("--concurrency", type=int, default=None)
    load.add_argument("--no-warmup", action="store_true")
    load.add_argument(
        "--quiet", action="store_true", help="Do not print a progress mark per request"
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with explicit command-line values layered on top."""
    data = settings.model_dump()
    if args.command == "serve":
        if args.host is not None:
            data["service"]["host"] = args.host
        if args.port is not None:
            data["service"]["port"] = args.port
        if args.no_worker:
            data["service"]["run_worker"] = False
    elif args.command == "loadtest":
        if args.endpoint is not None:
            data["loadtest"]["endpoint"] = args.endpoint
        if args.duration is not None:
            data["loadtest"]["duration_minutes"] = args.duration
        if args.concurrency is not None:
            data["loadtest"]["concurrency"] = args.concurrency
        if args.no_warmup:
            data["loadtest"]["warmup_enabled"] = False
    return Settings.model_validate(data)


async def serve(settings: Settings) -> int:
    app = create_app(settings)
    config = uvicorn.Config(
        app, host=settings.service.host, port=settings.service.port, log_level="info"
    )
    await uvicorn.Server(config).serve()
    return 0


def _progress(outcome: RequestOutcome) -> None:
    sys.stdout.write("." if outcome.success else "X")
    sys.stdout.flush()


async def loadtest(settings: Settings, *, quiet: bool = False) -> int:
    driver = RequestDriver(settings.loadtest, on_outcome=None if quiet else _progress)
    try:
        report = await driver.run()
    except asyncio.CancelledError:
        print("\n\nInterrupted. Final stats:")
        print(format_stats(driver.stats.snapshot()))
        raise
    print()
    print(format_report(report))
    return 0


async def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(load_settings(), args)
        if args.command == "serve":
            return await serve(settings)
        return await loadtest(settings, quiet=args.quiet)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cli_main() -> int:
    """CLI main function for non-async entry."""
    try:
        return asyncio.run(main())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(cli_main())
