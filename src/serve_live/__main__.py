"""Entry point for the serve-live command."""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from pydantic import ValidationError

from serve_live.app import create_app
from serve_live.config import Settings, parse_address
from serve_live.errors import ServeLiveError
from serve_live.logging import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="serve-live",
        description=(
            "Serve a directory's contents, providing server-sent events "
            "when files are changed."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="directory to serve. (Default: '.')",
    )
    parser.add_argument(
        "--address",
        help="address to listen for HTTP requests on. (Default: 0.0.0.0:3000)",
    )
    parser.add_argument(
        "--event-path",
        help="path for server-sent events reporting file changes. (Default: 'events')",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        help="quiet period before a burst of changes is reported. (Default: 300)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="PATTERN",
        help="glob pattern of files whose changes are ignored; may be repeated",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="debug logging")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="emit logs as JSON lines",
    )
    return parser


def parse_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build settings from the environment plus command-line overrides.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv.

    Returns:
        Merged settings.

    Raises:
        ConfigError: If the address is malformed.
        ValidationError: If an override fails validation.
    """
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.path is not None:
        overrides["root"] = Path(args.path)
    if args.address is not None:
        overrides["host"], overrides["port"] = parse_address(args.address)
    if args.event_path is not None:
        overrides["event_path"] = args.event_path
    if args.debounce_ms is not None:
        overrides["debounce_ms"] = args.debounce_ms
    if args.ignore:
        overrides["ignore_patterns_raw"] = ",".join(args.ignore)
    if args.debug is not None:
        overrides["debug"] = args.debug
    if args.json_logs is not None:
        overrides["json_logs"] = args.json_logs

    return Settings(**overrides)


async def serve(settings: Settings) -> bool:
    """Run uvicorn until it exits.

    Args:
        settings: Server configuration.

    Returns:
        True if the server started, False if startup failed.
    """
    app = create_app(settings)

    print(f"Serving HTTP at {settings.address}")
    print(f"    Serving files from {app.state.root}")

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_config=None,
        log_level="debug" if settings.debug else "warning",
        access_log=False,
    )
    server = uvicorn.Server(config)
    await server.serve()
    return server.started


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for python -m serve_live."""
    try:
        settings = parse_settings(argv)
    except (ServeLiveError, ValidationError) as e:
        print(f"serve-live: error: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(debug=settings.debug, json_logs=settings.json_logs)

    try:
        started = asyncio.run(serve(settings))
    except KeyboardInterrupt:
        started = True
    except ServeLiveError as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)

    sys.exit(0 if started else 1)


if __name__ == "__main__":
    main()
