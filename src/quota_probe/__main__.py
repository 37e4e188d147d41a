"""Command-line entry point: discover the language server and print quota as JSON.

Usage:
    python -m quota_probe [--no-quota] [--diagnose] [--workspace PATH ...]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, List, Optional

import orjson

from quota_probe.config import ConfigurationError, get_probe_settings
from quota_probe.logging_config import setup_logging
from quota_probe.process_finder import DetectOptions, ProcessFinder
from quota_probe.quota_service import QuotaService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_QUOTA_FAILED = 2
EXIT_CONFIG_ERROR = 3


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1 (got {value})")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quota_probe", description="Locate the local language server and report quota usage")
    parser.add_argument("--attempts", type=positive_int, default=5, help="Discovery attempts (default: 5)")
    parser.add_argument(
        "--workspace",
        action="append",
        dest="workspaces",
        metavar="PATH",
        help="Workspace root used to pick the right server (repeatable)",
    )
    parser.add_argument("--no-quota", action="store_true", help="Only run discovery; skip the quota request")
    parser.add_argument("--diagnose", action="store_true", help="Include discovery diagnostics in the output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--verbose", action="store_true", help="Log the reason for each failed attempt")
    return parser


def emit(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode())
    sys.stdout.write("\n")


async def run(args: argparse.Namespace) -> int:
    settings = get_probe_settings()
    finder = ProcessFinder(settings=settings)
    options = DetectOptions(attempts=args.attempts, verbose=args.verbose, workspace_roots=args.workspaces)

    result = await finder.discover(options)
    if not result.ok:
        payload: dict[str, Any] = {"found": False, "failure_reason": result.failure_reason.value}
        if args.diagnose:
            payload["diagnostics"] = result.diagnostics
        emit(payload)
        return EXIT_NOT_FOUND

    descriptor = result.descriptor
    payload = {"found": True, "port": descriptor.port, "protocol": result.diagnostics.protocol_used}
    if args.diagnose:
        payload["diagnostics"] = result.diagnostics

    if args.no_quota:
        emit(payload)
        return EXIT_OK

    service = QuotaService(settings=settings)
    service.set_connection(descriptor)
    snapshot = await service.fetch_quota()
    if snapshot is None:
        payload["quota_error"] = service.parsing_error or str(service.last_error or "unknown")
        emit(payload)
        return EXIT_QUOTA_FAILED

    payload["quota"] = snapshot
    emit(payload)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(user_friendly=not args.debug, debug=True if args.debug else None)
        return asyncio.run(run(args))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
