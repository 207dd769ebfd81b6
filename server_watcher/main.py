"""Run server watchers once and print their results as JSON lines."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

import structlog
import yaml

from server_watcher.configuration import ServerWatcherConfiguration
from server_watcher.results import ServerWatcherCheckResult
from server_watcher.settings import build_watchers, load_settings
from server_watcher.watcher import ServerWatcher, WatcherException


logger = structlog.get_logger(__name__)


def configure_logging(log_level: str) -> None:
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # Results go to stdout; keep log lines on stderr.
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


async def run_watchers(watchers: list[ServerWatcher]) -> list[ServerWatcherCheckResult]:
    results: list[ServerWatcherCheckResult] = []
    for watcher in watchers:
        results.append(await watcher.execute())
    return results


def _watchers_from_args(args: argparse.Namespace) -> list[ServerWatcher]:
    if args.host:
        builder = ServerWatcherConfiguration.create(args.host, args.port)
        if args.timeout is not None:
            builder.with_timeout(args.timeout)
        return [ServerWatcher.create(args.name or args.host, builder.build())]
    return build_watchers(load_settings(args.config))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Server reachability watcher")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: $SERVER_WATCHER_CONFIG)")
    parser.add_argument("--host", default=None, help="Check a single hostname instead of the config file")
    parser.add_argument("--port", type=int, default=None, help="TCP port; omit to ping the host")
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    parser.add_argument("--name", default=None, help="Watcher name for --host checks")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (INFO, WARNING, ...)",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    try:
        watchers = _watchers_from_args(args)
        results = asyncio.run(run_watchers(watchers))
    except (ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid watcher configuration", error=str(exc))
        return 2
    except WatcherException as exc:
        logger.error("Watcher failed", watcher=exc.watcher_name, error=str(exc))
        return 2

    if not results:
        logger.warning("No servers configured")
    for result in results:
        print(json.dumps(result.to_dict(), sort_keys=True))
    return 0 if all(r.is_valid for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
