"""Command-line interface for watching Asterisk status through the AJAM bridge."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import traceback
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live

from .client import AsteriskManagerClient
from .config import ManagerEndpoint, ManagerSettings
from .errors import AsteriskClientError
from .renderer import render_snapshot

LOG_LEVELS: Final[dict[str, int]] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed command-line options; unset values fall back to the environment."""

    host: str | None
    port: int | None
    interval: float | None
    dotenv_path: Path | None
    log_level: int
    json_output: bool


def parse_cli_args(argv: Sequence[str] | None = None) -> CliOptions:
    """Return :class:`CliOptions` for *argv*, exiting on invalid values."""
    parser = argparse.ArgumentParser(
        prog="asterisk-ajam",
        description="Poll an Asterisk manager HTTP bridge and display queue status.",
    )
    parser.add_argument("--host", default=None, help="Override ASTERISK_AMI_HTTP_HOST")
    parser.add_argument("--port", type=int, default=None, help="Override ASTERISK_AMI_HTTP_PORT")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes (overrides ASTERISK_REFRESH_INTERVAL)",
    )
    parser.add_argument(
        "--dotenv",
        type=Path,
        default=None,
        help="Optional path to a .env file holding the ASTERISK_* settings",
    )
    parser.add_argument(
        "--log-level",
        choices=tuple(LOG_LEVELS.keys()),
        default="WARNING",
        help="Verbosity of log output written to stderr",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the snapshot as one JSON document per refresh instead of a table",
    )
    namespace = parser.parse_args(argv)
    if namespace.port is not None and not 0 < namespace.port < 65536:
        parser.error("--port must be between 1 and 65535")
    if namespace.interval is not None and namespace.interval <= 0:
        parser.error("--interval must be greater than zero")
    return CliOptions(
        host=namespace.host,
        port=namespace.port,
        interval=namespace.interval,
        dotenv_path=namespace.dotenv,
        log_level=LOG_LEVELS[namespace.log_level],
        json_output=namespace.json_output,
    )


def resolve_settings(options: CliOptions) -> ManagerSettings:
    """Merge environment settings with command-line overrides."""
    settings = ManagerSettings.from_environment()
    endpoint = settings.endpoint
    if options.host is not None or options.port is not None:
        endpoint = ManagerEndpoint(
            host=options.host or endpoint.host,
            port=options.port or endpoint.port,
            scheme=endpoint.scheme,
        )
    return settings.model_copy(
        update={
            "endpoint": endpoint,
            "poll_interval": options.interval or settings.poll_interval,
        }
    )


def _setup_logging(log_level: int) -> logging.Logger:
    """Install a root handler at *log_level* and return the CLI logger.

    httpx and httpcore stay at WARNING unless DEBUG is requested.
    """
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    return logging.getLogger("asterisk_ajam_client.cli")


async def _wait_for_shutdown_signal(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    registered: list[signal.Signals] = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except (NotImplementedError, RuntimeError):
            continue
        registered.append(signum)
    try:
        await stop_event.wait()
    finally:
        for signum in registered:
            loop.remove_signal_handler(signum)


async def _render_until(
    client: AsteriskManagerClient, stop_event: asyncio.Event, interval: float, json_output: bool
) -> None:
    if json_output:
        while not stop_event.is_set():
            print(json.dumps(client.snapshot().to_dict()), flush=True)
            await asyncio.sleep(interval)
        return
    console = Console()
    with Live(render_snapshot(client.snapshot()), console=console, auto_refresh=False) as live:
        while not stop_event.is_set():
            await asyncio.sleep(interval)
            live.update(render_snapshot(client.snapshot()), refresh=True)


async def run_async(options: CliOptions) -> int:
    """Poll until a shutdown signal arrives; return the process exit code."""
    logger = _setup_logging(options.log_level)

    dotenv_file = (
        str(options.dotenv_path) if options.dotenv_path is not None else find_dotenv(usecwd=True)
    )
    if dotenv_file:
        load_dotenv(dotenv_file, override=True)
        logger.info("Read settings from %s", dotenv_file)
    else:
        logger.debug("No .env file located; using the process environment")

    try:
        settings = resolve_settings(options)
    except (ValueError, ValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    client = AsteriskManagerClient()
    stop_event = asyncio.Event()
    try:
        await client.start_with(settings)
        renderer = asyncio.create_task(
            _render_until(client, stop_event, settings.poll_interval, options.json_output)
        )
        await _wait_for_shutdown_signal(stop_event)
        logger.info("Signal received; shutting down the manager client")
        await renderer
    except AsteriskClientError as exc:
        logger.error("Asterisk client error: %s", exc)
        print(f"Asterisk client error: {exc}", file=sys.stderr)
        return 1
    finally:
        stop_event.set()
        await client.aclose()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the ``asterisk-ajam`` console script."""
    options = parse_cli_args(argv)
    try:
        exit_code = asyncio.run(run_async(options))
    except KeyboardInterrupt:
        exit_code = 130
    except Exception:  # noqa: BLE001
        traceback.print_exc(limit=1)
        exit_code = 1
    raise SystemExit(exit_code)
