from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from vehicle_tracker.core.logging_config import configure_logging
from vehicle_tracker.core.logging_utils import get_module_logger


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    include_config: bool = True,
    include_console_control: bool = True,
) -> None:
    """Logging and config options shared by entry points.

    Defaults are ``None`` so values from the config file are only replaced
    when the option is actually given.
    """
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=None,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write structured logs",
    )

    if include_config:
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Optional configuration file that overrides the shipped defaults",
        )

    if include_console_control:
        console_group = parser.add_mutually_exclusive_group()
        console_group.add_argument(
            "--console",
            dest="console_output",
            action="store_true",
            default=None,
            help="Log to console (default)",
        )
        console_group.add_argument(
            "--no-console",
            dest="console_output",
            action="store_false",
            help="Log to file only (no console output)",
        )


def _positive_number(value: str, typ: type, name: str):
    """Generic positive number validator for argparse."""
    try:
        parsed = typ(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Value must be a {name}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be positive")
    return parsed

def positive_int(value: str) -> int:
    return _positive_number(value, int, "integer")

def positive_float(value: str) -> float:
    return _positive_number(value, float, "number")

def non_negative_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be a number") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must not be negative")
    return parsed


def setup_logging(
    level: str,
    *,
    console: bool,
    log_file: Optional[Path],
    name: str,
) -> logging.Logger:
    """Configure root logging for an entry point and announce the destination."""
    configure_logging(level, force=True, console=console, log_file=log_file)
    runtime_logger = get_module_logger(name)
    if log_file is not None:
        runtime_logger.info("Logs will be written to %s", log_file)
    return runtime_logger


def install_exception_handlers(
    logger: logging.Logger,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> None:
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = handle_exception

    if loop is not None:
        def handle_asyncio_exception(loop, context):
            exception = context.get('exception')
            message = context.get('message', 'Unhandled asyncio exception')
            if exception:
                logger.error("Asyncio exception: %s", message, exc_info=exception)
            else:
                logger.error("Asyncio error: %s, context: %s", message, context)

        loop.set_exception_handler(handle_asyncio_exception)


def install_signal_handlers(
    shutdown_event: asyncio.Event,
    loop: asyncio.AbstractEventLoop,
    on_signal: Optional[Callable[[signal.Signals], Any]] = None,
) -> None:
    """Register SIGINT/SIGTERM handlers that set ``shutdown_event``."""

    def signal_handler(sig: signal.Signals) -> None:
        if shutdown_event.is_set():
            return
        if on_signal is not None:
            on_signal(sig)
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, signal_handler, sig)


def log_module_startup(
    logger: logging.Logger,
    module_name: str = "MODULE",
    **extra_info
) -> None:
    logger.info("=" * 60)
    logger.info("========== %s START ==========", module_name.upper())
    for key, value in extra_info.items():
        display_key = key.replace('_', ' ').title()
        logger.info("%s: %s", display_key, value)
    logger.info("=" * 60)


def log_module_shutdown(
    logger: logging.Logger,
    module_name: str = "MODULE"
) -> None:
    logger.info("=" * 60)
    logger.info("%s Stopped", module_name.title())
    logger.info("=" * 60)
