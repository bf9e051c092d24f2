"""Tracking module entry point.

Resolves the vehicle identifier (command line, then the stored value, then
an interactive prompt), wires the serial receiver and the HTTP channel into
a :class:`SessionController` and runs it until SIGINT/SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Callable, Optional

from vehicle_tracker.cli.common import (
    add_common_cli_arguments,
    install_exception_handlers,
    install_signal_handlers,
    log_module_shutdown,
    log_module_startup,
    non_negative_float,
    positive_float,
    positive_int,
    setup_logging,
)
from vehicle_tracker.core.config_manager import get_config_manager
from vehicle_tracker.core.logging_utils import get_module_logger
from vehicle_tracker.core.paths import LOGS_DIR, USER_CONFIG_DIR, ensure_directories
from vehicle_tracker.modules.base.preferences import ModulePreferences

from .config import TrackingConfig
from .identifier_store import IdentifierStore
from .tracking_core import (
    HttpTransmissionChannel,
    LoggingStatusSink,
    NMEAPositionSource,
    SerialPermissionGate,
    SerialReceiverTransport,
    SessionController,
    SessionPhase,
)

MODULE_DIR = Path(__file__).resolve().parent
DEFAULTS_FILE = MODULE_DIR / "config.txt"
USER_CONFIG_FILE = USER_CONFIG_DIR / "tracking.txt"
MODULE_ID = "tracking"

IDENTIFIER_PROMPT = "Vehicle ID (e.g., BUS-001, VAN-042): "

EXIT_OK = 0
EXIT_PERMISSION = 1
EXIT_NO_IDENTIFIER = 2

logger = get_module_logger("MainTracking")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vehicle-tracker",
        description="Report this vehicle's position to a collection endpoint at a fixed interval",
    )

    parser.add_argument(
        "--vehicle-id",
        dest="vehicle_id",
        type=str,
        default=None,
        help="Vehicle identifier to track under (saved for later runs)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        default=False,
        help="Forget the stored vehicle ID; exits unless --vehicle-id is also given",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Collection endpoint URL that receives position envelopes",
    )
    parser.add_argument(
        "--serial-port",
        dest="serial_port",
        type=str,
        default=None,
        help="Serial device (or pyserial URL) of the NMEA receiver",
    )
    parser.add_argument(
        "--baud-rate",
        dest="baud_rate",
        type=positive_int,
        default=None,
        help="Receiver baud rate",
    )
    parser.add_argument(
        "--interval",
        type=positive_float,
        default=None,
        help="Seconds between samples",
    )
    parser.add_argument(
        "--fix-timeout",
        dest="fix_timeout",
        type=positive_float,
        default=None,
        help="Seconds to wait for a fix before the tick fails",
    )
    parser.add_argument(
        "--fix-max-age",
        dest="fix_max_age",
        type=non_negative_float,
        default=None,
        help="Reuse a cached fix no older than this many seconds",
    )
    parser.add_argument(
        "--send-timeout",
        dest="send_timeout",
        type=positive_float,
        default=None,
        help="Seconds before an HTTP delivery is abandoned",
    )
    parser.add_argument(
        "--identity-file",
        dest="identity_file",
        type=Path,
        default=None,
        help="File holding the stored vehicle ID",
    )

    add_common_cli_arguments(parser)
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def load_config(args: argparse.Namespace) -> TrackingConfig:
    """Shipped defaults, overlaid by the user config file, overlaid by the CLI."""
    manager = get_config_manager()
    config_path = Path(args.config).expanduser() if getattr(args, "config", None) else USER_CONFIG_FILE

    values = dict(manager.read_config(DEFAULTS_FILE))
    values.update(manager.read_config(config_path))

    prefs = ModulePreferences(config_path, config_manager=manager, initial_data=values)
    return TrackingConfig.from_preferences(prefs, args)


async def resolve_identifier(
    args: argparse.Namespace,
    store: IdentifierStore,
    *,
    input_fn: Callable[[str], str] = input,
) -> Optional[str]:
    """Return the identifier to track under, or None when there is none.

    ``--reset`` clears the stored value first. A value given on the command
    line is saved; otherwise the stored value is used; otherwise the operator
    is prompted until a non-blank value is entered.
    """
    if args.reset:
        await store.clear()

    if args.vehicle_id is not None:
        try:
            return await store.save(args.vehicle_id)
        except ValueError as exc:
            logger.error("%s", exc)
            return None

    if args.reset:
        return None

    stored = await store.load()
    if stored:
        logger.info("Using stored vehicle ID %s", stored)
        return stored

    while True:
        try:
            entered = await asyncio.to_thread(input_fn, IDENTIFIER_PROMPT)
        except EOFError:
            logger.error("No vehicle ID available; pass --vehicle-id")
            return None
        entered = entered.strip()
        if entered:
            return await store.save(entered)


def build_controller(config: TrackingConfig) -> tuple[SessionController, NMEAPositionSource, HttpTransmissionChannel]:
    gate = SerialPermissionGate(config.serial_port)
    transport = SerialReceiverTransport(config.serial_port, config.baud_rate)
    source = NMEAPositionSource(transport)
    channel = HttpTransmissionChannel(config.endpoint_url, timeout=config.send_timeout_s)
    controller = SessionController(
        gate,
        source,
        channel,
        interval=config.sample_interval_s,
        fix_timeout=config.fix_timeout_s,
        fix_max_age=config.fix_max_age_s,
    )
    return controller, source, channel


async def run_tracking(
    controller: SessionController,
    identifier: str,
    shutdown_event: asyncio.Event,
) -> int:
    """Run one session until ``shutdown_event`` is set; returns the exit code."""
    async with controller:
        snapshot = await controller.start(identifier)
        if snapshot.phase is not SessionPhase.ACTIVE:
            logger.error("Tracking not started: %s", snapshot.last_error)
            return EXIT_PERMISSION

        await shutdown_event.wait()
        await controller.stop()
    return EXIT_OK


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the tracking module."""
    args = parse_args(argv)
    config = load_config(args)

    ensure_directories()
    log_file = config.log_file
    if log_file is None and not config.console_output:
        log_file = LOGS_DIR / f"{MODULE_ID}.log"
    runtime_logger = setup_logging(
        config.log_level,
        console=config.console_output,
        log_file=log_file,
        name="MainTracking",
    )

    loop = asyncio.get_running_loop()
    install_exception_handlers(runtime_logger.logger, loop)

    store = IdentifierStore(config.identity_file)
    identifier = await resolve_identifier(args, store)
    if identifier is None:
        return EXIT_OK if args.reset and args.vehicle_id is None else EXIT_NO_IDENTIFIER

    log_module_startup(
        runtime_logger,
        "Vehicle Tracker",
        vehicle_id=identifier,
        endpoint=config.endpoint_url,
        receiver=f"{config.serial_port} @ {config.baud_rate}",
        interval=f"{config.sample_interval_s:g}s",
    )

    controller, source, channel = build_controller(config)
    controller.subscribe(LoggingStatusSink())

    shutdown_event = asyncio.Event()
    install_signal_handlers(
        shutdown_event,
        loop,
        on_signal=lambda sig: runtime_logger.info("Received %s, shutting down", sig.name),
    )

    try:
        return await run_tracking(controller, identifier, shutdown_event)
    finally:
        await source.stop()
        await channel.close()
        log_module_shutdown(runtime_logger, "Vehicle Tracker")


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
