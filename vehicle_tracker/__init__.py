"""Top-level package for the vehicle tracker."""

from __future__ import annotations

import asyncio
from importlib import metadata
from typing import Optional, Sequence

try:
    __version__ = metadata.version("vehicle-tracker")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Convenience wrapper that runs the async tracking entry point."""
    from .modules.Tracking.main_tracking import main

    try:
        return asyncio.run(main(list(argv) if argv is not None else None))
    except KeyboardInterrupt:
        return 130


__all__ = ["__version__", "run"]
