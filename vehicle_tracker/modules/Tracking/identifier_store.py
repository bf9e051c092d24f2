"""Persisted vehicle identifier.

The identifier is the only value that survives a restart. It lives in a
``key = value`` file under the user state directory so an operator can also
edit it by hand.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from vehicle_tracker.core.config_manager import ConfigManager
from vehicle_tracker.core.logging_utils import get_module_logger
from vehicle_tracker.core.paths import IDENTITY_FILE
from vehicle_tracker.modules.base.preferences import ModulePreferences

logger = get_module_logger("IdentifierStore")

IDENTIFIER_KEY = "vehicle_id"


class IdentifierStore:
    """Load, save and clear the vehicle identifier."""

    def __init__(
        self,
        path: Optional[Path] = None,
        *,
        config_manager: Optional[ConfigManager] = None,
    ):
        self._prefs = ModulePreferences(path or IDENTITY_FILE, config_manager=config_manager)

    @property
    def path(self) -> Path:
        return self._prefs.path

    async def load(self) -> Optional[str]:
        """Return the stored identifier, or None when absent or blank."""
        await self._prefs.reload_async()
        value = str(self._prefs.get(IDENTIFIER_KEY) or "").strip()
        return value or None

    async def save(self, identifier: str) -> str:
        """Trim and persist ``identifier``; blank values are rejected."""
        value = (identifier or "").strip()
        if not value:
            raise ValueError("Vehicle ID must not be empty")
        if not await self._prefs.write_async({IDENTIFIER_KEY: value}):
            raise OSError(f"Unable to save vehicle ID to {self.path}")
        logger.info("Vehicle ID set to %s", value)
        return value

    async def clear(self) -> None:
        if not await self._prefs.write_async({}, remove_keys=[IDENTIFIER_KEY]):
            raise OSError(f"Unable to clear vehicle ID in {self.path}")
        logger.info("Vehicle ID cleared")


__all__ = ["IDENTIFIER_KEY", "IdentifierStore"]
