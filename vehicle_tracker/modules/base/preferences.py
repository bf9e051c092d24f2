"""Shared preference helpers for module configs."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

from vehicle_tracker.core.config_manager import ConfigManager, get_config_manager


class ModulePreferences:
    """Cached view of one ``key = value`` file backed by ConfigManager.

    Reads are served from the cache; ``reload``/``reload_async`` refresh it
    from disk and ``write_async`` persists changes and updates it.
    """

    def __init__(
        self,
        config_path: Path,
        *,
        config_manager: Optional[ConfigManager] = None,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._config_path = Path(config_path)
        self._manager = config_manager or get_config_manager()
        self._cache: Dict[str, Any] = {}
        if initial_data is not None:
            self._cache = dict(initial_data)
        else:
            self.reload()

    @property
    def path(self) -> Path:
        return self._config_path

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._cache)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._cache.get(key, default)

    def reload(self) -> Dict[str, Any]:
        self._cache = dict(self._manager.read_config(self._config_path))
        return self.snapshot()

    async def reload_async(self) -> Dict[str, Any]:
        self._cache = dict(await self._manager.read_config_async(self._config_path))
        return self.snapshot()

    async def write_async(
        self,
        updates: Dict[str, Any],
        *,
        remove_keys: Optional[Iterable[str]] = None,
    ) -> bool:
        removals = set(remove_keys or ())
        if not updates and not removals:
            return True

        success = await self._manager.write_config_async(self._config_path, updates, remove_keys=removals)
        if success:
            self._apply_cache_updates(updates, removals)
        return success

    def _apply_cache_updates(self, updates: Dict[str, Any], removed: Set[str]) -> None:
        for key, value in updates.items():
            self._cache[key] = ConfigManager._stringify_value(value)
        for key in removed:
            self._cache.pop(key, None)


__all__ = ["ModulePreferences"]
