"""Reader/writer for the ``key = value`` text files used for config and state."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import aiofiles

from .logging_utils import get_module_logger

logger = get_module_logger("ConfigManager")


class ConfigManager:

    def __init__(self) -> None:
        self.lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _stringify_value(value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    @staticmethod
    def _parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue

            key, value = line.split('=', 1)
            key = key.strip()
            value = value.strip()

            if '#' in value:
                value = value.split('#')[0].strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]

            config[key] = value

        return config

    @staticmethod
    def _line_key(line: str) -> Optional[str]:
        stripped = line.strip()
        if not stripped or stripped.startswith('#') or '=' not in stripped:
            return None
        return stripped.split('=', 1)[0].strip()

    # ------------------------------------------------------------------
    # Reading

    def read_config(self, config_path: Path) -> Dict[str, str]:
        """Return the parsed contents of ``config_path`` ({} when missing)."""
        config_path = Path(config_path)
        if not config_path.exists():
            return {}
        try:
            with open(config_path, 'r', encoding='utf-8') as fh:
                return self._parse_config_lines(fh)
        except OSError as exc:
            logger.error("Failed to read config %s: %s", config_path, exc)
            return {}

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        """Async variant of :meth:`read_config` for use inside the event loop."""
        config_path = Path(config_path)
        if not await asyncio.to_thread(config_path.exists):
            return {}
        try:
            lines: list[str] = []
            async with aiofiles.open(config_path, 'r', encoding='utf-8') as fh:
                async for line in fh:
                    lines.append(line)
        except OSError as exc:
            logger.error("Failed to read config %s: %s", config_path, exc)
            return {}
        return self._parse_config_lines(lines)

    # ------------------------------------------------------------------
    # Writing

    def _merge_lines(
        self,
        lines: list[str],
        updates: Dict[str, Any],
        removals: set[str],
    ) -> list[str]:
        written: set[str] = set()
        output: list[str] = []
        for line in lines:
            key = self._line_key(line)
            if key is not None and key in removals:
                continue
            if key is not None and key in updates:
                indent = len(line) - len(line.lstrip())
                output.append(' ' * indent + f"{key} = {self._stringify_value(updates[key])}\n")
                written.add(key)
                continue
            output.append(line if line.endswith('\n') else line + '\n')

        for key, value in updates.items():
            if key not in written:
                output.append(f"{key} = {self._stringify_value(value)}\n")
                logger.debug("Added new config key: %s", key)
        return output

    async def write_config_async(
        self,
        config_path: Path,
        updates: Dict[str, Any],
        *,
        remove_keys: Iterable[str] = (),
    ) -> bool:
        """Update keys in place, append new ones and drop ``remove_keys``.

        Comments and unrelated lines are preserved. The file (and its parent
        directory) is created when missing.
        """
        config_path = Path(config_path)
        removals = set(remove_keys)
        if not updates and not removals:
            return True

        async with self.lock:
            try:
                lines: list[str] = []
                if await asyncio.to_thread(config_path.exists):
                    async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
                        lines = await f.readlines()

                output = self._merge_lines(lines, updates, removals)

                await asyncio.to_thread(config_path.parent.mkdir, parents=True, exist_ok=True)
                async with aiofiles.open(config_path, 'w', encoding='utf-8') as f:
                    await f.writelines(output)
            except OSError as exc:
                logger.error("Failed to write config %s: %s", config_path, exc)
                return False

        logger.debug("Updated %s (set=%s, removed=%s)", config_path, sorted(updates), sorted(removals))
        return True


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


__all__ = ["ConfigManager", "get_config_manager"]
