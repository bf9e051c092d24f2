"""Typed configuration for the tracking module."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from vehicle_tracker.core.paths import IDENTITY_FILE
from vehicle_tracker.modules.base.preferences import ModulePreferences
from vehicle_tracker.modules.base.typed_config import (
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

from .tracking_core.constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_ENDPOINT_URL,
    DEFAULT_FIX_MAX_AGE_S,
    DEFAULT_FIX_TIMEOUT_S,
    DEFAULT_SAMPLE_INTERVAL_S,
    DEFAULT_SEND_TIMEOUT_S,
    DEFAULT_SERIAL_PORT,
)


@dataclass(slots=True)
class TrackingConfig:
    """Typed configuration for the tracking module."""

    # Collection endpoint
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    send_timeout_s: float = DEFAULT_SEND_TIMEOUT_S

    # Sampling
    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S
    fix_timeout_s: float = DEFAULT_FIX_TIMEOUT_S
    fix_max_age_s: float = DEFAULT_FIX_MAX_AGE_S

    # Serial configuration
    serial_port: str = DEFAULT_SERIAL_PORT
    baud_rate: int = DEFAULT_BAUD_RATE

    # Persistence and logging
    identity_file: Path = field(default_factory=lambda: IDENTITY_FILE)
    log_level: str = "info"
    log_file: Optional[Path] = None
    console_output: bool = True

    @classmethod
    def from_preferences(
        cls, prefs: ModulePreferences, args: Any = None
    ) -> "TrackingConfig":
        """Build config from preferences with optional CLI overrides."""
        defaults = cls()

        config = cls(
            endpoint_url=get_pref_str(prefs, "endpoint_url", defaults.endpoint_url),
            send_timeout_s=_positive(
                get_pref_float(prefs, "send_timeout_s", defaults.send_timeout_s),
                defaults.send_timeout_s,
            ),
            sample_interval_s=_positive(
                get_pref_float(prefs, "sample_interval_s", defaults.sample_interval_s),
                defaults.sample_interval_s,
            ),
            fix_timeout_s=_positive(
                get_pref_float(prefs, "fix_timeout_s", defaults.fix_timeout_s),
                defaults.fix_timeout_s,
            ),
            fix_max_age_s=max(0.0, get_pref_float(prefs, "fix_max_age_s", defaults.fix_max_age_s)),
            serial_port=get_pref_str(prefs, "serial_port", defaults.serial_port),
            baud_rate=get_pref_int(prefs, "baud_rate", defaults.baud_rate),
            identity_file=get_pref_path(prefs, "identity_file", defaults.identity_file),
            log_level=get_pref_str(prefs, "log_level", defaults.log_level),
            log_file=get_pref_path(prefs, "log_file", defaults.log_file),
            console_output=get_pref_bool(prefs, "console_output", defaults.console_output),
        )

        # Apply CLI argument overrides if provided
        if args is not None:
            config = config._apply_args_override(args)

        return config

    def _apply_args_override(self, args: Any) -> "TrackingConfig":
        """Apply CLI argument overrides to config values."""
        values = asdict(self)

        arg_mappings = {
            "endpoint": "endpoint_url",
            "send_timeout": "send_timeout_s",
            "interval": "sample_interval_s",
            "fix_timeout": "fix_timeout_s",
            "fix_max_age": "fix_max_age_s",
            "serial_port": "serial_port",
            "baud_rate": "baud_rate",
            "identity_file": "identity_file",
            "log_level": "log_level",
            "log_file": "log_file",
            "console_output": "console_output",
        }

        for arg_name, config_key in arg_mappings.items():
            if hasattr(args, arg_name):
                val = getattr(args, arg_name)
                if val is not None:
                    values[config_key] = val

        return TrackingConfig(**values)

    def to_dict(self) -> dict[str, Any]:
        """Export config values as dictionary."""
        return asdict(self)


def _positive(value: float, default: float) -> float:
    return value if value > 0 else default


__all__ = ["TrackingConfig"]
