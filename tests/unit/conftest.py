"""Unit test fixtures for isolated, fast test execution.

Unit tests never touch a real receiver or the network beyond a local
aiohttp test server, and never write outside ``tmp_path``.
"""

from __future__ import annotations

import pytest

from vehicle_tracker.core.config_manager import ConfigManager
from vehicle_tracker.modules.Tracking.tracking_core.types import Sample


@pytest.fixture
def config_manager() -> ConfigManager:
    """A fresh ConfigManager (not the process-wide singleton)."""
    return ConfigManager()


# =============================================================================
# Sample Fixtures
# =============================================================================

@pytest.fixture
def sample() -> Sample:
    """A fix in Salt Lake City, moving at 12.5 m/s."""
    return Sample(
        latitude=40.760800,
        longitude=-111.891000,
        speed_mps=12.5,
        captured_at_ms=1_700_000_000_123,
    )
