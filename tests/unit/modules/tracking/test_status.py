"""Unit tests for status formatting and the logging sink."""

import datetime as dt
import logging

import pytest

from vehicle_tracker.modules.Tracking.tracking_core.status import (
    LoggingStatusSink,
    StatusSink,
    connection_label,
    format_coordinate,
    format_last_update,
    speed_kmh,
    summarize,
)
from vehicle_tracker.modules.Tracking.tracking_core.types import (
    Health,
    Sample,
    SessionState,
    describe_health,
)


class TestFormatting:
    """Test the operator-facing renderings."""

    def test_coordinate_has_six_decimals(self):
        assert format_coordinate(40.7608) == "40.760800"
        assert format_coordinate(-111.8910004) == "-111.891000"

    def test_speed_in_kmh(self):
        assert speed_kmh(12.5) == 45
        assert speed_kmh(0.0) == 0

    def test_last_update_never(self):
        assert format_last_update(None) == "Never"

    def test_last_update_clock_time(self):
        stamp = dt.datetime(2024, 5, 1, 8, 30, 15, tzinfo=dt.timezone.utc)
        expected = stamp.astimezone().strftime("%H:%M:%S")

        assert format_last_update(stamp) == expected

    def test_summary_without_sample(self):
        line = summarize(SessionState())

        assert line.startswith("Tracking Inactive")
        assert "No location data" in line
        assert "Last Update Never" in line
        assert line.endswith("Connected")

    def test_summary_with_sample(self, sample):
        state = SessionState(tracking_enabled=True, last_sample=sample, last_error="HTTP error! status: 500")
        line = summarize(state)

        assert line.startswith("Tracking Active")
        assert "Lat 40.760800 Lon -111.891000" in line
        assert "45 km/h" in line
        assert line.endswith("Error")
        assert connection_label(state) == "Error"


class TestHealth:
    """Test health derivation."""

    def test_never_sent(self):
        assert describe_health(SessionState()) is Health.NEVER_SENT

    def test_error_wins(self):
        state = SessionState(
            last_send_timestamp=dt.datetime.now(dt.timezone.utc),
            last_error="Location error: Timeout expired",
        )
        assert describe_health(state) is Health.ERROR

    def test_healthy(self):
        state = SessionState(last_send_timestamp=dt.datetime.now(dt.timezone.utc))
        assert state.health is Health.HEALTHY


class TestSample:
    """Test sample normalization."""

    @pytest.mark.parametrize("speed", [None, float("nan"), float("inf"), -1.0])
    def test_unusable_speed_is_zero(self, speed):
        assert Sample(latitude=0.0, longitude=0.0, speed_mps=speed).speed_mps == 0.0

    def test_sample_is_immutable(self, sample):
        with pytest.raises(AttributeError):
            sample.latitude = 0.0


class TestLoggingStatusSink:
    """Test console rendering through the logger."""

    def test_is_a_status_sink(self):
        assert isinstance(LoggingStatusSink(), StatusSink)

    def test_logs_changed_lines_only(self, caplog):
        caplog.set_level(logging.INFO)
        sink = LoggingStatusSink()

        sink.on_update(SessionState())
        sink.on_update(SessionState())

        lines = [record.getMessage() for record in caplog.records]
        assert len(lines) == 1
        assert lines[0].startswith("[Status] Tracking Inactive")

    def test_logs_new_errors_as_warnings(self, caplog, sample):
        caplog.set_level(logging.INFO)
        sink = LoggingStatusSink()
        failing = SessionState(tracking_enabled=True, last_sample=sample, last_error="HTTP error! status: 500")

        sink.on_update(failing)
        sink.on_update(failing)

        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings == ["[Status] Error: HTTP error! status: 500"]
