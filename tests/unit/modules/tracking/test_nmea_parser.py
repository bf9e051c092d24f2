"""Unit tests for the NMEA parser."""

from functools import reduce

import pytest

from vehicle_tracker.modules.Tracking.tracking_core.constants import MPS_PER_KNOT
from vehicle_tracker.modules.Tracking.tracking_core.parsers import NMEAParser, validate_checksum

RMC = "$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A"


def nmea(body: str) -> str:
    """Wrap a sentence body with its checksum."""
    checksum = reduce(lambda acc, ch: acc ^ ord(ch), body, 0)
    return f"${body}*{checksum:02X}"


class TestChecksum:
    """Test checksum validation."""

    def test_valid_sentence(self):
        assert validate_checksum(RMC) is True

    def test_corrupted_sentence(self):
        assert validate_checksum(RMC[:-2] + "00") is False

    def test_missing_checksum(self):
        assert validate_checksum("$GPRMC,123519,A") is False

    def test_helper_matches_known_sentence(self):
        assert nmea(RMC[1:-3]) == RMC

    def test_bad_checksum_ignored(self):
        parser = NMEAParser()
        assert parser.parse_sentence(RMC[:-2] + "00") is None
        assert parser.fix.latitude is None


class TestRMC:
    """Test RMC parsing."""

    def test_position_speed_and_time(self):
        parser = NMEAParser()
        data = parser.parse_sentence(RMC)

        assert data["sentence_type"] == "RMC"
        fix = parser.fix
        assert fix.latitude == pytest.approx(48.1173, rel=1e-5)
        assert fix.longitude == pytest.approx(11.516667, rel=1e-5)
        assert fix.speed_mps == pytest.approx(22.4 * MPS_PER_KNOT)
        assert fix.course_deg == pytest.approx(84.4)
        assert fix.fix_valid is True
        assert (fix.timestamp.month, fix.timestamp.day) == (3, 23)
        assert fix.timestamp.hour == 12
        assert fix.has_position() is True
        assert fix.position_wall_ms > 0

    def test_void_status_is_not_a_fix(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPRMC,123519,V,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W"))

        assert parser.fix.fix_valid is False
        assert parser.fix.has_position() is False
        assert parser.fix.age_seconds() is None

    def test_southern_western_hemisphere(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GNRMC,000000,A,3352.000,S,15112.000,W,0.0,0.0,010124,,"))

        assert parser.fix.latitude == pytest.approx(-33.866667, rel=1e-5)
        assert parser.fix.longitude == pytest.approx(-151.2, rel=1e-5)

    def test_empty_speed_is_none(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPRMC,123519,A,4807.038,N,01131.000,E,,,230394,,"))

        assert parser.fix.speed_mps is None

    @pytest.mark.parametrize("latitude", ["48nan", "48inf", "48-inf"])
    def test_non_finite_coordinates_rejected(self, latitude):
        seen = []
        parser = NMEAParser(on_position=seen.append)
        parser.parse_sentence(nmea(f"GPRMC,123519,A,{latitude},N,01131.000,E,022.4,084.4,230394,003.1,W"))

        assert parser.fix.latitude is None
        assert parser.fix.has_position() is False
        assert seen == []

    def test_non_finite_speed_is_none(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPRMC,123519,A,4807.038,N,01131.000,E,nan,084.4,230394,003.1,W"))

        assert parser.fix.speed_mps is None
        assert parser.fix.has_position() is True


class TestOtherSentences:
    """Test GGA, VTG, GLL and GSA parsing."""

    def test_gga(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,"))

        fix = parser.fix
        assert fix.fix_quality == 1
        assert fix.satellites_in_use == 8
        assert fix.hdop == pytest.approx(0.9)
        assert fix.has_position() is True

    def test_gga_without_fix(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPGGA,123519,,,,,0,00,99.9,,M,,M,,"))

        assert parser.fix.fix_valid is False
        assert parser.fix.latitude is None

    def test_vtg_speed_knots(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPVTG,054.7,T,034.4,M,005.5,N,010.2,K"))

        assert parser.fix.speed_mps == pytest.approx(5.5 * MPS_PER_KNOT)
        assert parser.fix.course_deg == pytest.approx(54.7)

    def test_vtg_falls_back_to_kmh(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPVTG,054.7,T,034.4,M,,N,036.0,K"))

        assert parser.fix.speed_mps == pytest.approx(10.0)

    def test_gll(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPGLL,4916.45,N,12311.12,W,225444,A"))

        assert parser.fix.latitude == pytest.approx(49.274167, rel=1e-5)
        assert parser.fix.longitude == pytest.approx(-123.185333, rel=1e-5)
        assert parser.fix.has_position() is True

    def test_gsa_fix_mode(self):
        parser = NMEAParser()
        parser.parse_sentence(nmea("GPGSA,A,3,04,05,,09,12,,,24,,,,,2.5,1.3,2.1"))

        assert parser.fix.fix_mode == "3D"
        assert parser.fix.hdop == pytest.approx(1.3)

    def test_unknown_sentence_ignored(self):
        parser = NMEAParser()
        assert parser.parse_sentence(nmea("GPZDA,201530.00,04,07,2002,00,00")) is None

    def test_non_nmea_line_ignored(self):
        parser = NMEAParser()
        assert parser.parse_sentence("hello") is None
        assert parser.parse_sentence("") is None


class TestPositionCallback:
    """Test the on_position hook the position source relies on."""

    def test_fires_for_valid_position(self):
        seen = []
        parser = NMEAParser(on_position=lambda fix: seen.append(fix.copy()))
        parser.parse_sentence(RMC)

        assert len(seen) == 1
        assert seen[0].latitude == pytest.approx(48.1173, rel=1e-5)

    def test_silent_without_fix(self):
        seen = []
        parser = NMEAParser(on_position=seen.append)
        parser.parse_sentence(nmea("GPRMC,123519,V,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W"))
        parser.parse_sentence(nmea("GPVTG,054.7,T,034.4,M,005.5,N,010.2,K"))

        assert seen == []

    def test_checksum_validation_can_be_disabled(self):
        parser = NMEAParser(validate_checksums=False)
        parser.parse_sentence(RMC[:-2] + "00")

        assert parser.fix.has_position() is True

    def test_reset(self):
        parser = NMEAParser()
        parser.parse_sentence(RMC)
        parser.reset()

        assert parser.fix.latitude is None
