"""Tests for core.formatting."""

from __future__ import annotations

import pytest

from core.formatting import (
    classify_uv,
    format_humidity,
    format_parameter_value,
    format_pressure,
    format_rain,
    format_rain_rate,
    format_temperature,
    format_timestamp,
    format_uv,
    format_wind_speed,
    parameter_label,
)
from core.models import WEATHER_PARAMETERS

from tests.conftest import make_reading


class TestUnits:
    def test_temperature(self):
        assert format_temperature(18.5) == "18.5°C"

    def test_integral_float_drops_trailing_zero(self):
        assert format_temperature(18.0) == "18°C"

    def test_negative_temperature(self):
        assert format_temperature(-3.2) == "-3.2°C"

    def test_pressure(self):
        assert format_pressure(1013.2) == "1013.2 hPa"

    def test_humidity(self):
        assert format_humidity(62) == "62%"

    def test_wind_speed(self):
        assert format_wind_speed(12.9) == "12.9 km/h"

    def test_rain_and_rate(self):
        assert format_rain(1.2) == "1.2 mm"
        assert format_rain_rate(0.5) == "0.5 mm/h"


class TestUvClassification:
    @pytest.mark.parametrize(
        ("value", "band"),
        [
            (0, "Low"),
            (2, "Low"),
            (2.01, "Moderate"),
            (5, "Moderate"),
            (7, "High"),
            (10, "Very High"),
            (10.5, "Extreme"),
        ],
    )
    def test_bands_and_boundaries(self, value, band):
        assert classify_uv(value) == band

    def test_monotonic(self):
        order = ["Low", "Moderate", "High", "Very High", "Extreme"]
        values = [x / 4 for x in range(0, 60)]
        ranks = [order.index(classify_uv(v)) for v in values]
        assert ranks == sorted(ranks)

    def test_format_uv_includes_band(self):
        assert format_uv(8) == "8 (Very High)"


class TestTimestamp:
    def test_iso_with_z_keeps_the_zone(self):
        assert format_timestamp("2024-06-01T15:30:00Z") == "2024-06-01 15:30:00 UTC"

    def test_offset_is_shown_not_dropped(self):
        assert format_timestamp("2024-06-01T12:30:00-03:00") == "2024-06-01 12:30:00 UTC-03:00"

    def test_naive_has_no_zone_suffix(self):
        assert format_timestamp("2024-06-01T15:30:00") == "2024-06-01 15:30:00"

    def test_iso_with_millis(self):
        assert format_timestamp("2024-06-01T15:30:00.123") == "2024-06-01 15:30:00"

    def test_unparseable_is_returned_unchanged(self):
        assert format_timestamp("ayer a la tarde") == "ayer a la tarde"


class TestParameters:
    def test_labels(self):
        assert parameter_label("wind_speed") == "Wind Speed"
        assert parameter_label("uv") == "Uv"
        assert parameter_label("dew_point") == "Dew Point"

    def test_every_parameter_has_a_formatter(self):
        reading = make_reading()
        for parameter in WEATHER_PARAMETERS:
            assert format_parameter_value(reading, parameter)

    def test_pressure_reads_bar_field(self):
        assert format_parameter_value(make_reading(bar=1009), "pressure") == "1009 hPa"

    def test_dew_point_reads_dew_field(self):
        assert format_parameter_value(make_reading(dew=7.5), "dew_point") == "7.5°C"

    def test_unknown_parameter_raises(self):
        with pytest.raises(KeyError):
            format_parameter_value(make_reading(), "visibility")
