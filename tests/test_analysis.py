"""Tests for core.analysis."""

from __future__ import annotations

from core.analysis import NORMAL_LINE, PLEASANT_LINE, analyze, render_analysis

from tests.conftest import make_reading

NEUTRAL = dict(
    temperature=18,
    humidity=50,
    wind_speed=10,
    bar=1016,
    rain=0,
    rain_rate=0,
    uv=1,
    wind_chill=18,
)


class TestRuleOrdering:
    def test_all_groups_fire_in_order(self):
        reading = make_reading(
            temperature=5,
            humidity=85,
            wind_speed=25,
            bar=1016,
            rain=1,
            rain_rate=0.5,
            uv=8,
            wind_chill=1,
        )
        lines = analyze(reading)

        assert len(lines) == 7
        assert "cold" in lines[0]
        assert "humidity" in lines[1].lower()
        assert "Strong winds" in lines[2]
        assert "raining" in lines[3]
        assert "Rain rate" in lines[4] and "0.5 mm/h" in lines[4]
        assert "High UV" in lines[5]
        assert "4.0" in lines[6]

    def test_pressure_sits_between_wind_and_rain(self):
        lines = analyze(make_reading(**{**NEUTRAL, "wind_speed": 25, "bar": 1005, "rain": 2}))
        keywords = ["pleasant", "Strong winds", "Low pressure", "raining"]
        assert len(lines) == len(keywords)
        for line, keyword in zip(lines, keywords):
            assert keyword in line


class TestNeutral:
    def test_single_normal_line(self):
        lines = analyze(make_reading(**NEUTRAL))
        assert lines == [NORMAL_LINE]
        assert "normal" in lines[0]

    def test_pleasant_line_kept_when_other_rules_fire(self):
        lines = analyze(make_reading(**{**NEUTRAL, "humidity": 20}))
        assert lines[0] == PLEASANT_LINE
        assert "dry" in lines[1]
        assert len(lines) == 2


class TestThresholds:
    def test_temperature_bounds_are_exclusive(self):
        assert analyze(make_reading(**{**NEUTRAL, "temperature": 10, "wind_chill": 10})) == [NORMAL_LINE]
        assert analyze(make_reading(**{**NEUTRAL, "temperature": 25, "wind_chill": 25})) == [NORMAL_LINE]
        assert "warm" in analyze(make_reading(**{**NEUTRAL, "temperature": 25.1, "wind_chill": 25.1}))[0]

    def test_calm_wind(self):
        assert any("calm" in l for l in analyze(make_reading(**{**NEUTRAL, "wind_speed": 4.9})))

    def test_high_pressure(self):
        assert any("High pressure" in l for l in analyze(make_reading(**{**NEUTRAL, "bar": 1020.5})))

    def test_pressure_bounds_silent(self):
        assert analyze(make_reading(**{**NEUTRAL, "bar": 1013})) == [NORMAL_LINE]
        assert analyze(make_reading(**{**NEUTRAL, "bar": 1020})) == [NORMAL_LINE]

    def test_moderate_uv(self):
        lines = analyze(make_reading(**{**NEUTRAL, "uv": 4}))
        assert any("Moderate UV" in l for l in lines)

    def test_uv_three_is_silent(self):
        assert analyze(make_reading(**{**NEUTRAL, "uv": 3})) == [NORMAL_LINE]

    def test_wind_chill_delta_of_two_is_silent(self):
        assert analyze(make_reading(**{**NEUTRAL, "wind_chill": 16})) == [NORMAL_LINE]

    def test_wind_chill_delta_rounded_to_one_decimal(self):
        lines = analyze(make_reading(**{**NEUTRAL, "wind_chill": 15.26}))
        assert any("2.7°C colder" in l for l in lines)


def test_render_analysis_bullets_and_timestamp():
    text = render_analysis(make_reading(**NEUTRAL))
    assert text.startswith("**Weather Analysis for UNLP:**")
    assert f"• {NORMAL_LINE}" in text
    assert text.endswith("*Based on data from 2024-06-01 15:30:00 UTC*")
