# =============================================================================
# core/analysis.py  —  Weather Conditions Analysis
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads one WeatherReading and produces short observations ("It's quite
#   cold today.", "Strong winds present.", ...).
#
# RULE GROUPS (evaluated in this order, each adds zero or one line):
#
#   1. temperature   <10 cold | >25 warm | otherwise pleasant
#   2. humidity      >80 muggy | <30 dry
#   3. wind speed    >20 strong | <5 calm
#   4. pressure      <1013 low | >1020 high
#   5. rain          >0 currently raining
#   6. rain rate     >0 reports the rate
#   7. UV            >7 high | >3 moderate
#   8. wind chill    temperature - wind_chill > 2 reports the delta
#
#   A pleasant temperature is not a finding on its own.  When nothing else
#   fires, the result is a single "conditions appear normal" line.
# =============================================================================

from __future__ import annotations

from core.config import STATION_SHORT_NAME
from core.formatting import format_rain_rate, format_timestamp
from core.models import WeatherReading

# --- Thresholds ---
COLD_BELOW_C = 10
WARM_ABOVE_C = 25
MUGGY_ABOVE_PCT = 80
DRY_BELOW_PCT = 30
STRONG_WIND_ABOVE_KMH = 20
CALM_WIND_BELOW_KMH = 5
LOW_PRESSURE_BELOW_HPA = 1013
HIGH_PRESSURE_ABOVE_HPA = 1020
HIGH_UV_ABOVE = 7
MODERATE_UV_ABOVE = 3
WIND_CHILL_DELTA_ABOVE_C = 2

PLEASANT_LINE = "🌤️ Temperature is pleasant."
NORMAL_LINE = "🌤️ Temperature is pleasant and conditions appear normal."


def _temperature(r: WeatherReading) -> str:
    if r.temperature < COLD_BELOW_C:
        return "🥶 It's quite cold today."
    if r.temperature > WARM_ABOVE_C:
        return "🌡️ It's a warm day."
    return PLEASANT_LINE


def _humidity(r: WeatherReading) -> str | None:
    if r.humidity > MUGGY_ABOVE_PCT:
        return "💧 High humidity levels - might feel muggy."
    if r.humidity < DRY_BELOW_PCT:
        return "🏜️ Low humidity - air is quite dry."
    return None


def _wind(r: WeatherReading) -> str | None:
    if r.wind_speed > STRONG_WIND_ABOVE_KMH:
        return "💨 Strong winds present."
    if r.wind_speed < CALM_WIND_BELOW_KMH:
        return "🍃 Very light winds or calm conditions."
    return None


def _pressure(r: WeatherReading) -> str | None:
    if r.bar < LOW_PRESSURE_BELOW_HPA:
        return "📉 Low pressure system - weather changes possible."
    if r.bar > HIGH_PRESSURE_ABOVE_HPA:
        return "📈 High pressure system - stable weather likely."
    return None


def _rain(r: WeatherReading) -> str | None:
    return "🌧️ Currently raining." if r.rain > 0 else None


def _rain_rate(r: WeatherReading) -> str | None:
    return f"⛈️ Rain rate: {format_rain_rate(r.rain_rate)}" if r.rain_rate > 0 else None


def _uv(r: WeatherReading) -> str | None:
    if r.uv > HIGH_UV_ABOVE:
        return "☀️ High UV levels - sun protection recommended."
    if r.uv > MODERATE_UV_ABOVE:
        return "🌤️ Moderate UV levels."
    return None


def _wind_chill(r: WeatherReading) -> str | None:
    delta = r.temperature - r.wind_chill
    if delta > WIND_CHILL_DELTA_ABOVE_C:
        return f"❄️ Wind chill makes it feel {delta:.1f}°C colder."
    return None


_RULES = (_temperature, _humidity, _wind, _pressure, _rain, _rain_rate, _uv, _wind_chill)


def analyze(reading: WeatherReading) -> list[str]:
    """Observations about the reading, in rule-group order."""
    lines = [line for rule in _RULES if (line := rule(reading)) is not None]
    if lines == [PLEASANT_LINE]:
        return [NORMAL_LINE]
    return lines


def render_analysis(reading: WeatherReading) -> str:
    """Bullet report used by the analyze_weather_conditions tool."""
    bullets = "\n".join(f"• {line}" for line in analyze(reading))
    return (
        f"**Weather Analysis for {STATION_SHORT_NAME}:**\n\n"
        f"{bullets}\n\n"
        f"*Based on data from {format_timestamp(reading.captured_at)}*"
    )
