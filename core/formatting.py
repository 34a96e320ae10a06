# =============================================================================
# core/formatting.py  —  Display Helpers
# =============================================================================
#
# Pure functions that turn numbers into the strings the tools return.
# None of them touch the network or the clock.
# =============================================================================

from __future__ import annotations

from datetime import datetime

from core.models import WeatherReading

# -----------------------------------------------------------------------------
# UV bands: (inclusive upper bound, label), evaluated in ascending order.
# Anything above the last bound is "Extreme".
# -----------------------------------------------------------------------------
_UV_BANDS: tuple[tuple[float, str], ...] = (
    (2, "Low"),
    (5, "Moderate"),
    (7, "High"),
    (10, "Very High"),
)
_UV_TOP_BAND = "Extreme"


def _number(value: float) -> str:
    """Render 18.0 as "18" and 18.5 as "18.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_temperature(temp: float) -> str:
    return f"{_number(temp)}°C"


def format_pressure(pressure: float) -> str:
    return f"{_number(pressure)} hPa"


def format_humidity(humidity: float) -> str:
    return f"{_number(humidity)}%"


def format_wind_speed(speed: float) -> str:
    return f"{_number(speed)} km/h"


def format_rain(rain: float) -> str:
    return f"{_number(rain)} mm"


def format_rain_rate(rate: float) -> str:
    return f"{_number(rate)} mm/h"


def classify_uv(uv: float) -> str:
    """Return the UV band label; boundary values belong to the lower band."""
    for upper, label in _UV_BANDS:
        if uv <= upper:
            return label
    return _UV_TOP_BAND


def format_uv(uv: float) -> str:
    return f"{_number(uv)} ({classify_uv(uv)})"


def format_timestamp(captured_at: str) -> str:
    """Readable form of the station timestamp.

    ISO-8601 strings become "YYYY-MM-DD HH:MM:SS", followed by the zone when
    the station sends one ("... UTC", "... UTC-03:00").  The clock time is
    the station's own; it is not shifted to the server's zone.  Anything else
    is returned unchanged.
    """
    text = captured_at.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return captured_at
    if parsed.tzinfo is None:
        return parsed.strftime("%Y-%m-%d %H:%M:%S")
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z")


def parameter_label(parameter: str) -> str:
    """"wind_speed" → "Wind Speed", "rain_rate" → "Rain Rate"."""
    return " ".join(word.capitalize() for word in parameter.split("_"))


def format_parameter_value(reading: WeatherReading, parameter: str) -> str:
    """Formatted value of one enumerated parameter.

    Raises KeyError for names outside the enumeration; callers validate first.
    """
    formatters = {
        "temperature": lambda r: format_temperature(r.temperature),
        "humidity": lambda r: format_humidity(r.humidity),
        "pressure": lambda r: format_pressure(r.bar),
        "wind_speed": lambda r: format_wind_speed(r.wind_speed),
        "wind_direction": lambda r: r.wind_direction,
        "uv": lambda r: format_uv(r.uv),
        "rain": lambda r: format_rain(r.rain),
        "rain_rate": lambda r: format_rain_rate(r.rain_rate),
        "dew_point": lambda r: format_temperature(r.dew),
        "wind_chill": lambda r: format_temperature(r.wind_chill),
    }
    return formatters[parameter](reading)
