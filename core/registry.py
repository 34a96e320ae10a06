# =============================================================================
# core/registry.py  —  Tool Catalog and Dispatch
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Declares the four weather tools once and dispatches calls to them.  The
#   stdio MCP server, the HTTP router and the Lambda bridge all go through
#   ToolRegistry.invoke; none of them declares its own handlers.
#
#   get_current_weather          → full labelled report
#   get_temperature              → temperature + "feels like"
#   get_weather_parameter        → one value; parameter from a closed set
#   analyze_weather_conditions   → rule-based narrative (core/analysis.py)
#
# HOW A CALL FLOWS:
#   1. Look up the descriptor by name
#   2. Validate parameters (before any network traffic)
#   3. Fetch a fresh reading from the DataSource
#   4. Run the pure handler on the reading
#   5. Wrap the text in a ResultEnvelope
#
#   Any failure in steps 1-4 becomes ResultEnvelope(is_error=True).
#   invoke() never raises.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Protocol

from core.analysis import render_analysis
from core.config import STATION_NAME, STATION_SHORT_NAME
from core.errors import InvalidParameter, WeatherServiceError
from core.formatting import (
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
from core.models import WEATHER_PARAMETERS, ResultEnvelope, ToolDescriptor, WeatherReading
from core.weather import WeatherStationClient

logger = logging.getLogger(__name__)


class WeatherSource(Protocol):
    async def fetch(self) -> WeatherReading: ...


# =============================================================================
# Handlers (pure: reading + validated argument → text)
# =============================================================================
_PARAMETER_EMOJI = {
    "temperature": "🌡️",
    "humidity": "💧",
    "pressure": "📊",
    "wind_speed": "💨",
    "wind_direction": "🧭",
    "uv": "☀️",
    "rain": "🌧️",
    "rain_rate": "⛈️",
    "dew_point": "🌡️",
    "wind_chill": "🌡️",
}


def _data_from(reading: WeatherReading) -> str:
    return f"*Data from {format_timestamp(reading.captured_at)}*"


def current_weather_report(reading: WeatherReading, _argument: Optional[str] = None) -> str:
    report = [
        f"🌡️ **Current Weather Conditions at {STATION_SHORT_NAME}**",
        "",
        f"📅 **Captured:** {format_timestamp(reading.captured_at)}",
        "",
        f"🌡️ **Temperature:** {format_temperature(reading.temperature)}",
        f"🌡️ **Feels like:** {format_temperature(reading.wind_chill)}",
        f"💧 **Humidity:** {format_humidity(reading.humidity)}",
        f"🌡️ **Dew Point:** {format_temperature(reading.dew)}",
        f"📊 **Pressure:** {format_pressure(reading.bar)}",
        f"💨 **Wind Speed:** {format_wind_speed(reading.wind_speed)}",
        f"🧭 **Wind Direction:** {reading.wind_direction}",
        f"☀️ **UV Index:** {format_uv(reading.uv)}",
        f"🌧️ **Rain:** {format_rain(reading.rain)}",
        f"⛈️ **Rain Rate:** {format_rain_rate(reading.rain_rate)}",
    ]
    return "\n".join(report)


def temperature_report(reading: WeatherReading, _argument: Optional[str] = None) -> str:
    return (
        f"🌡️ **Temperature at {STATION_SHORT_NAME}:** {format_temperature(reading.temperature)}\n"
        f"🌡️ **Feels like:** {format_temperature(reading.wind_chill)}\n\n"
        f"{_data_from(reading)}"
    )


def parameter_report(reading: WeatherReading, parameter: Optional[str]) -> str:
    if parameter is None:
        raise InvalidParameter("Missing required parameter 'parameter'", parameter="parameter")
    value = format_parameter_value(reading, parameter)
    emoji = _PARAMETER_EMOJI[parameter]
    return f"{emoji} **{parameter_label(parameter)}:** {value}\n\n{_data_from(reading)}"


def analysis_report(reading: WeatherReading, _argument: Optional[str] = None) -> str:
    return render_analysis(reading)


# =============================================================================
# ToolRegistry
# =============================================================================
class ToolRegistry:
    """Read-only catalog of tools bound to one DataSource.

    Build it with create_registry(); after construction nothing is mutated,
    so one instance can serve concurrent calls from every transport.
    """

    def __init__(self, source: WeatherSource, descriptors: list[ToolDescriptor]) -> None:
        self._source = source
        self._tools: dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in self._tools:
                raise ValueError(f"Duplicate tool name: {descriptor.name}")
            self._tools[descriptor.name] = descriptor

    # --- Catalog ---

    def descriptors(self) -> list[ToolDescriptor]:
        return list(self._tools.values())

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    # --- Validation ---

    def validate(self, name: str, params: Mapping[str, Any] | None = None) -> Optional[str]:
        """Check params for tool `name` and return its single argument (or None).

        Raises InvalidParameter for an unknown tool, a missing required
        parameter, a value outside the enumeration, or unexpected keys.
        """
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise InvalidParameter(f"Unknown tool: {name}")

        params = dict(params or {})
        if not descriptor.takes_parameter:
            if params:
                raise InvalidParameter(
                    f"Tool {name} takes no parameters, got: {', '.join(sorted(params))}"
                )
            return None

        key = descriptor.parameter
        unexpected = sorted(k for k in params if k != key)
        if unexpected:
            raise InvalidParameter(f"Unexpected parameters for {name}: {', '.join(unexpected)}")
        if key not in params:
            raise InvalidParameter(f"Missing required parameter '{key}'", parameter=key)

        value = params[key]
        if not isinstance(value, str) or value not in descriptor.choices:
            raise InvalidParameter(
                f"Invalid {key} {value!r}. Expected one of: {', '.join(descriptor.choices)}",
                parameter=key,
            )
        return value

    # --- Dispatch ---

    async def fetch_reading(self) -> WeatherReading:
        """Fetch a fresh reading from the bound DataSource (may raise)."""
        return await self._source.fetch()

    async def invoke(self, name: str, params: Mapping[str, Any] | None = None) -> ResultEnvelope:
        """Run tool `name` and return its envelope.  Never raises."""
        descriptor = self._tools.get(name)
        if descriptor is None:
            logger.warning("Unknown tool requested: %s", name)
            return ResultEnvelope.failure(f"Unknown tool: {name}")

        try:
            argument = self.validate(name, params)
        except InvalidParameter as exc:
            logger.info("Rejected %s: %s", name, exc)
            return ResultEnvelope.failure(str(exc))

        label = descriptor.error_label.format(argument=argument or "")
        try:
            reading = await self._source.fetch()
            text = descriptor.handler(reading, argument)
        except WeatherServiceError as exc:
            logger.warning("%s failed: %s", name, exc)
            return ResultEnvelope.failure(f"{label}: {exc}")
        except Exception as exc:
            logger.exception("Unexpected failure in tool %s", name)
            return ResultEnvelope.failure(f"{label}: internal error ({exc.__class__.__name__}: {exc})")

        return ResultEnvelope.success(text)


# =============================================================================
# Factory
# =============================================================================
def default_descriptors() -> list[ToolDescriptor]:
    """The four weather tools, in catalog order."""
    return [
        ToolDescriptor(
            name="get_current_weather",
            title="Get Current Weather",
            description=f"Get current weather conditions from {STATION_NAME} weather station",
            handler=current_weather_report,
            error_label="Error fetching weather data",
        ),
        ToolDescriptor(
            name="get_temperature",
            title="Get Temperature",
            description=f"Get current temperature from {STATION_NAME} weather station",
            handler=temperature_report,
            error_label="Error fetching temperature data",
        ),
        ToolDescriptor(
            name="get_weather_parameter",
            title="Get Weather Parameter",
            description=f"Get a specific weather parameter from {STATION_NAME} weather station",
            handler=parameter_report,
            error_label="Error fetching {argument} data",
            parameter="parameter",
            choices=WEATHER_PARAMETERS,
            parameter_description="The weather parameter to retrieve",
        ),
        ToolDescriptor(
            name="analyze_weather_conditions",
            title="Analyze Weather Conditions",
            description="Analyze current weather conditions and provide insights",
            handler=analysis_report,
            error_label="Error analyzing weather conditions",
        ),
    ]


def create_registry(source: WeatherSource | None = None) -> ToolRegistry:
    """Build an independent registry (tests pass their own source)."""
    return ToolRegistry(source or WeatherStationClient(), default_descriptors())
