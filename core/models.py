# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of information that flows
# between the station, the tool catalog and the transports:
#
#   WeatherReading  → one snapshot from the station (built per invocation)
#   ToolDescriptor  → one named operation in the catalog (built at startup)
#   ResultEnvelope  → what every tool invocation returns (success or error)
#
# All three are frozen.  A reading is owned by the call that fetched it and a
# descriptor is shared read-only by every transport.
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Callable, Literal, Optional

from core.errors import MalformedPayload


# -----------------------------------------------------------------------------
# The closed parameter enumeration for get_weather_parameter
# -----------------------------------------------------------------------------
# The HTTP adapter's /parameter/{name} route accepts the same set.
# -----------------------------------------------------------------------------
WeatherParameter = Literal[
    "temperature",
    "humidity",
    "pressure",
    "wind_speed",
    "wind_direction",
    "uv",
    "rain",
    "rain_rate",
    "dew_point",
    "wind_chill",
]

WEATHER_PARAMETERS: tuple[str, ...] = (
    "temperature",
    "humidity",
    "pressure",
    "wind_speed",
    "wind_direction",
    "uv",
    "rain",
    "rain_rate",
    "dew_point",
    "wind_chill",
)


# -----------------------------------------------------------------------------
# WeatherReading - one snapshot from the station
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class WeatherReading:
    """Latest measurements reported by the UNLP weather station."""

    captured_at: str                   # Timestamp string as sent by the station
    temperature: float                 # °C
    humidity: float                    # %
    dew: float                         # Dew point, °C
    bar: float                         # Barometric pressure, hPa
    uv: float                          # UV index
    wind_chill: float                  # "Feels like", °C
    wind_speed: float                  # km/h
    rain: float                        # mm
    rain_rate: float                   # mm/h
    wind_direction: str                # e.g. "NNE"

    @classmethod
    def from_payload(cls, payload: object) -> "WeatherReading":
        """Build a reading from the decoded station JSON.

        Raises MalformedPayload when the payload is not an object, a field is
        missing, or a numeric field is not a finite number.  Extra keys are
        ignored.
        """
        if not isinstance(payload, dict):
            raise MalformedPayload(
                f"Expected a JSON object, got {type(payload).__name__}"
            )

        missing = [f.name for f in fields(cls) if f.name not in payload]
        if missing:
            raise MalformedPayload(f"Missing fields: {', '.join(missing)}")

        values: dict[str, object] = {}
        for f in fields(cls):
            raw = payload[f.name]
            if f.name in ("captured_at", "wind_direction"):
                values[f.name] = str(raw)
                continue
            # bool is an int subclass; the station never sends one for a measurement
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise MalformedPayload(f"Field {f.name!r} is not a number: {raw!r}")
            if not math.isfinite(raw):
                raise MalformedPayload(f"Field {f.name!r} is not finite: {raw!r}")
            values[f.name] = raw

        return cls(**values)  # type: ignore[arg-type]

    def as_dict(self) -> dict[str, object]:
        """Field mapping in station order, used for JSON projections."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


# -----------------------------------------------------------------------------
# ToolDescriptor - one entry in the tool catalog
# -----------------------------------------------------------------------------
# The handler is pure: it receives an already-fetched reading and the
# (already validated) argument, and returns the text block.  Fetching and
# error conversion happen in ToolRegistry.invoke.
# -----------------------------------------------------------------------------
ToolHandler = Callable[[WeatherReading, Optional[str]], str]


@dataclass(frozen=True)
class ToolDescriptor:
    """A named operation exposed to every transport."""

    name: str                          # Unique key, e.g. "get_temperature"
    title: str                         # Human title shown by MCP clients
    description: str                   # What the caller gets back
    handler: ToolHandler
    error_label: str                   # Prefix for failure text, e.g. "Error fetching temperature data"
    parameter: Optional[str] = None    # Name of the single argument, if any
    choices: tuple[str, ...] = ()      # Closed set of allowed argument values
    parameter_description: str = ""

    @property
    def takes_parameter(self) -> bool:
        return self.parameter is not None


# -----------------------------------------------------------------------------
# ResultEnvelope - the uniform success/error wrapper
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class TextBlock:
    """One text content block."""

    text: str
    type: str = "text"


@dataclass(frozen=True)
class ResultEnvelope:
    """Outcome of one tool invocation: content blocks plus an error flag.

    There is no partial success; an envelope is either all content or a
    single error block.
    """

    content: tuple[TextBlock, ...] = field(default_factory=tuple)
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> "ResultEnvelope":
        return cls(content=(TextBlock(text),), is_error=False)

    @classmethod
    def failure(cls, text: str) -> "ResultEnvelope":
        return cls(content=(TextBlock(text),), is_error=True)

    @property
    def text(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content)

    def to_dict(self) -> dict:
        """Render in the MCP CallToolResult shape."""
        return {
            "content": [{"type": b.type, "text": b.text} for b in self.content],
            "isError": self.is_error,
        }
