# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Four failure kinds can occur while serving a tool call:
#
#   UpstreamUnavailable  → the station could not be reached (DNS, TLS, timeout)
#   UpstreamError        → the station answered with a non-2xx status
#   MalformedPayload     → the body was not the expected JSON object
#   InvalidParameter     → the caller passed a value outside the enumeration
#
# All of them are caught at ToolRegistry.invoke and turned into an error
# envelope.  Transports never see these exceptions directly.
# =============================================================================

from __future__ import annotations


class WeatherServiceError(Exception):
    """Base class for every failure a tool call can report."""


class UpstreamUnavailable(WeatherServiceError):
    """The network call to the weather station could not complete."""


class UpstreamError(WeatherServiceError):
    """The weather station returned a non-success HTTP status."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"Weather station returned HTTP {status}")


class MalformedPayload(WeatherServiceError):
    """The weather station body could not be read as a reading."""


class InvalidParameter(WeatherServiceError):
    """A caller-supplied parameter is missing, unexpected, or not allowed."""

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        self.parameter = parameter
        super().__init__(message)
