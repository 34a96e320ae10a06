"""Shared fixtures for the weather station test suite.

- anyio backend pinned to asyncio
- a representative station payload and WeatherReading
- a fake DataSource that counts fetches and can be told to fail
- httpx.MockTransport helpers for the real station client
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from core.errors import UpstreamError
from core.models import WeatherReading
from core.registry import ToolRegistry, create_registry
from core.weather import WeatherStationClient

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# ============================================================================
# Readings
# ============================================================================

SAMPLE_PAYLOAD: dict[str, Any] = {
    "captured_at": "2024-06-01T15:30:00Z",
    "temperature": 18.5,
    "humidity": 62,
    "dew": 11.2,
    "bar": 1016.4,
    "uv": 3,
    "wind_chill": 18.5,
    "wind_speed": 12.9,
    "rain": 0,
    "rain_rate": 0,
    "wind_direction": "NNE",
}


def make_reading(**overrides: Any) -> WeatherReading:
    """A valid reading with selected fields replaced."""
    return WeatherReading.from_payload({**SAMPLE_PAYLOAD, **overrides})


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return dict(SAMPLE_PAYLOAD)


@pytest.fixture
def reading() -> WeatherReading:
    return make_reading()


# ============================================================================
# DataSource fakes
# ============================================================================


class FakeSource:
    """Stands in for WeatherStationClient; records how often it was hit."""

    def __init__(self, reading: WeatherReading | None = None, error: Exception | None = None) -> None:
        self.reading = reading or make_reading()
        self.error = error
        self.calls = 0

    async def fetch(self) -> WeatherReading:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reading


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def failing_source() -> FakeSource:
    return FakeSource(error=UpstreamError(503))


@pytest.fixture
def registry(source: FakeSource) -> ToolRegistry:
    return create_registry(source)


@pytest.fixture
def failing_registry(failing_source: FakeSource) -> ToolRegistry:
    return create_registry(failing_source)


# ============================================================================
# httpx mock transports
# ============================================================================


def station_transport(
    status: int = 200,
    payload: Any = None,
    *,
    text: str | None = None,
    record: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """MockTransport that answers every request with one canned response."""

    def handle(request: httpx.Request) -> httpx.Response:
        if record is not None:
            record.append(request)
        if text is not None:
            return httpx.Response(status, text=text)
        body = SAMPLE_PAYLOAD if payload is None else payload
        return httpx.Response(status, content=json.dumps(body).encode())

    return httpx.MockTransport(handle)


def raising_transport(exc_factory: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    def handle(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)

    return httpx.MockTransport(handle)


def station_client(transport: httpx.MockTransport) -> WeatherStationClient:
    return WeatherStationClient(transport=transport)
