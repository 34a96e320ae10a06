# =============================================================================
# core/weather.py  —  Weather Station Data Source
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Fetches the latest reading from the Facultad de Informática UNLP weather
#   station and turns it into a WeatherReading.
#
#   One GET, no query beyond the fixed locale flag, no authentication, no
#   retries, no caching.  Every tool invocation calls fetch() again.
#
# FAILURE MAPPING:
#   httpx.RequestError (incl. timeouts)  → UpstreamUnavailable
#   status outside 2xx                   → UpstreamError(status)
#   body not JSON / wrong shape          → MalformedPayload
# =============================================================================

from __future__ import annotations

import logging

import httpx

from core.config import FETCH_TIMEOUT_SECONDS, STATION_QUERY, STATION_URL
from core.errors import MalformedPayload, UpstreamError, UpstreamUnavailable
from core.models import WeatherReading

logger = logging.getLogger(__name__)


class WeatherStationClient:
    """Async client for the station's "last reading" endpoint.

    Args:
        url: Endpoint to query.  Fixed in production; overridable for tests.
        timeout: Total request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        url: str = STATION_URL,
        *,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> WeatherReading:
        """Fetch and validate the latest reading.

        Raises:
            UpstreamUnavailable: the request could not complete.
            UpstreamError: the station answered with a non-2xx status.
            MalformedPayload: the body is not a valid reading.
        """
        logger.debug("GET %s params=%s", self._url, STATION_QUERY)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self._url, params=STATION_QUERY)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(
                f"Weather station timed out after {self._timeout:g}s"
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamUnavailable(f"Unable to reach weather station: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedPayload(f"Weather station body is not JSON: {exc}") from exc

        reading = WeatherReading.from_payload(payload)
        logger.debug("Reading captured at %s", reading.captured_at)
        return reading
