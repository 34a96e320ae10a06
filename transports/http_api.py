# =============================================================================
# transports/http_api.py  —  Plain HTTP API
# =============================================================================
#
# WHAT THIS FILE DOES:
#   A small path router over the same ToolRegistry the MCP server uses:
#
#     GET     /                 → full reading + station metadata
#     GET     /current          → same as /
#     GET     /temperature      → temperature, feels like, unit
#     GET     /parameter/{name} → one of the ten enumerated parameters
#     OPTIONS *                 → CORS preflight (200, empty body, no fetch)
#     other methods             → 405
#     unknown paths / names     → 404
#     station failure           → 500 with {"error", "message"}
#
#   route_request() is framework-free and returns an HttpResponse.  Two
#   bindings sit on top of it:
#
#     create_app(registry)     → FastAPI app for `python main.py http`
#     handler(event, context)  → AWS Lambda handler for API Gateway events
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request, Response

from core.config import STATION_LOCATION, STATION_NAME
from core.errors import InvalidParameter, WeatherServiceError
from core.models import WEATHER_PARAMETERS
from core.registry import ToolRegistry, create_registry

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

ALLOWED_METHODS = ["GET", "OPTIONS"]

AVAILABLE_ENDPOINTS = [
    "/current - Get all current weather data",
    "/temperature - Get current temperature",
    "/parameter/{param} - Get specific parameter "
    f"({', '.join(WEATHER_PARAMETERS)})",
]

# Units reported by /parameter/{name}; wind_direction and uv have none.
PARAMETER_UNITS = {
    "temperature": "°C",
    "dew_point": "°C",
    "wind_chill": "°C",
    "humidity": "%",
    "pressure": "hPa",
    "wind_speed": "km/h",
    "rain": "mm",
    "rain_rate": "mm/h",
}

# /parameter/{name} → WeatherReading attribute
PARAMETER_FIELDS = {
    "temperature": "temperature",
    "humidity": "humidity",
    "pressure": "bar",
    "wind_speed": "wind_speed",
    "wind_direction": "wind_direction",
    "uv": "uv",
    "rain": "rain",
    "rain_rate": "rain_rate",
    "dew_point": "dew",
    "wind_chill": "wind_chill",
}

_PARAMETER_PREFIX = "/parameter/"


def _dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


@dataclass
class HttpResponse:
    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    @classmethod
    def json(cls, status_code: int, payload: Any) -> "HttpResponse":
        return cls(status_code=status_code, body=_dumps(payload))

    def json_body(self) -> Any:
        return json.loads(self.body) if self.body else None

    def to_proxy_result(self) -> dict[str, Any]:
        """API Gateway proxy-integration result."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }


# =============================================================================
# Router
# =============================================================================
async def route_request(registry: ToolRegistry, method: str, path: str) -> HttpResponse:
    """Resolve one request.  Never raises; faults become a 500 body."""
    try:
        return await _route(registry, method.upper(), path or "/")
    except Exception as exc:
        logger.exception("HTTP handler error for %s %s", method, path)
        return HttpResponse.json(500, {"error": "Internal server error", "message": str(exc)})


async def _route(registry: ToolRegistry, method: str, path: str) -> HttpResponse:
    if method == "OPTIONS":
        return HttpResponse(status_code=200)
    if method != "GET":
        return HttpResponse.json(
            405, {"error": "Method not allowed", "allowed_methods": ALLOWED_METHODS}
        )

    if len(path) > 1:
        path = path.rstrip("/")

    parameter: Optional[str] = None
    if path.startswith(_PARAMETER_PREFIX):
        parameter = path[len(_PARAMETER_PREFIX):]
        try:
            registry.validate("get_weather_parameter", {"parameter": parameter})
        except InvalidParameter as exc:
            logger.info("Rejected /parameter/%s: %s", parameter, exc)
            return HttpResponse.json(
                404,
                {
                    "error": "Unknown parameter",
                    "message": str(exc),
                    "available_parameters": list(WEATHER_PARAMETERS),
                },
            )
    elif path not in ("/", "/current", "/temperature"):
        return HttpResponse.json(
            404, {"error": "Endpoint not found", "available_endpoints": AVAILABLE_ENDPOINTS}
        )

    try:
        reading = await registry.fetch_reading()
    except WeatherServiceError as exc:
        logger.warning("Station fetch failed for %s: %s", path, exc)
        return HttpResponse.json(
            500, {"error": "Failed to fetch weather data", "message": str(exc)}
        )

    if parameter is not None:
        body: dict[str, Any] = {
            "parameter": parameter,
            "value": getattr(reading, PARAMETER_FIELDS[parameter]),
        }
        if parameter in PARAMETER_UNITS:
            body["unit"] = PARAMETER_UNITS[parameter]
        body["captured_at"] = reading.captured_at
        return HttpResponse.json(200, body)

    if path == "/temperature":
        return HttpResponse.json(
            200,
            {
                "temperature": reading.temperature,
                "feels_like": reading.wind_chill,
                "unit": "°C",
                "captured_at": reading.captured_at,
            },
        )

    return HttpResponse.json(
        200,
        {
            "station": STATION_NAME,
            "location": STATION_LOCATION,
            "data": reading.as_dict(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# =============================================================================
# FastAPI binding (local server)
# =============================================================================
def create_app(registry: ToolRegistry) -> FastAPI:
    """FastAPI app that forwards every method and path to route_request."""
    app = FastAPI(
        title=f"{STATION_NAME} Weather API",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route(
        "/{path:path}",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def dispatch(request: Request, path: str) -> Response:
        result = await route_request(registry, request.method, request.url.path)
        return Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
        )

    return app


# =============================================================================
# AWS Lambda binding (API Gateway REST v1 and HTTP API v2 events)
# =============================================================================
_registry: Optional[ToolRegistry] = None


def _lambda_registry() -> ToolRegistry:
    global _registry
    if _registry is None:
        _registry = create_registry()
    return _registry


def event_method_and_path(event: dict[str, Any]) -> tuple[str, str]:
    """Extract (method, path) from a v1 or v2 API Gateway event."""
    if "httpMethod" in event:
        return event.get("httpMethod") or "GET", event.get("path") or "/"
    http = (event.get("requestContext") or {}).get("http") or {}
    return http.get("method") or "GET", event.get("rawPath") or http.get("path") or "/"


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Lambda entry point for the plain HTTP API."""
    method, path = event_method_and_path(event)
    result = asyncio.run(route_request(_lambda_registry(), method, path))
    return result.to_proxy_result()
