# =============================================================================
# main.py  —  Entry Point for the UNLP Weather Station server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py            # MCP over stdio (same as "stdio")
#   uv run python main.py stdio      # MCP over stdio
#   uv run python main.py http       # plain HTTP API on $PORT (default 3000)
#   uv run python main.py check      # fetch one reading and print it
#
# ENVIRONMENT:
#   LOG_LEVEL  diagnostic verbosity (DEBUG, INFO, WARNING, ...)
#   PORT       listen port for the http command
#   Both may also live in a .env file next to where you run the command.
#
# WHAT HAPPENS:
#   1. .env is loaded (python-dotenv) and settings are read
#   2. Logging is pointed at STDERR
#   3. One ToolRegistry is built and handed to the chosen transport
# =============================================================================

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from core.config import STATION_NAME, Settings, configure_logging, load_settings
from core.errors import WeatherServiceError
from core.formatting import (
    format_humidity,
    format_pressure,
    format_temperature,
    format_timestamp,
    format_uv,
    format_wind_speed,
)
from core.registry import ToolRegistry, create_registry


def run_http(registry: ToolRegistry, settings: Settings) -> None:
    """Serve the plain HTTP API with uvicorn until SIGINT/SIGTERM."""
    import uvicorn

    from transports.http_api import create_app

    print(f"🌤️  {STATION_NAME} Weather API running on http://localhost:{settings.port}", file=sys.stderr)
    print("📍 Available endpoints:", file=sys.stderr)
    print("   GET /current - All weather data", file=sys.stderr)
    print("   GET /temperature - Temperature only", file=sys.stderr)
    print("   GET /parameter/{param} - Specific parameter", file=sys.stderr)
    uvicorn.run(
        create_app(registry),
        host="0.0.0.0",
        port=settings.port,
        # numeric level: uvicorn only knows its own lowercase names
        log_level=logging.getLevelName(settings.log_level),
    )


async def check_station(registry: ToolRegistry) -> int:
    """Fetch one reading and print a short summary.  Returns an exit code."""
    print("🌤️  Testing weather data fetch...\n")
    try:
        reading = await registry.fetch_reading()
    except WeatherServiceError as exc:
        print(f"❌ Test failed: {exc}")
        return 1

    print("✅ Weather data fetched successfully!")
    print("📊 Data received:")
    print(f"   🌡️  Temperature: {format_temperature(reading.temperature)}")
    print(f"   💧 Humidity: {format_humidity(reading.humidity)}")
    print(f"   📊 Pressure: {format_pressure(reading.bar)}")
    print(f"   💨 Wind: {format_wind_speed(reading.wind_speed)} {reading.wind_direction}")
    print(f"   ☀️  UV Index: {format_uv(reading.uv)}")
    print(f"   🌧️  Rain: {reading.rain} mm")
    print(f"   📅 Captured: {format_timestamp(reading.captured_at)}\n")
    print("🎉 Test completed successfully!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clima-unlp-mcp",
        description=f"{STATION_NAME} weather station over MCP and HTTP",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="stdio",
        choices=["stdio", "http", "check"],
        help="transport to run (default: stdio)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # .env must be loaded before settings are read
    load_dotenv()
    settings = load_settings()
    configure_logging(settings)

    registry = create_registry()

    if args.command == "http":
        run_http(registry, settings)
        return 0
    if args.command == "check":
        return asyncio.run(check_station(registry))

    from transports.mcp_server import run_stdio

    run_stdio(registry)
    return 0


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    sys.exit(main())
