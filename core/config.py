# =============================================================================
# core/config.py  —  Settings, Constants and Logging Setup
# =============================================================================
#
# Only two values come from the environment:
#
#   LOG_LEVEL  → diagnostic verbosity (default INFO)
#   PORT       → listen port for the local HTTP server (default 3000)
#
# Everything else (station URL, timeout, station metadata, the MCP server
# identity) is fixed here.  main.py calls load_dotenv() before
# load_settings(), so a .env file in the working directory also works.
# =============================================================================

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# --- Upstream station ---
STATION_URL = "https://clima.info.unlp.edu.ar/last"
STATION_QUERY = {"lang": "es"}
FETCH_TIMEOUT_SECONDS = 10.0

# --- Station metadata (reported by GET /current) ---
STATION_NAME = "Facultad de Informática UNLP"
STATION_LOCATION = "La Plata, Argentina"
STATION_SHORT_NAME = "UNLP"

# --- MCP server identity ---
SERVER_NAME = "clima-info-unlp-mcp"
SERVER_VERSION = "1.0.0"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    port: int = DEFAULT_PORT


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Read LOG_LEVEL and PORT from the environment.

    Unknown log levels and unparseable ports fall back to the defaults with a
    warning rather than failing startup.
    """
    env = os.environ if environ is None else environ

    level = env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL
    numeric = logging.getLevelName(level)
    if isinstance(numeric, int):
        # Aliases collapse to the canonical name: WARN → WARNING, FATAL → CRITICAL
        level = logging.getLevelName(numeric)
    else:
        logger.warning("Unknown LOG_LEVEL=%r; using %s", level, DEFAULT_LOG_LEVEL)
        level = DEFAULT_LOG_LEVEL

    raw_port = env.get("PORT", "").strip()
    port = DEFAULT_PORT
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            logger.warning("Invalid PORT=%r; using %d", raw_port, DEFAULT_PORT)
        else:
            if not 0 < port < 65536:
                logger.warning("PORT=%d out of range; using %d", port, DEFAULT_PORT)
                port = DEFAULT_PORT

    return Settings(log_level=level, port=port)


def configure_logging(settings: Settings) -> None:
    """Send all diagnostics to STDERR.

    STDOUT carries the MCP JSON-RPC stream when running over stdio; a log
    line written there would corrupt the protocol.
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
