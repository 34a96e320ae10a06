# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL weather logic for the UNLP station server.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, FastAPI, or any transport
#   framework.  The only third-party import is httpx (the upstream fetch).
#
# LAYOUT:
#   models.py      → WeatherReading, ToolDescriptor, ResultEnvelope
#   errors.py      → the error taxonomy
#   config.py      → environment settings and build-time constants
#   weather.py     → the DataSource (one GET to the station)
#   formatting.py  → pure display helpers (units, UV bands, timestamps)
#   analysis.py    → rule-based narrative about the current reading
#   registry.py    → the tool catalog every transport dispatches through
# =============================================================================
