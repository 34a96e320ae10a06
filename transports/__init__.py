# =============================================================================
# transports/__init__.py
# =============================================================================
# This package contains the three bindings that expose core.registry:
#
#   mcp_server.py    → MCP over stdin/stdout (FastMCP), long-lived process
#   http_api.py      → plain HTTP routes (FastAPI locally, API Gateway on AWS)
#   lambda_bridge.py → API Gateway events relayed to a child mcp_server
#
# WHAT TRANSPORTS DO NOT DO:
#   - They do NOT format weather data (core/formatting.py, core/registry.py)
#   - They do NOT fetch anything themselves (core/weather.py)
#   They translate a request into registry.invoke(...) and the envelope back
#   into their own wire shape.
# =============================================================================
