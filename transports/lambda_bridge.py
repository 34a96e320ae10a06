# =============================================================================
# transports/lambda_bridge.py  —  API Gateway → stdio MCP subprocess bridge
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Lets an MCP client reach the stdio server through AWS Lambda.  Each
#   API Gateway (REST v1) or Lambda function URL (v2) event carries one
#   JSON-RPC 2.0 request in its body.  The bridge:
#
#     1. Parses the JSON-RPC request from the event body
#     2. Starts `python main.py stdio` as a child process
#     3. Opens an MCP ClientSession to it and runs `initialize`.  For an
#        initialize request the caller's own params are sent, so the
#        protocol version the child agrees to is the one the caller asked for
#     4. Relays the request (initialize / ping / tools/list / tools/call)
#     5. Returns the JSON-RPC response as a proxy-integration result
#
#   The child is the same process that `python main.py stdio` runs locally,
#   so the tool catalog is exactly the one in core/registry.py.
#
# STATUS CODES:
#   200  JSON-RPC result or JSON-RPC error from the child
#   202  notification (no "id"), nothing to return
#   400  body is not valid JSON-RPC (-32700 / -32600)
#   405  method other than POST / OPTIONS
#   500  the child could not be started or the relay failed (-32603)
# =============================================================================

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import (
    ClientNotification,
    ClientRequest,
    InitializedNotification,
    InitializeRequest,
    InitializeRequestParams,
    InitializeResult,
)
from pydantic import ValidationError

from transports.http_api import CORS_HEADERS, event_method_and_path

logger = logging.getLogger(__name__)

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

SUPPORTED_METHODS = ("initialize", "ping", "tools/list", "tools/call")

# (initialize params or None) -> async context manager yielding (session, InitializeResult)
SessionFactory = Callable[[Optional[InitializeRequestParams]], Any]


class BadRequest(Exception):
    """The event body is not a usable JSON-RPC request."""

    def __init__(self, code: int, message: str, request_id: Any = None) -> None:
        self.code = code
        self.request_id = request_id
        super().__init__(message)


def default_server_params() -> StdioServerParameters:
    """Spawn main.py from the project root with the current interpreter."""
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return StdioServerParameters(
        command=sys.executable,
        args=[os.path.join(project_root, "main.py"), "stdio"],
        env=dict(os.environ),
        cwd=project_root,
    )


def _proxy(status_code: int, payload: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": "" if payload is None else json.dumps(payload, ensure_ascii=False),
    }


def _rpc_result(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _rpc_error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


async def initialize_session(
    session: ClientSession, params: Optional[InitializeRequestParams] = None
) -> InitializeResult:
    """Run the MCP handshake on a fresh child session.

    With `params`, the caller's own initialize request (protocol version,
    capabilities, clientInfo) is sent unchanged, so the child negotiates the
    version the caller asked for.  Without it the SDK's defaults are used.
    """
    if params is None:
        return await session.initialize()

    result = await session.send_request(
        ClientRequest(InitializeRequest(method="initialize", params=params)),
        InitializeResult,
    )
    await session.send_notification(
        ClientNotification(InitializedNotification(method="notifications/initialized"))
    )
    logger.debug(
        "Child negotiated protocol %s (requested %s)", result.protocolVersion, params.protocolVersion
    )
    return result


def initialize_params(params: dict[str, Any]) -> InitializeRequestParams:
    try:
        return InitializeRequestParams.model_validate(params)
    except ValidationError as exc:
        raise BadRequest(INVALID_PARAMS, f"Invalid initialize params: {exc.errors()[0]['msg']}") from exc


def parse_request(event: dict[str, Any]) -> dict[str, Any]:
    """Decode the JSON-RPC request carried by the event body."""
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise BadRequest(PARSE_ERROR, f"Parse error: {exc}") from exc
    try:
        message = json.loads(body)
    except ValueError as exc:
        raise BadRequest(PARSE_ERROR, f"Parse error: {exc}") from exc

    if not isinstance(message, dict):
        raise BadRequest(INVALID_REQUEST, "Invalid Request: expected a single JSON-RPC object")
    request_id = message.get("id")
    if message.get("jsonrpc") != "2.0" or not isinstance(message.get("method"), str):
        raise BadRequest(INVALID_REQUEST, "Invalid Request: missing jsonrpc/method", request_id)
    return message


class StdioBridge:
    """Relays JSON-RPC requests from platform events to a child stdio server.

    Args:
        server_params: How to start the child.  Defaults to `main.py stdio`.
        session_factory: Called with the caller's initialize params (or None
            for any other method); returns an async context manager yielding
            (ClientSession, InitializeResult).  Tests inject a fake one.
    """

    def __init__(
        self,
        server_params: Optional[StdioServerParameters] = None,
        *,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self._server_params = server_params or default_server_params()
        self._session_factory = session_factory or self._spawn_session

    @asynccontextmanager
    async def _spawn_session(
        self, init_params: Optional[InitializeRequestParams] = None
    ) -> AsyncIterator[tuple[ClientSession, InitializeResult]]:
        logger.info("Starting MCP child: %s %s", self._server_params.command, " ".join(self._server_params.args))
        async with stdio_client(self._server_params, errlog=sys.stderr) as (read, write):
            async with ClientSession(read, write) as session:
                init = await initialize_session(session, init_params)
                yield session, init

    async def handle(self, event: dict[str, Any]) -> dict[str, Any]:
        """Translate one platform event into one proxy-integration result."""
        method, _path = event_method_and_path(event)
        method = method.upper()
        if method == "OPTIONS":
            return _proxy(200)
        if method != "POST":
            return _proxy(405, {"error": "Method not allowed", "allowed_methods": ["POST", "OPTIONS"]})

        try:
            message = parse_request(event)
        except BadRequest as exc:
            logger.info("Rejected bridge request: %s", exc)
            return _proxy(400, _rpc_error(exc.request_id, exc.code, str(exc)))

        if "id" not in message:
            logger.debug("Notification %s acknowledged", message["method"])
            return _proxy(202)

        request_id = message["id"]
        rpc_method = message["method"]
        if rpc_method not in SUPPORTED_METHODS:
            return _proxy(200, _rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {rpc_method}"))

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return _proxy(200, _rpc_error(request_id, INVALID_PARAMS, "params must be an object"))

        try:
            result = await self._relay(rpc_method, params)
        except BadRequest as exc:
            return _proxy(200, _rpc_error(request_id, exc.code, str(exc)))
        except Exception as exc:
            logger.exception("Bridge relay failed for %s", rpc_method)
            return _proxy(500, _rpc_error(request_id, INTERNAL_ERROR, f"Internal error: {exc}"))

        return _proxy(200, _rpc_result(request_id, result))

    async def _relay(self, rpc_method: str, params: dict[str, Any]) -> dict[str, Any]:
        # Checked before the child is spawned
        init_params = initialize_params(params) if rpc_method == "initialize" else None
        async with self._session_factory(init_params) as (session, init):
            if rpc_method == "initialize":
                return _dump(init)
            if rpc_method == "ping":
                await session.send_ping()
                return {}
            if rpc_method == "tools/list":
                return _dump(await session.list_tools())

            name = params.get("name")
            if not isinstance(name, str):
                raise BadRequest(INVALID_PARAMS, "tools/call requires a string 'name'")
            arguments = params.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise BadRequest(INVALID_PARAMS, "tools/call 'arguments' must be an object")
            logger.info("Relaying tools/call %s %s", name, arguments)
            return _dump(await session.call_tool(name, arguments))


_bridge: Optional[StdioBridge] = None


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Lambda entry point for the subprocess-bridged MCP endpoint."""
    global _bridge
    if _bridge is None:
        _bridge = StdioBridge()
    return asyncio.run(_bridge.handle(event))
