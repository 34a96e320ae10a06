# =============================================================================
# transports/mcp_server.py  —  FastMCP stdio server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the tool catalog from core/registry.py over MCP using stdin/stdout.
#   Each tool below is a thin wrapper: it logs the call, runs
#   registry.invoke(), and turns an error envelope into a ToolError so the
#   MCP result carries isError=true.
#
# HOW IT WORKS (the flow):
#   1. The MCP client writes a tools/call request to our STDIN
#   2. FastMCP routes it to the decorated function below
#   3. The function calls ToolRegistry.invoke(name, params)
#   4. The envelope text goes back to the client on STDOUT
#
# PROCESS LIFECYCLE (StdioServerRunner):
#
#   IDLE ──run()──▶ AWAITING_REQUEST ◀──▶ DISPATCHING
#                        │
#                 SIGTERM / SIGINT
#                        ▼
#                    DRAINING ──▶ TERMINATED
#
#   The runner keeps serving if the server loop raises (the fault is logged
#   and serving resumes).  It stops when stdin closes or a termination
#   signal sets the shutdown event.
#
#   A resumed loop is a NEW MCP session on the same stdin/stdout: the
#   handshake state of the crashed one is gone, so requests are rejected
#   until the host sends initialize again.  Hosts that do not re-initialize
#   after an error should restart the process instead.
#
# RUNNING THIS SERVER:
#   python main.py stdio          (or just: python main.py)
# =============================================================================

import asyncio
import contextlib
import enum
import json
import logging
import signal
from typing import Annotated, Any, Awaitable, Callable, ContextManager, Iterator, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field

from core.config import SERVER_NAME, STATION_NAME
from core.models import ResultEnvelope, WeatherParameter
from core.registry import ToolRegistry

logger = logging.getLogger(__name__)

# =============================================================================
# Logging helpers
# =============================================================================
# Everything goes to STDERR (see core.config.configure_logging); STDOUT is
# the MCP JSON-RPC stream.
#
#   CYAN   → incoming requests (tool name + parameters)
#   GREEN  → successful responses
#   YELLOW → status / errors
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def _log_request(tool_name: str, **params: Any) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items()) or "no params"
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, envelope: ResultEnvelope) -> ResultEnvelope:
    """Log the envelope as compact JSON (GREEN on success), then return it."""
    if envelope.is_error:
        _log_status(f"{tool_name} failed: {envelope.text}")
    else:
        payload = json.dumps(envelope.to_dict(), separators=(",", ":"), ensure_ascii=False)
        logger.debug(f"{_GREEN}  ← {tool_name} response: {payload}{_RESET}")
        logger.info(f"{_GREEN}  ← {tool_name} ok ({len(envelope.text)} chars){_RESET}")
    return envelope


# =============================================================================
# Server factory
# =============================================================================
def create_mcp_server(
    registry: ToolRegistry,
    *,
    tracker: Optional[Callable[[], ContextManager[None]]] = None,
) -> FastMCP:
    """Build a FastMCP server whose tools dispatch through `registry`.

    Args:
        registry: The shared tool catalog.
        tracker: Optional context-manager factory wrapped around every
            dispatch (StdioServerRunner uses it to report DISPATCHING).
    """
    mcp = FastMCP(
        SERVER_NAME,
        instructions=(
            f"Live readings from the {STATION_NAME} weather station in La Plata, "
            "Argentina.  Every call fetches the latest reading."
        ),
    )
    track = tracker or contextlib.nullcontext

    async def _dispatch(tool_name: str, **params: Any) -> str:
        _log_request(tool_name, **params)
        with track():
            envelope = await registry.invoke(tool_name, params)
        _log_response(tool_name, envelope)
        if envelope.is_error:
            raise ToolError(envelope.text)
        return envelope.text

    def _tool(tool_name: str):
        descriptor = registry.get(tool_name)
        if descriptor is None:
            raise ValueError(f"Registry has no tool named {tool_name!r}")
        return mcp.tool(
            name=descriptor.name,
            description=descriptor.description,
            annotations=ToolAnnotations(
                title=descriptor.title,
                readOnlyHint=True,
                idempotentHint=False,
                openWorldHint=True,
            ),
        )

    @_tool("get_current_weather")
    async def get_current_weather() -> str:
        return await _dispatch("get_current_weather")

    @_tool("get_temperature")
    async def get_temperature() -> str:
        return await _dispatch("get_temperature")

    @_tool("get_weather_parameter")
    async def get_weather_parameter(
        parameter: Annotated[
            WeatherParameter, Field(description="The weather parameter to retrieve")
        ],
    ) -> str:
        return await _dispatch("get_weather_parameter", parameter=parameter)

    @_tool("analyze_weather_conditions")
    async def analyze_weather_conditions() -> str:
        return await _dispatch("analyze_weather_conditions")

    return mcp


# =============================================================================
# Run loop
# =============================================================================
class ServerState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_REQUEST = "awaiting_request"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    TERMINATED = "terminated"


class StdioServerRunner:
    """Long-lived stdio MCP process with cooperative shutdown.

    Args:
        registry: Tool catalog to serve.
        serve: Coroutine factory that runs the protocol loop until stdin
            closes.  Defaults to FastMCP's stdio transport; tests inject
            their own.
        drain_timeout: Seconds to wait for the protocol loop to stop after
            shutdown is requested.
        restart_delay: Pause before resuming after a crashed protocol loop.
        install_signal_handlers: Map SIGTERM/SIGINT onto request_shutdown().
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        serve: Optional[Callable[[], Awaitable[None]]] = None,
        drain_timeout: float = 5.0,
        restart_delay: float = 0.5,
        install_signal_handlers: bool = True,
    ) -> None:
        self.server = create_mcp_server(registry, tracker=self.dispatching)
        self._serve = serve or (lambda: self.server.run_async(transport="stdio"))
        self._drain_timeout = drain_timeout
        self._restart_delay = restart_delay
        self._install_signal_handlers = install_signal_handlers
        self._shutdown = asyncio.Event()
        self._state = ServerState.IDLE
        self._in_flight = 0
        self.faults = 0

    @property
    def state(self) -> ServerState:
        if self._state is ServerState.AWAITING_REQUEST and self._in_flight:
            return ServerState.DISPATCHING
        return self._state

    @contextlib.contextmanager
    def dispatching(self) -> Iterator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def request_shutdown(self) -> None:
        """Cancellation token: ask the run loop to drain and stop."""
        if not self._shutdown.is_set():
            logger.info("Shutdown requested")
        self._shutdown.set()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._log_loop_exception)
        installed = self._add_signal_handlers(loop) if self._install_signal_handlers else []
        logger.info("%s serving over stdio", SERVER_NAME)

        try:
            while not self._shutdown.is_set():
                self._state = ServerState.AWAITING_REQUEST
                serve_task = asyncio.ensure_future(self._serve())
                stop_task = asyncio.ensure_future(self._shutdown.wait())
                done, _ = await asyncio.wait(
                    {serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
                )

                if serve_task not in done:
                    await self._drain(serve_task)
                    break

                stop_task.cancel()
                if serve_task.cancelled():
                    logger.info("Protocol loop cancelled")
                    break
                exc = serve_task.exception()
                if exc is None:
                    logger.info("stdin closed; stopping")
                    break

                self.faults += 1
                logger.error(
                    "MCP protocol loop crashed; resuming with a fresh session "
                    "(the host must send initialize again)",
                    exc_info=exc,
                )
                if self._restart_delay:
                    await asyncio.sleep(self._restart_delay)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            loop.set_exception_handler(previous_handler)
            self._state = ServerState.TERMINATED
            logger.info("%s terminated", SERVER_NAME)

    async def _drain(self, serve_task: "asyncio.Future[None]") -> None:
        self._state = ServerState.DRAINING
        serve_task.cancel()
        done, _ = await asyncio.wait({serve_task}, timeout=self._drain_timeout)
        if not done:
            logger.warning("Protocol loop still busy after %.1fs; terminating anyway", self._drain_timeout)

    def _add_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[int]:
        installed = []
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("Signal handler for %s not supported here", sig)
                continue
            installed.append(sig)
        return installed

    @staticmethod
    def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        logger.error("Unhandled error in event loop: %s", context.get("message"), exc_info=exc)


def run_stdio(registry: ToolRegistry) -> None:
    """Blocking entry point used by `python main.py stdio`."""
    asyncio.run(StdioServerRunner(registry).run())
