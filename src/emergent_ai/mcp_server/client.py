"""
Emergent AI MCP Client

Connects to a tool server and turns its replies back into ToolResult
objects. Each ToolClient owns one connection; construct as many as needed.
"""

import json
import logging
import sys
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any, AsyncContextManager, AsyncIterator, Callable

import anyio
from mcp import ClientSession, McpError, StdioServerParameters
from mcp.client.stdio import stdio_client

from ..errors import ProtocolError, TransportError
from ..tools.registry import ToolResult

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[ClientSession]]

CHANNEL_ERRORS = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
    ConnectionError,
    EOFError,
)

CONNECT_ERRORS = (OSError, McpError) + CHANNEL_ERRORS


class ConnectionState(Enum):
    """Connection state of a ToolClient."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


def default_server_params(project_root: Path | str | None = None, debug: bool = False) -> StdioServerParameters:
    """Parameters that spawn the bundled server for a project."""
    args = ["-m", "emergent_ai.mcp_server"]
    if project_root is not None:
        args += ["--project", str(Path(project_root).resolve())]
    if debug:
        args.append("--debug")
    return StdioServerParameters(command=sys.executable, args=args)


def stdio_session_factory(params: StdioServerParameters) -> SessionFactory:
    """Build a factory yielding initialized sessions over a spawned server."""

    @asynccontextmanager
    async def open_session() -> AsyncIterator[ClientSession]:
        async with stdio_client(params) as (read_stream, write_stream):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                yield session

    return open_session


class ToolClient:
    """
    Client for the tool server.

    The connection is opened lazily by the first request. A channel failure
    closes it and raises TransportError; the next request reconnects.

    Example:
        async with ToolClient(default_server_params("/path/to/project")) as client:
            tools = await client.list_tools()
            result = await client.call_tool("analyze_project", {"rootDir": "."})
    """

    def __init__(
        self,
        server_params: StdioServerParameters | None = None,
        session_factory: SessionFactory | None = None,
    ):
        """
        Args:
            server_params: How to spawn the server (defaults to the bundled
                server for the current directory)
            session_factory: Async context manager factory yielding an
                initialized ClientSession; overrides server_params
        """
        if session_factory is None:
            session_factory = stdio_session_factory(server_params or default_server_params())
        self._session_factory = session_factory
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None
        self.state = ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    async def connect(self) -> ClientSession:
        """
        Open the connection if it is not open yet.

        Raises:
            TransportError: If the server cannot be reached
        """
        if self._session is not None:
            return self._session

        stack = AsyncExitStack()
        try:
            session = await stack.enter_async_context(self._session_factory())
        except CONNECT_ERRORS as e:
            await stack.aclose()
            raise TransportError(f"Could not connect to tool server: {e}") from e

        self._stack = stack
        self._session = session
        self.state = ConnectionState.CONNECTED
        logger.debug("Connected to tool server")
        return session

    async def disconnect(self) -> None:
        """Close the connection. Safe to call when already disconnected."""
        stack, self._stack = self._stack, None
        self._session = None
        self.state = ConnectionState.DISCONNECTED
        if stack is None:
            return
        try:
            await stack.aclose()
        except (OSError,) + CHANNEL_ERRORS as e:
            logger.warning(f"Error while closing tool server connection: {e}")

    async def list_tools(self) -> list[dict[str, Any]]:
        """
        Get the server's tool catalogue.

        Returns:
            List of {name, description, inputSchema}
        """
        session = await self.connect()
        try:
            response = await session.list_tools()
        except McpError as e:
            raise ProtocolError(f"list_tools rejected: {e.error.message}") from e
        except CHANNEL_ERRORS as e:
            await self.disconnect()
            raise TransportError(f"Connection to tool server lost: {e}") from e

        return [
            {
                "name": tool.name,
                "description": tool.description or "",
                "inputSchema": tool.inputSchema,
            }
            for tool in response.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Invoke a tool.

        Expected tool failures come back as ToolResult(success=False).

        Raises:
            ProtocolError: Unknown tool, server-side exception or malformed reply
            TransportError: If the channel fails
        """
        session = await self.connect()
        try:
            result = await session.call_tool(name, arguments or {})
        except McpError as e:
            raise ProtocolError(f"Tool call {name} rejected: {e.error.message}") from e
        except CHANNEL_ERRORS as e:
            await self.disconnect()
            raise TransportError(f"Connection to tool server lost: {e}") from e

        text = "\n".join(
            item.text for item in result.content if getattr(item, "type", None) == "text"
        )
        if result.isError:
            raise ProtocolError(text or f"Tool call {name} failed")

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Malformed result from {name}: {e}") from e
        if not isinstance(payload, dict) or "success" not in payload:
            raise ProtocolError(f"Malformed result from {name}: missing 'success'")

        return ToolResult.from_dict(payload)

    async def __aenter__(self) -> "ToolClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
