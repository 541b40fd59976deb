#!/usr/bin/env python3
"""
Emergent AI MCP Server

Exposes the tool catalogue over the Model Context Protocol on stdio.
Every call is answered with one JSON text item holding
{success, data?, error?}. An unknown tool name is a protocol failure and
comes back as an MCP error result instead.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import anyio
import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .. import __version__
from ..errors import UnknownToolError
from ..settings import ConfigValidator, Settings, SettingsStorage
from ..tools import ToolContext, ToolRegistry, ToolResult, create_default_registry

logger = logging.getLogger(__name__)

SERVER_NAME = "emergent-ai"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ToolServer:
    """
    MCP front end for a ToolRegistry.

    Tool calls are serialized: one lock is held for the whole dispatch, so
    at most one call runs at a time and calls run in arrival order.
    """

    def __init__(self, registry: ToolRegistry, name: str = SERVER_NAME, version: str = __version__):
        self.registry = registry
        self.server = Server(name, version=version)
        self._lock = asyncio.Lock()
        self._register_handlers()

    # ==================== Handlers ====================

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return await self.list_tools()

        @self.server.call_tool(validate_input=False)
        async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
            result = await self.call_tool(name, arguments)
            return [types.TextContent(type="text", text=result.to_json())]

    async def list_tools(self) -> list[types.Tool]:
        """Return the static catalogue."""
        return [
            types.Tool(
                name=definition["name"],
                description=definition["description"],
                inputSchema=definition["inputSchema"],
            )
            for definition in self.registry.get_definitions()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Dispatch one tool call under the server lock.

        Raises:
            UnknownToolError: If the tool is not in the catalogue
        """
        async with self._lock:
            logger.info(f"Tool call: {name}")
            # A cancelled call keeps the lock until its handler thread returns.
            with anyio.CancelScope(shield=True):
                try:
                    result = await self.registry.dispatch(name, arguments or {})
                except UnknownToolError:
                    logger.warning(f"Rejected call to unknown tool: {name}")
                    raise
                except Exception:
                    logger.exception(f"Tool call {name} failed")
                    raise
            if not result.success:
                logger.info(f"Tool {name} reported failure: {result.error}")
            return result

    # ==================== Running ====================

    async def run_stdio(self) -> None:
        """Serve on stdin/stdout until the client disconnects."""
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def build_server(project_root: Path | str | None = None, settings: Settings | None = None) -> ToolServer:
    """
    Create a ToolServer for a project.

    Args:
        project_root: Project directory (defaults to cwd)
        settings: Settings to use (loaded from the project when omitted)

    Raises:
        InitializationError: If the backup directory cannot be prepared
    """
    root = Path(project_root).resolve() if project_root else Path.cwd()
    if settings is None:
        settings = SettingsStorage(root).load()

    ctx = ToolContext.create(root, settings)
    registry = create_default_registry(ctx)
    logger.info(f"Initialized {SERVER_NAME} for {root} with {len(registry.list_tools())} tools")
    return ToolServer(registry)


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Send log records to stderr; stdout carries the protocol."""
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the MCP server."""
    parser = argparse.ArgumentParser(
        description="Emergent AI MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the current directory
  python -m emergent_ai.mcp_server

  # Serve another project with debug logging
  python -m emergent_ai.mcp_server --project ~/src/app --debug
        """,
    )
    parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    project_root = (args.project or Path.cwd()).resolve()
    settings = SettingsStorage(project_root).load()
    configure_logging(settings.log_level, debug=args.debug)

    validation = ConfigValidator().validate(settings, project_root)
    for warning in validation.warnings:
        logger.warning(f"Configuration: {warning}")
    if not validation.valid:
        for error in validation.errors:
            logger.error(f"Configuration: {error}")
        sys.exit(1)

    server = build_server(project_root, settings)
    logger.info(f"Starting {SERVER_NAME} MCP server on stdio")
    asyncio.run(server.run_stdio())


if __name__ == "__main__":
    main()
