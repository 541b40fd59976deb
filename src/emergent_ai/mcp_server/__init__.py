"""
MCP transport for Emergent AI

ToolServer serves the tool catalogue over stdio; ToolClient connects to it.
"""

from .client import ConnectionState, ToolClient
from .server import ToolServer, build_server

__all__ = ["ConnectionState", "ToolClient", "ToolServer", "build_server"]
