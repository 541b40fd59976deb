"""
Tools for Emergent AI

The fixed tool catalogue exposed over MCP:
- read_files / write_code: file access through the FileManager
- execute_command / test_code: shell execution through the CommandExecutor
- analyze_project: project structure analysis
- git_operations: status, commit, diff and log
"""

from .command_executor import CommandExecutor, CommandOutput
from .context import ToolContext
from .file_tools import create_file_tools
from .git_tools import create_git_tools
from .project_tools import create_project_tools
from .registry import Tool, ToolRegistry, ToolResult
from .shell_tools import create_shell_tools

TOOL_ORDER = [
    "read_files",
    "write_code",
    "execute_command",
    "analyze_project",
    "git_operations",
    "test_code",
]


def create_default_registry(ctx: ToolContext) -> ToolRegistry:
    """
    Create the registry holding the full tool catalogue.

    Args:
        ctx: Shared tool context

    Returns:
        ToolRegistry with the six tools in catalogue order
    """
    tools = {
        tool.name: tool
        for tool in (
            create_file_tools(ctx)
            + create_shell_tools(ctx)
            + create_project_tools(ctx)
            + create_git_tools(ctx)
        )
    }
    return ToolRegistry(tools[name] for name in TOOL_ORDER)


__all__ = [
    "CommandExecutor",
    "CommandOutput",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "TOOL_ORDER",
    "create_default_registry",
]
