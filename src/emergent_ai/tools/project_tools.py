"""
Project Tools

Structural analysis of a project tree.
"""

import functools

from ..context.project_scanner import ProjectScanner
from ..errors import NotFoundError
from .arguments import AnalyzeProjectArgs
from .context import ToolContext
from .registry import Tool, ToolResult


def analyze_project(ctx: ToolContext, args: AnalyzeProjectArgs) -> ToolResult:
    """
    Analyze the structure of a project.

    Returns:
        ToolResult with {total_files, file_types, structure, languages, frameworks}
    """
    root = ctx.resolve_dir(args.root_dir)
    if not root.is_dir():
        raise NotFoundError(f"Project directory not found: {args.root_dir}")

    ignore_patterns = list(ctx.settings.ignore_patterns)
    backup_name = ctx.file_manager.backup_dir.name
    if backup_name not in ignore_patterns:
        ignore_patterns.append(backup_name)

    scanner = ProjectScanner(
        root,
        ignore_patterns=ignore_patterns,
        max_context_size=ctx.settings.max_context_size,
    )
    return ToolResult(success=True, data=scanner.analyze().to_dict())


ANALYZE_PROJECT_SCHEMA = {
    "type": "object",
    "properties": {
        "rootDir": {
            "type": "string",
            "description": "Project root directory (default: \".\")",
            "default": ".",
        },
    },
}


def create_project_tools(ctx: ToolContext) -> list[Tool]:
    return [
        Tool(
            name="analyze_project",
            description="Analyze project structure: file types, languages and frameworks.",
            input_schema=ANALYZE_PROJECT_SCHEMA,
            arguments_model=AnalyzeProjectArgs,
            handler=functools.partial(analyze_project, ctx),
        ),
    ]
