"""
File Tools

Tools for reading project files by glob pattern and writing generated code.
All access goes through the FileManager, so path policy, backups and the
operation log apply.
"""

import fnmatch
import functools
from pathlib import Path

from ..errors import EmergentError, NotFoundError, ValidationError
from .arguments import ReadFilesArgs, WriteCodeArgs
from .context import ToolContext
from .registry import Tool, ToolResult


def _is_ignored(relative: Path, ignore_patterns: list[str]) -> bool:
    return any(
        fnmatch.fnmatch(part, pattern)
        for part in relative.parts[:-1]
        for pattern in ignore_patterns
    )


def read_files(ctx: ToolContext, args: ReadFilesArgs) -> ToolResult:
    """
    Read every file matching the glob patterns under base_dir.

    Files larger than max_file_size are reported with a placeholder
    instead of their content.

    Returns:
        ToolResult with {files, contents, total_files}
    """
    base = ctx.resolve_dir(args.base_dir)
    if not base.is_dir():
        raise NotFoundError(f"Base directory not found: {args.base_dir}")

    backup_dir = ctx.file_manager.backup_dir.resolve()
    matches: dict[str, Path] = {}

    for pattern in args.patterns:
        if Path(pattern).is_absolute() or ".." in Path(pattern).parts:
            raise ValidationError(f"Pattern must be relative to the base directory: {pattern}")

        try:
            found = list(base.glob(pattern))
        except (ValueError, NotImplementedError) as e:
            raise ValidationError(f"Invalid pattern '{pattern}': {e}") from e

        for match in found:
            if not match.is_file():
                continue
            relative = match.relative_to(base)
            if _is_ignored(relative, ctx.settings.ignore_patterns):
                continue
            if match.resolve() == backup_dir or backup_dir in match.resolve().parents:
                continue
            matches.setdefault(relative.as_posix(), match)

    contents: dict[str, str] = {}
    for name in sorted(matches):
        path = matches[name]
        size = path.stat().st_size
        if size > ctx.settings.max_file_size:
            contents[name] = f"[File too large: {size} bytes]"
            continue
        try:
            contents[name] = ctx.file_manager.read_file(path)
        except EmergentError as e:
            contents[name] = f"[Unreadable file: {e}]"

    return ToolResult(
        success=True,
        data={
            "files": list(contents.keys()),
            "contents": contents,
            "total_files": len(contents),
        },
    )


def write_code(ctx: ToolContext, args: WriteCodeArgs) -> ToolResult:
    """
    Write generated code to a file, backing up any existing version.

    Returns:
        ToolResult with {path, size, operation}
    """
    operation = ctx.file_manager.write_file(args.file_path, args.content, backup=args.create_backup)
    return ToolResult(
        success=True,
        data={
            "path": operation.path,
            "size": len(args.content.encode("utf-8")),
            "operation": operation.kind.value,
        },
    )


READ_FILES_SCHEMA = {
    "type": "object",
    "properties": {
        "patterns": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Glob patterns to match (e.g. [\"src/**/*.py\"])",
        },
        "baseDir": {
            "type": "string",
            "description": "Base directory (default: \".\")",
            "default": ".",
        },
    },
    "required": ["patterns"],
}

WRITE_CODE_SCHEMA = {
    "type": "object",
    "properties": {
        "filePath": {
            "type": "string",
            "description": "Path of the file to write",
        },
        "content": {
            "type": "string",
            "description": "File content",
        },
        "createBackup": {
            "type": "boolean",
            "description": "Back up the file first if it already exists",
            "default": True,
        },
    },
    "required": ["filePath", "content"],
}


def create_file_tools(ctx: ToolContext) -> list[Tool]:
    return [
        Tool(
            name="read_files",
            description="Read project files matching glob patterns.",
            input_schema=READ_FILES_SCHEMA,
            arguments_model=ReadFilesArgs,
            handler=functools.partial(read_files, ctx),
        ),
        Tool(
            name="write_code",
            description="Write generated code to a file with automatic backup. "
                        "The change is recorded and can be rolled back.",
            input_schema=WRITE_CODE_SCHEMA,
            arguments_model=WriteCodeArgs,
            handler=functools.partial(write_code, ctx),
        ),
    ]
