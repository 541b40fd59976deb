"""
Git Tools

Version-control operations (status, commit, diff, log) run with the git
executable in the project directory.
"""

import functools
import logging
import subprocess
import sys
from pathlib import Path
from typing import Any

from ..errors import ExecutionError, NotFoundError, ValidationError
from .arguments import GitOperationsArgs
from .context import ToolContext
from .registry import Tool, ToolResult

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\x1f"
LOG_FORMAT = FIELD_SEPARATOR.join(["%H", "%an", "%ae", "%aI", "%s"])


class GitRunner:
    """Runs git commands in one working directory."""

    def __init__(self, cwd: Path, timeout: float = 30.0):
        self.cwd = Path(cwd)
        self.timeout = timeout

    def run(self, args: list[str]) -> str:
        """
        Run `git <args>` and return stdout.

        Raises:
            ExecutionError: If git is missing, times out or exits non-zero
        """
        command = ["git"] + args
        kwargs: dict[str, Any] = {
            "capture_output": True,
            "encoding": "utf-8",
            "errors": "replace",
            "timeout": self.timeout,
            "cwd": str(self.cwd),
        }
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW

        try:
            result = subprocess.run(command, **kwargs)
        except FileNotFoundError as e:
            raise ExecutionError("git executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(
                f"git {args[0]} timed out after {self.timeout} seconds",
                stdout=_text(e.stdout),
                stderr=_text(e.stderr),
                timed_out=True,
            ) from e

        if result.returncode != 0:
            raise ExecutionError(
                f"git {args[0]} failed: {result.stderr.strip() or result.stdout.strip()}",
                stdout=result.stdout.strip(),
                stderr=result.stderr.strip(),
                exit_code=result.returncode,
            )
        return result.stdout

    def status(self) -> dict[str, Any]:
        output = self.run(["status", "--porcelain=v1", "--branch"])
        return parse_status(output)

    def commit(self, message: str) -> dict[str, Any]:
        self.run(["add", "."])
        summary = self.run(["commit", "-m", message])
        commit_hash = self.run(["rev-parse", "HEAD"]).strip()
        return {"commit": commit_hash, "message": message, "summary": summary.strip()}

    def diff(self, files: list[str]) -> dict[str, Any]:
        args = ["diff"]
        if files:
            args += ["--"] + files
        return {"diff": self.run(args), "files": files}

    def log(self, max_count: int) -> dict[str, Any]:
        output = self.run(["log", f"--max-count={max_count}", f"--pretty=format:{LOG_FORMAT}"])
        entries = []
        for line in output.splitlines():
            parts = line.split(FIELD_SEPARATOR)
            if len(parts) != 5:
                continue
            entries.append({
                "hash": parts[0],
                "author_name": parts[1],
                "author_email": parts[2],
                "date": parts[3],
                "message": parts[4],
            })
        return {"all": entries, "total": len(entries), "latest": entries[0] if entries else None}


def parse_status(output: str) -> dict[str, Any]:
    """Parse `git status --porcelain=v1 --branch` output."""
    branch = None
    tracking = None
    files = []

    for line in output.splitlines():
        if line.startswith("## "):
            head = line[3:].split(" [", 1)[0]
            if head.startswith("No commits yet on "):
                branch = head[len("No commits yet on "):]
            elif "..." in head:
                branch, tracking = head.split("...", 1)
            else:
                branch = head
            continue
        if len(line) < 4:
            continue
        index, working_tree, path = line[0], line[1], line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        files.append({"path": path, "index": index, "working_tree": working_tree})

    return {
        "branch": branch,
        "tracking": tracking,
        "files": files,
        "staged": [f["path"] for f in files if f["index"] not in (" ", "?")],
        "modified": [f["path"] for f in files if f["working_tree"] == "M"],
        "not_added": [f["path"] for f in files if f["index"] == "?"],
        "clean": not files,
    }


def git_operations(ctx: ToolContext, args: GitOperationsArgs) -> ToolResult:
    """Run one git operation."""
    options = args.options
    cwd = ctx.resolve_dir(options.cwd)
    if not cwd.is_dir():
        raise NotFoundError(f"Repository directory does not exist: {options.cwd}")

    git = GitRunner(cwd, timeout=ctx.settings.command_timeout)

    if args.operation == "status":
        data = git.status()
    elif args.operation == "commit":
        if not options.message:
            raise ValidationError("A commit message is required (options.message)")
        data = git.commit(options.message)
        logger.info(f"Committed {data['commit'][:8]} in {cwd}")
    elif args.operation == "diff":
        data = git.diff(options.files)
    else:
        data = git.log(options.max_count)

    return ToolResult(success=True, data=data)


def _text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip()
    return value.strip()


GIT_OPERATIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "operation": {
            "type": "string",
            "enum": ["status", "commit", "diff", "log"],
            "description": "Git operation",
        },
        "options": {
            "type": "object",
            "description": "Operation options: message (commit), files (diff), "
                           "maxCount (log), cwd (all)",
            "properties": {
                "message": {"type": "string"},
                "files": {"type": "array", "items": {"type": "string"}},
                "maxCount": {"type": "integer", "minimum": 1},
                "cwd": {"type": "string"},
            },
        },
    },
    "required": ["operation"],
}


def create_git_tools(ctx: ToolContext) -> list[Tool]:
    return [
        Tool(
            name="git_operations",
            description="Git operations (status, commit, diff, log).",
            input_schema=GIT_OPERATIONS_SCHEMA,
            arguments_model=GitOperationsArgs,
            handler=functools.partial(git_operations, ctx),
        ),
    ]
