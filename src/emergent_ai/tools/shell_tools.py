"""
Shell Tools

Tools for executing shell commands and running a project's tests.
Both go through the CommandExecutor, so the blocklist, timeout and output
cap apply.
"""

import functools
import logging
from pathlib import Path

from ..context.project_scanner import ProjectScanner
from ..errors import ExecutionError, NotFoundError
from .arguments import ExecuteCommandArgs, TestCodeArgs
from .context import ToolContext
from .registry import Tool, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TEST_COMMAND = "npm test"


def execute_command(ctx: ToolContext, args: ExecuteCommandArgs) -> ToolResult:
    """
    Execute a shell command in a project directory.

    Returns:
        ToolResult with {stdout, stderr, command, exit_code}
    """
    cwd = ctx.resolve_dir(args.cwd)
    if not cwd.is_dir():
        raise NotFoundError(f"Working directory does not exist: {args.cwd}")

    output = ctx.executor.execute(args.command, cwd=cwd)
    return ToolResult(success=True, data=output.to_dict())


def detect_test_command(project_dir: Path) -> str:
    """
    Pick a test command for a project.

    package.json with a "test" script -> npm test; Python project -> pytest;
    anything else -> npm test.
    """
    scanner = ProjectScanner(project_dir)

    package_json = scanner.read_package_json()
    if package_json and (package_json.get("scripts") or {}).get("test"):
        return "npm test"

    if scanner.is_python_project():
        return "pytest"

    return DEFAULT_TEST_COMMAND


def test_code(ctx: ToolContext, args: TestCodeArgs) -> ToolResult:
    """
    Run the project's tests.

    Returns:
        ToolResult with {output, errors, command}; on failure the partial
        output is kept under the same keys
    """
    cwd = ctx.resolve_dir(args.cwd)
    if not cwd.is_dir():
        raise NotFoundError(f"Working directory does not exist: {args.cwd}")

    command = args.test_command or detect_test_command(cwd)
    logger.info(f"Running tests: {command} (in {cwd})")

    try:
        output = ctx.executor.execute(command, cwd=cwd, timeout=ctx.settings.test_timeout)
    except ExecutionError as e:
        return ToolResult(
            success=False,
            error=f"Tests failed: {e}",
            data={"output": e.stdout, "errors": e.stderr, "command": command},
        )

    return ToolResult(
        success=True,
        data={"output": output.stdout, "errors": output.stderr, "command": command},
    )


test_code.__test__ = False


EXECUTE_COMMAND_SCHEMA = {
    "type": "object",
    "properties": {
        "command": {
            "type": "string",
            "description": "The shell command to execute",
        },
        "cwd": {
            "type": "string",
            "description": "Working directory (default: project root)",
            "default": ".",
        },
    },
    "required": ["command"],
}

TEST_CODE_SCHEMA = {
    "type": "object",
    "properties": {
        "testCommand": {
            "type": "string",
            "description": "Custom test command (detected when omitted)",
        },
        "cwd": {
            "type": "string",
            "description": "Working directory (default: project root)",
            "default": ".",
        },
    },
}


def create_shell_tools(ctx: ToolContext) -> list[Tool]:
    return [
        Tool(
            name="execute_command",
            description="Execute a shell command safely. Destructive commands are blocked; "
                        "the command is killed when it exceeds the timeout.",
            input_schema=EXECUTE_COMMAND_SCHEMA,
            arguments_model=ExecuteCommandArgs,
            handler=functools.partial(execute_command, ctx),
        ),
        Tool(
            name="test_code",
            description="Run the project's tests.",
            input_schema=TEST_CODE_SCHEMA,
            arguments_model=TestCodeArgs,
            handler=functools.partial(test_code, ctx),
        ),
    ]
