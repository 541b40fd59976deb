#!/usr/bin/env python3
"""
Emergent AI CLI

Command-line interface for the Emergent AI tool server:
- emergent serve: Run the MCP tool server on stdio
- emergent tools / call: Talk to a server through the MCP client
- emergent history / rollback / backups: Inspect and undo file changes
- emergent config: Configuration management
"""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.prompt import Confirm

from .. import __version__
from ..errors import EmergentError
from ..files.file_manager import FileManager
from ..mcp_server.client import ToolClient, default_server_params
from ..mcp_server.server import build_server, configure_logging
from ..settings import ConfigValidator, Settings, SettingsStorage
from .output import OutputManager

app = typer.Typer(
    name="emergent",
    help="Emergent AI - tool server for AI-driven code generation",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
output = OutputManager(console)


def _project(project_path: str | None) -> Path:
    return Path(project_path).resolve() if project_path else Path.cwd()


def _load_settings(project: Path) -> Settings:
    try:
        return SettingsStorage(project).load()
    except ValueError as e:
        output.print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)


def _file_manager(project: Path) -> FileManager:
    settings = _load_settings(project)
    manager = FileManager(
        root=project,
        backup_dir=settings.backup_dir,
        history_file=settings.history_file,
        protected_dirs=settings.protected_dirs,
    )
    try:
        manager.initialize()
    except EmergentError as e:
        output.print_error(str(e))
        raise typer.Exit(code=1)
    return manager


def create_client(project: Path) -> ToolClient:
    """Create a client that spawns a server for the project."""
    return ToolClient(default_server_params(project))


# ==================== Server ====================

@app.command()
def init(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing configuration"),
):
    """
    Initialize a project: write the default configuration and create the
    backup directory.
    """
    project = _project(project_path)
    storage = SettingsStorage(project)

    if storage.config_file.exists() and not force:
        output.print_warning(f"Configuration already exists: {storage.config_file}")
        output.print_info("Use --force to overwrite it")
    else:
        storage.reset()
        output.print_success(f"Configuration written to {storage.config_file}")

    manager = _file_manager(project)
    output.print_success(f"Backup directory ready: {manager.backup_dir}")
    output.status_panel(
        {
            "Project": project,
            "Configuration": storage.config_file,
            "Backup directory": manager.backup_dir,
            "Recorded operations": len(manager.get_history()),
            "Git repository": (project / ".git").is_dir(),
        },
        title="Project initialized",
    )


@app.command()
def serve(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Run the MCP tool server on stdio.
    """
    project = _project(project_path)
    settings = _load_settings(project)
    configure_logging(settings.log_level, debug=debug)

    try:
        server = build_server(project, settings)
    except EmergentError as e:
        output.print_error(str(e))
        raise typer.Exit(code=1)

    asyncio.run(server.run_stdio())


# ==================== Client ====================

@app.command()
def tools(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
):
    """
    List the tools exposed by the server.
    """
    project = _project(project_path)

    async def _list():
        async with create_client(project) as client:
            return await client.list_tools()

    try:
        catalogue = asyncio.run(_list())
    except EmergentError as e:
        output.print_error(str(e))
        raise typer.Exit(code=2)

    output.tools_table(catalogue)


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name"),
    args_json: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object"),
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
):
    """
    Invoke one tool and print its result.

    Examples:
        emergent call analyze_project
        emergent call read_files --args '{"patterns": ["src/**/*.py"]}'
    """
    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as e:
        output.print_error(f"--args is not valid JSON: {e}")
        raise typer.Exit(code=2)
    if not isinstance(arguments, dict):
        output.print_error("--args must be a JSON object")
        raise typer.Exit(code=2)

    project = _project(project_path)

    async def _call():
        async with create_client(project) as client:
            return await client.call_tool(name, arguments)

    try:
        result = asyncio.run(_call())
    except EmergentError as e:
        output.print_error(str(e))
        raise typer.Exit(code=2)

    output.tool_result(result)
    if not result.success:
        raise typer.Exit(code=1)


# ==================== History ====================

@app.command()
def history(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Show only the N most recent operations"),
):
    """
    Show recorded file operations.
    """
    manager = _file_manager(_project(project_path))
    operations = manager.get_history(limit)

    if not operations:
        output.print_info("No recorded operations")
        return

    output.history_table(operations)


@app.command()
def rollback(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    steps: int = typer.Option(1, "--steps", "-s", min=1, help="Number of operations to undo"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Undo the most recent file operations.
    """
    manager = _file_manager(_project(project_path))
    pending = manager.get_history(steps)

    if not pending:
        output.print_info("Nothing to roll back")
        return

    output.history_table(pending)
    if not yes and not Confirm.ask(f"Roll back {len(pending)} operation(s)?", default=False):
        output.print_info("Cancelled")
        return

    undone = manager.rollback(steps)
    for operation in undone:
        output.print_success(f"Undid {operation.kind.value}: {operation.path}")

    skipped = len(pending) - len(undone)
    if skipped:
        output.print_warning(f"{skipped} operation(s) could not be undone and were dropped")


@app.command()
def backups(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    file_name: str | None = typer.Option(None, "--file", help="Only backups of this file name"),
):
    """
    List backup snapshots.
    """
    manager = _file_manager(_project(project_path))
    records = manager.backups.list_backups(file_name)

    if not records:
        output.print_info("No backups found")
        return

    output.backups_table(records)


# ==================== Configuration ====================

@app.command()
def config(
    project_path: str | None = typer.Option(None, "--project", "-p", help="Project path"),
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    set_value: str | None = typer.Option(None, "--set", help="Set a value (KEY=VALUE)"),
    reset: bool = typer.Option(False, "--reset", help="Reset to defaults"),
):
    """
    Configuration management.

    Examples:
        emergent config --show
        emergent config --set command_timeout=60
        emergent config --reset
    """
    project = _project(project_path)
    storage = SettingsStorage(project)

    if reset:
        storage.reset()
        output.print_success("Configuration reset to defaults")
    elif set_value:
        _update_config(storage, set_value)
    elif not show:
        output.print("Use --show to view configuration, --set KEY=VALUE to change it")
        return

    settings = _load_settings(project)
    output.config_display(vars(settings))

    result = ConfigValidator().validate(settings, project)
    for warning in result.warnings:
        output.print_warning(warning)
    for error in result.errors:
        output.print_error(error)
    if not result.valid:
        raise typer.Exit(code=1)


def _update_config(storage: SettingsStorage, assignment: str) -> None:
    key, sep, raw = assignment.partition("=")
    if not sep:
        output.print_error("Expected KEY=VALUE")
        raise typer.Exit(code=2)

    try:
        storage.set_value(key.strip(), raw.strip())
    except KeyError:
        output.print_error(f"Unknown setting: {key.strip()}")
        raise typer.Exit(code=2)
    except ValueError as e:
        output.print_error(f"Invalid value for {key.strip()}: {e}")
        raise typer.Exit(code=2)

    output.print_success(f"{key.strip()} set to {raw.strip()}")


@app.command()
def version():
    """Show version information."""
    output.print(f"Emergent AI v{__version__}")
    output.print("[dim]Tool server for AI-driven code generation[/dim]")


def main():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
