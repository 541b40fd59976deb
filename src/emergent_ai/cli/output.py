"""
Rich Terminal Output for Emergent AI CLI

Tables for the tool catalogue, the operation history and backups, plus
styled status messages. Uses the Rich library for all formatting.
"""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..files.backup_store import BackupRecord
from ..files.operation_log import FileOperation
from ..tools.registry import ToolResult


class OutputManager:
    """
    Manages rich terminal output for the Emergent AI CLI.
    """

    # Operation kind colors
    KIND_STYLES = {
        "create": "green",
        "update": "yellow",
        "delete": "red",
    }

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize the output manager.

        Args:
            console: Rich Console instance (creates one if not provided)
        """
        self.console = console or Console()

    # ==================== Basic Output ====================

    def print(self, message: str = "", style: str | None = None) -> None:
        self.console.print(message, style=style)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]v[/green] {escape(message)}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]x[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def print_info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {escape(message)}")

    # ==================== Panels ====================

    def status_panel(self, status: dict[str, Any], title: str = "Status") -> None:
        """
        Display a key/value panel.

        Args:
            status: Values to show; booleans render as Yes/No
            title: Panel title
        """
        lines = []
        for key, value in status.items():
            if isinstance(value, bool):
                value_str = "[green]Yes[/green]" if value else "[red]No[/red]"
            else:
                value_str = escape(str(value))
            lines.append(f"[bold]{key}:[/bold] {value_str}")

        self.console.print(Panel("\n".join(lines), title=title, border_style="cyan"))

    # ==================== Tables ====================

    def tools_table(self, tools: list[dict[str, Any]]) -> None:
        """
        Display the tool catalogue.

        Args:
            tools: Catalogue entries {name, description, inputSchema}
        """
        table = Table(title="Tools")
        table.add_column("Name", style="cyan")
        table.add_column("Description", style="white")
        table.add_column("Arguments", style="dim")

        for tool in tools:
            schema = tool.get("inputSchema") or {}
            required = set(schema.get("required", []))
            arguments = [
                f"{name}*" if name in required else name
                for name in (schema.get("properties") or {})
            ]
            table.add_row(tool["name"], escape(tool.get("description", "")), ", ".join(arguments) or "-")

        self.console.print(table)

    def history_table(self, operations: list[FileOperation]) -> None:
        """
        Display recorded file operations, oldest first.

        Args:
            operations: Operations from the operation log
        """
        table = Table(title="Operation History")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Time", style="dim")
        table.add_column("Kind")
        table.add_column("Path", style="white")
        table.add_column("Size", justify="right")

        for index, operation in enumerate(operations, 1):
            kind = operation.kind.value
            style = self.KIND_STYLES.get(kind, "white")
            content = operation.new_content if operation.new_content is not None else operation.prior_content
            table.add_row(
                str(index),
                operation.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                f"[{style}]{kind}[/{style}]",
                escape(operation.path),
                str(len(content or "")),
            )

        self.console.print(table)

    def backups_table(self, backups: list[BackupRecord]) -> None:
        """
        Display backup snapshots.

        Args:
            backups: Records from the backup store
        """
        table = Table(title="Backups")
        table.add_column("File", style="cyan")
        table.add_column("Timestamp", style="dim")
        table.add_column("Hash", style="yellow")
        table.add_column("Identifier", style="white")

        for record in backups:
            table.add_row(record.basename, record.timestamp, record.content_hash, record.identifier)

        self.console.print(table)

    def config_display(self, config: dict[str, Any]) -> None:
        """
        Display configuration.

        Args:
            config: Configuration dictionary
        """
        table = Table(title="Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        for key, value in config.items():
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value) or "(none)"
            table.add_row(key, escape(str(value)))

        self.console.print(table)

    # ==================== Tool Results ====================

    def tool_result(self, result: ToolResult) -> None:
        """
        Display a tool result as JSON.

        Args:
            result: Result returned by the tool server
        """
        text = json.dumps(result.to_dict(), indent=2, default=str)
        if result.success:
            self.console.print(Syntax(text, "json", word_wrap=True))
        else:
            self.console.print(Panel(Syntax(text, "json", word_wrap=True), title="Tool failed", border_style="red"))
