"""Tests for the emergent CLI."""

from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import patch

import pytest
from mcp.shared.memory import create_connected_server_and_client_session
from typer.testing import CliRunner

from emergent_ai import __version__
from emergent_ai.cli.main import app
from emergent_ai.files.file_manager import FileManager
from emergent_ai.mcp_server import ToolClient, build_server
from emergent_ai.settings import SettingsStorage

runner = CliRunner()


@pytest.fixture
def in_memory_client(project: Path, settings):
    """Patch the CLI to talk to an in-process server for the project."""
    server = build_server(project, settings)

    def create_client(_project: Path) -> ToolClient:
        @asynccontextmanager
        async def open_session():
            async with create_connected_server_and_client_session(server.server) as session:
                yield session

        return ToolClient(session_factory=open_session)

    with patch("emergent_ai.cli.main.create_client", create_client):
        yield


class TestBasicCommands:
    """Tests for version, init and config."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"Emergent AI v{__version__}" in result.stdout

    def test_init(self, project: Path):
        result = runner.invoke(app, ["init", "--project", str(project)])
        assert result.exit_code == 0
        assert (project / ".emergent" / "config.yaml").is_file()
        assert (project / ".emergent-backups").is_dir()
        assert "Project initialized" in result.stdout
        assert "Recorded operations" in result.stdout

        again = runner.invoke(app, ["init", "--project", str(project)])
        assert again.exit_code == 0
        assert "already exists" in again.stdout

    def test_config_set_and_show(self, project: Path):
        result = runner.invoke(app, ["config", "--project", str(project), "--set", "command_timeout=60"])
        assert result.exit_code == 0
        assert SettingsStorage(project).load().command_timeout == 60.0
        assert "Configuration" in result.stdout

    def test_config_unknown_key(self, project: Path):
        result = runner.invoke(app, ["config", "--project", str(project), "--set", "api_key=secret"])
        assert result.exit_code == 2
        assert "Unknown setting" in result.stdout

    def test_config_invalid_settings(self, project: Path):
        runner.invoke(app, ["config", "--project", str(project), "--set", "log_level=LOUD"])
        result = runner.invoke(app, ["config", "--project", str(project), "--show"])
        assert result.exit_code == 1
        assert "Unknown log_level" in result.stdout


class TestHistoryCommands:
    """Tests for history, rollback and backups."""

    def test_empty_history(self, project: Path):
        result = runner.invoke(app, ["history", "--project", str(project)])
        assert result.exit_code == 0
        assert "No recorded operations" in result.stdout

    def test_history_rollback_backups(self, project: Path):
        manager = FileManager(project)
        manager.initialize()
        manager.write_file("a.txt", "one")
        manager.write_file("a.txt", "two")

        history = runner.invoke(app, ["history", "--project", str(project)])
        assert history.exit_code == 0
        assert "create" in history.stdout
        assert "update" in history.stdout

        backups = runner.invoke(app, ["backups", "--project", str(project), "--file", "a.txt"])
        assert backups.exit_code == 0
        assert "a.txt" in backups.stdout

        rollback = runner.invoke(app, ["rollback", "--project", str(project), "--steps", "1", "--yes"])
        assert rollback.exit_code == 0
        assert "Undid update" in rollback.stdout
        assert (project / "a.txt").read_text() == "one"

    def test_rollback_cancelled(self, project: Path):
        manager = FileManager(project)
        manager.initialize()
        manager.write_file("a.txt", "one")

        result = runner.invoke(app, ["rollback", "--project", str(project)], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert (project / "a.txt").exists()


class TestClientCommands:
    """Tests for tools and call."""

    def test_tools(self, project: Path, in_memory_client):
        result = runner.invoke(app, ["tools", "--project", str(project)])
        assert result.exit_code == 0
        assert "write_code" in result.stdout
        assert "git_operations" in result.stdout

    def test_call_success(self, project: Path, in_memory_client):
        result = runner.invoke(app, [
            "call", "write_code", "--project", str(project),
            "--args", '{"filePath": "cli.txt", "content": "from cli"}',
        ])
        assert result.exit_code == 0
        assert '"success": true' in result.stdout
        assert (project / "cli.txt").read_text() == "from cli"

    def test_call_tool_failure(self, project: Path, in_memory_client):
        result = runner.invoke(app, [
            "call", "execute_command", "--project", str(project), "--args", '{"command": "rm -rf /"}',
        ])
        assert result.exit_code == 1
        assert '"success": false' in result.stdout

    def test_call_unknown_tool(self, project: Path, in_memory_client):
        result = runner.invoke(app, ["call", "nope", "--project", str(project)])
        assert result.exit_code == 2
        assert "Unknown tool: nope" in result.stdout

    def test_call_bad_json(self, project: Path):
        result = runner.invoke(app, ["call", "read_files", "--project", str(project), "--args", "{oops"])
        assert result.exit_code == 2
        assert "not valid JSON" in result.stdout
