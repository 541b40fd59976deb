"""Tests for the tool handlers."""

import json
import re
import shutil
from pathlib import Path

import pytest

from emergent_ai.errors import ExecutionError, NotFoundError, ValidationError
from emergent_ai.tools import ToolContext, create_default_registry
from emergent_ai.tools.arguments import (
    AnalyzeProjectArgs,
    ExecuteCommandArgs,
    GitOperationsArgs,
    ReadFilesArgs,
    TestCodeArgs,
    WriteCodeArgs,
)
from emergent_ai.tools.file_tools import read_files, write_code
from emergent_ai.tools.git_tools import git_operations, parse_status
from emergent_ai.tools.project_tools import analyze_project
from emergent_ai.tools.shell_tools import detect_test_command, execute_command, test_code


class TestReadFiles:
    """Tests for read_files."""

    def test_reads_matching_files(self, project: Path, tool_context: ToolContext):
        (project / "src").mkdir()
        (project / "src" / "a.py").write_text("a = 1\n")
        (project / "src" / "b.py").write_text("b = 2\n")
        (project / "src" / "notes.md").write_text("# notes")

        result = read_files(tool_context, ReadFilesArgs(patterns=["src/*.py"]))

        assert result.success
        assert result.data["files"] == ["src/a.py", "src/b.py"]
        assert result.data["contents"]["src/a.py"] == "a = 1\n"
        assert result.data["total_files"] == 2

    def test_skips_ignored_and_backup_dirs(self, project: Path, tool_context: ToolContext):
        (project / "node_modules" / "lib").mkdir(parents=True)
        (project / "node_modules" / "lib" / "index.js").write_text("x")
        (project / "app.js").write_text("y")
        tool_context.file_manager.write_file("app.js", "z")

        result = read_files(tool_context, ReadFilesArgs(patterns=["**/*"]))

        assert result.data["files"] == ["app.js"]

    def test_base_dir_and_duplicates(self, project: Path, tool_context: ToolContext):
        (project / "pkg").mkdir()
        (project / "pkg" / "mod.py").write_text("")

        result = read_files(tool_context, ReadFilesArgs(patterns=["*.py", "mod.*"], base_dir="pkg"))

        assert result.data["files"] == ["mod.py"]

    def test_large_file_placeholder(self, project: Path, tool_context: ToolContext):
        tool_context.settings.max_file_size = 10
        (project / "big.txt").write_text("x" * 50)

        result = read_files(tool_context, ReadFilesArgs(patterns=["*.txt"]))

        assert result.data["contents"]["big.txt"] == "[File too large: 50 bytes]"

    def test_escaping_pattern_rejected(self, tool_context: ToolContext):
        with pytest.raises(ValidationError):
            read_files(tool_context, ReadFilesArgs(patterns=["../*"]))

    def test_missing_base_dir(self, tool_context: ToolContext):
        with pytest.raises(NotFoundError):
            read_files(tool_context, ReadFilesArgs(patterns=["*"], base_dir="nope"))


class TestWriteCode:
    """Tests for write_code."""

    def test_create_then_update(self, project: Path, tool_context: ToolContext):
        first = write_code(tool_context, WriteCodeArgs(file_path="src/main.py", content="print(1)\n"))
        second = write_code(tool_context, WriteCodeArgs(file_path="src/main.py", content="print(2)\n"))

        assert first.data["operation"] == "create"
        assert first.data["size"] == 9
        assert first.data["path"] == str(project / "src" / "main.py")
        assert second.data["operation"] == "update"
        assert len(tool_context.file_manager.backups.list_backups("main.py")) == 1

    def test_create_backup_false(self, tool_context: ToolContext):
        write_code(tool_context, WriteCodeArgs(file_path="a.txt", content="1"))
        write_code(tool_context, WriteCodeArgs.model_validate(
            {"filePath": "a.txt", "content": "2", "createBackup": False}
        ))
        assert tool_context.file_manager.backups.list_backups() == []


class TestExecuteCommand:
    """Tests for execute_command."""

    def test_success(self, project: Path, tool_context: ToolContext):
        result = execute_command(tool_context, ExecuteCommandArgs(command="echo hello"))
        assert result.success
        assert result.data == {"stdout": "hello", "stderr": "", "command": "echo hello", "exit_code": 0}

    def test_subdirectory_cwd(self, project: Path, tool_context: ToolContext):
        (project / "sub").mkdir()
        result = execute_command(tool_context, ExecuteCommandArgs(command="pwd", cwd="sub"))
        assert Path(result.data["stdout"]).resolve() == project / "sub"

    def test_missing_cwd(self, tool_context: ToolContext):
        with pytest.raises(NotFoundError):
            execute_command(tool_context, ExecuteCommandArgs(command="ls", cwd="missing"))

    @pytest.mark.asyncio
    async def test_blocked_command_result(self, registry):
        result = await registry.dispatch("execute_command", {"command": "rm -rf /"})
        assert result.success is False
        assert "blocked" in result.error

    @pytest.mark.asyncio
    async def test_failure_keeps_partial_output(self, registry):
        result = await registry.dispatch("execute_command", {"command": "echo partial; exit 2"})
        assert result.success is False
        assert result.data["stdout"] == "partial"
        assert "code 2" in result.error


class TestTestCode:
    """Tests for test_code and test command detection."""

    def test_detects_npm_test_script(self, project: Path):
        (project / "package.json").write_text(json.dumps({"scripts": {"test": "jest"}}))
        assert detect_test_command(project) == "npm test"

    def test_detects_pytest(self, project: Path):
        (project / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
        assert detect_test_command(project) == "pytest"

    def test_defaults_to_npm_test(self, project: Path):
        assert detect_test_command(project) == "npm test"

    def test_custom_command_success(self, tool_context: ToolContext):
        result = test_code(tool_context, TestCodeArgs(test_command="echo '3 passed'"))
        assert result.success
        assert result.data == {"output": "3 passed", "errors": "", "command": "echo '3 passed'"}

    def test_failing_tests(self, tool_context: ToolContext):
        result = test_code(tool_context, TestCodeArgs.model_validate({"testCommand": "echo '1 failed'; exit 1"}))
        assert result.success is False
        assert result.error.startswith("Tests failed")
        assert result.data["output"] == "1 failed"

    def test_uses_test_timeout(self, tool_context: ToolContext):
        tool_context.settings.test_timeout = 0.5
        result = test_code(tool_context, TestCodeArgs(test_command="sleep 5"))
        assert result.success is False
        assert "timed out" in result.error


class TestAnalyzeProject:
    """Tests for analyze_project."""

    def test_analysis(self, project: Path, tool_context: ToolContext):
        (project / "src").mkdir()
        (project / "src" / "index.js").write_text("")
        (project / "src" / "util.py").write_text("")
        (project / "README").write_text("")
        (project / "debug.log").write_text("")
        (project / "package.json").write_text(json.dumps({"dependencies": {"react": "^18.0.0"}}))
        (project / "node_modules" / "react").mkdir(parents=True)
        (project / "node_modules" / "react" / "index.js").write_text("")
        tool_context.file_manager.write_file("src/util.py", "x = 1\n")
        tool_context.file_manager.write_file("src/util.py", "x = 2\n")

        result = analyze_project(tool_context, AnalyzeProjectArgs())

        data = result.data
        assert data["total_files"] == 4
        assert data["file_types"] == {".js": 1, ".py": 1, "no-extension": 1, ".json": 1}
        assert sorted(data["structure"]["."]) == ["README", "package.json"]
        assert sorted(data["structure"]["src"]) == ["index.js", "util.py"]
        assert data["languages"] == ["JavaScript", "Python"]
        assert data["frameworks"] == ["React"]

    def test_python_frameworks(self, project: Path, tool_context: ToolContext):
        (project / "requirements.txt").write_text("Django>=4.2\nrequests\n")
        result = analyze_project(tool_context, AnalyzeProjectArgs(root_dir="."))
        assert result.data["frameworks"] == ["Django"]

    def test_missing_root(self, tool_context: ToolContext):
        with pytest.raises(NotFoundError):
            analyze_project(tool_context, AnalyzeProjectArgs.model_validate({"rootDir": "missing"}))


class TestParseStatus:
    """Tests for porcelain status parsing."""

    def test_parse(self):
        output = (
            "## main...origin/main [ahead 1]\n"
            "M  staged.py\n"
            " M changed.py\n"
            "?? new.py\n"
            "R  old.py -> renamed.py\n"
        )
        status = parse_status(output)
        assert status["branch"] == "main"
        assert status["tracking"] == "origin/main"
        assert status["staged"] == ["staged.py", "renamed.py"]
        assert status["modified"] == ["changed.py"]
        assert status["not_added"] == ["new.py"]
        assert status["clean"] is False

    def test_parse_fresh_repository(self):
        status = parse_status("## No commits yet on main\n")
        assert status["branch"] == "main"
        assert status["clean"] is True


class TestGitOperations:
    """Tests for git_operations against a real repository."""

    def _run(self, ctx: ToolContext, operation: str, **options):
        return git_operations(ctx, GitOperationsArgs.model_validate({"operation": operation, "options": options}))

    def test_status_commit_log_diff(self, git_repo: Path, tool_context: ToolContext):
        (git_repo / "app.py").write_text("value = 'old'\n")

        status = self._run(tool_context, "status").data
        assert status["branch"] == "main"
        assert status["not_added"] == ["app.py"]
        assert status["clean"] is False

        commit = self._run(tool_context, "commit", message="Add app").data
        assert re.fullmatch(r"[0-9a-f]{40}", commit["commit"])
        assert self._run(tool_context, "status").data["clean"] is True

        (git_repo / "app.py").write_text("value = 'new'\n")
        diff = self._run(tool_context, "diff", files=["app.py"]).data
        assert "-value = 'old'" in diff["diff"]
        assert "+value = 'new'" in diff["diff"]

        self._run(tool_context, "commit", message="Update app")
        log = self._run(tool_context, "log", maxCount=1).data
        assert log["total"] == 1
        assert log["latest"]["message"] == "Update app"
        assert log["latest"]["author_name"] == "Test Developer"

        full_log = self._run(tool_context, "log").data
        assert [entry["message"] for entry in full_log["all"]] == ["Update app", "Add app"]

    @pytest.mark.asyncio
    async def test_diff_of_latin1_file(self, git_repo: Path, tool_context: ToolContext, registry):
        """Output that is not valid UTF-8 is decoded with replacement characters."""
        (git_repo / "legacy.txt").write_bytes(b"caf\xe9\n")
        self._run(tool_context, "commit", message="Add legacy file")
        (git_repo / "legacy.txt").write_bytes(b"na\xefve\n")

        result = await registry.dispatch("git_operations", {"operation": "diff"})
        assert result.success is True
        assert "legacy.txt" in result.data["diff"]
        assert "-caf�" in result.data["diff"]
        assert "+na�ve" in result.data["diff"]

    def test_commit_requires_message(self, git_repo: Path, tool_context: ToolContext):
        with pytest.raises(ValidationError):
            self._run(tool_context, "commit")

    def test_log_without_commits(self, git_repo: Path, tool_context: ToolContext):
        with pytest.raises(ExecutionError):
            self._run(tool_context, "log")

    @pytest.mark.asyncio
    async def test_unknown_operation(self, registry):
        result = await registry.dispatch("git_operations", {"operation": "push"})
        assert result.success is False
        assert result.error.startswith("Invalid arguments for git_operations")

    @pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
    @pytest.mark.asyncio
    async def test_outside_repository(self, tmp_path: Path, settings):
        outside = tmp_path / "plain"
        outside.mkdir()
        ctx = ToolContext.create(outside, settings)

        result = await create_default_registry(ctx).dispatch("git_operations", {"operation": "status"})
        assert result.success is False
        assert "git status failed" in result.error
