"""Pytest configuration and fixtures for Emergent AI tests."""

import shutil
import subprocess
from pathlib import Path

import pytest

from emergent_ai.files.file_manager import FileManager
from emergent_ai.settings import Settings
from emergent_ai.tools import ToolContext, create_default_registry


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def file_manager(project: Path) -> FileManager:
    """An initialized FileManager rooted at the project."""
    manager = FileManager(project)
    manager.initialize()
    return manager


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts for tests."""
    return Settings(command_timeout=10.0, test_timeout=10.0)


@pytest.fixture
def tool_context(project: Path, settings: Settings) -> ToolContext:
    """A ToolContext for the project."""
    return ToolContext.create(project, settings)


@pytest.fixture
def registry(tool_context: ToolContext):
    """The full tool registry for the project."""
    return create_default_registry(tool_context)


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=str(cwd), capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git_repo(project: Path) -> Path:
    """The project initialized as a git repository on branch main."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    _git(project, "init")
    _git(project, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(project, "config", "user.email", "dev@example.com")
    _git(project, "config", "user.name", "Test Developer")
    _git(project, "config", "commit.gpgsign", "false")
    return project
