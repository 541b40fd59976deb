"""
Tool Arguments

One pydantic model per tool. Arguments are validated against these models
before a handler runs, so malformed input is rejected up front. Wire names
are camelCase; snake_case field names are accepted too.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ToolArguments(BaseModel):
    """Base model for tool arguments."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ReadFilesArgs(ToolArguments):
    patterns: list[str] = Field(..., min_length=1, description="Glob patterns (e.g. [\"src/**/*.py\"])")
    base_dir: str = Field(".", alias="baseDir", description="Base directory")


class WriteCodeArgs(ToolArguments):
    file_path: str = Field(..., alias="filePath", min_length=1, description="File path")
    content: str = Field(..., description="File content")
    create_backup: bool = Field(True, alias="createBackup", description="Back up an existing file first")


class ExecuteCommandArgs(ToolArguments):
    command: str = Field(..., min_length=1, description="Shell command")
    cwd: str = Field(".", description="Working directory")


class AnalyzeProjectArgs(ToolArguments):
    root_dir: str = Field(".", alias="rootDir", description="Project root directory")


class GitOptions(BaseModel):
    """Operation-specific git options."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    message: str | None = Field(None, description="Commit message (commit)")
    files: list[str] = Field(default_factory=list, description="Paths to diff (diff)")
    max_count: int = Field(10, alias="maxCount", ge=1, description="Number of entries (log)")
    cwd: str = Field(".", description="Repository directory")


class GitOperationsArgs(ToolArguments):
    operation: Literal["status", "commit", "diff", "log"]
    options: GitOptions = Field(default_factory=GitOptions)


class TestCodeArgs(ToolArguments):
    __test__ = False

    test_command: str | None = Field(None, alias="testCommand", description="Custom test command")
    cwd: str = Field(".", description="Working directory")
