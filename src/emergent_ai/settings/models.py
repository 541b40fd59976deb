"""
Settings data models for Emergent AI.

Defines the Settings dataclass aggregating every configurable limit of the
tool layer: backup location, file and context size caps, command timeouts,
protected directories and logging.
"""

from dataclasses import dataclass, field
from typing import List

from ..files.file_manager import DEFAULT_BACKUP_DIR, HISTORY_FILE_NAME
from ..files.path_guard import DEFAULT_PROTECTED_DIRS


@dataclass
class Settings:
    """
    Project settings.

    Attributes:
        backup_dir: Backup directory, relative to the project root unless absolute.
        history_file: File name of the persisted operation log inside backup_dir.
        max_file_size: Largest file (bytes) read_files returns verbatim.
        max_context_size: Maximum length of the project context summary.
        command_timeout: Timeout in seconds for execute_command and git.
        test_timeout: Timeout in seconds for test_code.
        max_output_bytes: Cap on combined command output.
        protected_dirs: Directories no file operation may touch.
        ignore_patterns: Directory names skipped when scanning the project.
        log_level: Logging level name for the tool server.
    """

    backup_dir: str = DEFAULT_BACKUP_DIR
    history_file: str = HISTORY_FILE_NAME

    # Limits
    max_file_size: int = 1024 * 1024
    max_context_size: int = 50000
    command_timeout: float = 30.0
    test_timeout: float = 120.0
    max_output_bytes: int = 1024 * 1024

    # Safety
    protected_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_PROTECTED_DIRS))
    ignore_patterns: List[str] = field(
        default_factory=lambda: ["node_modules", "dist", "build", ".git"]
    )

    log_level: str = "INFO"
