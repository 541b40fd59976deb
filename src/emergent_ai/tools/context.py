"""
Tool Context

Collaborators shared by the tool handlers of one server instance.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ..files.file_manager import FileManager
from ..settings.models import Settings
from .command_executor import CommandExecutor


@dataclass
class ToolContext:
    """
    Everything a tool handler needs.

    Attributes:
        file_manager: Initialized FileManager (owns backups and the operation log)
        executor: CommandExecutor configured with the command limits
        settings: Effective settings
    """
    file_manager: FileManager
    executor: CommandExecutor
    settings: Settings = field(default_factory=Settings)

    @property
    def project_root(self) -> Path:
        return self.file_manager.root

    def resolve_dir(self, path: str | None) -> Path:
        """
        Resolve a directory argument against the project root and validate it.

        Raises:
            PathRejectedError: If the path is unsafe
        """
        return self.file_manager.resolve(path or ".")

    @classmethod
    def create(cls, project_root: Path | str, settings: Settings | None = None) -> "ToolContext":
        """
        Build and initialize a context for a project.

        Raises:
            InitializationError: If the backup directory cannot be created
        """
        settings = settings or Settings()
        file_manager = FileManager(
            root=project_root,
            backup_dir=settings.backup_dir,
            history_file=settings.history_file,
            protected_dirs=settings.protected_dirs,
        )
        file_manager.initialize()
        executor = CommandExecutor(
            timeout=settings.command_timeout,
            max_output_bytes=settings.max_output_bytes,
        )
        return cls(file_manager=file_manager, executor=executor, settings=settings)
