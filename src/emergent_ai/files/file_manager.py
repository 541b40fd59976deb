"""
File Manager

Safe read/write/delete with automatic backups, an operation log and
multi-step rollback. Every path goes through PathGuard before any access.

The log is flushed synchronously after each mutation. A flush failure is
logged and does not undo the mutation: the file on disk is authoritative.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import (
    AccessDeniedError,
    EmergentError,
    FileOperationError,
    InitializationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .backup_store import BackupStore
from .operation_log import FileOperation, OperationKind, OperationLog
from .path_guard import DEFAULT_PROTECTED_DIRS, PathGuard

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_DIR = ".emergent-backups"
HISTORY_FILE_NAME = "history.json"


class FileState(Enum):
    """Existence state of a file."""

    EXISTS = "exists"
    MISSING = "missing"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True)
class FileProbe:
    """
    Result of an explicit existence query.

    Attributes:
        path: Resolved path that was probed
        state: EXISTS, MISSING or ACCESS_DENIED
        content: File content when state is EXISTS
    """
    path: Path
    state: FileState
    content: str | None = None


class FileManager:
    """
    Orchestrates PathGuard, BackupStore and OperationLog.

    Example:
        manager = FileManager(project_root)
        manager.initialize()
        manager.write_file("out/a.txt", "hello")
        manager.rollback(1)
    """

    def __init__(
        self,
        root: Path | str | None = None,
        backup_dir: Path | str = DEFAULT_BACKUP_DIR,
        history_file: str = HISTORY_FILE_NAME,
        protected_dirs: list[str] | tuple[str, ...] = DEFAULT_PROTECTED_DIRS,
    ):
        """
        Initialize the file manager.

        Args:
            root: Directory relative paths are resolved against (default: cwd)
            backup_dir: Backup directory, relative to root unless absolute
            history_file: Name of the persisted log inside the backup directory
            protected_dirs: Directories no target path may resolve under
        """
        self.root = Path(root).resolve() if root else Path.cwd()
        backup_path = Path(backup_dir)
        self.backup_dir = backup_path if backup_path.is_absolute() else self.root / backup_path
        self.guard = PathGuard(self.root, protected_dirs)
        self.backups = BackupStore(self.backup_dir)
        self.log = OperationLog(self.backup_dir / history_file)

    def initialize(self) -> None:
        """
        Create the backup directory and load the persisted log.

        Raises:
            InitializationError: If the backup directory cannot be created
        """
        try:
            self.backups.ensure_dir()
        except OSError as e:
            raise InitializationError(
                f"Cannot create backup directory {self.backup_dir}: {e}"
            ) from e

        count = self.log.load()
        logger.debug(f"FileManager ready at {self.root} ({count} logged operation(s))")

    # ==================== Queries ====================

    def resolve(self, path: str | Path) -> Path:
        """Validate a path and return its canonical absolute form."""
        return self.guard.require(path)

    def probe(self, path: str | Path) -> FileProbe:
        """
        Report whether a validated path exists, with its content if so.

        Raises:
            PathRejectedError: If the path is unsafe
            ValidationError: If the path is a directory or not valid UTF-8
        """
        resolved = self.resolve(path)
        return self._probe_resolved(resolved)

    def read_file(self, path: str | Path) -> str:
        """
        Read a file as UTF-8 text.

        Raises:
            PathRejectedError: If the path is unsafe
            NotFoundError: If the file does not exist
            AccessDeniedError: If the OS denies access
        """
        probe = self.probe(path)
        if probe.state is FileState.MISSING:
            raise NotFoundError(f"File not found: {path}")
        if probe.state is FileState.ACCESS_DENIED:
            raise AccessDeniedError(f"Permission denied: {path}")
        return probe.content

    def get_history(self, limit: int | None = None) -> list[FileOperation]:
        """Return logged operations, most recent last."""
        return self.log.tail(limit)

    # ==================== Mutations ====================

    def write_file(self, path: str | Path, content: str, backup: bool = True) -> FileOperation:
        """
        Create or overwrite a file.

        An existing file's content is recorded as prior content and, when
        backup is True, snapshotted first. Missing parent directories are
        created.

        Returns:
            The logged Create or Update operation
        """
        resolved = self.resolve(path)
        probe = self._probe_resolved(resolved)

        if probe.state is FileState.ACCESS_DENIED:
            raise AccessDeniedError(f"Permission denied: {path}")

        prior_content = probe.content if probe.state is FileState.EXISTS else None
        if prior_content is not None and backup:
            self._snapshot(resolved, prior_content)

        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
            self._write_text(resolved, content)
        except PermissionError as e:
            raise AccessDeniedError(f"Permission denied: {path}") from e
        except OSError as e:
            raise FileOperationError(f"Error writing file {path}: {e}") from e

        operation = FileOperation(
            kind=OperationKind.UPDATE if prior_content is not None else OperationKind.CREATE,
            path=str(resolved),
            new_content=content,
            prior_content=prior_content,
        )
        self._record(operation)
        return operation

    def delete_file(self, path: str | Path) -> FileOperation:
        """
        Delete a file after snapshotting it.

        Raises:
            NotFoundError: If the file does not exist
        """
        resolved = self.resolve(path)
        probe = self._probe_resolved(resolved)

        if probe.state is FileState.MISSING:
            raise NotFoundError(f"File not found: {path}")
        if probe.state is FileState.ACCESS_DENIED:
            raise AccessDeniedError(f"Permission denied: {path}")

        self._snapshot(resolved, probe.content)

        try:
            resolved.unlink()
        except PermissionError as e:
            raise AccessDeniedError(f"Permission denied: {path}") from e
        except OSError as e:
            raise FileOperationError(f"Error deleting file {path}: {e}") from e

        operation = FileOperation(
            kind=OperationKind.DELETE,
            path=str(resolved),
            prior_content=probe.content,
        )
        self._record(operation)
        return operation

    def rollback(self, steps: int = 1) -> list[FileOperation]:
        """
        Undo up to `steps` operations, most recent first.

        A step that fails (e.g. the file was changed or removed outside this
        manager) is logged and skipped. It is still consumed from the log.

        Returns:
            Operations successfully undone, in undo order
        """
        undone: list[FileOperation] = []
        consumed = 0

        for _ in range(max(steps, 0)):
            operation = self.log.pop()
            if operation is None:
                break
            consumed += 1

            try:
                self._undo(operation)
            except (OSError, EmergentError) as e:
                logger.warning(
                    f"Skipping rollback of {operation.kind.value} on {operation.path}: {e}"
                )
                continue

            undone.append(operation)
            logger.info(f"Rolled back {operation.kind.value} on {operation.path}")

        if consumed:
            self._flush()
        return undone

    # ==================== Internals ====================

    def _undo(self, operation: FileOperation) -> None:
        target = self.resolve(operation.path)

        if operation.kind is OperationKind.CREATE:
            target.unlink()
        elif operation.kind is OperationKind.UPDATE:
            if not target.exists():
                raise NotFoundError(f"File no longer exists: {target}")
            self._write_text(target, operation.prior_content)
        elif operation.kind is OperationKind.DELETE:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._write_text(target, operation.prior_content)

    def _probe_resolved(self, resolved: Path) -> FileProbe:
        try:
            with open(resolved, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError:
            return FileProbe(resolved, FileState.MISSING)
        except PermissionError:
            if resolved.is_dir():
                raise ValidationError(f"Not a file: {resolved}")
            return FileProbe(resolved, FileState.ACCESS_DENIED)
        except IsADirectoryError:
            raise ValidationError(f"Not a file: {resolved}")
        except NotADirectoryError:
            return FileProbe(resolved, FileState.MISSING)
        except UnicodeDecodeError:
            raise ValidationError(f"Cannot decode file as UTF-8: {resolved}")
        return FileProbe(resolved, FileState.EXISTS, content)

    def _snapshot(self, resolved: Path, content: str) -> None:
        try:
            self.backups.snapshot(resolved, content)
        except PersistenceError as e:
            logger.error(f"Backup failed, continuing without it: {e}")

    def _record(self, operation: FileOperation) -> None:
        self.log.append(operation)
        logger.debug(f"Recorded {operation.kind.value} on {operation.path}")
        self._flush()

    def _flush(self) -> None:
        try:
            self.log.save()
        except PersistenceError as e:
            logger.error(f"Operation log not persisted: {e}")

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
