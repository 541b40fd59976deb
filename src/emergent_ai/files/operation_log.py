"""
Operation Log

Ordered record of file mutations used to drive rollback. Insertion order is
chronological order; rollback consumes records from the tail.

The persisted form is the whole log serialized as a JSON array, rewritten
atomically on every save.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class OperationKind(Enum):
    """Kinds of file mutation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class FileOperation:
    """
    One mutating action on a file.

    Attributes:
        kind: Create, Update or Delete
        path: Canonical absolute path of the target
        new_content: Content after the operation (None for Delete)
        prior_content: Content before the operation (None for Create)
        timestamp: When the operation happened
    """
    kind: OperationKind
    path: str
    new_content: str | None = None
    prior_content: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.kind is OperationKind.CREATE and self.prior_content is not None:
            raise ValueError("Create operations cannot carry prior content")
        if self.kind is OperationKind.DELETE and self.new_content is not None:
            raise ValueError("Delete operations cannot carry new content")
        if self.kind in (OperationKind.UPDATE, OperationKind.DELETE) and self.prior_content is None:
            raise ValueError(f"{self.kind.value.capitalize()} operations must carry prior content")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "path": self.path,
            "new_content": self.new_content,
            "prior_content": self.prior_content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileOperation":
        return cls(
            kind=OperationKind(data["kind"]),
            path=data["path"],
            new_content=data.get("new_content"),
            prior_content=data.get("prior_content"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class OperationLog:
    """
    In-memory operation log with a JSON file as durable copy.

    Only FileManager mutates the log.
    """

    def __init__(self, log_file: Path | str):
        self.log_file = Path(log_file)
        self._operations: list[FileOperation] = []

    def __len__(self) -> int:
        return len(self._operations)

    def load(self) -> int:
        """
        Replace the in-memory log with the persisted one.

        A missing file means an empty log. An unreadable or corrupt file is
        logged and also treated as empty.

        Returns:
            Number of records loaded
        """
        if not self.log_file.exists():
            self._operations = []
            return 0

        try:
            with open(self.log_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            operations = [FileOperation.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable operation log {self.log_file}: {e}")
            self._operations = []
            return 0

        self._operations = operations
        logger.debug(f"Loaded {len(operations)} operation(s) from {self.log_file}")
        return len(operations)

    def save(self) -> None:
        """
        Rewrite the persisted log from memory.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = json.dumps([op.to_dict() for op in self._operations], indent=2)

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.log_file.name}.", suffix=".tmp", dir=str(self.log_file.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.log_file)
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to persist operation log {self.log_file}: {e}") from e

    def append(self, operation: FileOperation) -> None:
        self._operations.append(operation)

    def pop(self) -> FileOperation | None:
        """Remove and return the most recent record, or None when empty."""
        if not self._operations:
            return None
        return self._operations.pop()

    def tail(self, limit: int | None = None) -> list[FileOperation]:
        """
        Return records oldest first.

        Args:
            limit: Return only the last `limit` records
        """
        if limit is None:
            return list(self._operations)
        if limit <= 0:
            return []
        return self._operations[-limit:]
