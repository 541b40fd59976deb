"""
Backup Store

Write-once snapshots of file content taken before destructive mutations.

Backups are named <basename>.<timestamp>.<hash>.backup where the timestamp is
the UTC ISO-8601 instant with ':' and '.' replaced by '-', and the hash is the
first 8 hex digits of the content's MD5. The hash only makes the snapshot
traceable; it is not an integrity check.
"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ..errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"
HASH_PREFIX_LENGTH = 8


@dataclass(frozen=True)
class BackupRecord:
    """
    A stored backup file.

    Attributes:
        identifier: Backup file name
        path: Full path of the backup file
        basename: Name of the file that was backed up
        timestamp: Filesystem-safe timestamp component
        content_hash: Content hash prefix
    """
    identifier: str
    path: Path
    basename: str
    timestamp: str
    content_hash: str

    @classmethod
    def from_path(cls, path: Path) -> "BackupRecord | None":
        """Parse a backup file name; returns None for foreign files."""
        name = path.name
        if not name.endswith(BACKUP_SUFFIX):
            return None
        parts = name[: -len(BACKUP_SUFFIX)].rsplit(".", 2)
        if len(parts) != 3:
            return None
        basename, timestamp, content_hash = parts
        return cls(
            identifier=name,
            path=path,
            basename=basename,
            timestamp=timestamp,
            content_hash=content_hash,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "identifier": self.identifier,
            "path": str(self.path),
            "basename": self.basename,
            "timestamp": self.timestamp,
            "content_hash": self.content_hash,
        }


def safe_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with ':' and '.' replaced by '-'."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def content_hash(content: str) -> str:
    return hashlib.md5(content.encode("utf-8")).hexdigest()[:HASH_PREFIX_LENGTH]


class BackupStore:
    """Snapshots file content into a backup directory."""

    def __init__(self, backup_dir: Path | str):
        self.backup_dir = Path(backup_dir)

    def ensure_dir(self) -> None:
        """Create the backup directory and any missing parents."""
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def snapshot(self, path: Path | str, content: str) -> str:
        """
        Persist a copy of content taken from path.

        Args:
            path: File the content belongs to (only its basename is used)
            content: Content to store

        Returns:
            Identifier (file name) of the new backup

        Raises:
            PersistenceError: If the backup cannot be written
        """
        identifier = f"{Path(path).name}.{safe_timestamp()}.{content_hash(content)}{BACKUP_SUFFIX}"
        target = self.backup_dir / identifier

        try:
            self.ensure_dir()
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise PersistenceError(f"Failed to write backup {target}: {e}") from e

        logger.debug(f"Backup created: {target}")
        return identifier

    def list_backups(self, basename: str | None = None) -> list[BackupRecord]:
        """
        List stored backups, oldest first.

        Args:
            basename: Only return backups of files with this name
        """
        if not self.backup_dir.is_dir():
            return []

        records = []
        for entry in self.backup_dir.iterdir():
            if not entry.is_file():
                continue
            record = BackupRecord.from_path(entry)
            if record is None:
                continue
            if basename is not None and record.basename != basename:
                continue
            records.append(record)

        records.sort(key=lambda r: (r.timestamp, r.identifier))
        return records

    def read(self, identifier: str) -> str:
        """
        Return the content of a backup.

        Raises:
            NotFoundError: If no backup with that identifier exists
        """
        target = self.backup_dir / Path(identifier).name
        if not target.is_file():
            raise NotFoundError(f"Backup not found: {identifier}")
        with open(target, "r", encoding="utf-8", newline="") as f:
            return f.read()
