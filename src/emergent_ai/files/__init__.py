"""
File management for Emergent AI

PathGuard validates paths, BackupStore keeps snapshots, OperationLog
persists the mutation history and FileManager ties them together.
"""

from .backup_store import BackupRecord, BackupStore
from .file_manager import FileManager, FileProbe, FileState
from .operation_log import FileOperation, OperationKind, OperationLog
from .path_guard import PathCheck, PathGuard

__all__ = [
    "BackupRecord",
    "BackupStore",
    "FileManager",
    "FileOperation",
    "FileProbe",
    "FileState",
    "OperationKind",
    "OperationLog",
    "PathCheck",
    "PathGuard",
]
