"""
Path Guard

Validates candidate filesystem paths before any file access:
- rejects parent-directory traversal segments
- rejects paths located under protected system directories
"""

import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import PathRejectedError

DEFAULT_PROTECTED_DIRS = ("/etc", "/sys", "/proc", "/root")

TRAVERSAL_SEGMENT = ".."


@dataclass(frozen=True)
class PathCheck:
    """
    Outcome of a path validation.

    Attributes:
        path: The path as given by the caller
        resolved: Absolute, normalized path (None if rejected before resolving)
        reason: Rejection reason, None when the path is accepted
    """
    path: str
    resolved: Path | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None


class PathGuard:
    """
    Path-safety policy.

    validate() is a pure check and never corrects a path; callers use
    require() to turn a rejection into PathRejectedError.
    """

    def __init__(
        self,
        base_dir: Path | str | None = None,
        protected_dirs: list[str] | tuple[str, ...] = DEFAULT_PROTECTED_DIRS,
    ):
        """
        Args:
            base_dir: Directory relative paths are resolved against (default: cwd)
            protected_dirs: Absolute directories no path may resolve under
        """
        self.base_dir = Path(base_dir) if base_dir else None
        self.protected_dirs = tuple(Path(os.path.normpath(d)) for d in protected_dirs)

    def validate(self, path: str | Path) -> PathCheck:
        raw = str(path)

        if not raw.strip():
            return PathCheck(path=raw, reason="empty path")

        if TRAVERSAL_SEGMENT in Path(raw).parts:
            return PathCheck(path=raw, reason="path traversal is not allowed")

        base = self.base_dir or Path.cwd()
        normalized = Path(os.path.normpath(os.path.join(os.path.abspath(base), raw)))

        if TRAVERSAL_SEGMENT in normalized.parts:
            return PathCheck(path=raw, resolved=normalized, reason="path traversal is not allowed")

        # Symlinks may point into a protected directory, so check both forms.
        for candidate in (normalized, Path(os.path.realpath(normalized))):
            protected = self._protected_parent(candidate)
            if protected is not None:
                return PathCheck(
                    path=raw,
                    resolved=normalized,
                    reason=f"access denied under protected directory {protected}",
                )

        return PathCheck(path=raw, resolved=normalized)

    def require(self, path: str | Path) -> Path:
        """
        Validate a path and return its resolved form.

        Raises:
            PathRejectedError: If the path violates the policy
        """
        check = self.validate(path)
        if not check.ok:
            raise PathRejectedError(check.path, check.reason)
        return check.resolved

    def _protected_parent(self, candidate: Path) -> Path | None:
        for protected in self.protected_dirs:
            if candidate == protected or protected in candidate.parents:
                return protected
        return None
