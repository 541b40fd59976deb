"""Tests for PathGuard."""

from pathlib import Path

import pytest

from emergent_ai.errors import PathRejectedError
from emergent_ai.files.path_guard import PathGuard


class TestTraversal:
    """Tests for parent-directory traversal rejection."""

    @pytest.mark.parametrize("path", ["../secret.txt", "a/../../b", "src/../x.py", ".."])
    def test_rejects_traversal_segments(self, tmp_path: Path, path: str):
        """Any '..' segment is rejected, even when it normalizes inside the base."""
        check = PathGuard(tmp_path).validate(path)
        assert not check.ok
        assert "traversal" in check.reason

    def test_dots_inside_names_are_allowed(self, tmp_path: Path):
        """Names that merely contain dots are not traversal."""
        check = PathGuard(tmp_path).validate("notes..txt")
        assert check.ok
        assert check.resolved == tmp_path / "notes..txt"

    def test_rejects_empty_path(self, tmp_path: Path):
        check = PathGuard(tmp_path).validate("  ")
        assert not check.ok
        assert check.reason == "empty path"


class TestProtectedDirs:
    """Tests for the protected directory denylist."""

    @pytest.mark.parametrize("path", ["/etc/passwd", "/etc", "/proc/1/status", "/sys/kernel", "/root/.ssh/id_rsa"])
    def test_rejects_protected_paths(self, tmp_path: Path, path: str):
        check = PathGuard(tmp_path).validate(path)
        assert not check.ok
        assert "protected directory" in check.reason

    def test_prefix_of_protected_name_is_allowed(self, tmp_path: Path):
        """/etcetera is not under /etc."""
        guard = PathGuard(tmp_path, protected_dirs=["/etcetera-not", "/etc"])
        assert guard.validate("/etcetera/file").ok

    def test_custom_protected_dir(self, tmp_path: Path):
        """A project-relative path under a custom protected dir is rejected."""
        locked = tmp_path / "locked"
        guard = PathGuard(tmp_path, protected_dirs=[str(locked)])
        assert not guard.validate("locked/file.txt").ok
        assert guard.validate("open/file.txt").ok

    def test_symlink_into_protected_dir(self, tmp_path: Path):
        """A symlink that points into a protected directory is rejected."""
        locked = tmp_path / "locked"
        locked.mkdir()
        (tmp_path / "link").symlink_to(locked)
        guard = PathGuard(tmp_path, protected_dirs=[str(locked)])
        assert not guard.validate("link/file.txt").ok


class TestRequire:
    """Tests for require()."""

    def test_returns_resolved_path(self, tmp_path: Path):
        resolved = PathGuard(tmp_path).require("src/app.py")
        assert resolved == tmp_path / "src" / "app.py"

    def test_normalizes_redundant_segments(self, tmp_path: Path):
        resolved = PathGuard(tmp_path).require("./src//app.py")
        assert resolved == tmp_path / "src" / "app.py"

    def test_raises_on_rejection(self, tmp_path: Path):
        with pytest.raises(PathRejectedError) as exc_info:
            PathGuard(tmp_path).require("../outside.txt")
        assert exc_info.value.path == "../outside.txt"
        assert "Invalid path" in str(exc_info.value)
