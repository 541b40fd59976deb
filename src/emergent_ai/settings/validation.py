"""
Configuration validation for Emergent AI.

Checks a Settings object for values the tool layer cannot work with:
non-positive limits, relative protected directories and a backup
directory that PathGuard would itself reject.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .models import Settings

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ValidationResult:
    """
    Result of a configuration validation.

    Attributes:
        valid: Whether the configuration passed all validation checks.
        errors: List of error messages (validation failures).
        warnings: List of warning messages (non-critical issues).
    """

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message (does not affect validity)."""
        self.warnings.append(message)


class ConfigValidator:
    """Configuration validator for Emergent AI settings."""

    POSITIVE_LIMITS = (
        "max_file_size",
        "max_context_size",
        "command_timeout",
        "test_timeout",
        "max_output_bytes",
    )

    def validate(self, settings: Settings, project_root: Path | None = None) -> ValidationResult:
        """
        Validate the complete settings configuration.

        Args:
            settings: Settings object to validate.
            project_root: Project the relative backup directory is anchored to.

        Returns:
            ValidationResult with any errors or warnings.
        """
        result = ValidationResult()

        for name in self.POSITIVE_LIMITS:
            value = getattr(settings, name)
            if value <= 0:
                result.add_error(f"{name} must be positive (got {value})")

        if settings.test_timeout < settings.command_timeout:
            result.add_warning("test_timeout is shorter than command_timeout")

        if not settings.backup_dir.strip():
            result.add_error("backup_dir cannot be empty")

        if not settings.history_file.strip() or Path(settings.history_file).name != settings.history_file:
            result.add_error(f"history_file must be a plain file name (got '{settings.history_file}')")

        for directory in settings.protected_dirs:
            if not Path(directory).is_absolute():
                result.add_error(f"Protected directory must be absolute: {directory}")

        backup_dir = Path(settings.backup_dir)
        if not backup_dir.is_absolute():
            backup_dir = (project_root or Path.cwd()) / backup_dir
        for directory in settings.protected_dirs:
            protected = Path(directory)
            if backup_dir == protected or protected in backup_dir.parents:
                result.add_warning(f"backup_dir is inside protected directory {directory}")

        if settings.log_level.upper() not in VALID_LOG_LEVELS:
            result.add_error(
                f"Unknown log_level '{settings.log_level}' "
                f"(expected one of {', '.join(sorted(VALID_LOG_LEVELS))})"
            )

        return result
