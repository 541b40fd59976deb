"""
Error types for Emergent AI.

All anticipated failure modes of the tool layer are raised as subclasses of
EmergentError. Tool handlers convert them into structured results; only
ProtocolError (and genuinely unexpected exceptions) escape a tool call.
"""

from typing import Any


class EmergentError(Exception):
    """Base exception for Emergent AI errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            details: Optional structured data attached to the failure
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(EmergentError):
    """Raised for unsafe paths and malformed tool arguments."""
    pass


class PathRejectedError(ValidationError):
    """Raised when PathGuard rejects a path."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path '{path}': {reason}", {"path": path, "reason": reason})
        self.path = path
        self.reason = reason


class CommandBlockedError(ValidationError):
    """Raised when a command matches the blocklist."""

    def __init__(self, command: str, pattern: str):
        super().__init__(
            f"Command blocked for safety (matched '{pattern}')",
            {"command": command, "pattern": pattern},
        )
        self.command = command
        self.pattern = pattern


class NotFoundError(EmergentError):
    """Raised when a file, tool or log record does not exist."""
    pass


class AccessDeniedError(EmergentError):
    """Raised when the OS denies access to a path."""
    pass


class FileOperationError(EmergentError):
    """Raised when a file operation fails for another OS-level reason."""
    pass


class ExecutionError(EmergentError):
    """
    Raised when a command fails: timeout, output cap or non-zero exit.

    Partial output captured before the failure is preserved.
    """

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        timed_out: bool = False,
    ):
        super().__init__(message, {"stdout": stdout, "stderr": stderr, "exit_code": exit_code})
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.timed_out = timed_out


class PersistenceError(EmergentError):
    """Raised when the operation log or a backup cannot be written."""
    pass


class InitializationError(EmergentError):
    """Raised when the file manager cannot prepare its storage."""
    pass


class ProtocolError(EmergentError):
    """Raised for client/server contract violations."""
    pass


class UnknownToolError(ProtocolError):
    """Raised when a tool call names a tool that is not in the catalogue."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}", {"tool": name})
        self.name = name


class TransportError(EmergentError):
    """Raised by the client when the channel to the server fails."""
    pass
