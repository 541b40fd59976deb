"""
Command Executor

Runs shell commands under a blocklist, a wall-clock timeout and a cap on
combined output size. Stateless.
"""

import logging
import os
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from ..errors import CommandBlockedError, ExecutionError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
READ_CHUNK_SIZE = 64 * 1024
POLL_INTERVAL = 0.05
READER_JOIN_TIMEOUT = 1.0

# Matched as substrings of the whitespace-normalized command.
BLOCKED_PATTERNS = (
    "rm -rf /",
    "rm -rf ~",
    "rm -fr /",
    "mkfs",
    "dd if=",
    "of=/dev/sd",
    "of=/dev/nvme",
    "> /dev/sd",
    "format c:",
)

# Matched against the command with all whitespace removed.
BLOCKED_COMPACT_PATTERNS = (
    ":(){:|:&};:",
    ":(){:|:};:",
)


@dataclass(frozen=True)
class CommandOutput:
    """
    Output of a successful command.

    Attributes:
        command: The command that ran
        stdout: Trimmed standard output
        stderr: Trimmed standard error
        exit_code: Process exit code (always 0)
    """
    command: str
    stdout: str
    stderr: str
    exit_code: int = 0

    def to_dict(self) -> dict:
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "command": self.command,
            "exit_code": self.exit_code,
        }


def find_blocked_pattern(command: str) -> str | None:
    """Return the blocklist entry the command matches, if any."""
    normalized = " ".join(command.lower().split())
    for pattern in BLOCKED_PATTERNS:
        if pattern in normalized:
            return pattern

    compact = "".join(normalized.split())
    for pattern in BLOCKED_COMPACT_PATTERNS:
        if pattern in compact:
            return pattern
    return None


class _OutputCollector:
    """
    Accumulates a command's stdout and stderr as they are produced.

    Stops keeping bytes once the combined total passes the cap and sets
    `overflowed` so the waiting thread can kill the command.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self.total = 0
        self.overflowed = threading.Event()
        self._buffers = {"stdout": bytearray(), "stderr": bytearray()}
        self._lock = threading.Lock()

    def drain(self, pipe, name: str) -> None:
        """Read one pipe until EOF or overflow. Runs in a reader thread."""
        with pipe:
            while not self.overflowed.is_set():
                chunk = pipe.read1(READ_CHUNK_SIZE)
                if not chunk:
                    return
                self._add(name, chunk)

    def _add(self, name: str, chunk: bytes) -> None:
        with self._lock:
            room = self.limit - self.total
            if room > 0:
                self._buffers[name] += chunk[:room]
            self.total += len(chunk)
            if self.total > self.limit:
                self.overflowed.set()

    def text(self, name: str) -> str:
        with self._lock:
            return bytes(self._buffers[name]).decode("utf-8", errors="replace").strip()


class CommandExecutor:
    """
    Executes shell commands with safety limits.

    Example:
        executor = CommandExecutor(timeout=10)
        output = executor.execute("git status", cwd=project_root)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ):
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes

    def execute(
        self,
        command: str,
        cwd: str | Path | None = None,
        timeout: float | None = None,
        max_output_bytes: int | None = None,
    ) -> CommandOutput:
        """
        Run a command through the shell.

        Args:
            command: Shell command
            cwd: Working directory (default: current directory)
            timeout: Seconds before the process is killed
            max_output_bytes: Cap on combined stdout+stderr size

        Returns:
            CommandOutput with trimmed stdout/stderr

        Raises:
            CommandBlockedError: If the command matches the blocklist
            ValidationError: If the command is empty or cwd is not a directory
            ExecutionError: On timeout, oversized output or non-zero exit
        """
        timeout = self.timeout if timeout is None else timeout
        max_output_bytes = self.max_output_bytes if max_output_bytes is None else max_output_bytes

        if not command or not command.strip():
            raise ValidationError("Command cannot be empty")

        pattern = find_blocked_pattern(command)
        if pattern is not None:
            logger.warning(f"Blocked command: {command!r} (matched {pattern!r})")
            raise CommandBlockedError(command, pattern)

        work_dir = Path(cwd).resolve() if cwd else Path.cwd()
        if not work_dir.is_dir():
            raise ValidationError(f"Working directory does not exist: {work_dir}")

        try:
            process = subprocess.Popen(
                command,
                shell=True,
                cwd=str(work_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **self._popen_kwargs(),
            )
        except OSError as e:
            raise ExecutionError(f"Error executing command: {e}") from e

        collector = _OutputCollector(max_output_bytes)
        readers = [
            threading.Thread(target=collector.drain, args=(process.stdout, "stdout"), daemon=True),
            threading.Thread(target=collector.drain, args=(process.stderr, "stderr"), daemon=True),
        ]
        for reader in readers:
            reader.start()

        timed_out = self._wait(process, readers, collector, timeout)
        if timed_out or collector.overflowed.is_set():
            self._kill(process)
        process.wait()
        for reader in readers:
            reader.join(timeout=READER_JOIN_TIMEOUT)

        stdout = collector.text("stdout")
        stderr = collector.text("stderr")

        if collector.overflowed.is_set():
            raise ExecutionError(
                f"Command output exceeded {max_output_bytes} bytes",
                stdout=stdout,
                stderr=stderr,
                exit_code=process.returncode,
            )

        if timed_out:
            raise ExecutionError(
                f"Command timed out after {timeout} seconds",
                stdout=stdout,
                stderr=stderr,
                exit_code=process.returncode,
                timed_out=True,
            )

        if process.returncode != 0:
            raise ExecutionError(
                f"Command exited with code {process.returncode}",
                stdout=stdout,
                stderr=stderr,
                exit_code=process.returncode,
            )

        logger.debug(f"Command succeeded: {command!r} in {work_dir}")
        return CommandOutput(command=command, stdout=stdout, stderr=stderr)

    @staticmethod
    def _wait(
        process: subprocess.Popen,
        readers: list[threading.Thread],
        collector: "_OutputCollector",
        timeout: float,
    ) -> bool:
        """
        Wait until the command finishes and its pipes close, or a limit is hit.

        Returns:
            True if the timeout expired first
        """
        deadline = time.monotonic() + timeout
        while not collector.overflowed.is_set():
            if process.poll() is not None and not any(reader.is_alive() for reader in readers):
                return False
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            collector.overflowed.wait(min(remaining, POLL_INTERVAL))
        return False

    @staticmethod
    def _popen_kwargs() -> dict:
        if sys.platform == "win32":
            return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
        kwargs = {"start_new_session": True}
        if os.path.exists("/bin/bash"):
            kwargs["executable"] = "/bin/bash"
        return kwargs

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        """Kill the command and everything it spawned."""
        if sys.platform == "win32":
            process.kill()
            return
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
