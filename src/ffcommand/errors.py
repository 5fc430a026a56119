"""Exception hierarchy for ffcommand.

Every failure surfaced by the library derives from FFCommandError so
callers can catch the whole family at once, while the subclasses keep the
different failure stages (configuration, capability negotiation, tool
resolution, process execution, probing) distinguishable.
"""

from __future__ import annotations


class FFCommandError(Exception):
    """Base class for all ffcommand errors."""

    pass


class ConfigurationError(FFCommandError, ValueError):
    """Raised synchronously when a command is configured incorrectly."""

    pass


class ConfigError(FFCommandError):
    """Raised when the configuration file cannot be loaded."""

    pass


class CapabilityError(FFCommandError):
    """Raised when a requested format or codec is not supported by ffmpeg."""

    pass


class ToolNotFoundError(FFCommandError):
    """Raised when an external executable cannot be located."""

    def __init__(self, tool: str, message: str | None = None) -> None:
        self.tool = tool
        super().__init__(message or f"Cannot find {tool}")


class ProcessError(FFCommandError):
    """Raised when an external process fails.

    Attributes:
        returncode: Exit status of the process, or None if it never exited
            normally (spawn failure, signal).
        signal_name: Name of the terminating signal, if any.
        stdout: Captured (bounded) standard output.
        stderr: Captured (bounded) standard error.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        signal_name: str | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.signal_name = signal_name
        self.stdout = stdout
        self.stderr = stderr


class JobTimeoutError(ProcessError):
    """Raised when a job exceeds its configured timeout and is killed."""

    pass


class ProbeError(FFCommandError):
    """Raised when metadata probing fails or yields unusable data."""

    pass
