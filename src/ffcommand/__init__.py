"""ffcommand: build, check and run ffmpeg commands from Python."""

from ffcommand.command import Command
from ffcommand.errors import (
    CapabilityError,
    ConfigError,
    ConfigurationError,
    FFCommandError,
    JobTimeoutError,
    ProbeError,
    ProcessError,
    ToolNotFoundError,
)
from ffcommand.executor import Job, JobResult
from ffcommand.recipes import ScreenshotOptions

__version__ = "0.1.0"

__all__ = [
    "CapabilityError",
    "Command",
    "ConfigError",
    "ConfigurationError",
    "FFCommandError",
    "Job",
    "JobResult",
    "JobTimeoutError",
    "ProbeError",
    "ProcessError",
    "ScreenshotOptions",
    "ToolNotFoundError",
    "__version__",
]
