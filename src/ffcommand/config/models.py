"""Configuration data models.

This module defines dataclasses for ffcommand configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path

# Bounds accepted by nice(1)
MIN_NICENESS = -20
MAX_NICENESS = 20

LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("text", "json")


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None
    flvtool: Path | None = None


@dataclass
class RunConfig:
    """Defaults applied to every new command."""

    # Job timeout in seconds (None = no timeout)
    timeout: float | None = None

    # Process priority passed to nice(1)
    niceness: int = 0

    # Number of stdout/stderr lines retained per job (0 = unlimited)
    stdout_lines: int = 100

    # Directory searched for named YAML presets
    presets_dir: Path | None = None

    # Timeout for capability listing and version detection (seconds)
    detection_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not MIN_NICENESS <= self.niceness <= MAX_NICENESS:
            raise ValueError(
                f"niceness must be between {MIN_NICENESS} and {MAX_NICENESS}, "
                f"got {self.niceness}"
            )
        if self.stdout_lines < 0:
            raise ValueError(
                f"stdout_lines must be non-negative, got {self.stdout_lines}"
            )
        if self.detection_timeout <= 0:
            raise ValueError(
                f"detection_timeout must be positive, got {self.detection_timeout}"
            )


@dataclass
class LoggingConfig:
    """Where and how ffcommand's own log records are written.

    `level` is one of LOG_LEVELS and `format` one of LOG_FORMATS, in any
    case. Without `file` records go to stderr; with it they go to a
    rotating file, plus stderr when `include_stderr` is set.
    """

    level: str = "info"
    format: str = "text"
    file: Path | None = None
    include_stderr: bool = False
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        if self.level.casefold() not in LOG_LEVELS:
            raise ValueError(
                f"level must be one of {', '.join(LOG_LEVELS)}, got {self.level!r}"
            )
        if self.format.casefold() not in LOG_FORMATS:
            raise ValueError(
                f"format must be one of {', '.join(LOG_FORMATS)}, got {self.format!r}"
            )
        if self.max_bytes < 0 or self.backup_count < 0:
            raise ValueError("max_bytes and backup_count must not be negative")


@dataclass
class FFCommandConfig:
    """Main configuration container."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    run: RunConfig = field(default_factory=RunConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
