"""Tool path and capability caching.

CapabilityCache memoizes everything learned about the local ffmpeg
installation: resolved executable paths, the parsed version and the format,
codec, encoder and filter tables. Each entry is populated lazily on first
use. Population is idempotent, so two threads racing on the same key only
cost a duplicate subprocess call.

A process-wide instance is available from get_default_cache(); commands
accept any other instance for isolation (tests, multiple installations).
"""

from __future__ import annotations

import logging
import os
import subprocess  # nosec B404 - only used for TimeoutExpired
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

from ffcommand.config.models import ToolPathsConfig
from ffcommand.core.subprocess_utils import run_command
from ffcommand.errors import ProcessError, ToolNotFoundError
from ffcommand.tools.detection import (
    find_tool,
    parse_codecs,
    parse_encoders,
    parse_filters,
    parse_formats,
    parse_version,
)
from ffcommand.tools.models import (
    CodecInfo,
    EncoderInfo,
    FFmpegVersion,
    FilterInfo,
    FormatInfo,
)

logger = logging.getLogger(__name__)

# Default timeout for listing/version commands (seconds)
DEFAULT_DETECTION_TIMEOUT = 10.0

T = TypeVar("T")


class CapabilityCache:
    """Lazily populated cache of tool paths and ffmpeg capabilities.

    Args:
        tool_paths: Configured tool paths. Loaded from the configuration
            file on first lookup when None.
        detection_timeout: Timeout for listing commands. Taken from the
            configuration when None.
        env: Environment mapping used for *_PATH overrides (defaults to
            os.environ).
    """

    def __init__(
        self,
        tool_paths: ToolPathsConfig | None = None,
        detection_timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._tool_paths = tool_paths
        self._detection_timeout = detection_timeout
        self._env = env
        self._lock = threading.Lock()
        self._entries: dict[str, object] = {}

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _configured(self) -> ToolPathsConfig:
        if self._tool_paths is None:
            from ffcommand.config.loader import get_config

            config = get_config()
            self._tool_paths = config.tools
            if self._detection_timeout is None:
                self._detection_timeout = config.run.detection_timeout
        return self._tool_paths

    @property
    def detection_timeout(self) -> float:
        """Timeout applied to listing and version commands."""
        if self._detection_timeout is None:
            self._configured()
        return self._detection_timeout or DEFAULT_DETECTION_TIMEOUT

    def _get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                return self._entries[key]  # type: ignore[return-value]
        value = loader()
        with self._lock:
            self._entries.setdefault(key, value)
            return self._entries[key]  # type: ignore[return-value]

    def _set(self, key: str, value: object) -> None:
        with self._lock:
            self._entries[key] = value

    def _environ(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    def _run_ffmpeg(self, *args: str) -> str:
        ffmpeg = self.get_ffmpeg_path()
        try:
            stdout, stderr, rc = run_command(
                [ffmpeg, *args], timeout=self.detection_timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessError(
                f"ffmpeg {' '.join(args)} timed out after {self.detection_timeout}s"
            ) from e
        except OSError as e:
            raise ProcessError(f"Could not run ffmpeg: {e}") from e

        if rc != 0:
            raise ProcessError(
                f"ffmpeg {' '.join(args)} exited with code {rc}",
                returncode=rc,
                stdout=stdout,
                stderr=stderr,
            )
        return stdout

    # -------------------------------------------------------------------------
    # Tool paths
    # -------------------------------------------------------------------------

    def set_ffmpeg_path(self, path: str | Path) -> None:
        """Pin the ffmpeg executable path."""
        self._set("ffmpeg_path", Path(path))

    def set_ffprobe_path(self, path: str | Path) -> None:
        """Pin the ffprobe executable path."""
        self._set("ffprobe_path", Path(path))

    def set_flvtool_path(self, path: str | Path) -> None:
        """Pin the flvmeta/flvtool2 executable path."""
        self._set("flvtool_path", Path(path))

    def get_ffmpeg_path(self) -> Path:
        """Resolve the ffmpeg executable.

        Raises:
            ToolNotFoundError: If ffmpeg cannot be located.
        """

        def load() -> Path | None:
            return find_tool(
                ["ffmpeg"],
                env_vars=["FFMPEG_PATH"],
                configured_path=self._configured().ffmpeg,
                env=self._environ(),
            )

        path = self._get_or_load("ffmpeg_path", load)
        if path is None:
            self._forget("ffmpeg_path")
            raise ToolNotFoundError("ffmpeg")
        return path

    def get_ffprobe_path(self) -> Path:
        """Resolve the ffprobe executable.

        Falls back to the directory holding ffmpeg when ffprobe is neither
        configured nor on PATH.

        Raises:
            ToolNotFoundError: If ffprobe cannot be located.
        """

        def load() -> Path | None:
            extra_dirs: list[Path] = []
            try:
                extra_dirs.append(self.get_ffmpeg_path().parent)
            except ToolNotFoundError:
                pass
            return find_tool(
                ["ffprobe"],
                env_vars=["FFPROBE_PATH"],
                configured_path=self._configured().ffprobe,
                extra_dirs=extra_dirs,
                env=self._environ(),
            )

        path = self._get_or_load("ffprobe_path", load)
        if path is None:
            self._forget("ffprobe_path")
            raise ToolNotFoundError("ffprobe")
        return path

    def get_flvtool_path(self) -> Path:
        """Resolve the flvmeta (preferred) or flvtool2 executable.

        Raises:
            ToolNotFoundError: If neither tool can be located.
        """

        def load() -> Path | None:
            return find_tool(
                ["flvmeta", "flvtool2"],
                env_vars=["FLVMETA_PATH", "FLVTOOL2_PATH"],
                configured_path=self._configured().flvtool,
                env=self._environ(),
            )

        path = self._get_or_load("flvtool_path", load)
        if path is None:
            self._forget("flvtool_path")
            raise ToolNotFoundError("flvtool", "Cannot find flvmeta or flvtool2")
        return path

    def _forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    # -------------------------------------------------------------------------
    # Capabilities
    # -------------------------------------------------------------------------

    def get_version(self) -> FFmpegVersion | None:
        """Return the parsed ffmpeg version, or None if unparseable."""

        def load() -> FFmpegVersion | None:
            version = parse_version(self._run_ffmpeg("-version"))
            if version is None:
                logger.warning("Could not parse ffmpeg version banner")
            return version

        return self._get_or_load("version", load)

    def available_formats(self) -> dict[str, FormatInfo]:
        """Return the container formats supported by ffmpeg."""
        return self._get_or_load(
            "formats", lambda: parse_formats(self._run_ffmpeg("-formats"))
        )

    def available_codecs(self) -> dict[str, CodecInfo]:
        """Return the codecs supported by ffmpeg."""
        return self._get_or_load(
            "codecs", lambda: parse_codecs(self._run_ffmpeg("-codecs"))
        )

    def available_encoders(self) -> dict[str, EncoderInfo]:
        """Return the encoders supported by ffmpeg."""
        return self._get_or_load(
            "encoders", lambda: parse_encoders(self._run_ffmpeg("-encoders"))
        )

    def available_filters(self) -> dict[str, FilterInfo]:
        """Return the filters supported by ffmpeg."""
        return self._get_or_load(
            "filters", lambda: parse_filters(self._run_ffmpeg("-filters"))
        )

    def reset(self) -> None:
        """Forget every resolved path, the version and all capability maps."""
        with self._lock:
            self._entries.clear()


_default_cache: CapabilityCache | None = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> CapabilityCache:
    """Return the process-wide CapabilityCache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        with _default_cache_lock:
            if _default_cache is None:
                _default_cache = CapabilityCache()
    return _default_cache
