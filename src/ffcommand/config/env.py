"""Typed access to FFCOMMAND_* environment overrides.

EnvReader takes an optional mapping in place of os.environ so the loader
can be exercised without touching the process environment.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Read and convert environment overrides.

    Empty or blank variables count as unset. A value that cannot be
    converted is logged and the default is used instead, so a typo in the
    environment never prevents a command from running.

    Example:
        reader = EnvReader(env={"FFCOMMAND_TIMEOUT": "30"})
        reader.get_float("FFCOMMAND_TIMEOUT")  # 30.0
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _raw(self, var: str) -> str | None:
        value = self._env.get(var)
        if value is None or not value.strip():
            return None
        return value.strip()

    def _convert(
        self, var: str, convert: Callable[[str], T], kind: str, default: T | None
    ) -> T | None:
        value = self._raw(var)
        if value is None:
            return default
        try:
            return convert(value)
        except ValueError:
            logger.warning(
                "Invalid %s value for %s: %s", kind, var, value, extra={"var": var}
            )
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._convert(var, str, "string", default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, int, "integer", default)

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, float, "float", default)

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Return True for "true", "1", "yes" or "on" (any case), else False."""
        return self._convert(
            var, lambda value: value.casefold() in _TRUE_VALUES, "boolean", default
        )

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Return the variable as an expanded Path.

        Args:
            var: Variable name.
            must_exist: Ignore, with a warning, paths that do not exist
                (tool paths); False for files created later (log file,
                presets directory).
            default: Returned when unset or ignored.
        """
        path = self._convert(var, lambda value: Path(value).expanduser(), "path", None)
        if path is None:
            return default
        if must_exist and not path.exists():
            logger.warning("%s points to non-existent path: %s", var, path)
            return default
        return path
