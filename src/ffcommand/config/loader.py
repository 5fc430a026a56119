"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Arguments passed directly to Command / CapabilityCache
2. Environment variables (FFCOMMAND_*)
3. Config file (~/.ffcommand/config.toml)
4. Default values

Environment variables:
- FFCOMMAND_CONFIG_PATH: Path to config file (overrides default location)
- FFCOMMAND_FFMPEG_PATH / FFCOMMAND_FFPROBE_PATH / FFCOMMAND_FLVTOOL_PATH
- FFCOMMAND_TIMEOUT: Default job timeout in seconds
- FFCOMMAND_NICENESS: Default process niceness
- FFCOMMAND_STDOUT_LINES: Lines of process output kept per job
- FFCOMMAND_PRESETS_DIR: Directory searched for YAML presets
- FFCOMMAND_LOG_LEVEL / FFCOMMAND_LOG_FORMAT / FFCOMMAND_LOG_FILE

The unprefixed FFMPEG_PATH, FFPROBE_PATH, FLVMETA_PATH and FLVTOOL2_PATH
variables are honoured by the capability cache at lookup time.
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from ffcommand.config.env import EnvReader
from ffcommand.config.models import (
    FFCommandConfig,
    LoggingConfig,
    RunConfig,
    ToolPathsConfig,
)
from ffcommand.errors import ConfigError

logger = logging.getLogger(__name__)

# Default config location
DEFAULT_CONFIG_DIR = Path.home() / ".ffcommand"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

_config_cache: FFCommandConfig | None = None
_config_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Get the config file path, honouring FFCOMMAND_CONFIG_PATH."""
    env_path = os.environ.get("FFCOMMAND_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        path: Path to config file. If None, uses default location.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return data


def _optional_path(value: Any) -> Path | None:
    if value in (None, ""):
        return None
    return Path(str(value)).expanduser()


def _build_config(file_config: dict[str, Any], reader: EnvReader) -> FFCommandConfig:
    tools_file = file_config.get("tools", {})
    run_file = file_config.get("run", {})
    logging_file = file_config.get("logging", {})

    tools = ToolPathsConfig(
        ffmpeg=reader.get_path("FFCOMMAND_FFMPEG_PATH")
        or _optional_path(tools_file.get("ffmpeg")),
        ffprobe=reader.get_path("FFCOMMAND_FFPROBE_PATH")
        or _optional_path(tools_file.get("ffprobe")),
        flvtool=reader.get_path("FFCOMMAND_FLVTOOL_PATH")
        or _optional_path(tools_file.get("flvtool")),
    )

    run = RunConfig(
        timeout=reader.get_float("FFCOMMAND_TIMEOUT", run_file.get("timeout")),
        niceness=reader.get_int("FFCOMMAND_NICENESS", run_file.get("niceness", 0)),
        stdout_lines=reader.get_int(
            "FFCOMMAND_STDOUT_LINES", run_file.get("stdout_lines", 100)
        ),
        presets_dir=reader.get_path("FFCOMMAND_PRESETS_DIR", must_exist=False)
        or _optional_path(run_file.get("presets_dir")),
        detection_timeout=run_file.get("detection_timeout", 10.0),
    )

    log_config = LoggingConfig(
        level=reader.get_str("FFCOMMAND_LOG_LEVEL", logging_file.get("level", "info")),
        format=reader.get_str(
            "FFCOMMAND_LOG_FORMAT", logging_file.get("format", "text")
        ),
        file=reader.get_path("FFCOMMAND_LOG_FILE", must_exist=False)
        or _optional_path(logging_file.get("file")),
        include_stderr=logging_file.get("include_stderr", False),
        max_bytes=logging_file.get("max_bytes", 10_485_760),
        backup_count=logging_file.get("backup_count", 5),
    )

    return FFCommandConfig(tools=tools, run=run, logging=log_config)


def get_config(
    config_path: Path | None = None,
    env_reader: EnvReader | None = None,
) -> FFCommandConfig:
    """Get ffcommand configuration with full precedence handling.

    The default configuration (no explicit path, process environment) is
    cached; use clear_config_cache() to force a reload.

    Args:
        config_path: Path to config file (overrides FFCOMMAND_CONFIG_PATH).
        env_reader: Optional EnvReader for testing (uses os.environ if None).

    Returns:
        FFCommandConfig with merged configuration.

    Raises:
        ConfigError: If the config file is malformed or holds invalid values.
    """
    global _config_cache

    use_cache = config_path is None and env_reader is None
    if use_cache and _config_cache is not None:
        return _config_cache

    with _config_cache_lock:
        if use_cache and _config_cache is not None:
            return _config_cache

        reader = env_reader or EnvReader()
        file_config = load_config_file(config_path)
        try:
            config = _build_config(file_config, reader)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        if use_cache:
            _config_cache = config
        return config


def clear_config_cache() -> None:
    """Clear the cached configuration. Primarily useful for testing."""
    global _config_cache
    with _config_cache_lock:
        _config_cache = None
