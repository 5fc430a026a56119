"""Configuration package.

Layered configuration: defaults, then the TOML config file, then
FFCOMMAND_* environment variables.
"""

from ffcommand.config.env import EnvReader
from ffcommand.config.loader import (
    DEFAULT_CONFIG_FILE,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from ffcommand.config.models import (
    FFCommandConfig,
    LoggingConfig,
    RunConfig,
    ToolPathsConfig,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "EnvReader",
    "FFCommandConfig",
    "LoggingConfig",
    "RunConfig",
    "ToolPathsConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
