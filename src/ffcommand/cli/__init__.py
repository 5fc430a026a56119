"""Command-line diagnostics for ffcommand."""

import dataclasses
import logging

import click

from ffcommand.config import get_config
from ffcommand.errors import ConfigError
from ffcommand.logging import configure_logging

logger = logging.getLogger(__name__)


def _configure_logging(log_level: str | None, log_json: bool) -> None:
    """Configure logging from the config file, with CLI overrides.

    Args:
        log_level: Override log level (debug, info, warning, error).
        log_json: Use JSON log format.
    """
    try:
        config = get_config().logging
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    overrides: dict[str, str] = {}
    if log_level:
        overrides["level"] = log_level
    if log_json:
        overrides["format"] = "json"
    configure_logging(dataclasses.replace(config, **overrides))


@click.group()
@click.version_option(package_name="ffcommand")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: from config).",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_json: bool,
) -> None:
    """ffcommand - inspect the local ffmpeg installation and media files."""
    ctx.ensure_object(dict)
    _configure_logging(log_level, log_json)


# Defer import to avoid circular dependency
def _register_commands():
    from ffcommand.cli.doctor import doctor_command
    from ffcommand.cli.probe import probe_command

    main.add_command(doctor_command)
    main.add_command(probe_command)


_register_commands()
