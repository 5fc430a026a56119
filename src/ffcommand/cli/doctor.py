"""ffcommand doctor command for checking external tool health.

Reports where ffmpeg, ffprobe and flvmeta/flvtool2 were found, the ffmpeg
version and how many formats, codecs, encoders and filters it offers.
"""

import json
import sys
from typing import Any

import click

from ffcommand.errors import FFCommandError, ToolNotFoundError
from ffcommand.tools import CapabilityCache, get_default_cache

EXIT_OK = 0
EXIT_CRITICAL = 1


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


def _resolve(cache: CapabilityCache, getter: str) -> str | None:
    try:
        return str(getattr(cache, getter)())
    except ToolNotFoundError:
        return None


def collect_report(cache: CapabilityCache) -> dict[str, Any]:
    """Gather tool paths, version and capability counts.

    Args:
        cache: Capability cache to query.

    Returns:
        Dictionary suitable for JSON output.
    """
    report: dict[str, Any] = {
        "tools": {
            "ffmpeg": _resolve(cache, "get_ffmpeg_path"),
            "ffprobe": _resolve(cache, "get_ffprobe_path"),
            "flvtool": _resolve(cache, "get_flvtool_path"),
        },
        "version": None,
        "capabilities": None,
        "errors": [],
    }

    if report["tools"]["ffmpeg"] is None:
        return report

    try:
        version = cache.get_version()
        report["version"] = str(version) if version else None
        report["capabilities"] = {
            "formats": len(cache.available_formats()),
            "codecs": len(cache.available_codecs()),
            "encoders": len(cache.available_encoders()),
            "filters": len(cache.available_filters()),
        }
    except FFCommandError as e:
        report["errors"].append(str(e))

    return report


def _is_healthy(report: dict[str, Any]) -> bool:
    tools = report["tools"]
    return (
        tools["ffmpeg"] is not None
        and tools["ffprobe"] is not None
        and not report["errors"]
    )


@click.command("doctor")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show detailed capability information",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
def doctor_command(verbose: bool, json_output: bool) -> None:
    """Check external tool availability and capabilities.

    Exit codes:
      0 - ffmpeg and ffprobe available
      1 - ffmpeg or ffprobe missing, or ffmpeg could not be queried
    """
    report = collect_report(get_default_cache())
    healthy = _is_healthy(report)

    if json_output:
        click.echo(json.dumps(report, indent=2))
        sys.exit(EXIT_OK if healthy else EXIT_CRITICAL)

    click.echo("ffcommand External Tool Health Check")
    click.echo("=" * 40)
    click.echo()

    for name, label in (
        ("ffmpeg", "ffmpeg: "),
        ("ffprobe", "ffprobe:"),
        ("flvtool", "flvtool:"),
    ):
        path = report["tools"][name]
        status = _format_status(path is not None)
        click.echo(f"  {status} {label} {path or 'not found'}")
    if report["tools"]["flvtool"] is None:
        click.echo("    └─ Optional: install flvmeta to update FLV metadata")

    if report["version"]:
        click.echo(f"  ffmpeg version: {report['version']}")

    caps = report["capabilities"]
    if verbose and caps:
        click.echo()
        click.echo("Capabilities:")
        click.echo("-" * 20)
        click.echo(f"  Formats:  {caps['formats']}")
        click.echo(f"  Codecs:   {caps['codecs']}")
        click.echo(f"  Encoders: {caps['encoders']}")
        click.echo(f"  Filters:  {caps['filters']}")

    for error in report["errors"]:
        click.echo(f"  ✗ {error}")

    click.echo()
    if healthy:
        click.echo("✓ All required tools available.")
        sys.exit(EXIT_OK)
    click.echo("⚠ Required tools are missing or not working.")
    sys.exit(EXIT_CRITICAL)
