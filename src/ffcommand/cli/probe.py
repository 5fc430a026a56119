"""ffcommand probe command: show ffprobe metadata for a media file."""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from ffcommand.command import Command
from ffcommand.errors import FFCommandError

logger = logging.getLogger(__name__)


def format_human(data: dict[str, Any]) -> str:
    """Render probe data as a short human-readable summary."""
    fmt = data.get("format", {})
    lines = [
        f"Format:   {fmt.get('format_name', 'unknown')}",
        f"Duration: {fmt.get('duration', 'unknown')}",
    ]
    if "bit_rate" in fmt:
        lines.append(f"Bitrate:  {fmt['bit_rate']}")

    streams = data.get("streams", [])
    lines.append(f"Streams:  {len(streams)}")
    for stream in streams:
        kind = stream.get("codec_type", "unknown")
        codec = stream.get("codec_name", "unknown")
        detail = ""
        if kind == "video":
            detail = f" {stream.get('width')}x{stream.get('height')}"
        elif kind == "audio":
            detail = f" {stream.get('channels', '?')}ch"
        language = stream.get("tags", {}).get("language")
        if language:
            detail += f" [{language}]"
        lines.append(f"  #{stream.get('index', '?')} {kind}: {codec}{detail}")

    chapters = data.get("chapters", [])
    if chapters:
        lines.append(f"Chapters: {len(chapters)}")
    return "\n".join(lines)


@click.command("probe")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
def probe_command(file: Path, json_output: bool) -> None:
    """Show stream and format information for FILE."""
    try:
        data = Command(str(file)).ffprobe()
    except FFCommandError as e:
        logger.debug("Probe of %s failed", file, exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(format_human(data))
