"""Concatenation of file inputs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ffcommand.core.filters import FilterSpec
from ffcommand.errors import ConfigurationError

if TYPE_CHECKING:
    from ffcommand.command.command import Command
    from ffcommand.command.models import Source
    from ffcommand.executor.job import Job

logger = logging.getLogger(__name__)


def merge_to_file(command: Command, target: Source, *, end: bool = True) -> Job:
    """Concatenate every input of `command` into `target`.

    The first input is probed to decide whether the concat filter carries
    an audio stream, a video stream or both.

    Args:
        command: Command whose inputs are all files.
        target: Output path or writable binary stream.
        end: Close a stream target when the job ends.

    Returns:
        The started Job.

    Raises:
        ConfigurationError: If there are no inputs or any input is a stream.
        ProbeError: If the first input cannot be probed.
    """
    inputs = command.inputs
    if any(inp.is_stream for inp in inputs):
        raise ConfigurationError("Cannot merge streams, only files can be merged")
    if not inputs:
        raise ConfigurationError("No input specified")

    streams = command.ffprobe(0).get("streams", [])
    has_audio = any(s.get("codec_type") == "audio" for s in streams)
    has_video = any(s.get("codec_type") == "video" for s in streams)
    logger.debug(
        "Merging %d inputs (audio=%s, video=%s)", len(inputs), has_audio, has_video
    )

    return (
        command.output(target, end=end)
        .complex_filter(
            FilterSpec(
                filter="concat",
                options={
                    "n": len(inputs),
                    "v": 1 if has_video else 0,
                    "a": 1 if has_audio else 0,
                },
            )
        )
        .run()
    )
