"""Pre-flight capability negotiation.

Before any ffmpeg process is spawned, the formats and codecs requested by a
command are checked against what the local ffmpeg build reports, so that an
unsupported request fails fast with a readable message instead of an
ffmpeg error halfway through a job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ffcommand.errors import CapabilityError
from ffcommand.tools.models import StreamKind

if TYPE_CHECKING:
    from ffcommand.command.command import Command
    from ffcommand.command.models import JobPlan
    from ffcommand.tools.cache import CapabilityCache

logger = logging.getLogger(__name__)


def _violation_message(kind: str, names: list[str]) -> str:
    if len(names) == 1:
        return f"{kind} {names[0]} is not available"
    return f"{kind}s {', '.join(names)} are not available"


def _check_formats(command: Command | JobPlan, cache: CapabilityCache) -> None:
    wanted_outputs = [
        fmt[0]
        for output in command.outputs
        if (fmt := output.options.find("-f", 1))
    ]
    wanted_inputs = [
        fmt[0] for inp in command.inputs if (fmt := inp.options.find("-f", 1))
    ]
    if not wanted_outputs and not wanted_inputs:
        return

    formats = cache.available_formats()

    unavailable = [
        name
        for name in wanted_outputs
        if name not in formats or not formats[name].can_mux
    ]
    if unavailable:
        raise CapabilityError(_violation_message("Output format", unavailable))

    unavailable = [
        name
        for name in wanted_inputs
        if name not in formats or not formats[name].can_demux
    ]
    if unavailable:
        raise CapabilityError(_violation_message("Input format", unavailable))


def _check_encoders(command: Command | JobPlan, cache: CapabilityCache) -> None:
    wanted_audio: list[str] = []
    wanted_video: list[str] = []
    for output in command.outputs:
        acodec = output.audio.find("-acodec", 1)
        if acodec and acodec[0] != "copy":
            wanted_audio.append(acodec[0])
        vcodec = output.video.find("-vcodec", 1)
        if vcodec and vcodec[0] != "copy":
            wanted_video.append(vcodec[0])
    if not wanted_audio and not wanted_video:
        return

    encoders = cache.available_encoders()

    unavailable = [
        name
        for name in wanted_audio
        if name not in encoders or encoders[name].type != StreamKind.AUDIO
    ]
    if unavailable:
        raise CapabilityError(_violation_message("Audio codec", unavailable))

    unavailable = [
        name
        for name in wanted_video
        if name not in encoders or encoders[name].type != StreamKind.VIDEO
    ]
    if unavailable:
        raise CapabilityError(_violation_message("Video codec", unavailable))


def check_capabilities(command: Command | JobPlan, cache: CapabilityCache) -> None:
    """Verify that every requested format and encoder is available.

    Output formats are checked before input formats, and both before
    audio and video encoders. The codec name "copy" is always accepted.

    Args:
        command: Command, or the JobPlan of a starting job, whose inputs
            and outputs are inspected.
        cache: Capability cache used for the format and encoder tables.

    Raises:
        CapabilityError: On the first category with unavailable entries.
    """
    _check_formats(command, cache)
    _check_encoders(command, cache)
    logger.debug("Capability check passed")
