"""External tool lookup and capability listing parsers.

This module locates the ffmpeg, ffprobe and flvtool executables and parses
the text produced by `ffmpeg -version`, `-formats`, `-codecs`, `-encoders`
and `-filters` into the dataclasses from ffcommand.tools.models.
"""

import logging
import os
import platform
import re
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path

from ffcommand.tools.models import (
    CodecInfo,
    EncoderInfo,
    FFmpegVersion,
    FilterInfo,
    FormatInfo,
    StreamKind,
)

logger = logging.getLogger(__name__)

# Directories searched when a tool is neither configured nor on PATH
_FALLBACK_DIRS: tuple[Path, ...] = (
    Path("/usr/local/bin"),
    Path("/opt/homebrew/bin"),
    Path("/opt/local/bin"),
    Path("/usr/bin"),
)

_VERSION_PATTERN = re.compile(r"ffmpeg version (?:n)?(\d+)\.(\d+)(?:\.(\d+))?")

_FORMAT_PATTERN = re.compile(r"^\s*([D ])([E ])d?\s+([^ ]+)\s+(.*)$")

# Legacy layout: D E V|A|S S(draw_horiz_band) D(direct rendering) T(truncation)
_AVCODEC_PATTERN = re.compile(
    r"^\s*([D ])([E ])([VAS])([S ])([D ])([T ]) ([^ ]+) +(.*)$"
)
# Modern layout: D E V|A|S I(intra only) L(lossy) S(lossless)
_FFCODEC_PATTERN = re.compile(
    r"^\s*([D\.])([E\.])([VAS])([I\.])([L\.])([S\.]) ([^ ]+) +(.*)$"
)
_ENCODERS_IMPL = re.compile(r"\(encoders:([^\)]+)\)")
_DECODERS_IMPL = re.compile(r"\(decoders:([^\)]+)\)")

_ENCODER_PATTERN = re.compile(
    r"^\s*([VAS\.])([F\.])([S\.])([X\.])([B\.])([D\.]) ([^ ]+) +(.*)$"
)

_FILTER_PATTERN = re.compile(
    r"^(?: [T\.][S\.][C\.] )?([^ ]+) +(AA?|VV?|\|)->(AA?|VV?|\|) +(.*)$"
)

_TYPE_LETTERS: dict[str, StreamKind] = {
    "V": StreamKind.VIDEO,
    "A": StreamKind.AUDIO,
    "S": StreamKind.SUBTITLE,
}

_PAD_KINDS: dict[str, StreamKind] = {
    "A": StreamKind.AUDIO,
    "V": StreamKind.VIDEO,
    "|": StreamKind.NONE,
}


# =============================================================================
# Tool Lookup
# =============================================================================


def _executable_name(name: str) -> str:
    return f"{name}.exe" if platform.system() == "Windows" else name


def find_tool(
    names: Iterable[str],
    env_vars: Iterable[str] = (),
    configured_path: Path | None = None,
    extra_dirs: Iterable[Path] = (),
    env: Mapping[str, str] | None = None,
) -> Path | None:
    """Find a tool executable.

    Lookup order: environment variables (ignored when the file is missing),
    configured path, PATH lookup for each candidate name, then the extra
    and platform fallback directories.

    Args:
        names: Candidate executable names, in order of preference.
        env_vars: Environment variables that may hold an explicit path.
        configured_path: Optional path from the configuration file.
        extra_dirs: Additional directories to search before the fallbacks.
        env: Environment mapping (defaults to os.environ).

    Returns:
        Path to the executable, or None if not found.
    """
    env = os.environ if env is None else env
    names = list(names)

    for var in env_vars:
        value = env.get(var)
        if not value:
            continue
        candidate = Path(value).expanduser()
        if candidate.is_file():
            return candidate
        logger.debug("%s points to a missing file: %s", var, value)

    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning("Configured path is not a file: %s", configured_path)

    for name in names:
        which_result = shutil.which(name)
        if which_result:
            return Path(which_result)

    for directory in [*extra_dirs, *_FALLBACK_DIRS]:
        for name in names:
            candidate = directory / _executable_name(name)
            if candidate.is_file():
                return candidate

    return None


# =============================================================================
# Listing Parsers
# =============================================================================


def parse_version(output: str) -> FFmpegVersion | None:
    """Parse `ffmpeg -version` output.

    Handles release versions ("ffmpeg version 6.1.1"), two-part versions
    ("ffmpeg version 7.0") and git builds ("ffmpeg version n6.1").

    Returns:
        FFmpegVersion, or None if the banner cannot be parsed.
    """
    match = _VERSION_PATTERN.search(output)
    if not match:
        return None
    major, minor, patch = match.groups()
    full = f"{major}.{minor}" + (f".{patch}" if patch else "")
    return FFmpegVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch) if patch is not None else None,
        full=full,
    )


def parse_formats(output: str) -> dict[str, FormatInfo]:
    """Parse `ffmpeg -formats` output.

    Comma-separated names ("mov,mp4,m4a") produce one entry each; a format
    listed on several lines has its demux/mux flags merged.
    """
    formats: dict[str, FormatInfo] = {}
    for line in output.splitlines():
        match = _FORMAT_PATTERN.match(line)
        if not match:
            continue
        demux, mux, names, description = match.groups()
        for name in names.split(","):
            info = formats.setdefault(name, FormatInfo(description=description))
            info.can_demux = info.can_demux or demux == "D"
            info.can_mux = info.can_mux or mux == "E"
    return formats


def _add_implementations(
    codecs: dict[str, CodecInfo],
    base: CodecInfo,
    names: str,
    encode: bool,
) -> None:
    for impl in names.split():
        info = codecs.setdefault(
            impl, CodecInfo(type=base.type, description=base.description)
        )
        if encode:
            info.can_encode = True
        else:
            info.can_decode = True


def parse_codecs(output: str) -> dict[str, CodecInfo]:
    """Parse `ffmpeg -codecs` output, legacy or modern layout."""
    codecs: dict[str, CodecInfo] = {}
    for line in output.splitlines():
        match = _AVCODEC_PATTERN.match(line)
        if match and match.group(7) != "=":
            decode, encode, kind, hband, drender, trunc, name, description = (
                match.groups()
            )
            codecs[name] = CodecInfo(
                type=_TYPE_LETTERS[kind],
                description=description,
                can_decode=decode == "D",
                can_encode=encode == "E",
                draw_horiz_band=hband == "S",
                direct_rendering=drender == "D",
                weird_frame_truncation=trunc == "T",
            )
            continue

        match = _FFCODEC_PATTERN.match(line)
        if not match or match.group(7) == "=":
            continue
        decode, encode, kind, intra, lossy, lossless, name, description = (
            match.groups()
        )
        encoders_match = _ENCODERS_IMPL.search(description)
        decoders_match = _DECODERS_IMPL.search(description)
        description = _DECODERS_IMPL.sub("", _ENCODERS_IMPL.sub("", description))
        info = CodecInfo(
            type=_TYPE_LETTERS[kind],
            description=" ".join(description.split()),
            can_decode=decode == "D",
            can_encode=encode == "E",
            intra_frame_only=intra == "I",
            is_lossy=lossy == "L",
            is_lossless=lossless == "S",
        )
        codecs[name] = info
        if encoders_match:
            _add_implementations(codecs, info, encoders_match.group(1), encode=True)
        if decoders_match:
            _add_implementations(codecs, info, decoders_match.group(1), encode=False)
    return codecs


def parse_encoders(output: str) -> dict[str, EncoderInfo]:
    """Parse `ffmpeg -encoders` output."""
    encoders: dict[str, EncoderInfo] = {}
    for line in output.splitlines():
        match = _ENCODER_PATTERN.match(line)
        if not match or match.group(7) == "=":
            continue
        kind, frame_mt, slice_mt, experimental, hband, drm1, name, description = (
            match.groups()
        )
        if kind not in _TYPE_LETTERS:
            continue
        encoders[name] = EncoderInfo(
            type=_TYPE_LETTERS[kind],
            description=description,
            frame_mt=frame_mt == "F",
            slice_mt=slice_mt == "S",
            experimental=experimental == "X",
            draw_horiz_band=hband == "B",
            direct_rendering_method_1=drm1 == "D",
        )
    return encoders


def parse_filters(output: str) -> dict[str, FilterInfo]:
    """Parse `ffmpeg -filters` output."""
    filters: dict[str, FilterInfo] = {}
    for line in output.splitlines():
        match = _FILTER_PATTERN.match(line)
        if not match:
            continue
        name, inputs, outputs, description = match.groups()
        filters[name] = FilterInfo(
            description=description,
            input=_PAD_KINDS[inputs[0]],
            multiple_inputs=len(inputs) > 1,
            output=_PAD_KINDS[outputs[0]],
            multiple_outputs=len(outputs) > 1,
        )
    return filters
