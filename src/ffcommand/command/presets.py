"""Command presets.

A preset is a reusable bundle of settings applied to a command. Three are
built in (divx, flashvideo, podcast); others are YAML files listing the
calls to make, in order:

    # presets/webm.yaml
    - format: webm
    - video_codec: libvpx-vp9
    - video_bitrate: 1500k
    - size: 1280x?
    - audio_codec: libopus
    - output_options: ["-deadline", "good"]

Each entry maps one Command method (or alias) to its arguments: a scalar
is passed as the single argument, a list positionally and a mapping as
keyword arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ffcommand.errors import ConfigurationError

if TYPE_CHECKING:
    from ffcommand.command.command import Command

logger = logging.getLogger(__name__)

PRESET_SUFFIXES = (".yaml", ".yml")


class PresetError(ConfigurationError):
    """Raised when a preset file is malformed."""

    pass


def divx(command: Command) -> None:
    """DivX AVI: MPEG-4 video at 1024k, 128k stereo MP3 audio."""
    (
        command.format("avi")
        .video_bitrate("1024k")
        .video_codec("mpeg4")
        .size("720x?")
        .audio_bitrate("128k")
        .audio_channels(2)
        .audio_codec("libmp3lame")
        .output_options(["-vtag DIVX"])
    )


def flashvideo(command: Command) -> None:
    """Flash video: 320px wide H.264 at 24fps with AAC audio."""
    (
        command.format("flv")
        .update_flv_metadata()
        .size("320x?")
        .video_bitrate("512k")
        .video_codec("libx264")
        .fps(24)
        .audio_bitrate("96k")
        .audio_codec("aac")
        .audio_frequency(22050)
        .audio_channels(2)
    )


def podcast(command: Command) -> None:
    """Podcast video: small H.264 M4V with mono AAC audio."""
    (
        command.format("m4v")
        .video_bitrate("512k")
        .video_codec("libx264")
        .size("320x176")
        .audio_bitrate("128k")
        .audio_codec("aac")
        .audio_channels(1)
    )


BUILTIN_PRESETS: dict[str, Callable[[Command], None]] = {
    "divx": divx,
    "flashvideo": flashvideo,
    "podcast": podcast,
}


def find_preset_file(name: str, presets_dir: Path | None) -> Path:
    """Locate a preset file by absolute path or by name in `presets_dir`.

    Raises:
        PresetError: If no matching file exists.
    """
    candidate = Path(name).expanduser()
    if candidate.is_absolute():
        if candidate.is_file():
            return candidate
        raise PresetError(f"Preset file not found: {candidate}")

    if presets_dir is None:
        raise PresetError("No presets directory configured")

    base = Path(presets_dir).expanduser() / name
    for path in (base, *(base.with_name(base.name + s) for s in PRESET_SUFFIXES)):
        if path.is_file():
            return path
    raise PresetError(f"Preset file not found in {presets_dir}")


def load_preset_file(path: Path) -> list[tuple[str, Any]]:
    """Parse a YAML preset into (method, arguments) pairs.

    Raises:
        PresetError: If the file is unreadable or not a list of
            single-key mappings.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PresetError(f"Invalid YAML: {e}") from e
    except OSError as e:
        raise PresetError(f"Cannot read file: {e}") from e

    if not isinstance(data, list):
        raise PresetError("Preset must be a list of steps")

    steps: list[tuple[str, Any]] = []
    for index, entry in enumerate(data):
        if isinstance(entry, str):
            steps.append((entry, None))
            continue
        if not isinstance(entry, dict) or len(entry) != 1:
            raise PresetError(f"Step {index} must be a single-key mapping")
        ((method, args),) = entry.items()
        steps.append((str(method), args))
    return steps


def apply_steps(command: Command, steps: list[tuple[str, Any]]) -> None:
    """Call each step's method on `command`.

    Raises:
        PresetError: If a step names an unknown method.
    """
    for method_name, args in steps:
        if method_name.startswith("_"):
            raise PresetError(f"Unknown preset method: {method_name}")
        try:
            method = getattr(command, method_name)
        except AttributeError:
            raise PresetError(f"Unknown preset method: {method_name}") from None

        if args is None:
            method()
        elif isinstance(args, dict):
            method(**args)
        elif isinstance(args, list):
            method(*args)
        else:
            method(args)


def apply_preset(
    command: Command,
    preset: str | Callable[[Command], Any],
    presets_dir: Path | None = None,
) -> None:
    """Apply a callable, built-in or file preset to `command`.

    Raises:
        ConfigurationError: If the preset cannot be loaded or applied.
    """
    if callable(preset):
        preset(command)
        return

    if preset in BUILTIN_PRESETS:
        BUILTIN_PRESETS[preset](command)
        return

    try:
        path = find_preset_file(preset, presets_dir)
        logger.debug("Loading preset %s from %s", preset, path)
        apply_steps(command, load_preset_file(path))
    except (ConfigurationError, TypeError) as e:
        raise ConfigurationError(f"preset {preset} could not be loaded: {e}") from e
