"""Command building: inputs, outputs, options and argument assembly."""

from ffcommand.command.aliases import ALIASES, resolve_alias
from ffcommand.command.arguments import build_arguments
from ffcommand.command.command import Command, EventEmitter
from ffcommand.command.models import Input, JobPlan, Output
from ffcommand.command.presets import BUILTIN_PRESETS, PresetError, apply_preset
from ffcommand.command.sizing import compute_size_filters, parse_aspect

__all__ = [
    "ALIASES",
    "BUILTIN_PRESETS",
    "Command",
    "EventEmitter",
    "Input",
    "JobPlan",
    "Output",
    "PresetError",
    "apply_preset",
    "build_arguments",
    "compute_size_filters",
    "parse_aspect",
    "resolve_alias",
]
