"""Command-line assembly.

The argument vector is built in a fixed order:

    <input options> -i <input>        (per input)
    <complex filter tokens>
    <global options>
    <output options> <audio> <video>  (per output)
    [-filter:a <chain>] [-filter:v <chain>] <target>
"""

from __future__ import annotations

from collections.abc import Sequence

from ffcommand.command.models import Input, Output
from ffcommand.core.filters import make_filter_strings
from ffcommand.core.options import OptionList


def _tokens(options: OptionList) -> list[str]:
    return [str(token) for token in options]


def output_arguments(output: Output, *, include_target: bool) -> list[str]:
    """Arguments contributed by a single output."""
    args = _tokens(output.options) + _tokens(output.audio) + _tokens(output.video)

    audio_filters = make_filter_strings(output.audio_filters)
    if audio_filters:
        args += ["-filter:a", ",".join(audio_filters)]

    video_filters = make_filter_strings(output.video_filters) + make_filter_strings(
        output.size_filters
    )
    if video_filters:
        args += ["-filter:v", ",".join(video_filters)]

    if include_target:
        args.append(output.argument)
    return args


def build_arguments(
    inputs: Sequence[Input],
    outputs: Sequence[Output],
    global_options: OptionList,
    complex_filters: OptionList,
) -> list[str]:
    """Assemble the ffmpeg argument vector (without the executable).

    An output's target token is emitted when a target was set, when the
    output carries any option or filter, or when it is the only output
    and no complex filter graph is in effect.

    Args:
        inputs: Inputs in declaration order.
        outputs: Outputs in declaration order.
        global_options: Options placed after the complex filters.
        complex_filters: `-filter_complex` and `-map` tokens.

    Returns:
        List of string arguments.
    """
    args: list[str] = []

    for inp in inputs:
        args += _tokens(inp.options)
        args += ["-i", inp.argument]

    args += _tokens(complex_filters)
    args += _tokens(global_options)

    sole_default = len(outputs) == 1 and not complex_filters
    for output in outputs:
        include_target = (
            output.target is not None or output.has_content() or sole_default
        )
        args += output_arguments(output, include_target=include_target)

    return args
