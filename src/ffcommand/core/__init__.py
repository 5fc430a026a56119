"""Core utilities package.

Pure helpers with no dependency on the rest of ffcommand: option token
lists, filter graph compilation, the bounded output buffer, timemark
arithmetic and subprocess invocation.
"""

from ffcommand.core.filters import (
    FilterSpec,
    compile_filter,
    escape_filter_option,
    join_filter_graph,
    make_filter_strings,
    normalize_stream_spec,
)
from ffcommand.core.options import OptionList
from ffcommand.core.ring import Ring
from ffcommand.core.subprocess_utils import run_command
from ffcommand.core.timemarks import (
    format_number,
    is_percent_timemark,
    round_even,
    timemark_to_seconds,
)

__all__ = [
    # filters
    "FilterSpec",
    "compile_filter",
    "escape_filter_option",
    "join_filter_graph",
    "make_filter_strings",
    "normalize_stream_spec",
    # options
    "OptionList",
    # ring
    "Ring",
    # subprocess
    "run_command",
    # timemarks
    "format_number",
    "is_percent_timemark",
    "round_even",
    "timemark_to_seconds",
]
