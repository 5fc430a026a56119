"""Fluent command builder.

A Command collects inputs, outputs and their options, assembles the ffmpeg
argument vector and runs it as a background Job:

    job = (
        Command("input.mkv")
        .video_codec("libx264")
        .audio_codec("aac")
        .size("1280x?")
        .on("progress", lambda p: print(p.percent))
        .save("output.mp4")
    )
    job.wait()

Configuration methods return the command itself; they mutate the current
(most recently added) input or output.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from ffcommand.command.aliases import resolve_alias
from ffcommand.command.arguments import build_arguments
from ffcommand.command.models import (
    Input,
    JobPlan,
    Output,
    Source,
    is_stream_like,
)
from ffcommand.command.presets import apply_preset
from ffcommand.command.sizing import (
    compute_size_filters,
    keep_dar_filters,
    parse_aspect,
)
from ffcommand.config.loader import get_config
from ffcommand.config.models import MAX_NICENESS, MIN_NICENESS
from ffcommand.core.filters import (
    FilterLike,
    join_filter_graph,
    normalize_stream_spec,
)
from ffcommand.core.options import OptionList
from ffcommand.errors import ConfigurationError
from ffcommand.executor.job import Job
from ffcommand.executor.process import (
    JobResult,
    ProcessControl,
    ProcessOrchestrator,
)
from ffcommand.introspector.ffprobe import probe
from ffcommand.introspector.parsers import get_duration
from ffcommand.tools.cache import CapabilityCache, get_default_cache
from ffcommand.tools.capabilities import check_capabilities
from ffcommand.tools.models import CodecInfo, EncoderInfo, FilterInfo, FormatInfo

EventHandler = Callable[..., Any]

DEFAULT_LOGGER_NAME = "ffcommand.command"


def _split_options(options: tuple[Any, ...]) -> list[Any]:
    """Turn option arguments into tokens.

    A single argument (or a single list) is split on one space, so that
    "-vtag DIVX" becomes two tokens; several arguments are kept verbatim.
    """
    if len(options) != 1:
        return list(options)

    values = options[0] if isinstance(options[0], (list, tuple)) else [options[0]]
    tokens: list[Any] = []
    for value in values:
        if isinstance(value, str):
            parts = value.split(" ")
            if len(parts) == 2:
                tokens.extend(parts)
                continue
        tokens.append(value)
    return tokens


def _flatten_filters(specs: tuple[Any, ...]) -> list[FilterLike]:
    if len(specs) == 1 and isinstance(specs[0], (list, tuple)):
        return list(specs[0])
    return list(specs)


def _bitrate(value: str | int) -> str:
    text = str(value)
    return text if text.endswith("k") else f"{text}k"


class EventEmitter:
    """Minimal synchronous event dispatcher.

    Handlers run in the thread that emits the event. Exceptions raised by a
    handler are logged and do not propagate to the emitter.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._handlers: dict[str, list[EventHandler]] = {}
        self._lock = threading.Lock()

    def on(self, event: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        with self._lock:
            if handler is None:
                self._handlers.pop(event, None)
                return
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event: str, *args: object) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            try:
                handler(*args)
            except Exception as e:
                self._logger.warning(
                    "Handler for %r event raised: %s",
                    event,
                    e,
                    exc_info=True,
                    extra={"event": event},
                )


class Command:
    """An ffmpeg invocation under construction.

    Args:
        source: Optional first input (path, URL or readable binary stream).
        cwd: Working directory for spawned processes.
        timeout: Maximum run time in seconds (None = configured default).
        niceness: Process priority adjustment (None = configured default).
        stdout_lines: Lines of output kept for error reports
            (None = configured default, 0 = unlimited).
        logger: Logger receiving command diagnostics.
        cache: Capability cache (defaults to the process-wide cache).
        presets_dir: Directory searched for preset files.
    """

    def __init__(
        self,
        source: Source | None = None,
        *,
        cwd: str | Path | None = None,
        timeout: float | None = None,
        niceness: int | None = None,
        stdout_lines: int | None = None,
        logger: logging.Logger | None = None,
        cache: CapabilityCache | None = None,
        presets_dir: str | Path | None = None,
    ) -> None:
        if None in (timeout, niceness, stdout_lines, presets_dir):
            run_config = get_config().run
            if timeout is None:
                timeout = run_config.timeout
            if niceness is None:
                niceness = run_config.niceness
            if stdout_lines is None:
                stdout_lines = run_config.stdout_lines
            if presets_dir is None:
                presets_dir = run_config.presets_dir

        self.cwd = cwd
        self.timeout = timeout
        self.niceness = niceness
        self.stdout_lines = stdout_lines
        self.presets_dir = Path(presets_dir) if presets_dir is not None else None
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.cache = cache or get_default_cache()

        self._inputs: list[Input] = []
        self._outputs: list[Output] = [Output()]
        self._global_options = OptionList()
        self._complex_filters = OptionList()
        self._events = EventEmitter(self.logger)
        self._ffprobe_data: dict[str, Any] | None = None
        self._job: Job | None = None

        if source is not None:
            self.input(source)

    def __getattr__(self, name: str) -> Any:
        canonical = resolve_alias(name)
        if canonical is None:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            )
        return getattr(self, canonical)

    def __repr__(self) -> str:
        return (
            f"<Command inputs={len(self._inputs)} outputs={len(self._outputs)}>"
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def inputs(self) -> list[Input]:
        """Inputs in declaration order."""
        return list(self._inputs)

    @property
    def outputs(self) -> list[Output]:
        """Outputs in declaration order."""
        return list(self._outputs)

    @property
    def current_input(self) -> Input | None:
        return self._inputs[-1] if self._inputs else None

    @property
    def current_output(self) -> Output:
        return self._outputs[-1]

    @property
    def global_option_list(self) -> OptionList:
        return self._global_options

    @property
    def complex_filters(self) -> OptionList:
        return self._complex_filters

    @property
    def ffprobe_data(self) -> dict[str, Any] | None:
        """Data from the last ffprobe() call, if any."""
        return self._ffprobe_data

    @property
    def job(self) -> Job | None:
        """The most recently started job."""
        return self._job

    def _require_input(self) -> Input:
        if not self._inputs:
            raise ConfigurationError("No input specified")
        return self._inputs[-1]

    # =========================================================================
    # Events
    # =========================================================================

    def on(self, event: str, handler: EventHandler) -> Command:
        """Register `handler` for `event`."""
        self._events.on(event, handler)
        return self

    def off(self, event: str, handler: EventHandler | None = None) -> Command:
        """Remove `handler` (or every handler) for `event`."""
        self._events.off(event, handler)
        return self

    def emit(self, event: str, *args: object) -> None:
        self._events.emit(event, *args)

    # =========================================================================
    # Inputs
    # =========================================================================

    def input(self, source: Source) -> Command:
        """Add an input: a path, URL or readable binary stream.

        Raises:
            ConfigurationError: If the source is invalid, or if it is a
                stream and a stream input already exists.
        """
        if not is_stream_like(source) and not isinstance(source, (str, os.PathLike)):
            raise ConfigurationError("Invalid input")

        inp = Input.from_source(source)
        if inp.is_stream and any(i.is_stream for i in self._inputs):
            raise ConfigurationError("Only one input stream is supported")

        self._inputs.append(inp)
        return self

    def input_options(self, *options: Any) -> Command:
        self._require_input().options.append(_split_options(options))
        return self

    def input_format(self, fmt: str) -> Command:
        self._require_input().options.append("-f", fmt)
        return self

    def input_fps(self, fps: float) -> Command:
        self._require_input().options.append("-r", fps)
        return self

    def native(self) -> Command:
        """Read the input at its native frame rate."""
        self._require_input().options.append("-re")
        return self

    def seek_input(self, seek: str | float) -> Command:
        self._require_input().options.append("-ss", seek)
        return self

    def loop(self, duration: str | float | None = None) -> Command:
        """Loop the current input (an image), optionally for `duration`."""
        self._require_input().options.append("-loop", "1")
        if duration is not None:
            self.duration(duration)
        return self

    # =========================================================================
    # Outputs
    # =========================================================================

    def output(self, target: Source | None = None, *, end: bool = True) -> Command:
        """Add an output, or attach a target to the current untargeted one.

        Args:
            target: Output path, URL or writable binary stream. None adds
                an output written to stdout.
            end: Close a stream target when the job ends.

        Raises:
            ConfigurationError: If the target is invalid, or if it is a
                stream and a stream output already exists.
        """
        if target is None:
            self._outputs.append(Output())
            return self

        if not is_stream_like(target) and not isinstance(target, (str, os.PathLike)):
            raise ConfigurationError("Invalid output")
        if is_stream_like(target) and any(o.is_stream for o in self._outputs):
            raise ConfigurationError("Only one output stream is supported")

        if self.current_output.target is None:
            self.current_output.set_target(target, end=end)
        else:
            output = Output()
            output.set_target(target, end=end)
            self._outputs.append(output)
        return self

    def output_options(self, *options: Any) -> Command:
        self.current_output.options.append(_split_options(options))
        return self

    def global_options(self, *options: Any) -> Command:
        self._global_options.append(_split_options(options))
        return self

    def format(self, fmt: str) -> Command:
        self.current_output.options.append("-f", fmt)
        return self

    def duration(self, duration: str | float) -> Command:
        self.current_output.options.append("-t", duration)
        return self

    def seek(self, seek: str | float) -> Command:
        self.current_output.options.append("-ss", seek)
        return self

    def map(self, spec: str) -> Command:
        self.current_output.options.append("-map", normalize_stream_spec(spec))
        return self

    def update_flv_metadata(self) -> Command:
        """Run flvmeta/flvtool2 on the output file once ffmpeg is done."""
        self.current_output.flags["flvmeta"] = True
        return self

    # =========================================================================
    # Audio
    # =========================================================================

    def no_audio(self) -> Command:
        output = self.current_output
        output.audio.clear()
        output.audio_filters.clear()
        output.audio.append("-an")
        return self

    def audio_codec(self, codec: str) -> Command:
        self.current_output.audio.append("-acodec", codec)
        return self

    def audio_bitrate(self, bitrate: str | int) -> Command:
        self.current_output.audio.append("-b:a", _bitrate(bitrate))
        return self

    def audio_channels(self, channels: int) -> Command:
        self.current_output.audio.append("-ac", channels)
        return self

    def audio_frequency(self, frequency: int) -> Command:
        self.current_output.audio.append("-ar", frequency)
        return self

    def audio_quality(self, quality: int | float) -> Command:
        self.current_output.audio.append("-aq", quality)
        return self

    def audio_filters(self, *specs: Any) -> Command:
        """Append audio filters (strings, dicts or FilterSpecs, or one list)."""
        self.current_output.audio_filters.append(_flatten_filters(specs))
        return self

    # =========================================================================
    # Video
    # =========================================================================

    def no_video(self) -> Command:
        output = self.current_output
        output.video.clear()
        output.video_filters.clear()
        output.video.append("-vn")
        return self

    def video_codec(self, codec: str) -> Command:
        self.current_output.video.append("-vcodec", codec)
        return self

    def video_bitrate(self, bitrate: str | int, constant: bool = False) -> Command:
        """Set the video bitrate; `constant` also pins max/min rate and buffer."""
        value = _bitrate(bitrate)
        video = self.current_output.video
        video.append("-b:v", value)
        if constant:
            video.append("-maxrate", value, "-minrate", value, "-bufsize", value)
        return self

    def fps(self, fps: float) -> Command:
        self.current_output.video.append("-r", fps)
        return self

    def frames(self, frames: int) -> Command:
        self.current_output.video.append("-vframes", frames)
        return self

    def video_filters(self, *specs: Any) -> Command:
        """Append video filters (strings, dicts or FilterSpecs, or one list)."""
        self.current_output.video_filters.append(_flatten_filters(specs))
        return self

    # =========================================================================
    # Size
    # =========================================================================

    def _update_size_data(self, key: str, value: Any) -> None:
        output = self.current_output
        size_data = {**output.size_data, key: value}
        filters = compute_size_filters(size_data)
        output.size_data = size_data
        output.size_filters.clear()
        output.size_filters.append(filters)

    def size(self, size: str) -> Command:
        """Request an output size: "WxH", "Wx?", "?xH" or "NN%"."""
        self._update_size_data("size", size)
        return self

    def aspect(self, aspect: str | float) -> Command:
        """Request an aspect ratio, as a number or "N:M"."""
        self._update_size_data("aspect", parse_aspect(aspect))
        return self

    def autopad(self, pad: bool | str = True, color: str = "black") -> Command:
        """Letterbox to the requested size; `pad` may also be the color."""
        if isinstance(pad, str):
            color, pad = pad, True
        self._update_size_data("pad", color if pad else False)
        return self

    def keep_dar(self) -> Command:
        """Scale to square pixels, keeping the display aspect ratio."""
        self.current_output.video_filters.append(keep_dar_filters())
        return self

    # =========================================================================
    # Misc
    # =========================================================================

    def complex_filter(
        self,
        spec: FilterLike | list[FilterLike],
        map: str | list[str] | None = None,
    ) -> Command:
        """Replace the complex filter graph.

        Args:
            spec: One filter or a list of filters, joined with ";".
            map: Output stream label(s) to map.
        """
        self._complex_filters.clear()
        specs = spec if isinstance(spec, (list, tuple)) else [spec]
        self._complex_filters.append("-filter_complex", join_filter_graph(specs))

        if map is not None:
            for stream in [map] if isinstance(map, str) else map:
                self._complex_filters.append("-map", normalize_stream_spec(stream))
        return self

    def preset(self, preset: str | Callable[[Command], Any]) -> Command:
        """Apply a preset by name, file path or callable.

        Raises:
            ConfigurationError: If the preset cannot be loaded.
        """
        apply_preset(self, preset, self.presets_dir)
        return self

    def renice(self, niceness: int = 0) -> Command:
        """Set the process priority, clamped to -20..20."""
        self.niceness = max(MIN_NICENESS, min(MAX_NICENESS, int(niceness)))
        return self

    def clone(self) -> Command:
        """Copy this command's configuration.

        Inputs share their source. When the first output already has a
        target the clone starts with a fresh output; otherwise it inherits
        the current output's options.
        """
        copy = Command(
            cwd=self.cwd,
            timeout=self.timeout,
            niceness=self.niceness,
            stdout_lines=self.stdout_lines,
            logger=self.logger,
            cache=self.cache,
            presets_dir=self.presets_dir,
        )
        copy.timeout = self.timeout
        copy.presets_dir = self.presets_dir
        copy._inputs = [inp.clone() for inp in self._inputs]
        if self._outputs[0].target is not None:
            copy._outputs = [Output()]
        else:
            copy._outputs = [self.current_output.clone_options()]
        copy._global_options = self._global_options.clone()
        copy._complex_filters = self._complex_filters.clone()
        copy._ffprobe_data = self._ffprobe_data
        return copy

    def get_arguments(self) -> list[str]:
        """Return the ffmpeg argument vector (without the executable)."""
        return build_arguments(
            self._inputs, self._outputs, self._global_options, self._complex_filters
        )

    # =========================================================================
    # Capabilities
    # =========================================================================

    def set_ffmpeg_path(self, path: str | Path) -> Command:
        self.cache.set_ffmpeg_path(path)
        return self

    def set_ffprobe_path(self, path: str | Path) -> Command:
        self.cache.set_ffprobe_path(path)
        return self

    def set_flvtool_path(self, path: str | Path) -> Command:
        self.cache.set_flvtool_path(path)
        return self

    def available_formats(self) -> dict[str, FormatInfo]:
        return self.cache.available_formats()

    def available_codecs(self) -> dict[str, CodecInfo]:
        return self.cache.available_codecs()

    def available_encoders(self) -> dict[str, EncoderInfo]:
        return self.cache.available_encoders()

    def available_filters(self) -> dict[str, FilterInfo]:
        return self.cache.available_filters()

    # =========================================================================
    # Probing
    # =========================================================================

    def ffprobe(
        self, index: int | None = None, options: list[str] | None = None
    ) -> dict[str, Any]:
        """Probe the current input, or the input at `index`.

        The result is kept so progress events can report a percentage.

        Raises:
            ConfigurationError: If there is no such input.
            ProbeError: If ffprobe fails.
        """
        if not self._inputs:
            raise ConfigurationError("No input specified")
        if index is None:
            inp = self._inputs[-1]
        elif 0 <= index < len(self._inputs):
            inp = self._inputs[index]
        else:
            raise ConfigurationError("Invalid input index")

        data = probe(
            inp.source,
            ffprobe_path=self.cache.get_ffprobe_path(),
            extra_options=options or (),
            is_stream=inp.is_stream,
            timeout=self.timeout,
            cwd=self.cwd,
        )
        self._ffprobe_data = data
        return data

    # =========================================================================
    # Processing
    # =========================================================================

    def _plan(self) -> JobPlan:
        inputs = [inp.clone() for inp in self._inputs]
        outputs = [output.clone() for output in self._outputs]
        arguments = build_arguments(
            inputs, outputs, self._global_options, self._complex_filters
        )
        return JobPlan(inputs=inputs, outputs=outputs, arguments=arguments)

    def run(self) -> Job:
        """Start ffmpeg in a background job.

        Inputs, outputs and arguments are frozen when run() is called. The
        capability check and the process run inside the job; failures are
        reported through the "error" event and Job.wait(). A stream output
        the job owns is closed however the job ends.
        """
        plan = self._plan()
        duration = get_duration(self._ffprobe_data) if self._ffprobe_data else None
        orchestrator = ProcessOrchestrator(
            self.cache,
            cwd=self.cwd,
            timeout=self.timeout,
            niceness=self.niceness,
            stdout_lines=self.stdout_lines,
        )

        def runner(control: ProcessControl) -> JobResult:
            try:
                check_capabilities(plan, self.cache)
                return orchestrator.execute(
                    plan.arguments,
                    inputs=plan.inputs,
                    outputs=plan.outputs,
                    events=self._events,
                    duration=duration,
                    control=control,
                )
            except Exception:
                plan.close_streams()
                raise

        self._job = Job(runner, self._events)
        self.logger.debug("Starting job %s", self._job.job_id)
        return self._job.start()

    def save(self, target: str | Path) -> Job:
        """Write the current output to `target` and run."""
        return self.output(target).run()

    def stream(
        self, target: IO[bytes] | None = None, *, end: bool = True
    ) -> Job | tuple[IO[bytes], Job]:
        """Run with the output written to a binary stream.

        Args:
            target: Writable stream. When None a pipe is created and its
                readable end is returned with the job.
            end: Close `target` when the job ends.

        Returns:
            The Job, or (reader, Job) when no target was given.
        """
        if target is None:
            if any(o.is_stream for o in self._outputs):
                raise ConfigurationError("Only one output stream is supported")
            read_fd, write_fd = os.pipe()
            reader = os.fdopen(read_fd, "rb")
            writer = os.fdopen(write_fd, "wb")
            try:
                return reader, self.output(writer, end=True).run()
            except Exception:
                reader.close()
                writer.close()
                raise
        return self.output(target, end=end).run()

    def kill(self, signal: str = "SIGKILL") -> Command:
        """Kill the running job, if any."""
        if self._job is None:
            self.logger.warning("No job to kill")
        else:
            self._job.kill(signal)
        return self

    def screenshots(
        self, config: Any = None, folder: str | Path | None = None
    ) -> Job:
        """Extract frames at timemarks; see ffcommand.recipes.screenshots."""
        from ffcommand.recipes.screenshots import take_screenshots

        return take_screenshots(self, config, folder)

    def merge_to_file(self, target: Source, *, end: bool = True) -> Job:
        """Concatenate every input into `target`; see ffcommand.recipes.merge."""
        from ffcommand.recipes.merge import merge_to_file

        return merge_to_file(self, target, end=end)
