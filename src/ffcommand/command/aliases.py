"""Alternative names accepted by Command.

Every alias resolves to exactly one canonical method. The historical
camelCase names are kept so existing call sites keep working.
"""

_CANONICAL_ALIASES: dict[str, tuple[str, ...]] = {
    # Inputs
    "input": ("addInput", "mergeAdd", "add_input", "merge_add"),
    "input_options": (
        "addInputOption",
        "addInputOptions",
        "withInputOption",
        "withInputOptions",
        "inputOption",
        "inputOptions",
        "input_option",
    ),
    "input_format": ("withInputFormat", "inputFormat", "fromFormat"),
    "input_fps": (
        "withInputFps",
        "withInputFPS",
        "withFpsInput",
        "withFPSInput",
        "inputFPS",
        "inputFps",
        "fpsInput",
        "FPSInput",
    ),
    "native": ("nativeFramerate", "withNativeFramerate"),
    "seek_input": ("setStartTime", "seekInput"),
    # Outputs
    "output": ("addOutput", "add_output"),
    "output_options": (
        "addOutputOption",
        "addOutputOptions",
        "addOption",
        "addOptions",
        "withOutputOption",
        "withOutputOptions",
        "withOption",
        "withOptions",
        "outputOption",
        "outputOptions",
        "output_option",
    ),
    "global_options": ("globalOptions", "globalOption", "global_option"),
    "format": ("withOutputFormat", "toFormat"),
    "duration": ("withDuration", "setDuration"),
    "seek": ("seekOutput",),
    "update_flv_metadata": ("updateFlvMetadata", "flvmeta"),
    # Audio
    "no_audio": ("withNoAudio", "noAudio"),
    "audio_codec": ("withAudioCodec", "audioCodec"),
    "audio_bitrate": ("withAudioBitrate", "audioBitrate"),
    "audio_channels": ("withAudioChannels", "audioChannels"),
    "audio_frequency": ("withAudioFrequency", "audioFrequency"),
    "audio_quality": ("withAudioQuality", "audioQuality"),
    "audio_filters": (
        "withAudioFilter",
        "withAudioFilters",
        "addAudioFilter",
        "addAudioFilters",
        "audioFilter",
        "audioFilters",
        "audio_filter",
    ),
    # Video
    "no_video": ("withNoVideo", "noVideo"),
    "video_codec": ("withVideoCodec", "videoCodec"),
    "video_bitrate": ("withVideoBitrate", "videoBitrate"),
    "fps": (
        "withOutputFps",
        "withOutputFPS",
        "withFpsOutput",
        "withFPSOutput",
        "withFps",
        "withFPS",
        "outputFPS",
        "outputFps",
        "fpsOutput",
        "FPSOutput",
        "FPS",
    ),
    "frames": ("takeFrames", "withFrames"),
    "video_filters": (
        "withVideoFilter",
        "withVideoFilters",
        "addVideoFilter",
        "addVideoFilters",
        "videoFilter",
        "videoFilters",
        "video_filter",
    ),
    # Size
    "size": ("withSize", "setSize"),
    "aspect": (
        "withAspect",
        "withAspectRatio",
        "setAspect",
        "setAspectRatio",
        "aspectRatio",
        "aspect_ratio",
    ),
    "autopad": (
        "applyAutopadding",
        "applyAutoPadding",
        "applyAutopad",
        "applyAutoPad",
        "withAutopadding",
        "withAutoPadding",
        "withAutopad",
        "withAutoPad",
        "autoPad",
    ),
    "keep_dar": (
        "keepPixelAspect",
        "keepDisplayAspect",
        "keepDisplayAspectRatio",
        "keepDAR",
    ),
    # Misc
    "complex_filter": ("filterGraph", "complexFilter", "filter_graph"),
    "preset": ("usingPreset",),
    "renice": ("priority",),
    "get_arguments": ("_getArguments", "_get_arguments"),
    # Capabilities
    "set_ffmpeg_path": ("setFfmpegPath",),
    "set_ffprobe_path": ("setFfprobePath",),
    "set_flvtool_path": ("setFlvtoolPath",),
    "available_formats": ("availableFormats", "getAvailableFormats"),
    "available_codecs": ("availableCodecs", "getAvailableCodecs"),
    "available_encoders": ("availableEncoders", "getAvailableEncoders"),
    "available_filters": ("availableFilters", "getAvailableFilters"),
    # Processing
    "save": ("saveToFile", "save_to_file"),
    "stream": ("pipe", "writeToStream", "write_to_stream"),
    "screenshots": (
        "takeScreenshots",
        "take_screenshots",
        "screenshot",
        "thumbnail",
        "thumbnails",
    ),
    "merge_to_file": ("mergeToFile", "concat", "concatenate"),
}

ALIASES: dict[str, str] = {
    alias: canonical
    for canonical, aliases in _CANONICAL_ALIASES.items()
    for alias in aliases
}


def resolve_alias(name: str) -> str | None:
    """Return the canonical method name for `name`, or None."""
    return ALIASES.get(name)
