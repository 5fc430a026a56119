"""Process execution: orchestration of ffmpeg runs and background jobs."""

from ffcommand.executor.flvtool import update_flv_metadata
from ffcommand.executor.job import Job
from ffcommand.executor.process import (
    JobResult,
    ProcessControl,
    ProcessOrchestrator,
)

__all__ = [
    "Job",
    "JobResult",
    "ProcessControl",
    "ProcessOrchestrator",
    "update_flv_metadata",
]
