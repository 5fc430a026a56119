"""Structured logging module for ffcommand.

Provides configurable logging with JSON format support and file rotation,
plus per-job context injection.
"""

from ffcommand.logging.config import configure_logging
from ffcommand.logging.context import JobContextFilter, get_job_id, job_context
from ffcommand.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "configure_logging",
    "get_job_id",
    "job_context",
]
