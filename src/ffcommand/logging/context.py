"""Job context for structured logging.

Provides context propagation for job threads using contextvars, enabling
automatic injection of the job id into every log record emitted while a
job runs.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)


def get_job_id() -> str | None:
    """Return the id of the job running in the current context, if any."""
    return _job_id.get()


@contextmanager
def job_context(job_id: str) -> Generator[None, None, None]:
    """Context manager marking the current thread as running `job_id`.

    Example:
        with job_context("J0001"):
            logger.info("Spawning ffmpeg")  # record.job_id == "J0001"
    """
    token = _job_id.set(job_id)
    try:
        yield
    finally:
        _job_id.reset(token)


class JobContextFilter(logging.Filter):
    """Logging filter that injects the current job id into log records.

    Adds `job_id` for JSON output and a compact `job_tag` ("[J0001] ") for
    the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject job context into log record.

        Returns:
            Always True (does not filter, only enriches).
        """
        job_id = _job_id.get()
        record.job_id = job_id
        record.job_tag = f"[{job_id}] " if job_id else ""
        return True
