"""JSON log formatting.

One JSON object per line, for log shippers. Fields passed with `extra=`
are grouped under "context"; the job id injected by JobContextFilter is
promoted to a top-level "job" field so entries of one job can be selected
without unpacking the context.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus those set by Formatter.format()
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
}

# Set by JobContextFilter
_JOB_ATTRS = frozenset({"job_id", "job_tag"})


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    Keys: timestamp (ISO-8601, UTC), level, logger, message, plus job,
    context and exception when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None)
        if job_id:
            entry["job"] = job_id

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _JOB_ATTRS
            and not key.startswith("_")
            and value is not None
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
