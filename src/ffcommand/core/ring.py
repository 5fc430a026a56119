"""Bounded line buffer for process output."""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

LineCallback = Callable[[str], None]


class Ring:
    """Line-oriented buffer retaining only the most recent output.

    Chunks arrive in arbitrary pieces; completed lines are pushed to
    subscribers as soon as their terminator is seen, while the trailing
    unterminated segment is kept as a pending partial line. When `max_lines`
    is non-zero, the oldest complete lines are discarded so that the
    retained lines plus the pending partial never exceed the limit.

    Example:
        >>> ring = Ring(2)
        >>> ring.append("foo\\nbar\\nbaz")
        >>> ring.get()
        'bar\\nbaz'
    """

    def __init__(self, max_lines: int = 0) -> None:
        self.max_lines = max(0, int(max_lines))
        self._lines: deque[str] = deque()
        self._partial = ""
        self._callbacks: list[LineCallback] = []
        self._closed = False

    def append(self, chunk: str | bytes) -> None:
        """Add a chunk of output.

        Args:
            chunk: Text or UTF-8 bytes. Undecodable bytes are replaced.
        """
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8", errors="replace")
        if not chunk:
            return

        self._closed = False
        text = self._partial + chunk
        # A trailing CR may be the first half of a CRLF split across chunks
        carry = "\r" if text.endswith("\r") else ""
        segments = _LINE_BREAK.split(text[: len(text) - len(carry)])
        self._partial = segments.pop() + carry

        for line in segments:
            self._push(line)

        self._trim()

    def close(self) -> None:
        """Flush the pending partial line as a complete line.

        Calling close() twice has no further effect. Appending after close()
        starts a new partial line.
        """
        if self._closed:
            return
        self._closed = True
        if self._partial:
            line, self._partial = self._pending, ""
            self._push(line)
            self._trim()

    def get(self) -> str:
        """Return retained lines plus the pending partial, joined by newlines."""
        lines = list(self._lines)
        if self._partial:
            lines.append(self._pending)
        return "\n".join(lines)

    def lines(self) -> list[str]:
        """Return the retained complete lines."""
        return list(self._lines)

    def callback(self, fn: LineCallback) -> None:
        """Subscribe to completed lines, replaying the retained ones first."""
        self._callbacks.append(fn)
        for line in list(self._lines):
            fn(line)

    @property
    def _pending(self) -> str:
        return self._partial.removesuffix("\r")

    def _push(self, line: str) -> None:
        self._lines.append(line)
        for fn in list(self._callbacks):
            try:
                fn(line)
            except Exception:
                logger.exception("Ring line callback failed")

    def _trim(self) -> None:
        if not self.max_lines:
            return
        # The pending partial occupies one slot
        limit = self.max_lines - 1 if self._partial else self.max_lines
        while len(self._lines) > limit:
            self._lines.popleft()

    def __str__(self) -> str:
        return self.get()
