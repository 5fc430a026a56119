"""Ordered option token accumulator."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class OptionList:
    """Ordered, mutable sequence of command-line tokens.

    Tokens are usually strings, but structured filter specifications may be
    stored as well (size filters are kept unserialized until argument
    assembly so they can still be rewired).

    Example:
        >>> opts = OptionList("-f", "mp4")
        >>> opts.append(["-t", "10"])
        ['-f', 'mp4', '-t', '10']
        >>> opts.find("-f", 1)
        ['mp4']
    """

    __slots__ = ("_tokens",)

    def __init__(self, *tokens: Any) -> None:
        self._tokens: list[Any] = []
        if tokens:
            self.append(*tokens)

    def append(self, *tokens: Any) -> list[Any]:
        """Append tokens, flattening lists and tuples one level.

        Returns:
            The full token sequence accumulated so far.
        """
        for token in tokens:
            if isinstance(token, (list, tuple)):
                self._tokens.extend(token)
            else:
                self._tokens.append(token)
        return list(self._tokens)

    def get(self) -> list[Any]:
        """Return a copy of the accumulated tokens."""
        return list(self._tokens)

    def clear(self) -> None:
        """Remove every token."""
        self._tokens.clear()

    def find(self, key: Any, count: int = 0) -> list[Any] | None:
        """Return the `count` tokens following the first occurrence of `key`.

        Returns:
            A list of `count` tokens (possibly shorter at the end of the
            sequence), or None if `key` is absent.
        """
        try:
            index = self._tokens.index(key)
        except ValueError:
            return None
        return self._tokens[index + 1 : index + 1 + count]

    def remove(self, key: Any, count: int = 0) -> None:
        """Delete the first occurrence of `key` and its `count` parameters."""
        try:
            index = self._tokens.index(key)
        except ValueError:
            return
        del self._tokens[index : index + 1 + count]

    def clone(self) -> OptionList:
        """Return an independent copy of this list."""
        copy = OptionList()
        copy._tokens = list(self._tokens)
        return copy

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._tokens))

    def __bool__(self) -> bool:
        return bool(self._tokens)

    def __repr__(self) -> str:
        return f"OptionList({self._tokens!r})"
