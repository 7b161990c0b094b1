"""Editor host — the text-buffer and focus primitives tsrepl relies on.

The session manager and dispatcher never touch an editor directly; they go
through :class:`EditorHost`. :class:`MemoryEditor` is a plain in-memory
implementation used by the command-line shell and the tests.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

_OPENERS = {")": "(", "]": "[", "}": "{"}
_QUOTES = "\"'`"


class EditorHost(Protocol):
    """Buffer, cursor and focus operations provided by the host editor."""

    def pop_to_buffer(self, name: str) -> None:
        """Show the buffer called ``name`` and give it focus."""
        ...

    def push_mark(self) -> None:
        """Remember the current location so the user can return to it."""
        ...

    def goto(self, name: str, position: int) -> None:
        """Move the cursor of buffer ``name`` to ``position``."""
        ...

    def point(self) -> int: ...

    def point_min(self) -> int: ...

    def point_max(self) -> int: ...

    def buffer_substring(self, start: int, end: int) -> str: ...

    def backward_expression(self, position: int) -> int:
        """Start of the balanced expression ending before ``position``."""
        ...

    def line_beginning(self, position: int) -> int: ...


class MemoryEditor:
    """A single source buffer held in memory, plus focus bookkeeping.

    Positions are 0-based character offsets into ``text``.
    """

    def __init__(self, text: str = "", point: int | None = None, name: str = "scratch") -> None:
        self.name = name
        self.text = text
        self._point = len(text) if point is None else point
        self.focused: str = name
        self.mark_ring: list[tuple[str, int]] = []
        self.cursors: dict[str, int] = {}

    @classmethod
    def from_file(cls, path: str, point: int | None = None) -> MemoryEditor:
        with open(path, encoding="utf-8") as f:
            text = f.read()
        return cls(text, point=point, name=path)

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def pop_to_buffer(self, name: str) -> None:
        logger.debug("Focus %s -> %s", self.focused, name)
        self.focused = name

    def push_mark(self) -> None:
        if self.focused == self.name:
            location = self._point
        else:
            location = self.cursors.get(self.focused, 0)
        self.mark_ring.append((self.focused, location))

    def goto(self, name: str, position: int) -> None:
        if name == self.name:
            self._point = position
        self.cursors[name] = position

    # ------------------------------------------------------------------
    # Source text
    # ------------------------------------------------------------------

    def point(self) -> int:
        return self._point

    def point_min(self) -> int:
        return 0

    def point_max(self) -> int:
        return len(self.text)

    def buffer_substring(self, start: int, end: int) -> str:
        return self.text[start:end]

    def line_beginning(self, position: int) -> int:
        return self.text.rfind("\n", 0, position) + 1

    def backward_expression(self, position: int) -> int:
        """Skip back over one balanced expression.

        Handles bracketed groups, string literals and identifiers; any
        other character counts as a one-character expression.

        Raises:
            ValueError: If a closing bracket has no matching opener.
        """
        text = self.text
        i = position
        while i > 0 and text[i - 1].isspace():
            i -= 1
        if i == 0:
            return 0

        ch = text[i - 1]
        if ch in _OPENERS:
            return self._match_opener(i - 1)
        if ch in _QUOTES:
            start = self._string_start(i - 1)
            if start is not None:
                return start
            return i - 1
        if _is_symbol_char(ch):
            while i > 0 and _is_symbol_char(text[i - 1]):
                i -= 1
            return i
        return i - 1

    def _match_opener(self, close_at: int) -> int:
        text = self.text
        stack: list[str] = []
        i = close_at
        while i >= 0:
            ch = text[i]
            if ch in _OPENERS:
                stack.append(_OPENERS[ch])
            elif ch in _OPENERS.values():
                if not stack or stack[-1] != ch:
                    raise ValueError(f"Mismatched {ch!r} at {i}")
                stack.pop()
                if not stack:
                    return i
            elif ch in _QUOTES:
                start = self._string_start(i)
                if start is not None:
                    i = start
            i -= 1
        raise ValueError(f"Unbalanced {text[close_at]!r} at {close_at}")

    def _string_start(self, close_at: int) -> int | None:
        """Offset of the quote opening the string closed at ``close_at``."""
        quote = self.text[close_at]
        i = close_at - 1
        while i >= 0:
            if self.text[i] == quote and not self._escaped(i):
                return i
            i -= 1
        return None

    def _escaped(self, at: int) -> bool:
        """True if an odd run of backslashes precedes ``at``."""
        run = 0
        while at - run > 0 and self.text[at - run - 1] == "\\":
            run += 1
        return run % 2 == 1


def _is_symbol_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$."
