"""Session output buffer — the scrollback attached to an interpreter process."""

from __future__ import annotations

import asyncio
import threading
from collections import deque


class SessionBuffer:
    """Thread-safe rolling scrollback for interpreter output.

    Output arrives in arbitrary chunks, so the last line stays open until a
    newline closes it. Stores up to ``max_lines`` lines in two parallel
    tracks:

    * **display** (``_lines``) — filtered text as shown to the user, with
      ANSI colors interpreted when the session renders them.
    * **raw** (``_raw_lines``) — filtered text with any ANSI escape
      sequences left in place.

    An ``asyncio.Event`` is set whenever new data arrives, allowing
    consumers to ``await`` instead of polling.  Call ``attach_loop()``
    once from the asyncio thread to enable this.
    """

    def __init__(self, name: str, max_lines: int = 50_000) -> None:
        self.name = name
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._raw_lines: deque[str] = deque(maxlen=max_lines)
        self._open: bool = False  # Last line has no newline yet
        self._lock = threading.Lock()
        self._data_event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Attach an asyncio event loop so appends can signal waiters.

        Must be called from the asyncio thread (or pass an explicit loop).
        """
        self._loop = loop or asyncio.get_running_loop()
        self._data_event = asyncio.Event()

    def append_text(self, text: str, raw_text: str | None = None) -> None:
        """Append a chunk of output.

        Args:
            text: Display text.
            raw_text: Text with ANSI codes preserved.
                      Defaults to ``text`` if not provided.
        """
        if not text and not raw_text:
            return
        text = text.replace("\r\n", "\n")
        raw = (raw_text if raw_text is not None else text).replace("\r\n", "\n")
        display_parts = text.split("\n")
        raw_parts = raw.split("\n")
        # Pad so both tracks stay line-aligned
        while len(raw_parts) < len(display_parts):
            raw_parts.append("")
        while len(display_parts) < len(raw_parts):
            display_parts.append("")

        # A chunk ending in a newline closes its last line
        closes = len(display_parts) > 1 and display_parts[-1] == ""
        if closes:
            display_parts.pop()
            raw_parts.pop()

        with self._lock:
            if self._open and self._lines:
                self._lines[-1] += display_parts[0]
                self._raw_lines[-1] += raw_parts[0]
            else:
                self._lines.append(display_parts[0])
                self._raw_lines.append(raw_parts[0])
            for dl, rl in zip(display_parts[1:], raw_parts[1:]):
                self._lines.append(dl)
                self._raw_lines.append(rl)
            self._open = not closes

        if self._data_event is not None and self._loop is not None:
            self._loop.call_soon_threadsafe(self._data_event.set)

    async def wait_for_data(self, timeout: float | None = None) -> bool:
        """Wait until new data is appended (or timeout).

        Returns True if data arrived, False on timeout.
        Resets the event so the next call blocks again.
        """
        if self._data_event is None:
            await asyncio.sleep(0.05)
            return True
        try:
            await asyncio.wait_for(self._data_event.wait(), timeout=timeout)
            self._data_event.clear()
            return True
        except asyncio.TimeoutError:
            return False

    def read_tail(self, n: int = 20, raw: bool = False) -> list[str]:
        """Read the last N lines, from the raw track when ``raw`` is set."""
        with self._lock:
            lines = list(self._raw_lines if raw else self._lines)
        return lines[-n:] if n > 0 else []

    def read_all(self) -> str:
        """All display content as a single string."""
        with self._lock:
            text = "\n".join(self._lines)
            return text if self._open or not self._lines else text + "\n"

    @property
    def line_count(self) -> int:
        with self._lock:
            return len(self._lines)

    @property
    def end(self) -> int:
        """Position just past the last character (end-of-buffer)."""
        return len(self.read_all())
