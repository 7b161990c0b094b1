"""Output filters — clean interpreter output before it reaches a buffer."""

from __future__ import annotations

import re
from typing import Callable

from rich.text import Text

OutputFilter = Callable[[str], str]

# Cursor-movement / erase codes emitted by the interpreter's readline layer.
# Digits are required: a bare ESC[K is left alone.
CURSOR_CODE_RE = re.compile(r"\x1b\[[0-9]+[GKJ]")

# An escape sequence cut off at the end of a read.
PARTIAL_ESCAPE_RE = re.compile(r"\x1b(\[[0-9;]*)?\Z")


def strip_cursor_codes(text: str) -> str:
    """Remove ``ESC [ <digits> G|K|J`` sequences, leaving everything else."""
    return CURSOR_CODE_RE.sub("", text)


def render_ansi(text: str) -> Text:
    """Parse ANSI color codes into a styled :class:`rich.text.Text`.

    ``Text.from_ansi`` works on whole lines and drops line endings, so the
    chunk is decoded piece by piece and re-joined to keep partial lines and
    trailing newlines intact.
    """
    pieces = text.replace("\r\n", "\n").split("\n")
    return Text("\n").join(Text.from_ansi(piece) for piece in pieces)


def plain_text(text: str) -> str:
    """Text with ANSI color codes interpreted and removed."""
    return render_ansi(text).plain


def apply_filters(text: str, filters: list[OutputFilter]) -> str:
    """Run ``text`` through each filter in order."""
    for output_filter in filters:
        text = output_filter(text)
    return text


def split_partial_escape(text: str) -> tuple[str, str]:
    """Split ``text`` into a complete head and an unfinished trailing escape.

    PTY reads can end in the middle of ``ESC [ 12 K``; the tail is carried
    over to the next chunk so filters always see whole sequences.
    """
    match = PARTIAL_ESCAPE_RE.search(text)
    if match is None:
        return text, ""
    return text[: match.start()], text[match.start() :]
