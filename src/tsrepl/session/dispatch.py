"""Dispatch — turn editor text into input for the interpreter session.

Every send operation funnels into :meth:`Dispatcher.send_text`, which makes
sure a session is running and writes one newline-terminated payload to its
input stream. Nothing here waits for the interpreter to answer.
"""

from __future__ import annotations

import logging
import os

from tsrepl.editor import EditorHost
from tsrepl.session.manager import SessionManager

logger = logging.getLogger(__name__)


def load_statement(filename: str) -> str:
    """Import statement that loads ``filename`` as a module.

    The base name (no directory, no extension) is used both as the binding
    and as the module specifier, so ``/a/b/foo.ts`` becomes
    ``import * as foo from "foo"``. The interpreter's own module resolution
    must be able to find it.
    """
    base = os.path.splitext(os.path.basename(os.path.abspath(filename)))[0]
    return f'import * as {base} from "{base}"\n'


class Dispatcher:
    """Sends strings, regions, expressions, buffers and files to the session.

    Stateless: the session is looked up through the manager on every call.
    """

    def __init__(self, manager: SessionManager, editor: EditorHost) -> None:
        self.manager = manager
        self.editor = editor

    async def send_text(self, text: str) -> None:
        """Write ``text`` plus one newline to the session's input stream.

        Trailing whitespace is dropped first so the payload always ends in
        exactly one newline.
        """
        handle = await self.manager.ensure_session(keep_focus=True)
        handle.process.write(text.rstrip() + "\n")

    async def send_region(self, start: int, end: int) -> None:
        """Send the literal text between ``start`` and ``end``."""
        await self.send_text(self.editor.buffer_substring(start, end))

    async def send_region_and_focus(self, start: int, end: int) -> None:
        await self.send_region(start, end)
        self.manager.switch_to_session(move_to_end=True)

    def last_expression_span(self) -> tuple[int, int]:
        """From the line holding the expression before point, up to point."""
        end = self.editor.point()
        start = self.editor.line_beginning(self.editor.backward_expression(end))
        return start, end

    async def send_last_expression(self) -> None:
        await self.send_region(*self.last_expression_span())

    async def send_last_expression_and_focus(self) -> None:
        await self.send_region_and_focus(*self.last_expression_span())

    async def send_buffer(self) -> None:
        await self.send_region(self.editor.point_min(), self.editor.point_max())

    async def send_buffer_and_focus(self) -> None:
        await self.send_region_and_focus(
            self.editor.point_min(), self.editor.point_max()
        )

    async def load_file(self, filename: str) -> None:
        """Import ``filename`` into the session as a module."""
        statement = load_statement(filename)
        logger.info("Loading %s", os.path.abspath(filename))
        await self.send_text(statement)

    async def load_file_and_focus(self, filename: str) -> None:
        await self.load_file(filename)
        self.manager.switch_to_session(move_to_end=True)
