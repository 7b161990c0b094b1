"""Tests for tsrepl.session.dispatch (Dispatcher, load_statement)."""

from __future__ import annotations

import pytest

from tsrepl.editor import MemoryEditor
from tsrepl.session.dispatch import Dispatcher, load_statement


def _written(host) -> list[str]:
    return [text for p in host.spawned for text in p.written]


# ---------------------------------------------------------------------------
# load_statement
# ---------------------------------------------------------------------------


class TestLoadStatement:
    def test_exact_bytes(self) -> None:
        assert load_statement("/a/b/foo.ts") == 'import * as foo from "foo"\n'

    def test_relative_path(self) -> None:
        assert load_statement("src/util.ts") == 'import * as util from "util"\n'

    def test_no_extension(self) -> None:
        assert load_statement("/tmp/mod") == 'import * as mod from "mod"\n'

    def test_only_last_extension_dropped(self) -> None:
        assert load_statement("/x/types.d.ts") == 'import * as types.d from "types.d"\n'


# ---------------------------------------------------------------------------
# send_text
# ---------------------------------------------------------------------------


class TestSendText:
    async def test_appends_newline(self, dispatcher, host) -> None:
        await dispatcher.send_text("x+1")
        assert _written(host) == ["x+1\n"]

    async def test_trailing_whitespace_dropped(self, dispatcher, host) -> None:
        await dispatcher.send_text("x+1  \n\n")
        assert _written(host) == ["x+1\n"]

    async def test_embedded_newlines_kept(self, dispatcher, host) -> None:
        await dispatcher.send_text("function f() {\n  return 1\n}")
        assert _written(host) == ["function f() {\n  return 1\n}\n"]

    async def test_spawns_session_without_moving_focus(self, dispatcher, host, editor) -> None:
        await dispatcher.send_text("1")
        assert len(host.spawned) == 1
        assert editor.focused == "main.ts"

    async def test_reuses_live_session(self, dispatcher, host) -> None:
        await dispatcher.send_text("1")
        await dispatcher.send_text("2")
        assert len(host.spawned) == 1
        assert host.spawned[0].written == ["1\n", "2\n"]

    async def test_respawns_dead_session(self, dispatcher, host) -> None:
        await dispatcher.send_text("1")
        host.spawned[0].kill()
        await dispatcher.send_text("2")
        assert len(host.spawned) == 2
        assert host.spawned[1].written == ["2\n"]


# ---------------------------------------------------------------------------
# Regions, expressions, buffers
# ---------------------------------------------------------------------------


class TestSendRegion:
    async def test_literal_region(self, dispatcher, host) -> None:
        await dispatcher.send_region(0, 9)
        assert _written(host) == ["let x = 1\n"]

    async def test_region_with_newlines(self, dispatcher, host) -> None:
        await dispatcher.send_region(0, 15)
        assert _written(host) == ["let x = 1\nx + 1\n"]

    async def test_and_focus(self, dispatcher, host, editor) -> None:
        await dispatcher.send_region_and_focus(10, 15)
        assert _written(host) == ["x + 1\n"]
        assert editor.focused == "Typescript"
        assert editor.mark_ring == [("Typescript", 0)]
        assert editor.cursors["Typescript"] == 0


class TestSendLastExpression:
    async def test_sends_from_line_start(self, host, manager) -> None:
        editor = MemoryEditor("let a = 1\nconsole.log(a)\nrest", point=24)
        await Dispatcher(manager, editor).send_last_expression()
        assert _written(host) == ["console.log(a)\n"]

    async def test_span_spans_lines_for_multiline_group(self, manager) -> None:
        text = "const o = {\n  a: 1,\n}"
        editor = MemoryEditor(text)
        assert Dispatcher(manager, editor).last_expression_span() == (0, len(text))

    async def test_resolved_at_call_time(self, host, manager) -> None:
        editor = MemoryEditor("first\nsecond")
        dispatcher = Dispatcher(manager, editor)
        await dispatcher.send_last_expression()
        editor.goto(editor.name, 5)
        await dispatcher.send_last_expression()
        assert _written(host) == ["second\n", "first\n"]

    async def test_and_focus(self, host, manager) -> None:
        editor = MemoryEditor("f(1)")
        await Dispatcher(manager, editor).send_last_expression_and_focus()
        assert _written(host) == ["f(1)\n"]
        # Focus is handled by the manager's editor host
        assert manager.editor.focused == "Typescript"

    async def test_unbalanced_raises_before_spawn(self, host, manager) -> None:
        editor = MemoryEditor("f(1))")
        with pytest.raises(ValueError):
            await Dispatcher(manager, editor).send_last_expression()
        assert host.spawned == []


class TestSendBuffer:
    async def test_whole_buffer(self, dispatcher, host) -> None:
        await dispatcher.send_buffer()
        assert _written(host) == ["let x = 1\nx + 1\n"]

    async def test_and_focus(self, dispatcher, host, editor) -> None:
        await dispatcher.send_buffer_and_focus()
        assert _written(host) == ["let x = 1\nx + 1\n"]
        assert editor.focused == "Typescript"


# ---------------------------------------------------------------------------
# load_file
# ---------------------------------------------------------------------------


class TestLoadFile:
    async def test_writes_import(self, dispatcher, host) -> None:
        await dispatcher.load_file("/a/b/foo.ts")
        assert _written(host) == ['import * as foo from "foo"\n']

    async def test_keeps_focus(self, dispatcher, editor) -> None:
        await dispatcher.load_file("/a/b/foo.ts")
        assert editor.focused == "main.ts"

    async def test_and_focus(self, dispatcher, host, editor) -> None:
        await dispatcher.load_file_and_focus("/a/b/foo.ts")
        assert _written(host) == ['import * as foo from "foo"\n']
        assert editor.focused == "Typescript"
        assert len(editor.mark_ring) == 1
