"""Tests for tsrepl.editor.MemoryEditor."""

from __future__ import annotations

import pytest

from tsrepl.editor import MemoryEditor


class TestMemoryEditorText:
    def test_defaults(self) -> None:
        ed = MemoryEditor("abc")
        assert ed.point() == 3
        assert ed.point_min() == 0
        assert ed.point_max() == 3
        assert ed.focused == "scratch"

    def test_substring(self) -> None:
        ed = MemoryEditor("let x = 1")
        assert ed.buffer_substring(4, 5) == "x"

    def test_line_beginning(self) -> None:
        ed = MemoryEditor("ab\ncd\nef")
        assert ed.line_beginning(0) == 0
        assert ed.line_beginning(4) == 3
        assert ed.line_beginning(8) == 6

    def test_from_file(self, tmp_path) -> None:
        path = tmp_path / "mod.ts"
        path.write_text("export const a = 1\n")
        ed = MemoryEditor.from_file(str(path))
        assert ed.text == "export const a = 1\n"
        assert ed.name == str(path)
        assert ed.point() == ed.point_max()


class TestBackwardExpression:
    def test_identifier(self) -> None:
        ed = MemoryEditor("a + total")
        assert ed.backward_expression(9) == 4

    def test_skips_whitespace(self) -> None:
        ed = MemoryEditor("foo   \n ")
        assert ed.backward_expression(8) == 0

    def test_member_access(self) -> None:
        ed = MemoryEditor("x = obj.prop")
        assert ed.backward_expression(12) == 4

    def test_parenthesized(self) -> None:
        ed = MemoryEditor("log(f(1), [2, 3])")
        assert ed.backward_expression(17) == 3

    def test_brackets_inside_string_ignored(self) -> None:
        ed = MemoryEditor('f(")")')
        assert ed.backward_expression(6) == 1

    def test_string_literal(self) -> None:
        ed = MemoryEditor("x = 'hi there'")
        assert ed.backward_expression(14) == 4

    def test_escaped_quote(self) -> None:
        ed = MemoryEditor(r'"a\"b"')
        assert ed.backward_expression(6) == 0

    def test_string_ending_in_escaped_backslash(self) -> None:
        ed = MemoryEditor(r'log("a\\")')
        assert ed.backward_expression(len(ed.text)) == 3
        assert ed.backward_expression(len(ed.text) - 1) == 4

    def test_quote_after_backslash_pair_opens_string(self) -> None:
        ed = MemoryEditor(r'\\"ab"')
        assert ed.backward_expression(6) == 2

    def test_odd_backslash_run_escapes_quote(self) -> None:
        ed = MemoryEditor(r'"a\\\"b"')
        assert ed.backward_expression(len(ed.text)) == 0

    def test_punctuation(self) -> None:
        ed = MemoryEditor("a;")
        assert ed.backward_expression(2) == 1

    def test_at_start(self) -> None:
        ed = MemoryEditor("   ")
        assert ed.backward_expression(3) == 0

    def test_unbalanced(self) -> None:
        ed = MemoryEditor("a)")
        with pytest.raises(ValueError):
            ed.backward_expression(2)

    def test_mismatched(self) -> None:
        ed = MemoryEditor("[1)")
        with pytest.raises(ValueError):
            ed.backward_expression(3)


class TestFocus:
    def test_pop_to_buffer(self) -> None:
        ed = MemoryEditor("x", name="a.ts")
        ed.pop_to_buffer("Typescript")
        assert ed.focused == "Typescript"

    def test_push_mark_in_source(self) -> None:
        ed = MemoryEditor("hello", point=2, name="a.ts")
        ed.push_mark()
        assert ed.mark_ring == [("a.ts", 2)]

    def test_goto_other_buffer(self) -> None:
        ed = MemoryEditor("hello", point=2, name="a.ts")
        ed.goto("Typescript", 40)
        assert ed.cursors["Typescript"] == 40
        assert ed.point() == 2

    def test_goto_source(self) -> None:
        ed = MemoryEditor("hello", name="a.ts")
        ed.goto("a.ts", 1)
        assert ed.point() == 1
