"""Tests for cmpcore/context/context.py"""

import pytest

from cmpcore.context.context import Context, Cursor, changed
from cmpcore.context.types import ContextReason
from cmpcore.editor.buffer import BufferEditor


@pytest.fixture
def editor():
    return BufferEditor("file:///a.py", "import os.pa", cursor=(0, 12))


class TestCapture:
    def test_captures_line_and_cursor(self, editor):
        ctx = Context.capture(editor, ContextReason.AUTO)

        assert ctx.uri == "file:///a.py"
        assert ctx.cursor.row == 0
        assert ctx.cursor.col == 12
        assert ctx.cursor_before_line == "import os.pa"
        assert ctx.cursor_after_line == ""
        assert ctx.get_reason() == ContextReason.AUTO

    def test_cursor_units_for_non_ascii(self):
        editor = BufferEditor("file:///u.txt", "é𝄞x", cursor=(0, 2))
        ctx = Context.capture(editor)

        assert ctx.cursor.col == 2
        # é is one UTF-16 unit, 𝄞 is a surrogate pair.
        assert ctx.cursor.character == 3
        # é is two UTF-8 bytes, 𝄞 four.
        assert ctx.cursor.byte == 6
        assert ctx.cursor_after_line == "x"

    def test_prefix_is_captured_by_value(self, editor):
        ctx = Context.capture(editor)
        editor.type("th")

        assert ctx.cursor_before_line == "import os.pa"

    def test_previous_link_is_one_hop(self, editor):
        first = Context.capture(editor)
        second = Context.capture(editor, previous=first)
        third = Context.capture(editor, previous=second)

        assert third.prev_context is not None
        assert third.prev_context.prev_context is None
        assert second.prev_context is first

    def test_cursor_past_line_end_is_clamped(self, editor):
        editor.col = 99
        ctx = Context.capture(editor)

        assert ctx.cursor.col == 12


class TestChanged:
    def test_same_context_is_unchanged(self, editor):
        ctx = Context.capture(editor)

        assert changed(ctx, ctx) is False
        assert ctx.changed(ctx) is False

    def test_none_counts_as_changed(self, editor):
        ctx = Context.capture(editor)

        assert changed(ctx, None) is True
        assert changed(None, ctx) is True
        assert changed(None, None) is False

    def test_prefix_change(self, editor):
        a = Context.capture(editor)
        editor.type("t")
        b = Context.capture(editor)

        assert changed(a, b)
        assert changed(b, a)

    def test_cursor_move_without_text_change(self, editor):
        a = Context.capture(editor)
        editor.move_cursor(0, 3)
        b = Context.capture(editor)

        assert changed(a, b)

    def test_buffer_identity(self):
        a = Context.capture(BufferEditor("file:///a", "x"))
        b = Context.capture(BufferEditor("file:///b", "x"))

        assert changed(a, b)

    def test_reason_does_not_count(self, editor):
        a = Context.capture(editor, ContextReason.AUTO)
        b = Context.capture(editor, ContextReason.MANUAL)

        assert not changed(a, b)


class TestOffset:
    def test_keyword_start(self, editor):
        ctx = Context.capture(editor)

        assert ctx.get_offset(r"\w+") == 10
        assert ctx.input_at(10) == "pa"

    def test_no_keyword_before_cursor(self):
        ctx = Context.capture(BufferEditor("file:///a", "foo."))

        assert ctx.get_offset(r"\w+") == 4
        assert ctx.input_at(4) == ""

    def test_custom_pattern(self, editor):
        ctx = Context.capture(editor)

        assert ctx.get_offset(r"[\w.]+") == 7


def test_empty_context():
    ctx = Context.empty()

    assert ctx.uri == ""
    assert ctx.cursor == Cursor(0, 0, 0, 0)
    assert ctx.prev_context is None
