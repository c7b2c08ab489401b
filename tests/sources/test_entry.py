"""Tests for cmpcore/sources/entry.py"""

import pytest
from lsprotocol.types import (
    CompletionItem,
    InsertReplaceEdit,
    InsertTextFormat,
    Position,
    Range,
    TextEdit,
)

from cmpcore.context.context import Context
from cmpcore.editor.buffer import BufferEditor
from cmpcore.sources.entry import Entry, snippet_to_text


def _range(sl, sc, el, ec):
    return Range(start=Position(line=sl, character=sc), end=Position(line=el, character=ec))


@pytest.fixture
def source(add_source):
    return add_source("a")[0]


def _entry(source, editor, item, offset=None):
    ctx = Context.capture(editor)
    if offset is None:
        offset = ctx.get_offset(r"\w+")
    return Entry(ctx, source, item, offset)


@pytest.mark.parametrize(
    "body, expected",
    [
        ("foo($1)$0", "foo()"),
        ("foo(${1:bar}, ${2:baz})", "foo(bar, baz)"),
        ("${1|one,two|}", "one"),
        ("print(${1})", "print()"),
        (r"cost \} x", "cost } x"),
    ],
)
def test_snippet_to_text(body, expected):
    assert snippet_to_text(body) == expected


class TestText:
    def test_insert_text_precedence(self, source):
        editor = BufferEditor("file:///a", "fo")
        edit = TextEdit(range=_range(0, 0, 0, 2), new_text="from_edit")

        assert _entry(source, editor, CompletionItem(label="lbl")).get_insert_text() == "lbl"
        assert (
            _entry(source, editor, CompletionItem(label="lbl", insert_text="ins")).get_insert_text()
            == "ins"
        )
        assert (
            _entry(
                source, editor, CompletionItem(label="lbl", insert_text="ins", text_edit=edit)
            ).get_insert_text()
            == "from_edit"
        )

    def test_snippet_word_is_plain_first_line(self, source):
        editor = BufferEditor("file:///a", "fo")
        item = CompletionItem(
            label="for",
            insert_text="for ${1:i} in ${2:range}:\n\t$0",
            insert_text_format=InsertTextFormat.Snippet,
        )
        entry = _entry(source, editor, item)

        assert entry.is_snippet()
        assert entry.get_word() == "for i in range:"

    def test_filter_text(self, source):
        editor = BufferEditor("file:///a", "")
        entry = _entry(source, editor, CompletionItem(label="foo", filter_text="bar"))

        assert entry.get_filter_text() == "bar"


class TestOffset:
    def test_offset_defaults_to_keyword_start(self, source):
        editor = BufferEditor("file:///a", "os.pa")
        entry = _entry(source, editor, CompletionItem(label="path"))

        assert entry.get_offset() == 3

    def test_text_edit_moves_offset_left(self, source):
        editor = BufferEditor("file:///a", "os.pa")
        item = CompletionItem(
            label="os.path", text_edit=TextEdit(range=_range(0, 0, 0, 5), new_text="os.path")
        )

        assert _entry(source, editor, item).get_offset() == 0

    def test_text_edit_on_other_row_is_ignored(self, source):
        editor = BufferEditor("file:///a", "x\nos.pa")
        item = CompletionItem(
            label="path", text_edit=TextEdit(range=_range(0, 0, 0, 1), new_text="path")
        )

        assert _entry(source, editor, item).get_offset() == 3

    def test_text_edit_offset_in_utf16_units(self, source):
        # "𝄞" takes two UTF-16 units, so character 3 is code point 2.
        editor = BufferEditor("file:///a", "é𝄞ab")
        item = CompletionItem(
            label="x", text_edit=TextEdit(range=_range(0, 1, 0, 5), new_text="x")
        )

        assert _entry(source, editor, item, offset=2).get_offset() == 1


class TestRanges:
    def test_default_ranges(self, source):
        editor = BufferEditor("file:///a", "foobar baz", cursor=(0, 2))
        entry = _entry(source, editor, CompletionItem(label="foobar"))

        assert entry.get_insert_range() == _range(0, 0, 0, 2)
        assert entry.get_replace_range() == _range(0, 0, 0, 6)

    def test_insert_replace_edit(self, source):
        editor = BufferEditor("file:///a", "foobar", cursor=(0, 2))
        edit = InsertReplaceEdit(
            new_text="foobaz", insert=_range(0, 0, 0, 2), replace=_range(0, 0, 0, 6)
        )
        entry = _entry(source, editor, CompletionItem(label="foobaz", text_edit=edit))

        assert entry.get_insert_range() == edit.insert
        assert entry.get_replace_range() == edit.replace

    def test_text_edit_range_used_for_both(self, source):
        editor = BufferEditor("file:///a", "foo", cursor=(0, 2))
        edit = TextEdit(range=_range(0, 0, 0, 3), new_text="foo")
        entry = _entry(source, editor, CompletionItem(label="foo", text_edit=edit))

        assert entry.get_insert_range() == edit.range
        assert entry.get_replace_range() == edit.range


class TestMatches:
    @pytest.mark.parametrize(
        "typed, expected",
        [("", True), ("foo", True), ("FOO", True), ("fb", True), ("ob", False), ("x", False)],
    )
    def test_typed_text(self, source, typed, expected):
        editor = BufferEditor("file:///a", "")
        entry = _entry(source, editor, CompletionItem(label="foobar"))
        editor.type(typed)

        assert entry.matches(Context.capture(editor)) is expected

    def test_other_row_does_not_match(self, source):
        editor = BufferEditor("file:///a", "f")
        entry = _entry(source, editor, CompletionItem(label="foo"))
        editor.type("\nf")

        assert not entry.matches(Context.capture(editor))


@pytest.mark.asyncio
async def test_resolve_is_memoized(add_source):
    source, provider = add_source("a")
    resolved = CompletionItem(label="foo", detail="resolved")
    provider.resolve_with = resolved
    entry = _entry(source, BufferEditor("file:///a", ""), CompletionItem(label="foo"))

    assert await entry.resolve() is resolved
    assert await entry.resolve() is resolved
    assert len(provider.resolved) == 1
    assert entry.resolved
    assert entry.get_completion_item() is resolved
