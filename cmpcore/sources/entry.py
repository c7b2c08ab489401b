"""
Completion entries.

An Entry wraps one lsprotocol CompletionItem returned by a source together
with the context it was produced for. The source keeps the authoritative
list; views and the confirmation transaction only hold references.
"""

from __future__ import annotations

import asyncio
import itertools
import re
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionItem,
    InsertReplaceEdit,
    InsertTextFormat,
    Position,
    Range,
    TextEdit,
)

from cmpcore.editor.text_edits import index_to_utf16, utf16_to_index

if TYPE_CHECKING:
    from cmpcore.context.context import Context
    from cmpcore.sources.source import Source


_entry_ids = itertools.count(1)

# ${1:default}, ${1|one,two|}, ${1}, $1, \$
_SNIPPET_PLACEHOLDER = re.compile(r"\$\{\d+:([^}]*)\}")
_SNIPPET_CHOICE = re.compile(r"\$\{\d+\|([^,|]*)[^}]*\}")
_SNIPPET_TABSTOP = re.compile(r"\$\{\d+\}|\$\d+")
_SNIPPET_ESCAPE = re.compile(r"\\(.)")
_WORD_AFTER_CURSOR = re.compile(r"\w*")


def snippet_to_text(body: str) -> str:
    """Render a snippet body as plain text with placeholder defaults."""
    text = _SNIPPET_CHOICE.sub(r"\1", body)
    text = _SNIPPET_PLACEHOLDER.sub(r"\1", text)
    text = _SNIPPET_TABSTOP.sub("", text)
    return _SNIPPET_ESCAPE.sub(r"\1", text)


class Entry:
    """One completion candidate, confirmable at most once."""

    def __init__(
        self,
        context: Context,
        source: Source,
        completion_item: CompletionItem,
        source_offset: int,
    ) -> None:
        self.id = next(_entry_ids)
        self.context = context
        self.source = source
        self.completion_item = completion_item
        self.confirmed = False
        self.resolved = False
        self._resolving: asyncio.Task[CompletionItem] | None = None
        self.offset = self._compute_offset(source_offset)

    def __repr__(self) -> str:
        return f"Entry(id={self.id}, word={self.get_word()!r}, source={self.source.name!r})"

    def _compute_offset(self, source_offset: int) -> int:
        text_edit = self.completion_item.text_edit
        if text_edit is None:
            return source_offset

        start = self._edit_range(text_edit).start
        if start.line != self.context.cursor.row:
            return source_offset
        return min(source_offset, utf16_to_index(self.context.cursor_line, start.character))

    @staticmethod
    def _edit_range(text_edit: TextEdit | InsertReplaceEdit) -> Range:
        if isinstance(text_edit, InsertReplaceEdit):
            return text_edit.insert
        return text_edit.range

    def get_offset(self) -> int:
        return self.offset

    def get_completion_item(self) -> CompletionItem:
        return self.completion_item

    def is_snippet(self) -> bool:
        return self.completion_item.insert_text_format == InsertTextFormat.Snippet

    def get_insert_text(self) -> str:
        """Text the item inserts, before snippet expansion."""
        item = self.completion_item
        if item.text_edit is not None:
            return item.text_edit.new_text
        if item.insert_text:
            return item.insert_text
        return item.label

    def get_word(self) -> str:
        """Plain one-line rendering of the insert text."""
        word = self.get_insert_text()
        if self.is_snippet():
            word = snippet_to_text(word)
        return word.split("\n", 1)[0].strip()

    def get_filter_text(self) -> str:
        return self.completion_item.filter_text or self.get_word()

    def get_commit_characters(self) -> list[str]:
        return list(self.completion_item.commit_characters or [])

    def get_insert_range(self) -> Range:
        text_edit = self.completion_item.text_edit
        if isinstance(text_edit, InsertReplaceEdit):
            return text_edit.insert
        if isinstance(text_edit, TextEdit):
            return text_edit.range

        row = self.context.cursor.row
        return Range(
            start=Position(
                line=row,
                character=index_to_utf16(self.context.cursor_line, self.offset),
            ),
            end=Position(line=row, character=self.context.cursor.character),
        )

    def get_replace_range(self) -> Range:
        text_edit = self.completion_item.text_edit
        if isinstance(text_edit, InsertReplaceEdit):
            return text_edit.replace
        if isinstance(text_edit, TextEdit):
            return text_edit.range

        insert = self.get_insert_range()
        line = self.context.cursor_line
        word_end = self.context.cursor.col + len(
            _WORD_AFTER_CURSOR.match(self.context.cursor_after_line).group(0)
        )
        return Range(
            start=insert.start,
            end=Position(line=insert.end.line, character=index_to_utf16(line, word_end)),
        )

    def matches(self, context: Context) -> bool:
        """Whether the entry still applies to what is typed in context."""
        if context.uri != self.context.uri or context.cursor.row != self.context.cursor.row:
            return False
        if context.cursor.col < self.offset:
            return False

        typed = context.input_at(self.offset).lower()
        if not typed:
            return True

        candidate = self.get_filter_text().lower()
        if candidate.startswith(typed):
            return True

        # Fall back to an ordered subsequence match anchored on the first char.
        if not candidate or candidate[0] != typed[0]:
            return False
        position = 0
        for char in typed:
            position = candidate.find(char, position)
            if position < 0:
                return False
            position += 1
        return True

    async def resolve(self) -> CompletionItem:
        """Resolve lazy fields once; concurrent callers share the request."""
        if self.resolved:
            return self.completion_item

        if self._resolving is None:
            self._resolving = asyncio.ensure_future(
                self.source.resolve(self.completion_item)
            )

        item = await self._resolving
        self.completion_item = item
        self.resolved = True
        return item

    async def execute(self) -> None:
        """Run the item's post-insertion command, if any."""
        await self.source.execute(self.completion_item)
