"""
Editing context snapshots.

A Context is captured on every text change and every manual completion
request. It is immutable: the prefix text is copied by value, and the link to
the predecessor is kept for exactly one hop so two snapshots can be diffed.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import TYPE_CHECKING

from cmpcore.context.types import ContextReason
from cmpcore.editor.text_edits import index_to_utf16

if TYPE_CHECKING:
    from cmpcore.editor.host import EditorHost


@lru_cache(maxsize=64)
def _keyword_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(rf"(?:{pattern})$")


def _now() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True)
class Cursor:
    """Cursor position in three unit systems."""

    row: int        # 0-based line
    col: int        # code-point index into the line
    character: int  # UTF-16 offset (LSP)
    byte: int       # UTF-8 offset


@dataclass(frozen=True)
class Context:
    uri: str
    cursor: Cursor
    cursor_line: str
    reason: ContextReason = ContextReason.NONE
    time: float = field(default_factory=_now, compare=False)
    prev_context: Context | None = field(default=None, compare=False, repr=False)

    @property
    def cursor_before_line(self) -> str:
        return self.cursor_line[: self.cursor.col]

    @property
    def cursor_after_line(self) -> str:
        return self.cursor_line[self.cursor.col :]

    @classmethod
    def empty(cls) -> Context:
        """Context used before the first capture."""
        return cls(uri="", cursor=Cursor(0, 0, 0, 0), cursor_line="")

    @classmethod
    def capture(
        cls,
        editor: EditorHost,
        reason: ContextReason = ContextReason.NONE,
        previous: Context | None = None,
    ) -> Context:
        """Snapshot the editor's cursor, line and buffer."""
        row, col = editor.get_cursor()
        line = editor.get_line(row)
        col = min(col, len(line))
        before = line[:col]

        if previous is not None and previous.prev_context is not None:
            previous = replace(previous, prev_context=None)

        return cls(
            uri=editor.uri,
            cursor=Cursor(
                row=row,
                col=col,
                character=index_to_utf16(line, col),
                byte=len(before.encode("utf-8")),
            ),
            cursor_line=line,
            reason=reason,
            prev_context=previous,
        )

    def get_reason(self) -> ContextReason:
        return self.reason

    def changed(self, other: Context | None) -> bool:
        return changed(self, other)

    def get_offset(self, keyword_pattern: str) -> int:
        """
        Code-point index where the keyword ending at the cursor starts.

        Returns the cursor column when no keyword precedes the cursor.
        """
        match = _keyword_regex(keyword_pattern).search(self.cursor_before_line)
        if match is None:
            return self.cursor.col
        return match.start()

    def input_at(self, offset: int) -> str:
        """Text typed between offset and the cursor."""
        return self.cursor_before_line[offset:]


def changed(a: Context | None, b: Context | None) -> bool:
    """True if prefix text, cursor position or buffer identity differ."""
    if a is None or b is None:
        return a is not b

    return (
        a.uri != b.uri
        or a.cursor.row != b.cursor.row
        or a.cursor.col != b.cursor.col
        or a.cursor_before_line != b.cursor_before_line
    )
