"""
In-memory editor host.

Keeps the document as a list of lines with a single cursor and interprets
synthetic keystrokes the way an insert-mode editor would. Used by the test
suite and by headless integrations that drive the engine without a real
editor.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from lsprotocol.types import LogMessageParams, TextEdit

from cmpcore.editor.host import EditorHost
from cmpcore.editor.keys import (
    DeleteBackward,
    DeleteForward,
    Insert,
    Key,
    Reindent,
    UndoBreak,
)
from cmpcore.editor.text_edits import apply_text_edits, position_to_index


class BufferEditor(EditorHost):
    """
    Single-buffer editor host.

    Usage:
        editor = BufferEditor("file:///demo.py", "import o")
        editor.type("s")          # simulated user typing, no events fired
        await editor.feedkeys([DeleteBackward(2), Insert("os")])
    """

    def __init__(
        self,
        uri: str = "file:///untitled",
        text: str = "",
        cursor: tuple[int, int] | None = None,
        insert_mode: bool = True,
        indent_keys: list[str] | None = None,
        indent_for: Callable[[int, str], str] | None = None,
    ) -> None:
        self._uri = uri
        self._version = 0
        self.lines: list[str] = text.split("\n")
        if cursor is None:
            cursor = (len(self.lines) - 1, len(self.lines[-1]))
        self.row, self.col = cursor
        self.insert_mode = insert_mode
        self.indent_keys = indent_keys or []
        self.indent_for = indent_for

        # Observable history for callers that assert on host activity.
        self.fed_keys: list[Key] = []
        self.applied_edits: list[TextEdit] = []
        self.messages: list[LogMessageParams] = []
        self.undo_steps = 0

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def version(self) -> int:
        return self._version

    def get_cursor(self) -> tuple[int, int]:
        return self.row, self.col

    def get_line(self, row: int) -> str:
        if 0 <= row < len(self.lines):
            return self.lines[row]
        return ""

    def get_text(self) -> str:
        return "\n".join(self.lines)

    def is_insert_mode(self) -> bool:
        return self.insert_mode

    def window_log_message(self, params: LogMessageParams) -> None:
        self.messages.append(params)

    # ===== User simulation =====
    def type(self, text: str) -> None:
        """Insert text at the cursor as if typed by the user."""
        self._insert(text)

    def move_cursor(self, row: int, col: int) -> None:
        self.row = min(max(row, 0), len(self.lines) - 1)
        self.col = min(max(col, 0), len(self.lines[self.row]))

    # ===== Host contract =====
    async def feedkeys(self, keys: Sequence[Key]) -> None:
        for key in keys:
            self.fed_keys.append(key)
            if isinstance(key, Insert):
                self._insert(key.text)
            elif isinstance(key, DeleteBackward):
                self._delete_backward(key.count)
            elif isinstance(key, DeleteForward):
                self._delete_forward(key.count)
            elif isinstance(key, UndoBreak):
                self.undo_steps += 1
            elif isinstance(key, Reindent):
                self._reindent()

        # Keys are consumed by the host on its next loop iteration.
        await asyncio.sleep(0)

    def apply_text_edits(self, edits: Sequence[TextEdit]) -> None:
        if not edits:
            return

        shift = 0
        for edit in edits:
            start_row, start_col = position_to_index(self.lines, edit.range.start)
            end_row, end_col = position_to_index(self.lines, edit.range.end)
            if end_row < self.row:
                shift += edit.new_text.count("\n") - (end_row - start_row)
            elif start_row == end_row == self.row and end_col <= self.col:
                self.col += len(edit.new_text) - (end_col - start_col)

        self.lines = apply_text_edits(self.lines, edits)
        self.applied_edits.extend(edits)
        self.row = min(max(self.row + shift, 0), len(self.lines) - 1)
        self.col = min(self.col, len(self.lines[self.row]))
        self._version += 1

    # ===== Internal mutations =====
    def _insert(self, text: str) -> None:
        line = self.lines[self.row]
        head, tail = line[: self.col], line[self.col :]
        parts = (head + text).split("\n")
        parts[-1] += tail
        self.lines[self.row : self.row + 1] = parts
        self.row += len(parts) - 1
        self.col = len(parts[-1]) - len(tail)
        self._version += 1

    def _delete_backward(self, count: int) -> None:
        for _ in range(count):
            if self.col > 0:
                line = self.lines[self.row]
                self.lines[self.row] = line[: self.col - 1] + line[self.col :]
                self.col -= 1
            elif self.row > 0:
                previous = self.lines[self.row - 1]
                self.lines[self.row - 1] = previous + self.lines.pop(self.row)
                self.row -= 1
                self.col = len(previous)
        self._version += 1

    def _delete_forward(self, count: int) -> None:
        for _ in range(count):
            line = self.lines[self.row]
            if self.col < len(line):
                self.lines[self.row] = line[: self.col] + line[self.col + 1 :]
            elif self.row + 1 < len(self.lines):
                self.lines[self.row] = line + self.lines.pop(self.row + 1)
        self._version += 1

    def _reindent(self) -> None:
        if self.indent_for is None:
            return
        line = self.lines[self.row]
        stripped = line.lstrip()
        indent = self.indent_for(self.row, stripped)
        self.lines[self.row] = indent + stripped
        self.col = max(0, self.col + len(indent) - (len(line) - len(stripped)))
        self._version += 1
