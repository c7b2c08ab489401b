"""
Helpers for LSP positions and text edits on a list of lines.

LSP positions count UTF-16 code units; Python strings index code points.
"""

from __future__ import annotations

from collections.abc import Sequence

from lsprotocol.types import Position, TextEdit


def utf16_len(text: str) -> int:
    """Number of UTF-16 code units needed to encode text."""
    return len(text.encode("utf-16-le")) // 2


def index_to_utf16(line: str, index: int) -> int:
    """Convert a code-point index in line to a UTF-16 offset."""
    return utf16_len(line[:index])


def utf16_to_index(line: str, units: int) -> int:
    """
    Convert a UTF-16 offset in line to a code-point index.

    Offsets past the end of the line clamp to its length; an offset that
    falls inside a surrogate pair resolves to the character it splits.
    """
    if units <= 0:
        return 0

    consumed = 0
    for index, char in enumerate(line):
        consumed += 2 if ord(char) > 0xFFFF else 1
        if consumed >= units:
            return index + 1
    return len(line)


def position_to_index(lines: Sequence[str], position: Position) -> tuple[int, int]:
    """Resolve an LSP position to (row, code-point column), clamped to the buffer."""
    if not lines:
        return 0, 0

    row = min(max(position.line, 0), len(lines) - 1)
    if position.line >= len(lines):
        return row, len(lines[row])
    return row, utf16_to_index(lines[row], position.character)


def apply_text_edits(lines: Sequence[str], edits: Sequence[TextEdit]) -> list[str]:
    """
    Apply non-overlapping text edits and return the new lines.

    Edits are applied from the end of the buffer backwards so earlier
    ranges stay valid.
    """
    result = list(lines) or [""]
    ordered = sorted(
        edits,
        key=lambda e: (e.range.start.line, e.range.start.character),
        reverse=True,
    )

    for edit in ordered:
        start_row, start_col = position_to_index(result, edit.range.start)
        end_row, end_col = position_to_index(result, edit.range.end)

        head = result[start_row][:start_col]
        tail = result[end_row][end_col:]
        replacement = (head + edit.new_text + tail).split("\n")
        result[start_row : end_row + 1] = replacement

    return result
