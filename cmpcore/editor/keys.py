"""
Synthetic keystrokes fed to the editor host.

Confirmation never edits the buffer directly on the primary line: it emits
counted deletions and literal insertions so the host keeps its own undo
granularity and indentation behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Insert:
    """Type text at the cursor."""

    text: str


@dataclass(frozen=True)
class DeleteBackward:
    """Delete count characters to the left of the cursor."""

    count: int


@dataclass(frozen=True)
class DeleteForward:
    """Delete count characters to the right of the cursor."""

    count: int


@dataclass(frozen=True)
class UndoBreak:
    """Close the current undo step."""


@dataclass(frozen=True)
class Reindent:
    """Ask the host to re-indent the cursor line."""


Key = Insert | DeleteBackward | DeleteForward | UndoBreak | Reindent


def backspaces(count: int) -> list[Key]:
    """Counted backward deletion, empty when there is nothing to delete."""
    return [DeleteBackward(count)] if count > 0 else []


def deletes(count: int) -> list[Key]:
    """Counted forward deletion, empty when there is nothing to delete."""
    return [DeleteForward(count)] if count > 0 else []
