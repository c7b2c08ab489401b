"""
Editor host contract

The engine never touches document storage itself. Everything it needs from
the editor goes through this interface: cursor and line reads, synthetic
keystrokes, secondary text edits and log messages.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from lsprotocol.types import LogMessageParams, TextEdit

from cmpcore.editor.keys import Key


class EditorHost(ABC):
    """Base class for editors the completion engine is embedded in."""

    #: Indent keys in Vim's ``indentkeys`` syntax (``=end``, ``0=else``).
    indent_keys: list[str] = []

    @property
    @abstractmethod
    def uri(self) -> str:
        """Identity of the current buffer."""
        pass

    @property
    @abstractmethod
    def version(self) -> int:
        """Monotonic document version, bumped on every mutation."""
        pass

    @abstractmethod
    def get_cursor(self) -> tuple[int, int]:
        """Return (row, column) with a 0-based row and a code-point column."""
        pass

    @abstractmethod
    def get_line(self, row: int) -> str:
        pass

    @abstractmethod
    def get_text(self) -> str:
        pass

    @abstractmethod
    def is_insert_mode(self) -> bool:
        pass

    @abstractmethod
    async def feedkeys(self, keys: Sequence[Key]) -> None:
        """
        Feed synthetic keystrokes and wait until the host consumed them.

        Raises ConfirmationAborted if the keys cannot be applied.
        """
        pass

    @abstractmethod
    def apply_text_edits(self, edits: Sequence[TextEdit]) -> None:
        """Apply secondary edits outside the primary insertion."""
        pass

    @abstractmethod
    def window_log_message(self, params: LogMessageParams) -> None:
        pass

    def get_cursor_before_line(self) -> str:
        row, col = self.get_cursor()
        return self.get_line(row)[:col]
