"""
Presentation contract.

Rendering the menu and documentation popup is the host's job. The engine
only opens a list, closes or aborts it, and asks what is selected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from cmpcore.context.types import SelectBehavior

if TYPE_CHECKING:
    from cmpcore.context.context import Context
    from cmpcore.sources.entry import Entry


RenderCallback = Callable[["Context | None", "list[Entry]"], None]


class CompletionView(ABC):
    """Base class for candidate list presentations."""

    @abstractmethod
    def open(self, ctx: Context, entries: Sequence[Entry]) -> None:
        """Show entries (already in priority order) for ctx."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def abort(self) -> None:
        """Close and drop any selection without applying it."""
        pass

    @abstractmethod
    def visible(self) -> bool:
        pass

    def ready(self) -> bool:
        """Whether the host is free to show a new list right now."""
        return True

    def redraw(self) -> None:
        pass

    @abstractmethod
    def get_selected_entry(self) -> Entry | None:
        pass

    @abstractmethod
    def get_first_entry(self) -> Entry | None:
        pass

    def get_active_entry(self) -> Entry | None:
        """Entry the next commit character applies to."""
        return self.get_selected_entry()

    @abstractmethod
    def select_next_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> None:
        pass

    @abstractmethod
    def select_prev_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> None:
        pass


class ListView(CompletionView):
    """
    In-memory list view.

    Deduplicates entries by word (items with duplicates allowed are kept),
    preselects the first item flagged ``preselect`` and forwards every
    change to an optional render callback.
    """

    def __init__(self, render: RenderCallback | None = None) -> None:
        self.render = render
        self.context: Context | None = None
        self.entries: list[Entry] = []
        self.index = -1
        self.behavior = SelectBehavior.INSERT

    def open(self, ctx: Context, entries: Sequence[Entry]) -> None:
        seen: set[str] = set()
        unique: list[Entry] = []
        for entry in entries:
            word = entry.get_word()
            data = entry.completion_item.data
            allow_dup = isinstance(data, dict) and data.get("dup", False)
            if allow_dup or word not in seen:
                seen.add(word)
                unique.append(entry)

        self.context = ctx
        self.entries = unique
        self.index = -1
        for i, entry in enumerate(unique):
            if entry.completion_item.preselect:
                self.index = i
                break
        self.redraw()

    def redraw(self) -> None:
        if self.render is not None:
            self.render(self.context, list(self.entries))

    def close(self) -> None:
        self.context = None
        self.entries = []
        self.index = -1
        self.redraw()

    def abort(self) -> None:
        self.close()

    def visible(self) -> bool:
        return len(self.entries) > 0

    def get_selected_entry(self) -> Entry | None:
        if 0 <= self.index < len(self.entries):
            return self.entries[self.index]
        return None

    def get_first_entry(self) -> Entry | None:
        return self.entries[0] if self.entries else None

    def select_next_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> None:
        if not self.entries:
            return
        self.behavior = behavior
        # -1 (nothing selected) sits between the last and the first entry.
        self.index = self.index + 1 if self.index + 1 < len(self.entries) else -1

    def select_prev_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> None:
        if not self.entries:
            return
        self.behavior = behavior
        if self.index == -1:
            self.index = len(self.entries) - 1
        else:
            self.index -= 1
