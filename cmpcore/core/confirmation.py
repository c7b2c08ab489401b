"""
Confirmation transaction.

Commits a selected entry into the document as a strictly ordered series of
phases. The reentrancy guard is held from the first phase until the
post-insertion command finished, so no automatic completion cycle can start
in between.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from lsprotocol.types import MessageType, Range, TextEdit

from cmpcore.context.context import Context
from cmpcore.context.types import ConfirmBehavior
from cmpcore.editor.keys import Insert, Key, UndoBreak, backspaces, deletes
from cmpcore.editor.text_edits import utf16_to_index
from cmpcore.errors import ConfirmationAborted
from cmpcore.sources.entry import snippet_to_text

if TYPE_CHECKING:
    from cmpcore.core.engine import CompletionEngine
    from cmpcore.editor.host import EditorHost
    from cmpcore.sources.entry import Entry


def has_cursor_line_text_edit(
    text_edits: Sequence[TextEdit], pre: Context, new: Context
) -> bool:
    """Whether an edit spans every row the cursor occupied while resolving."""
    min_row = min(pre.cursor.row, new.cursor.row)
    max_row = max(pre.cursor.row, new.cursor.row)
    return any(
        edit.range.start.line <= min_row and max_row <= edit.range.end.line
        for edit in text_edits
    )


class ConfirmationTransaction:
    """
    One confirmation of one entry.

    Phases:
        1. mark confirmed, hold the guard, capture the context
        2. close the view
        3. normalize the typed text, apply secondary edits
        4. delete the effective range around the cursor
        5. insert the text (or hand the snippet to the expander)
        6. run the item's command, release, notify
    """

    def __init__(
        self,
        engine: CompletionEngine,
        entry: Entry,
        behavior: ConfirmBehavior | None = None,
        callback: Callable[[], None] | None = None,
    ) -> None:
        self.engine = engine
        self.entry = entry
        self.behavior = behavior or engine.config.confirmation.default_behavior
        self.callback = callback

    @property
    def editor(self) -> EditorHost:
        return self.engine.editor

    async def run(self) -> bool:
        entry = self.entry
        if entry.confirmed or self.engine.confirming:
            return False
        entry.confirmed = True
        self.engine.confirming = True
        self.engine.log(f"entry.confirm id={entry.id} source={entry.source.name}")

        try:
            with self.engine.guard.hold():
                if entry.get_completion_item() is None:
                    raise ConfirmationAborted(f"entry {entry.id} has no completion item")
                ctx = self.engine.get_context()
                self.engine.view.close()
                await self._normalize(ctx)
                await self._apply_additional_text_edits(ctx)
                await self._insert()
                await entry.execute()
        except ConfirmationAborted as e:
            self.engine.log(f"Confirmation aborted: {e}", MessageType.Error)
            return False
        finally:
            self.engine.confirming = False

        on_confirm_done = self.engine.config.event.on_confirm_done
        if on_confirm_done is not None:
            on_confirm_done(entry)
        if self.callback is not None:
            self.callback()
        return True

    async def _normalize(self, ctx: Context) -> None:
        """
        Type the entry's word over the input, then restore the original text.

        The round trip lets the host apply its own side effects of a raw
        insertion before the real edit.
        """
        entry = self.entry
        origin = entry.context
        word = entry.get_word()

        typed = ctx.cursor.col - entry.get_offset()
        await self.editor.feedkeys([*backspaces(typed), Insert(word)])
        await self.editor.feedkeys(
            [*backspaces(len(word)), Insert(origin.cursor_before_line[entry.get_offset():])]
        )

    async def _apply_additional_text_edits(self, ctx: Context) -> None:
        entry = self.entry
        text_edits = list(entry.get_completion_item().additional_text_edits or [])
        pre = ctx

        if not text_edits and not entry.resolved:
            pre = Context.capture(self.editor)
            item = await entry.resolve()
            text_edits = list(item.additional_text_edits or [])

        if not text_edits:
            return

        new = Context.capture(self.editor)
        if has_cursor_line_text_edit(text_edits, pre, new):
            self.engine.log("skip additional text edits spanning the cursor line")
            return
        self.editor.apply_text_edits(text_edits)

    def _effective_range(self) -> Range:
        if self.behavior == ConfirmBehavior.REPLACE:
            return self.entry.get_replace_range()
        return self.entry.get_insert_range()

    async def _insert(self) -> None:
        entry = self.entry
        origin = entry.context
        edit_range = self._effective_range()
        new_text = entry.get_insert_text()
        line = origin.cursor_line
        cursor = origin.cursor.col
        start = utf16_to_index(line, edit_range.start.character)
        end = utf16_to_index(line, edit_range.end.character)
        if edit_range.end.line > origin.cursor.row:
            end = len(line)

        keys: list[Key] = []
        keys.extend(deletes(end - cursor))
        keys.extend(backspaces(cursor - start))

        expand = self.engine.config.snippet.expand
        is_snippet = entry.is_snippet()
        if is_snippet and expand is None:
            self.engine.log("no snippet expander configured, inserting plain text")
            is_snippet = False
            new_text = snippet_to_text(new_text)

        if is_snippet:
            word = entry.get_word()
            keys.extend([UndoBreak(), Insert(word), UndoBreak()])
            keys.extend(backspaces(len(word)))
        else:
            keys.extend([UndoBreak(), Insert(new_text), UndoBreak()])
        await self.editor.feedkeys(keys)

        if is_snippet:
            expand(new_text, entry.get_completion_item().insert_text_mode)
