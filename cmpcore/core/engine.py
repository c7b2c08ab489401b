"""
Completion engine.

Tracks the current editing context, drives the sources on every relevant
text change, publishes their merged results under the source timeout and
runs confirmations.

Design Principles:
1. One current context, owned here
2. Staleness by generation, never by waiting
3. Every suspension releases the guard on every exit path
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from lsprotocol.types import LogMessageParams, MessageType

from cmpcore.config import Config
from cmpcore.context.context import Context
from cmpcore.context.types import ConfirmBehavior, ContextReason, SourceStatus, TriggerEvent
from cmpcore.core.confirmation import ConfirmationTransaction
from cmpcore.core.guard import ReentrancyGuard
from cmpcore.core.keymap import Fallback, Keymap
from cmpcore.core.throttle import CoalescingScheduler
from cmpcore.editor.keys import Reindent
from cmpcore.sources.registry import SourceRegistry

if TYPE_CHECKING:
    from cmpcore.editor.host import EditorHost
    from cmpcore.sources.entry import Entry
    from cmpcore.sources.source import Source
    from cmpcore.view.view import CompletionView


SOURCE_TIMEOUT = 500
THROTTLE_TIME = 120
DEBOUNCE_TIME = 20


def _is_printable(chars: str) -> bool:
    return bool(chars) and chars[0].isprintable()


class CompletionEngine:
    """
    Orchestrates sources, the view and confirmations for one editor.

    Usage:
        engine = CompletionEngine(editor, ListView(), config)
        engine.register_source(Source("lsp", provider, engine))
        await engine.on_change(TriggerEvent.TEXT_CHANGED)
    """

    source_timeout = SOURCE_TIMEOUT
    throttle_time = THROTTLE_TIME
    debounce_time = DEBOUNCE_TIME

    def __init__(
        self,
        editor: EditorHost,
        view: CompletionView,
        config: Config | None = None,
    ) -> None:
        self.editor = editor
        self.view = view
        self.config = config or Config()
        self.guard = ReentrancyGuard()
        self.registry = SourceRegistry(lambda: self.config)
        self.keymap = Keymap()
        self.context = Context.empty()

        # Bumped by every complete() cycle; chained fetches compare against it.
        self.generation = 0

        # Set while a confirmation transaction runs; only one commit at a time.
        self.confirming = False

        self.filter = CoalescingScheduler(self._filter, self.throttle_time)

    def log(self, message: str, type: MessageType = MessageType.Log) -> None:
        self.editor.window_log_message(LogMessageParams(type=type, message=message))

    # ===== Sources =====
    def register_source(self, source: Source) -> int:
        self.registry.register(source)
        self.log(f"Registered source {source.get_debug_name()} (id={source.id})", MessageType.Info)
        return source.id

    def unregister_source(self, source_id: int) -> None:
        source = self.registry.unregister(source_id)
        if source is not None:
            self.log(f"Unregistered source {source.get_debug_name()}", MessageType.Info)

    def get_sources(self, statuses: set[SourceStatus] | None = None) -> list[Source]:
        return self.registry.eligible(statuses)

    # ===== Context =====
    def get_context(self, reason: ContextReason = ContextReason.NONE) -> Context:
        """Capture a new current context, linked to the previous one."""
        self.context = Context.capture(self.editor, reason, self.context)
        return self.context

    def suspend(self) -> Callable[[], None]:
        """Suppress automatic completion until the returned release is called."""
        return self.guard.acquire()

    # ===== Events =====
    async def on_change(self, event: TriggerEvent) -> None:
        """Handle a text change or insert-enter event from the host."""
        if self.guard.held or not self.view.ready():
            self.get_context(ContextReason.AUTO)
            return

        await self.autoindent(event)

        ctx = self.get_context(ContextReason.AUTO)
        self.log(f"ctx: `{ctx.cursor_before_line}`")
        if not ctx.changed(ctx.prev_context):
            self.log("unchanged")
            return

        self.view.redraw()
        self.log("changed")
        if event in self.config.completion.autocomplete:
            self.complete(ctx)
        else:
            self.request_filter(self.throttle_time)

    async def autoindent(self, event: TriggerEvent) -> None:
        """
        Let the host re-indent before the context is captured.

        Applies when the word before the cursor is one of the host's
        ``=word``/``0=word`` indent keys.
        """
        if event != TriggerEvent.TEXT_CHANGED:
            return

        cursor_before_line = self.editor.get_cursor_before_line()
        words = cursor_before_line.split()
        if not words or cursor_before_line[-1:].isspace():
            return

        prefix = words[-1]
        if not any(key in (f"={prefix}", f"0={prefix}") for key in self.editor.indent_keys):
            return

        with self.guard.hold():
            await asyncio.sleep(0)
            if cursor_before_line == self.editor.get_cursor_before_line():
                await self.editor.feedkeys([Reindent()])

    async def on_keymap(self, keys: str, fallback: Fallback) -> None:
        """Dispatch a key sequence: mapped action, commit character or fallback."""
        action = self.keymap.lookup(keys)
        if action is not None:
            await action.invoke(fallback)
            return

        entry = self.view.get_active_entry()
        if entry is not None:
            commit_characters = self.config.confirmation.get_commit_characters(
                entry.get_commit_characters()
            )
            if keys in commit_characters:
                printable = _is_printable(keys)
                behavior = ConfirmBehavior.INSERT if printable else ConfirmBehavior.REPLACE

                def after_commit() -> None:
                    ctx = self.get_context()
                    word = entry.get_word()
                    if printable and ctx.cursor_before_line.endswith(word):
                        fallback()
                    else:
                        self.reset()

                await self.confirm(entry, behavior, after_commit)
                return

        fallback()

    # ===== Completion cycle =====
    def complete(self, ctx: Context) -> None:
        """Query every eligible source for ctx and schedule a publish."""
        if not self.editor.is_insert_mode():
            return

        self.context = ctx
        self.generation += 1
        generation = self.generation

        statuses = {SourceStatus.WAITING, SourceStatus.COMPLETED, SourceStatus.ERRORED}
        for source in self.get_sources(statuses):
            source.complete(ctx, self._make_callback(source, ctx, generation))

        self.request_filter(self.throttle_time)

    def _make_callback(
        self, source: Source, ctx: Context, generation: int
    ) -> Callable[[], None]:
        def callback() -> None:
            new = Context.capture(self.editor, ContextReason.NONE, ctx)
            if new.changed(new.prev_context) and generation == self.generation:
                if source.complete(new, self._make_callback(source, new, generation)):
                    return
            self.filter.stop()
            self.request_filter(self.debounce_time)

        return callback

    def request_filter(self, timeout: float) -> None:
        self.filter.timeout = timeout
        self.filter.request()

    def _filter(self) -> None:
        """Publish whatever the sources have, waiting once for a slow one."""
        if not self.editor.is_insert_mode():
            return
        ctx = self.get_context()

        sources: list[Source] = []
        for source in self.get_sources({SourceStatus.FETCHING, SourceStatus.COMPLETED}):
            remaining = self.source_timeout - source.get_fetching_time()
            if not source.incomplete and remaining > 0:
                if not sources:
                    self.filter.stop()
                    self.request_filter(remaining + 1)
                    return
                break
            sources.append(source)
        self.filter.timeout = self.throttle_time

        entries: list[Entry] = []
        for source in sources:
            entries.extend(source.get_entries(ctx))
        self.log(f"publish {len(entries)} entries from {len(sources)} sources")
        self.view.open(ctx, entries)

    # ===== Confirmation =====
    async def confirm(
        self,
        entry: Entry | None,
        behavior: ConfirmBehavior | None = None,
        callback: Callable[[], None] | None = None,
    ) -> bool:
        """Commit entry into the document. Returns False if it was refused."""
        if entry is None or entry.confirmed:
            return False
        if self.confirming:
            self.log(f"entry.confirm id={entry.id} refused, another confirmation is running")
            return False
        transaction = ConfirmationTransaction(self, entry, behavior, callback)
        return await transaction.run()

    def reset(self) -> None:
        """Forget every source's results."""
        self.registry.reset_all()
        # Capture so the next change event diffs against the present state.
        self.get_context()
