"""
Registered completion sources.

A Source wraps one CompletionProvider and owns its fetch lifecycle: status,
fetch timing, the incomplete flag and the entries of the latest answer.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionContext,
    CompletionItem,
    CompletionList,
    CompletionParams,
    CompletionTriggerKind,
    LogMessageParams,
    MessageType,
    Position,
    TextDocumentIdentifier,
)

from cmpcore.context.context import Context
from cmpcore.context.types import ContextReason, SourceStatus
from cmpcore.errors import InvalidStatusTransition, ProviderFetchError, StaleResultDiscarded
from cmpcore.sources.entry import Entry

if TYPE_CHECKING:
    from cmpcore.core.engine import CompletionEngine
    from cmpcore.sources.provider import CompletionProvider


# Reported while not fetching so the filter never waits on such a source.
IDLE_FETCHING_TIME = 100 * 1000

ALLOWED_TRANSITIONS: dict[SourceStatus, set[SourceStatus]] = {
    SourceStatus.WAITING: {SourceStatus.WAITING, SourceStatus.FETCHING},
    SourceStatus.FETCHING: {
        SourceStatus.COMPLETED,
        SourceStatus.ERRORED,
        SourceStatus.WAITING,
    },
    SourceStatus.COMPLETED: {SourceStatus.FETCHING, SourceStatus.WAITING},
    SourceStatus.ERRORED: {SourceStatus.FETCHING, SourceStatus.WAITING},
}

_source_ids = itertools.count(1)


def _now() -> float:
    return time.monotonic() * 1000


class Source:
    """
    A named, registered provider with an independent fetch lifecycle.

    Several sources may share a name; ids are unique.
    """

    def __init__(
        self,
        name: str,
        provider: CompletionProvider,
        engine: CompletionEngine,
    ) -> None:
        self.id = next(_source_ids)
        self.name = name
        self.provider = provider
        self.engine = engine

        self.status = SourceStatus.WAITING
        self.incomplete = False
        self.offset = -1
        self.context = Context.empty()
        self.entries: list[Entry] = []
        self.fetch_started: float | None = None

        self._request_id = 0
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"Source(id={self.id}, name={self.name!r}, status={self.status.name})"

    def get_debug_name(self) -> str:
        return f"{self.name}:{self.provider.name}"

    def is_available(self) -> bool:
        return self.provider.is_available()

    def get_trigger_characters(self) -> list[str]:
        return self.provider.get_trigger_characters()

    def get_keyword_pattern(self) -> str:
        config = self.engine.config
        return (
            self.provider.get_keyword_pattern()
            or config.get_keyword_pattern(self.name)
            or config.completion.keyword_pattern
        )

    def get_keyword_length(self) -> int:
        return self.engine.config.get_keyword_length(self.name)

    def get_fetching_time(self) -> float:
        """Milliseconds since the current fetch started."""
        if self.status == SourceStatus.FETCHING and self.fetch_started is not None:
            return _now() - self.fetch_started
        return IDLE_FETCHING_TIME

    def get_entries(self, ctx: Context) -> list[Entry]:
        """Entries of the latest answer that still match what is typed."""
        return [entry for entry in self.entries if entry.matches(ctx)]

    def reset(self) -> None:
        """Drop cached entries and go back to WAITING."""
        self._request_id += 1
        self._set_status(SourceStatus.WAITING)
        self.incomplete = False
        self.offset = -1
        self.context = Context.empty()
        self.entries = []
        self.fetch_started = None

    def _set_status(self, status: SourceStatus) -> None:
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"{self.name}: {self.status.name} -> {status.name}"
            )
        self.status = status

    def _log(self, type: MessageType, message: str) -> None:
        self.engine.editor.window_log_message(
            LogMessageParams(type=type, message=message)
        )

    def _completion_context(self, ctx: Context, offset: int) -> CompletionContext | None:
        """Decide whether ctx warrants a request, and of which kind."""
        reason = ctx.get_reason()
        before_char = ctx.cursor_before_line[-1:]

        if reason == ContextReason.MANUAL:
            return CompletionContext(trigger_kind=CompletionTriggerKind.Invoked)

        if before_char and before_char in self.get_trigger_characters():
            return CompletionContext(
                trigger_kind=CompletionTriggerKind.TriggerCharacter,
                trigger_character=before_char,
            )

        if reason == ContextReason.TRIGGER_ONLY:
            return None

        if self.incomplete and self.offset == offset:
            return CompletionContext(
                trigger_kind=CompletionTriggerKind.TriggerForIncompleteCompletions
            )

        typed = ctx.cursor.col - offset
        if typed >= self.get_keyword_length():
            if self.offset != offset or self.status == SourceStatus.ERRORED:
                return CompletionContext(trigger_kind=CompletionTriggerKind.Invoked)

        return None

    def complete(self, ctx: Context, callback: Callable[[], None]) -> bool:
        """
        Start a fetch for ctx if one is warranted.

        The callback runs once when the fetch settles (answered or failed).
        Returns False when no request was made.
        """
        offset = ctx.get_offset(self.get_keyword_pattern())
        if ctx.cursor.col < self.offset or ctx.uri != self.context.uri:
            # Moved before the keyword this source answered for.
            if self.status != SourceStatus.WAITING and self.offset >= 0:
                self.reset()

        completion_context = self._completion_context(ctx, offset)
        if completion_context is None:
            if ctx.get_reason() == ContextReason.TRIGGER_ONLY:
                self.reset()
            return False

        self._set_status(SourceStatus.FETCHING)
        self.offset = offset
        self.context = ctx
        self.fetch_started = _now()
        self._request_id += 1

        params = CompletionParams(
            text_document=TextDocumentIdentifier(uri=ctx.uri),
            position=Position(line=ctx.cursor.row, character=ctx.cursor.character),
            context=completion_context,
        )
        self._task = asyncio.create_task(
            self._fetch(self._request_id, params, ctx, callback)
        )
        return True

    async def _fetch(
        self,
        request_id: int,
        params: CompletionParams,
        ctx: Context,
        callback: Callable[[], None],
    ) -> None:
        try:
            response = await self.provider.complete(params, ctx)
        except Exception as e:
            if request_id != self._request_id:
                return
            error = ProviderFetchError(self.name, e)
            self._log(MessageType.Error, f"Error in source {error}")
            self.entries = []
            self._set_status(SourceStatus.ERRORED)
            callback()
            return

        if request_id != self._request_id:
            self._log(
                MessageType.Log,
                str(StaleResultDiscarded(f"{self.name}: dropped answer #{request_id}")),
            )
            return

        if isinstance(response, CompletionList):
            items = response.items
            self.incomplete = response.is_incomplete
        else:
            items = response or []
            self.incomplete = False

        self.entries = [Entry(ctx, self, item, self.offset) for item in items]
        self._set_status(SourceStatus.COMPLETED)
        callback()

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        try:
            return await self.provider.resolve(item)
        except Exception as e:
            self._log(
                MessageType.Error,
                f"Error resolving item in source {self.name}: {type(e).__name__}: {e}",
            )
            return item

    async def execute(self, item: CompletionItem) -> None:
        try:
            await self.provider.execute(item)
        except Exception as e:
            self._log(
                MessageType.Error,
                f"Error executing command in source {self.name}: {type(e).__name__}: {e}",
            )
