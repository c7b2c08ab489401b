"""
Public completion API.

The Completion facade is what an editor integration talks to: it owns the
engine, wires host events to it and exposes the user-facing actions that key
mappings bind to.

Usage:
    completion = Completion(editor, ListView(render=draw_menu))
    completion.setup(Config(sources=[SourceConfig("lsp")]))
    completion.register_source("lsp", provider)

    # From the host's event loop
    await completion.on_insert_enter()
    await completion.on_text_changed()
    await completion.on_keymap("<C-y>", fallback)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lsprotocol.types import LogMessageParams, MessageType

from cmpcore.config import Config
from cmpcore.context.types import ConfirmBehavior, ContextReason, SelectBehavior, TriggerEvent
from cmpcore.core.engine import CompletionEngine
from cmpcore.core.keymap import Fallback, Keymap
from cmpcore.sources.source import Source

if TYPE_CHECKING:
    from cmpcore.editor.host import EditorHost
    from cmpcore.sources.provider import CompletionProvider
    from cmpcore.view.view import CompletionView


@dataclass
class SourceStatusReport:
    """Source names grouped by how usable they are."""

    available: list[str] = field(default_factory=list)
    unavailable: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)  # registered, not configured
    invalid: list[str] = field(default_factory=list)    # configured, not registered


class Completion:
    """Editor-facing completion API."""

    def __init__(
        self,
        editor: EditorHost,
        view: CompletionView,
        config: Config | None = None,
    ) -> None:
        self.core = CompletionEngine(editor, view, config)
        self._prepared = False

    @property
    def config(self) -> Config:
        return self.core.config

    @property
    def view(self) -> CompletionView:
        return self.core.view

    def setup(self, config: Config) -> None:
        """Replace the configuration and rebuild the key table."""
        config.validate()
        self.core.config = config
        self._prepared = False
        self.prepare()

    def prepare(self) -> None:
        """Resolve the configured key mapping once."""
        if self._prepared:
            return
        self.core.keymap = Keymap.from_mapping(self.config.mapping, self)
        self._prepared = True

    # ===== Sources =====
    def register_source(self, name: str, provider: CompletionProvider) -> int:
        return self.core.register_source(Source(name, provider, self.core))

    def unregister_source(self, source_id: int) -> None:
        self.core.unregister_source(source_id)

    # ===== Actions =====
    def complete(self) -> bool:
        """Invoke completion manually."""
        self.core.complete(self.core.get_context(ContextReason.MANUAL))
        return True

    def visible(self) -> bool:
        return self.view.visible()

    def _release_soon(self, release: Callable[[], None]) -> None:
        # Keep the guard until the host processed the current event.
        asyncio.get_running_loop().call_soon(release)

    def close(self) -> bool:
        if not self.view.visible():
            return False
        release = self.core.suspend()
        self.view.close()
        self.core.reset()
        self._release_soon(release)
        return True

    def abort(self) -> bool:
        if not self.view.visible():
            return False
        release = self.core.suspend()
        self.view.abort()
        self._release_soon(release)
        return True

    def select_next_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> bool:
        if not self.view.visible():
            return False
        release = self.core.suspend()
        self.view.select_next_item(behavior)
        self._release_soon(release)
        return True

    def select_prev_item(self, behavior: SelectBehavior = SelectBehavior.INSERT) -> bool:
        if not self.view.visible():
            return False
        release = self.core.suspend()
        self.view.select_prev_item(behavior)
        self._release_soon(release)
        return True

    async def confirm(
        self,
        select: bool = False,
        behavior: ConfirmBehavior | None = None,
    ) -> bool:
        """
        Confirm the selected entry (or the first one when select is set).

        After the entry is inserted, completion restarts for trigger
        characters only.
        """
        entry = self.view.get_selected_entry()
        if entry is None and select:
            entry = self.view.get_first_entry()
        if entry is None:
            return False

        def restart() -> None:
            self.core.complete(self.core.get_context(ContextReason.TRIGGER_ONLY))

        return await self.core.confirm(entry, behavior, restart)

    def status(self) -> SourceStatusReport:
        """Report which registered and configured sources are usable."""
        report = SourceStatusReport()
        registered: set[str] = set()

        for source in self.core.registry:
            registered.add(source.name)
            if self.config.get_source_config(source.name) is None:
                report.installed.append(source.get_debug_name())
            elif source.is_available():
                report.available.append(source.get_debug_name())
            else:
                report.unavailable.append(source.get_debug_name())

        for name in self.config.get_source_names():
            if name not in registered:
                report.invalid.append(name)

        self.core.editor.window_log_message(
            LogMessageParams(
                type=MessageType.Info,
                message=(
                    f"sources: {len(report.available)} ready, "
                    f"{len(report.unavailable)} unavailable, "
                    f"{len(report.installed)} unused, "
                    f"{len(report.invalid)} unknown"
                ),
            )
        )
        return report

    # ===== Host events =====
    async def on_insert_enter(self) -> None:
        if not self.config.is_enabled():
            return
        self.prepare()
        await self.core.on_change(TriggerEvent.INSERT_ENTER)

    async def on_text_changed(self) -> None:
        if not self.config.is_enabled():
            return
        await self.core.on_change(TriggerEvent.TEXT_CHANGED)

    def on_insert_leave(self) -> None:
        self.core.reset()
        self.view.close()

    async def on_keymap(self, keys: str, fallback: Fallback) -> None:
        self.prepare()
        await self.core.on_keymap(keys, fallback)
