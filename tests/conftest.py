"""Shared fixtures: an in-memory editor, a list view and scripted providers."""

from __future__ import annotations

import asyncio

import pytest
from lsprotocol.types import CompletionItem, CompletionList

from cmpcore.config import Config, SourceConfig
from cmpcore.core.engine import CompletionEngine
from cmpcore.editor.buffer import BufferEditor
from cmpcore.sources.provider import CompletionProvider
from cmpcore.sources.source import Source
from cmpcore.view.view import ListView


class ScriptedProvider(CompletionProvider):
    """Provider answering with fixed items after an optional delay (seconds)."""

    def __init__(
        self,
        items: list[CompletionItem | str] | None = None,
        delay: float = 0.0,
        incomplete: bool = False,
        error: Exception | None = None,
        available: bool = True,
        trigger_characters: list[str] | None = None,
    ) -> None:
        self.items = [
            CompletionItem(label=item) if isinstance(item, str) else item
            for item in (items or [])
        ]
        self.delay = delay
        self.incomplete = incomplete
        self.error = error
        self.available = available
        self.trigger_characters = trigger_characters or []
        self.calls: list = []
        self.resolved: list[CompletionItem] = []
        self.executed: list[CompletionItem] = []
        self.resolve_with: CompletionItem | None = None

    @property
    def name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return self.available

    def get_trigger_characters(self) -> list[str]:
        return self.trigger_characters

    async def complete(self, params, context):
        self.calls.append(params)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return CompletionList(is_incomplete=self.incomplete, items=list(self.items))

    async def resolve(self, item):
        self.resolved.append(item)
        return self.resolve_with or item

    async def execute(self, item):
        self.executed.append(item)


@pytest.fixture
def editor():
    return BufferEditor("file:///test.py", "")


@pytest.fixture
def view():
    return ListView()


@pytest.fixture
def config():
    return Config(sources=[SourceConfig("a"), SourceConfig("b")])


@pytest.fixture
def engine(editor, view, config):
    return CompletionEngine(editor, view, config)


@pytest.fixture
def add_source(engine):
    """Register a ScriptedProvider under a name and return (source, provider)."""

    def _add(name: str, **kwargs) -> tuple[Source, ScriptedProvider]:
        provider = ScriptedProvider(**kwargs)
        source = Source(name, provider, engine)
        engine.register_source(source)
        return source, provider

    return _add


@pytest.fixture
def scripted():
    """The ScriptedProvider class, for tests building sources by hand."""
    return ScriptedProvider
