"""
Engine configuration.

Plain dataclasses with usable defaults. Loading configuration from files or
editor settings is left to the host; it builds a Config and hands it to
Completion.setup().

Usage:
    config = Config(
        sources=[SourceConfig("lsp"), SourceConfig("buffer", keyword_length=3)],
        mapping={"<C-y>": BuiltinAction("confirm", {"select": True})},
        snippet=SnippetConfig(expand=my_snippet_engine.expand),
    )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from lsprotocol.types import InsertTextMode

from cmpcore.context.types import ConfirmBehavior, TriggerEvent
from cmpcore.errors import ConfigError

if TYPE_CHECKING:
    from cmpcore.sources.entry import Entry


DEFAULT_KEYWORD_PATTERN = r"\w+"

SnippetExpander = Callable[[str, "InsertTextMode | None"], None]


@dataclass
class SourceConfig:
    """A configured source name. List position is its priority."""

    name: str
    keyword_length: int | None = None
    keyword_pattern: str | None = None


@dataclass
class CompletionConfig:
    autocomplete: list[TriggerEvent] = field(
        default_factory=lambda: [TriggerEvent.TEXT_CHANGED]
    )
    keyword_length: int = 1
    keyword_pattern: str = DEFAULT_KEYWORD_PATTERN


def _identity_commit_characters(chars: list[str]) -> list[str]:
    return chars


@dataclass
class ConfirmationConfig:
    default_behavior: ConfirmBehavior = ConfirmBehavior.REPLACE
    # Receives the item's commit characters, returns the effective set.
    get_commit_characters: Callable[[list[str]], list[str]] = (
        _identity_commit_characters
    )


@dataclass
class SnippetConfig:
    expand: SnippetExpander | None = None


@dataclass
class EventConfig:
    on_confirm_done: Callable[[Entry], None] | None = None


@dataclass
class BuiltinAction:
    """A named engine action bound to a key sequence."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)


MappingValue = Union[BuiltinAction, Callable[[Callable[[], None]], Any], str]


@dataclass
class Config:
    sources: list[SourceConfig] = field(default_factory=list)
    mapping: dict[str, MappingValue] = field(default_factory=dict)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    snippet: SnippetConfig = field(default_factory=SnippetConfig)
    event: EventConfig = field(default_factory=EventConfig)
    enabled: bool | Callable[[], bool] = True

    def is_enabled(self) -> bool:
        if callable(self.enabled):
            return bool(self.enabled())
        return self.enabled

    def get_source_config(self, name: str) -> SourceConfig | None:
        for source in self.sources:
            if source.name == name:
                return source
        return None

    def get_source_names(self) -> list[str]:
        """Configured source names in priority order."""
        return [source.name for source in self.sources]

    def get_keyword_length(self, name: str) -> int:
        source = self.get_source_config(name)
        if source and source.keyword_length is not None:
            return source.keyword_length
        return self.completion.keyword_length

    def get_keyword_pattern(self, name: str) -> str | None:
        source = self.get_source_config(name)
        if source and source.keyword_pattern:
            return source.keyword_pattern
        return None

    def validate(self) -> None:
        """Raise ConfigError for configurations the engine cannot run with."""
        seen: set[str] = set()
        for source in self.sources:
            if source.name in seen:
                raise ConfigError(f"Duplicate source name: {source.name}")
            seen.add(source.name)
            if source.keyword_length is not None and source.keyword_length < 1:
                raise ConfigError(
                    f"keyword_length must be positive for source {source.name}"
                )

        if self.completion.keyword_length < 1:
            raise ConfigError("completion.keyword_length must be positive")
