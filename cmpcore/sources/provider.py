"""
Completion provider plugins.

A provider is the opaque part of a source: it receives LSP completion params
and answers with items. Everything around it (status tracking, timeouts,
staleness) is handled by Source.

Design Principles:
1. Plugin-based (register providers without modifying the engine)
2. Type-safe (abstract base class)
3. Async-first (every fetch runs as its own task on the host loop)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lsprotocol.types import CompletionItem, CompletionList, CompletionParams

if TYPE_CHECKING:
    from cmpcore.context.context import Context


class CompletionProvider(ABC):
    """Base class for all completion providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Debug name for this provider."""
        pass

    def is_available(self) -> bool:
        """Whether the provider can serve requests right now."""
        return True

    def get_trigger_characters(self) -> list[str]:
        return []

    def get_keyword_pattern(self) -> str | None:
        """Override the configured keyword pattern for this provider."""
        return None

    @abstractmethod
    async def complete(
        self, params: CompletionParams, context: Context
    ) -> CompletionList | list[CompletionItem] | None:
        """
        Provide completion items for the given position.

        Returning a CompletionList with is_incomplete=True asks the engine to
        re-query while the user keeps typing at the same keyword offset.
        """
        pass

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        """
        Fill in expensive fields of an item.

        By default, returns the item unchanged.
        """
        return item

    async def execute(self, item: CompletionItem) -> None:
        """Run the item's command after it was inserted."""
        return None
