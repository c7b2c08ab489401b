"""Completion sources: provider plugins, entries and the registry."""
from .entry import Entry
from .provider import CompletionProvider
from .registry import SourceRegistry
from .source import Source

__all__ = ["CompletionProvider", "Entry", "Source", "SourceRegistry"]
