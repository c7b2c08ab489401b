"""Autocompletion orchestration engine for text editors."""
from .api import Completion, SourceStatusReport
from .config import (
    BuiltinAction,
    CompletionConfig,
    Config,
    ConfirmationConfig,
    EventConfig,
    SnippetConfig,
    SourceConfig,
)
from .context import ConfirmBehavior, ContextReason, SelectBehavior, TriggerEvent
from .sources import CompletionProvider

__all__ = [
    "BuiltinAction",
    "Completion",
    "CompletionConfig",
    "CompletionProvider",
    "Config",
    "ConfirmBehavior",
    "ConfirmationConfig",
    "ContextReason",
    "EventConfig",
    "SelectBehavior",
    "SnippetConfig",
    "SourceConfig",
    "SourceStatusReport",
    "TriggerEvent",
]
