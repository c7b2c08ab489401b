"""Editing context snapshots."""
from .context import Context, Cursor, changed
from .types import (
    ConfirmBehavior,
    ContextReason,
    SelectBehavior,
    SourceStatus,
    TriggerEvent,
)

__all__ = [
    "Context",
    "Cursor",
    "changed",
    "ConfirmBehavior",
    "ContextReason",
    "SelectBehavior",
    "SourceStatus",
    "TriggerEvent",
]
