"""Editor host contract and the in-memory buffer host."""
from .buffer import BufferEditor
from .host import EditorHost
from .keys import DeleteBackward, DeleteForward, Insert, Key, Reindent, UndoBreak

__all__ = [
    "BufferEditor",
    "EditorHost",
    "DeleteBackward",
    "DeleteForward",
    "Insert",
    "Key",
    "Reindent",
    "UndoBreak",
]
