"""Presentation contract and the in-memory list view."""
from .view import CompletionView, ListView

__all__ = ["CompletionView", "ListView"]
