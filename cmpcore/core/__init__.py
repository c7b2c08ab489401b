"""Completion orchestration: engine, confirmation, guard and scheduling."""
from .confirmation import ConfirmationTransaction
from .engine import DEBOUNCE_TIME, SOURCE_TIMEOUT, THROTTLE_TIME, CompletionEngine
from .guard import GuardState, ReentrancyGuard
from .keymap import Keymap, KeySequence, normalize_keys
from .throttle import CoalescingScheduler

__all__ = [
    "CoalescingScheduler",
    "CompletionEngine",
    "ConfirmationTransaction",
    "DEBOUNCE_TIME",
    "GuardState",
    "Keymap",
    "KeySequence",
    "ReentrancyGuard",
    "SOURCE_TIMEOUT",
    "THROTTLE_TIME",
    "normalize_keys",
]
