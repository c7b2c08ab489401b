"""
Key-sequence dispatch table.

Mapping entries are resolved once, at setup, into typed actions keyed by a
normalized key sequence. Keystroke dispatch is then a dictionary lookup.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from cmpcore.config import BuiltinAction as BuiltinActionConfig
from cmpcore.config import MappingValue
from cmpcore.errors import ConfigError


Fallback = Callable[[], None]

BUILTIN_ACTIONS = (
    "complete",
    "close",
    "abort",
    "confirm",
    "select_next_item",
    "select_prev_item",
)

_MODIFIERS = {"c": "C", "s": "S", "m": "M", "a": "M", "d": "D"}
_KEY_NAMES = {
    "cr": "CR",
    "return": "CR",
    "enter": "CR",
    "esc": "Esc",
    "tab": "Tab",
    "bs": "BS",
    "backspace": "BS",
    "del": "Del",
    "space": "Space",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "lt": "lt",
}
_SPECIAL = re.compile(r"<([^<>]+)>")


@dataclass(frozen=True)
class KeySequence:
    """A normalized key sequence such as ``<C-y>`` or ``<CR>``."""

    keys: str

    def __str__(self) -> str:
        return self.keys


def _normalize_special(token: str) -> str:
    parts = token.split("-")
    if len(parts) == 1:
        return "<" + _KEY_NAMES.get(token.lower(), token) + ">"

    *modifiers, key = parts
    mods = [_MODIFIERS.get(m.lower(), m.upper()) for m in modifiers]
    if len(key) == 1:
        # <C-Y> and <C-y> are the same key.
        key = key.lower() if "C" in mods else key
    else:
        key = _KEY_NAMES.get(key.lower(), key)
    return "<" + "-".join(mods + [key]) + ">"


def normalize_keys(keys: str | KeySequence) -> KeySequence:
    """Canonical form of a key sequence, e.g. ``<c-Y>`` -> ``<C-y>``."""
    if isinstance(keys, KeySequence):
        return keys
    return KeySequence(_SPECIAL.sub(lambda m: _normalize_special(m.group(1)), keys))


@dataclass(frozen=True)
class CustomAction:
    """User handler receiving the fallback."""

    handler: Callable[[Fallback], Any]

    async def invoke(self, fallback: Fallback) -> None:
        result = self.handler(fallback)
        if inspect.isawaitable(result):
            await result


@dataclass(frozen=True)
class BuiltinAction:
    """Built-in action bound to the dispatcher at setup."""

    name: str
    target: Callable[..., Any]
    options: Mapping[str, Any] = field(default_factory=dict)

    async def invoke(self, fallback: Fallback) -> None:
        result = self.target(**self.options)
        if inspect.isawaitable(result):
            result = await result
        if result is False:
            fallback()


Action = CustomAction | BuiltinAction


class Keymap:
    """
    Resolved key-sequence table.

    Usage:
        keymap = Keymap.from_mapping(config.mapping, completion)
        action = keymap.lookup("<C-y>")
        if action:
            await action.invoke(fallback)
    """

    def __init__(self, actions: dict[KeySequence, Action] | None = None) -> None:
        self.actions = actions or {}

    def __len__(self) -> int:
        return len(self.actions)

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, MappingValue], dispatcher: Any
    ) -> Keymap:
        actions: dict[KeySequence, Action] = {}
        for keys, value in mapping.items():
            actions[normalize_keys(keys)] = cls._resolve(keys, value, dispatcher)
        return cls(actions)

    @staticmethod
    def _resolve(keys: str, value: MappingValue, dispatcher: Any) -> Action:
        if isinstance(value, str):
            value = BuiltinActionConfig(value)

        if isinstance(value, BuiltinActionConfig):
            if value.name not in BUILTIN_ACTIONS:
                raise ConfigError(f"Unknown action {value.name!r} for {keys}")
            return BuiltinAction(
                name=value.name,
                target=getattr(dispatcher, value.name),
                options=dict(value.options),
            )

        if callable(value):
            return CustomAction(handler=value)

        raise ConfigError(f"Invalid mapping for {keys}: {value!r}")

    def lookup(self, keys: str | KeySequence) -> Action | None:
        return self.actions.get(normalize_keys(keys))
