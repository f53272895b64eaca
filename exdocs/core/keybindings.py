"""Shortcut table for the window's commands.

User overrides live under ``keybindings.<scope>.<action_id>`` in settings and
may be a single chord string (``"Ctrl+K, Ctrl+D"``) or a list of chords.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from PySide6.QtGui import QKeySequence


@dataclass(frozen=True, slots=True)
class ShortcutDefault:
    scope: str
    action_id: str
    chords: tuple[str, ...]


SHORTCUT_DEFAULTS: tuple[ShortcutDefault, ...] = (
    ShortcutDefault("general", "action.open_file", ("Ctrl+O",)),
    ShortcutDefault("general", "action.exit", ("Ctrl+Q",)),
    ShortcutDefault("docs", "action.docs_lookup", ("Ctrl+Alt+D",)),
    ShortcutDefault("docs", "action.docs_open_elixir", ("Ctrl+Alt+E",)),
    ShortcutDefault("docs", "action.docs_open_erlang", ("Ctrl+Alt+O",)),
)


def default_keybindings() -> dict[str, dict[str, list[str]]]:
    out: dict[str, dict[str, list[str]]] = {}
    for entry in SHORTCUT_DEFAULTS:
        out.setdefault(entry.scope, {})[entry.action_id] = list(entry.chords)
    return out


def _override_chords(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def shortcut_chords(keybindings: Mapping[str, Any] | None, scope: str, action_id: str) -> list[str]:
    """User chords for the action if any are set, otherwise its defaults."""
    scope_map = keybindings.get(scope) if isinstance(keybindings, Mapping) else None
    if isinstance(scope_map, Mapping):
        chords = _override_chords(scope_map.get(action_id))
        if chords:
            return chords
    for entry in SHORTCUT_DEFAULTS:
        if entry.scope == scope and entry.action_id == action_id:
            return list(entry.chords)
    return []


def shortcut_for(keybindings: Mapping[str, Any] | None, scope: str, action_id: str) -> QKeySequence:
    text = ", ".join(shortcut_chords(keybindings, scope, action_id))
    return QKeySequence.fromString(text, QKeySequence.PortableText)
