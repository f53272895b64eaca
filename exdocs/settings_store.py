from __future__ import annotations

import json
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from exdocs.core.doc_reference import ERLANG_DOCS_BASE, HEX_DOCS_BASE
from exdocs.core.doc_urls import ELIXIR_MAIN_DOCS_URL
from exdocs.core.keybindings import default_keybindings
from exdocs.lsp.lsp_client import DEFAULT_SERVER_PROGRAM
from exdocs.services.runtime_version import DEFAULT_VERSION_COMMAND

CONFIG_DIR_ENV = "EXDOCS_CONFIG_DIR"
SETTINGS_FILENAME = "settings.json"


class SettingsStoreError(RuntimeError):
    """Raised when a settings file cannot be saved."""


def default_settings() -> dict[str, Any]:
    return {
        "docs": {
            "erlang_base": ERLANG_DOCS_BASE,
            "hex_base": HEX_DOCS_BASE,
            "main_elixir_url": ELIXIR_MAIN_DOCS_URL,
        },
        "lookup": {
            "max_tokens": 8,
            "max_candidates": 40,
        },
        "runtime": {
            "version_command": list(DEFAULT_VERSION_COMMAND),
            "timeout_s": 5,
        },
        "lsp": {
            "command": DEFAULT_SERVER_PROGRAM,
            "args": [],
        },
        "keybindings": default_keybindings(),
    }


def default_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "exdocs"


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Merge defaults into data without overwriting explicitly provided values."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = deepcopy(default_value)
            continue
        current = merged[key]
        if isinstance(current, dict) and isinstance(default_value, dict):
            merged[key] = deep_merge_defaults(current, default_value)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if not key:
        return data
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


class JsonSettingsStore:
    """JSON-backed settings with defaults and dot-key helpers."""

    def __init__(self, path: Path | None = None, defaults: Mapping[str, Any] | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_dir() / SETTINGS_FILENAME
        self.defaults: dict[str, Any] = deepcopy(dict(defaults if defaults is not None else default_settings()))
        self.data: dict[str, Any] = deep_merge_defaults({}, self.defaults)
        self.dirty: bool = False
        self.last_error: str | None = None

    def load(self) -> dict[str, Any]:
        self.last_error = None
        if not self.path.exists():
            self.data = deep_merge_defaults({}, self.defaults)
            self.dirty = True
            return self.data
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            # Keep running on defaults without touching the broken file.
            self.last_error = str(exc)
            self.data = deep_merge_defaults({}, self.defaults)
            self.dirty = False
            return self.data
        if not isinstance(raw, dict):
            self.last_error = (
                f"Settings root in '{self.path}' must be a JSON object, found {type(raw).__name__}."
            )
            raw = {}
        self.data = deep_merge_defaults(raw, self.defaults)
        self.dirty = False
        return self.data

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
        self.dirty = False
        self.last_error = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            return int(default)

    def get_str_list(self, key: str, default: list[str] | tuple[str, ...] = ()) -> list[str]:
        value = self.get(key, None)
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list):
            return list(default)
        return [str(item) for item in value if str(item).strip()]
