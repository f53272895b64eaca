"""Small LSP dataclasses/helpers for positions, ranges and completion items."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @staticmethod
    def on_line(line: int, start: int, end: int) -> "Range":
        return Range(Position(line, start), Position(line, end))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


def utf16_code_units(text: str) -> int:
    if not text:
        return 0
    return len(text.encode("utf-16-le")) // 2


def utf16_units_for_prefix(text: str, codepoint_index: int) -> int:
    if not text:
        return 0
    idx = max(0, min(len(text), int(codepoint_index)))
    return utf16_code_units(text[:idx])


def completion_items_from_result(result_obj: object) -> list[dict]:
    """Normalize a `textDocument/completion` result into a list of item dicts."""
    if isinstance(result_obj, dict):
        items = result_obj.get("items")
    else:
        items = result_obj
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]
