"""Split a single source line into candidate lookup phrases.

The parser knows nothing about Elixir grammar. It cuts the line at a fixed set
of delimiter characters, so operators such as ``|>`` or ``->`` and atoms such
as ``:config`` survive as phrases of their own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from exdocs.lsp.types import Position, Range

TOKEN_SPLITTERS = frozenset({" ", "(", ")", ",", ";", "{", "}"})
# Identifier-ish run under the cursor: dotted aliases, atoms, call parens, arity slashes.
WORD_PATTERN = re.compile(r"[\w.:(/!?@]+")


class LineTokenState(Enum):
    INITIALIZED = 0
    COLLECTING = 1
    CLOSED = 2


@dataclass(frozen=True)
class LineToken:
    phrase: str
    range: Range
    state: LineTokenState = LineTokenState.CLOSED

    def contains_column(self, column: int) -> bool:
        return self.range.start.character <= column <= self.range.end.character


def parse_line(line: str, line_range: Range, cursor: Position) -> list[LineToken]:
    """Return the phrases of ``line`` inside ``line_range``.

    Token ranges are inclusive on both ends. The token under ``cursor`` is
    moved to the front and repeated phrases are dropped, keeping the first.
    """
    text = str(line or "")
    row = line_range.start.line
    index = max(0, line_range.start.character)
    max_index = min(len(text), max(index, line_range.end.character))

    tokens: list[LineToken] = []
    phrase = ""
    start = index
    state = LineTokenState.INITIALIZED

    while index < max_index:
        ch = text[index]
        if ch in TOKEN_SPLITTERS:
            if state is LineTokenState.COLLECTING:
                tokens.append(LineToken(phrase, Range.on_line(row, start, index - 1)))
                phrase = ""
                state = LineTokenState.INITIALIZED
            start = index + 1
        else:
            if state is LineTokenState.INITIALIZED:
                start = index
            phrase += ch
            state = LineTokenState.COLLECTING
            if index == max_index - 1:
                # End of range is not a delimiter; close the open phrase here.
                tokens.append(LineToken(phrase, Range.on_line(row, start, index)))
                state = LineTokenState.CLOSED
        index += 1

    cursor_index = -1
    for idx, token in enumerate(tokens):
        if token.contains_column(cursor.character):
            cursor_index = idx
    if cursor_index > 0:
        tokens[0], tokens[cursor_index] = tokens[cursor_index], tokens[0]

    seen: set[str] = set()
    unique: list[LineToken] = []
    for token in tokens:
        if token.phrase in seen:
            continue
        seen.add(token.phrase)
        unique.append(token)
    return unique


def completion_position(token: LineToken) -> Position:
    """Position just after the token's last character, where completions apply."""
    return Position(token.range.end.line, token.range.end.character + 1)


def word_range_at(line: str, line_no: int, column: int, pattern: re.Pattern[str] = WORD_PATTERN) -> Range | None:
    """Range of the ``pattern`` match touching ``column`` (end exclusive), if any."""
    text = str(line or "")
    col = max(0, int(column))
    for match in pattern.finditer(text):
        if match.start() <= col <= match.end():
            return Range.on_line(line_no, match.start(), match.end())
        if match.start() > col:
            break
    return None


def full_line_range(line: str, line_no: int) -> Range:
    return Range.on_line(line_no, 0, len(str(line or "")))
