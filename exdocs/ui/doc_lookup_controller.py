"""Documentation commands: open the Elixir/OTP indexes and look up the symbol at the cursor."""

from __future__ import annotations

import logging
from typing import Callable, Protocol, Sequence

from PySide6.QtCore import QObject, Signal

from exdocs.core.doc_reference import (
    Candidate,
    Dependency,
    DocReference,
    filter_candidates,
    merge_candidate_lists,
    rank_candidates,
    resolve,
)
from exdocs.core.doc_urls import ELIXIR_MAIN_DOCS_URL, MainDocs, to_doc_url, to_main_doc_url
from exdocs.core.line_parser import LineToken, completion_position, full_line_range, parse_line
from exdocs.lsp.types import Position, Range
from exdocs.services.completion_fanout import CompletionFanOut
from exdocs.services.mix_lock import DependencyCache

logger = logging.getLogger(__name__)


class EditorHost(Protocol):
    def active_file_path(self) -> str:
        ...

    def selection_or_word_range(self) -> Range | None:
        ...

    def cursor_position(self) -> Position:
        ...

    def line_text(self, line: int) -> str:
        ...

    def request_completions(self, position: Position, on_done: Callable[[list[Candidate]], None]) -> None:
        ...

    def prompt_single_choice(self, candidates: list[Candidate]) -> Candidate | None:
        ...

    def open_url(self, url: str) -> None:
        ...

    def focus_secondary_pane(self) -> None:
        ...


class DocLookupController(QObject):
    statusMessage = Signal(str)
    lookupFinished = Signal(str)

    def __init__(
        self,
        host: EditorHost,
        *,
        base_reference: DocReference | None = None,
        dependency_cache: DependencyCache | None = None,
        max_tokens: int = 8,
        max_candidates: int = 40,
        elixir_main_url: str = ELIXIR_MAIN_DOCS_URL,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._host = host
        self._base_reference = base_reference.copy() if base_reference is not None else DocReference()
        self._dependency_cache = dependency_cache if dependency_cache is not None else DependencyCache()
        self._max_tokens = max(1, int(max_tokens))
        self._max_candidates = max(1, int(max_candidates))
        self._elixir_main_url = str(elixir_main_url or ELIXIR_MAIN_DOCS_URL)
        self._lookup_next_token = 0
        self._active_lookup_token = 0

    @property
    def dependency_cache(self) -> DependencyCache:
        return self._dependency_cache

    # ---------- Commands ----------

    def open_main_docs(self) -> str:
        return self._open(to_main_doc_url(self._base_reference, MainDocs.ELIXIR, elixir_main_url=self._elixir_main_url))

    def open_erlang_docs(self) -> str:
        return self._open(to_main_doc_url(self._base_reference, MainDocs.ERLANG))

    def lookup(self) -> None:
        self._lookup_next_token += 1
        token = self._lookup_next_token
        self._active_lookup_token = token
        base = self._base_reference.copy()

        dependencies = self._refresh_dependencies()
        tokens = self._tokens_at_cursor()
        if not tokens:
            self._finish(token, base, [], dependencies)
            return

        phrases = [item.phrase for item in tokens]
        logger.debug("Lookup tokens: %s", phrases)
        self.statusMessage.emit(f"Looking up {phrases[0]}...")
        fan_out = CompletionFanOut(
            len(tokens),
            lambda lists: self._on_completions_ready(token, base, tokens, lists, dependencies),
        )
        for index, line_token in enumerate(tokens):
            callback = fan_out.callback_for(index)
            try:
                self._host.request_completions(completion_position(line_token), callback)
            except Exception as exc:
                logger.debug("Completion request for %r failed: %s", line_token.phrase, exc)
                callback([])

    # ---------- Pipeline ----------

    def _refresh_dependencies(self) -> tuple[Dependency, ...]:
        try:
            file_path = str(self._host.active_file_path() or "")
        except Exception:
            file_path = ""
        if not file_path:
            return ()
        state = self._dependency_cache.refresh_if_stale(file_path)
        if state.lock_path:
            logger.debug("Lock file at %s (%d dependencies)", state.lock_path, len(state.dependencies))
        return state.dependencies

    def _tokens_at_cursor(self) -> list[LineToken]:
        try:
            cursor = self._host.cursor_position()
            text_range = self._host.selection_or_word_range()
            line_no = text_range.start.line if text_range is not None else cursor.line
            line = str(self._host.line_text(line_no) or "")
        except Exception as exc:
            logger.debug("No usable editor state: %s", exc)
            return []
        if text_range is None or text_range.is_empty:
            text_range = full_line_range(line, line_no)
        elif text_range.end.line != line_no:
            text_range = Range.on_line(line_no, text_range.start.character, len(line))
        tokens = parse_line(line, text_range, cursor)
        return tokens[: self._max_tokens]

    def _on_completions_ready(
        self,
        token: int,
        base: DocReference,
        tokens: Sequence[LineToken],
        lists: list[list[Candidate]],
        dependencies: Sequence[Dependency],
    ) -> None:
        ranked = [
            rank_candidates(line_token.phrase, filter_candidates(items))
            for line_token, items in zip(tokens, lists)
        ]
        merged = merge_candidate_lists(ranked, self._max_candidates)
        self._finish(token, base, merged, dependencies)

    def _choose(self, candidates: list[Candidate]) -> Candidate | None:
        try:
            return self._host.prompt_single_choice(candidates)
        except Exception as exc:
            logger.debug("Candidate prompt failed: %s", exc)
            return None

    def _finish(
        self,
        token: int,
        base: DocReference,
        candidates: list[Candidate],
        dependencies: Sequence[Dependency],
    ) -> None:
        if token != self._active_lookup_token:
            return
        if not candidates:
            self.statusMessage.emit("No documentation match; opening default module.")
        ref = resolve(base, candidates, dependencies, choose=self._choose)
        url = to_doc_url(ref)
        self._open(url)
        self.lookupFinished.emit(url)

    def _open(self, url: str) -> str:
        logger.debug("Opening %s", url)
        try:
            self._host.focus_secondary_pane()
        except Exception as exc:
            logger.debug("Could not focus documentation pane: %s", exc)
        try:
            self._host.open_url(url)
        except Exception as exc:
            logger.debug("Could not open %s: %s", url, exc)
        self.statusMessage.emit(url)
        return url
