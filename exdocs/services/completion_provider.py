"""Completion candidates from elixir-ls for the documentation lookup."""

from __future__ import annotations

import os
from typing import Callable, Protocol

from PySide6.QtCore import QObject, Signal

from exdocs.core.doc_reference import Candidate
from exdocs.lsp.lsp_client import DEFAULT_SERVER_PROGRAM, LspClient
from exdocs.lsp.types import Position, completion_items_from_result, utf16_units_for_prefix

CompletionCallback = Callable[[list[Candidate]], None]


class CompletionSource(Protocol):
    def request_completions(
        self,
        *,
        file_path: str,
        source_text: str,
        position: Position,
        on_done: CompletionCallback,
    ) -> None:
        ...

    def shutdown(self) -> None:
        ...


def candidates_from_items(items: list[dict]) -> list[Candidate]:
    out: list[Candidate] = []
    for item in items:
        label = str(item.get("label") or "").strip()
        if not label:
            continue
        detail = item.get("detail")
        out.append(Candidate(label=label, detail=str(detail) if detail is not None else None))
    return out


class ElixirLsCompletionProvider(QObject):
    statusMessage = Signal(str)

    def __init__(
        self,
        *,
        program: str = DEFAULT_SERVER_PROGRAM,
        args: list[str] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._program = str(program or DEFAULT_SERVER_PROGRAM)
        self._args = list(args or [])
        self._workspace_root = ""
        self._client = LspClient(self)
        self._client.statusMessage.connect(self.statusMessage.emit)

    def set_workspace_root(self, root: str) -> None:
        clean = str(root or "").strip()
        if clean == self._workspace_root:
            return
        self._workspace_root = clean
        if self._client.is_running():
            self._client.stop()

    def request_completions(
        self,
        *,
        file_path: str,
        source_text: str,
        position: Position,
        on_done: CompletionCallback,
    ) -> None:
        path = str(file_path or "").strip()
        if not path:
            on_done([])
            return
        if not self._client.is_running():
            root = self._workspace_root or os.path.dirname(os.path.abspath(path))
            self.statusMessage.emit(f"Starting {self._program}...")
            self._client.start(program=self._program, args=self._args, cwd=root)

        uri = LspClient.path_to_uri(path)
        self._client.sync_document(uri=uri, text=source_text)
        lines = str(source_text or "").splitlines()
        line_text = lines[position.line] if 0 <= position.line < len(lines) else ""
        lsp_position = Position(position.line, utf16_units_for_prefix(line_text, position.character))

        def _on_result(result_obj: object) -> None:
            on_done(candidates_from_items(completion_items_from_result(result_obj)))

        def _on_error(_error_obj: object) -> None:
            on_done([])

        self._client.completion(uri=uri, position=lsp_position, on_result=_on_result, on_error=_on_error)

    def shutdown(self) -> None:
        self._client.stop()
