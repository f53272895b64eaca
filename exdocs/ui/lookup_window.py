"""Minimal editor window hosting the documentation commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QUrl
from PySide6.QtGui import QAction, QCloseEvent, QDesktopServices, QFontDatabase
from PySide6.QtWidgets import QFileDialog, QMainWindow, QPlainTextEdit, QWidget

from exdocs.core.doc_reference import Candidate, DocReference
from exdocs.core.keybindings import shortcut_for
from exdocs.core.line_parser import word_range_at
from exdocs.lsp.types import Position, Range
from exdocs.services.completion_provider import CompletionSource, ElixirLsCompletionProvider
from exdocs.settings_store import JsonSettingsStore
from exdocs.ui.candidate_picker_dialog import CandidatePickerDialog
from exdocs.ui.doc_lookup_controller import DocLookupController

APP_NAME = "ExDocs"


class DocLookupWindow(QMainWindow):
    def __init__(
        self,
        *,
        settings: JsonSettingsStore,
        base_reference: DocReference,
        completion_source: CompletionSource | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.settings = settings
        self.file_path = ""
        self.setWindowTitle(APP_NAME)
        self.resize(960, 680)

        self.editor = QPlainTextEdit(self)
        self.editor.setFont(QFontDatabase.systemFont(QFontDatabase.FixedFont))
        self.editor.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.setCentralWidget(self.editor)

        if completion_source is None:
            provider = ElixirLsCompletionProvider(
                program=str(settings.get("lsp.command", "") or ""),
                args=settings.get_str_list("lsp.args"),
                parent=self,
            )
            provider.statusMessage.connect(self._show_status)
            completion_source = provider
        self.completion_source = completion_source

        self.controller = DocLookupController(
            self,
            base_reference=base_reference,
            max_tokens=settings.get_int("lookup.max_tokens", 8),
            max_candidates=settings.get_int("lookup.max_candidates", 40),
            elixir_main_url=str(settings.get("docs.main_elixir_url", "") or ""),
            parent=self,
        )
        self.controller.statusMessage.connect(self._show_status)

        self._shortcut_actions: list[tuple[QAction, str, str]] = []
        self._create_actions()
        self.apply_keybindings()
        self.statusBar().showMessage("Ready", 1500)

    # ---------- Actions ----------

    def _create_actions(self) -> None:
        menubar = self.menuBar()
        file_menu = menubar.addMenu("&File")
        self._add_action(file_menu, "Open File...", self.open_file_dialog, "general", "action.open_file")
        file_menu.addSeparator()
        self._add_action(file_menu, "Exit", self.close, "general", "action.exit")

        docs_menu = menubar.addMenu("&Documentation")
        self._add_action(docs_menu, "Look Up Symbol", self.controller.lookup, "docs", "action.docs_lookup")
        docs_menu.addSeparator()
        self._add_action(docs_menu, "Elixir Documentation", self.controller.open_main_docs, "docs", "action.docs_open_elixir")
        self._add_action(docs_menu, "Erlang/OTP Documentation", self.controller.open_erlang_docs, "docs", "action.docs_open_erlang")

    def _add_action(self, menu, text: str, slot: Callable[[], object], scope: str, action_id: str) -> QAction:
        action = QAction(text, self)
        action.triggered.connect(lambda _checked=False: slot())
        menu.addAction(action)
        self._shortcut_actions.append((action, scope, action_id))
        return action

    def apply_keybindings(self) -> None:
        keybindings = self.settings.get("keybindings", {})
        for action, scope, action_id in self._shortcut_actions:
            action.setShortcut(shortcut_for(keybindings, scope, action_id))

    # ---------- Files ----------

    def open_file_dialog(self) -> None:
        start_dir = os.path.dirname(self.file_path) if self.file_path else str(Path.cwd())
        selected, _selected_filter = QFileDialog.getOpenFileName(
            self,
            "Open Elixir File",
            start_dir,
            "Elixir Files (*.ex *.exs *.heex);;All Files (*)",
        )
        if selected:
            self.open_file(selected)

    def open_file(self, file_path: str) -> bool:
        path = Path(file_path).expanduser()
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            self._show_status(f"Could not open {path}: {exc}")
            return False
        self.file_path = str(path.resolve())
        self.editor.setPlainText(text)
        self.setWindowTitle(f"{APP_NAME} [{path.name}]")

        state = self.controller.dependency_cache.refresh_if_stale(self.file_path)
        set_root = getattr(self.completion_source, "set_workspace_root", None)
        if callable(set_root):
            set_root(os.path.dirname(state.lock_path) if state.lock_path else os.path.dirname(self.file_path))
        self._show_status(f"Opened {self.file_path}")
        return True

    # ---------- EditorHost ----------

    def active_file_path(self) -> str:
        return self.file_path

    def cursor_position(self) -> Position:
        cursor = self.editor.textCursor()
        return Position(cursor.blockNumber(), cursor.positionInBlock())

    def selection_or_word_range(self) -> Range | None:
        cursor = self.editor.textCursor()
        if cursor.hasSelection():
            doc = self.editor.document()
            start_block = doc.findBlock(cursor.selectionStart())
            end_block = doc.findBlock(cursor.selectionEnd())
            return Range(
                Position(start_block.blockNumber(), cursor.selectionStart() - start_block.position()),
                Position(end_block.blockNumber(), cursor.selectionEnd() - end_block.position()),
            )
        position = self.cursor_position()
        return word_range_at(self.line_text(position.line), position.line, position.character)

    def line_text(self, line: int) -> str:
        block = self.editor.document().findBlockByNumber(int(line))
        if not block.isValid():
            return ""
        return block.text()

    def request_completions(self, position: Position, on_done: Callable[[list[Candidate]], None]) -> None:
        if not self.file_path:
            on_done([])
            return
        self.completion_source.request_completions(
            file_path=self.file_path,
            source_text=self.editor.toPlainText(),
            position=position,
            on_done=on_done,
        )

    def prompt_single_choice(self, candidates: list[Candidate]) -> Candidate | None:
        return CandidatePickerDialog.pick_candidate(candidates, parent=self)

    def open_url(self, url: str) -> None:
        if not QDesktopServices.openUrl(QUrl(url)):
            self._show_status(f"Could not open {url}")

    def focus_secondary_pane(self) -> None:
        """Documentation opens in the system browser; keep the editor focused for the next lookup."""
        self.editor.setFocus()

    # ---------- Misc ----------

    def _show_status(self, text: str) -> None:
        self.statusBar().showMessage(str(text or ""), 4000)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.completion_source.shutdown()
        super().closeEvent(event)
