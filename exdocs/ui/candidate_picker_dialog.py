from __future__ import annotations

from typing import Sequence

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QVBoxLayout,
    QWidget,
)

from exdocs.core.doc_reference import Candidate


def candidate_display_text(candidate: Candidate) -> str:
    detail = str(candidate.detail or "").strip()
    if not detail:
        return candidate.label
    return f"{candidate.label}\n    {detail}"


class CandidatePickerDialog(QDialog):
    """Single-choice picker over completion candidates."""

    def __init__(
        self,
        candidates: Sequence[Candidate],
        *,
        title: str = "Look Up Documentation",
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(str(title or "Look Up Documentation"))
        self.resize(560, 380)
        self._candidates = list(candidates)

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(8)

        hint = QLabel("Several matches were found. Pick the one to open.")
        hint.setWordWrap(True)
        root.addWidget(hint)

        self.filter_edit = QLineEdit(self)
        self.filter_edit.setPlaceholderText("Filter")
        self.filter_edit.textChanged.connect(self._apply_filter)
        root.addWidget(self.filter_edit)

        self.list_widget = QListWidget(self)
        self.list_widget.itemActivated.connect(lambda _item: self._accept_if_selected())
        for index, candidate in enumerate(self._candidates):
            item = QListWidgetItem(candidate_display_text(candidate))
            item.setData(Qt.UserRole, index)
            self.list_widget.addItem(item)
        if self._candidates:
            self.list_widget.setCurrentRow(0)
        root.addWidget(self.list_widget, 1)

        self._buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, parent=self)
        self._buttons.accepted.connect(self._accept_if_selected)
        self._buttons.rejected.connect(self.reject)
        root.addWidget(self._buttons)

        self.filter_edit.setFocus(Qt.OtherFocusReason)

    def selected_candidate(self) -> Candidate | None:
        item = self.list_widget.currentItem()
        if item is None or item.isHidden():
            return None
        index = item.data(Qt.UserRole)
        if not isinstance(index, int) or not 0 <= index < len(self._candidates):
            return None
        return self._candidates[index]

    def _apply_filter(self, text: str) -> None:
        needle = str(text or "").strip().lower()
        first_visible: QListWidgetItem | None = None
        for row in range(self.list_widget.count()):
            item = self.list_widget.item(row)
            visible = not needle or needle in item.text().lower()
            item.setHidden(not visible)
            if visible and first_visible is None:
                first_visible = item
        current = self.list_widget.currentItem()
        if current is not None and not current.isHidden():
            return
        if first_visible is None:
            self.list_widget.setCurrentRow(-1)
        else:
            self.list_widget.setCurrentItem(first_visible)

    def _accept_if_selected(self) -> None:
        if self.selected_candidate() is None:
            self.list_widget.setFocus(Qt.OtherFocusReason)
            return
        self.accept()

    @classmethod
    def pick_candidate(
        cls,
        candidates: Sequence[Candidate],
        *,
        parent: QWidget | None = None,
    ) -> Candidate | None:
        dialog = cls(candidates, parent=parent)
        if dialog.exec() != QDialog.Accepted:
            return None
        return dialog.selected_candidate()
