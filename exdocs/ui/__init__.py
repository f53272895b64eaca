"""Qt-aware pieces: command controller, candidate picker and host window."""

from .candidate_picker_dialog import CandidatePickerDialog
from .doc_lookup_controller import DocLookupController, EditorHost

__all__ = [
    "CandidatePickerDialog",
    "DocLookupController",
    "EditorHost",
]
