"""Lookup core: line tokenizer, reference resolver, URL renderer and keybindings."""

from .doc_reference import Candidate, Dependency, DocReference, classify, resolve
from .doc_urls import MainDocs, to_doc_url, to_main_doc_url
from .line_parser import LineToken, LineTokenState, parse_line

__all__ = [
    "Candidate",
    "Dependency",
    "DocReference",
    "LineToken",
    "LineTokenState",
    "MainDocs",
    "classify",
    "parse_line",
    "resolve",
    "to_doc_url",
    "to_main_doc_url",
]
