"""Render documentation references into absolute URLs."""

from __future__ import annotations

from enum import Enum

from exdocs.core.doc_reference import DocReference

ELIXIR_MAIN_DOCS_URL = "https://elixir-lang.org/docs.html"

_FRAGMENT_ESCAPES = str.maketrans({"|": "%7C", "<": "%3C", ">": "%3E"})


class MainDocs(Enum):
    ELIXIR = "elixir"
    ERLANG = "erlang"


def escape_fragment(fragment: str) -> str:
    """Percent-encode the characters that break URL anchors (``|``, ``<``, ``>``)."""
    return str(fragment or "").translate(_FRAGMENT_ESCAPES)


def _anchor(fragment: str, *, is_type: bool = False) -> str:
    text = str(fragment or "")
    if not text:
        return ""
    prefix = "t:" if is_type else ""
    return f"#{prefix}{escape_fragment(text)}"


def to_doc_url(ref: DocReference) -> str:
    hex_base = str(ref.hex_base or "").rstrip("/")
    if ref.package is not None:
        return (
            f"{hex_base}/{ref.package.name}/{ref.package.version}/{ref.module}.html"
            f"{_anchor(ref.fragment, is_type=ref.is_type)}"
        )
    if ref.is_erlang:
        erl_base = str(ref.erl_base or "").rstrip("/")
        return f"{erl_base}/{ref.otp_version}/man/{ref.module}{_anchor(ref.fragment)}"
    return (
        f"{hex_base}/elixir/{ref.elixir_version}/{ref.module}.html"
        f"{_anchor(ref.fragment, is_type=ref.is_type)}"
    )


def major_elixir_version(version: str) -> str:
    parts = str(version or "").split(".")
    if len(parts) > 2:
        return f"v{'.'.join(parts[:2])}"
    return f"v{version or ''}"


def to_main_doc_url(
    ref: DocReference,
    main: MainDocs,
    *,
    elixir_main_url: str = ELIXIR_MAIN_DOCS_URL,
) -> str:
    if main is MainDocs.ERLANG:
        erl_base = str(ref.erl_base or "").rstrip("/")
        return f"{erl_base}/{ref.otp_version}"
    return f"{elixir_main_url}#{major_elixir_version(ref.elixir_version)}"
