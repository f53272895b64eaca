"""Documentation reference model and completion-item classification.

A completion item only carries a label and a free-text ``detail`` string such
as ``"(function) Map.put(map, key, value)"`` or ``"module"``. All of the string
slicing needed to turn that into a module/fragment pair lives here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Sequence

ERLANG_DOCS_BASE = "https://www.erlang.org/docs"
HEX_DOCS_BASE = "https://hexdocs.pm"
DEFAULT_MODULE = "Kernel"
SPECIAL_FORMS_MODULE = "Kernel.SpecialForms"
ERLANG_SIGIL = ":"

_FUNCTION_PREFIXES = ("(function)", "(macro)")
_ELIXIR_SIGNATURE_RE = re.compile(r"^(:\w+|[A-Z]\w*(?:\.[A-Z]\w*)*)\.(.+)$")
_LABEL_ARITY_RE = re.compile(r"/\d+$")
_CAMEL_RUN_RE = re.compile(r"[A-Z]+[^A-Z]*|^[^A-Z]+")


@dataclass(frozen=True)
class Dependency:
    name: str
    version: str


@dataclass(frozen=True)
class Candidate:
    label: str
    detail: str | None = None


@dataclass
class DocReference:
    erl_base: str = ERLANG_DOCS_BASE
    hex_base: str = HEX_DOCS_BASE
    elixir_version: str = ""
    otp_version: str = ""
    module: str = DEFAULT_MODULE
    fragment: str = ""
    is_erlang: bool = False
    is_type: bool = False
    package: Dependency | None = None

    def copy(self) -> "DocReference":
        return replace(self)


# ---------------------------------------------------------
# Classification variants
# ---------------------------------------------------------


@dataclass(frozen=True)
class Behaviour:
    module: str


@dataclass(frozen=True)
class ExceptionModule:
    module: str


@dataclass(frozen=True)
class Struct:
    module: str


@dataclass(frozen=True)
class FunctionOrMacro:
    module: str
    name: str
    arity: int
    is_erlang: bool = False
    is_macro: bool = False

    @property
    def fragment(self) -> str:
        separator = "-" if self.is_erlang else "/"
        return f"{self.name}{separator}{self.arity}"


@dataclass(frozen=True)
class ModuleRef:
    module: str
    is_erlang: bool = False


@dataclass(frozen=True)
class Typespec:
    module: str = "typespecs"
    name: str = ""
    arity: int = 0

    @property
    def is_remote(self) -> bool:
        return bool(self.name)


@dataclass(frozen=True)
class Unclassified:
    pass


Classified = Behaviour | ExceptionModule | Struct | FunctionOrMacro | ModuleRef | Typespec | Unclassified


@dataclass(frozen=True)
class DocReferenceUpdate:
    """Partial update of a `DocReference`; ``None`` fields are left untouched."""

    module: str | None = None
    fragment: str | None = None
    is_erlang: bool | None = None
    is_type: bool | None = None

    def apply(self, ref: DocReference) -> DocReference:
        changes = {
            key: value
            for key, value in (
                ("module", self.module),
                ("fragment", self.fragment),
                ("is_erlang", self.is_erlang),
                ("is_type", self.is_type),
            )
            if value is not None
        }
        return replace(ref, **changes)


# ---------------------------------------------------------
# Detail string helpers
# ---------------------------------------------------------


def _strip_suffix(label: str, suffix: str) -> str:
    text = str(label or "")
    if text.endswith(suffix):
        return text[: -len(suffix)]
    return text


def _strip_sigil(module: str) -> tuple[str, bool]:
    if module.startswith(ERLANG_SIGIL):
        return module[len(ERLANG_SIGIL):], True
    return module, False


def _trailing_argument_group(detail: str) -> tuple[int, str] | None:
    """Return (open paren index, inner text) of the parenthesis group ending ``detail``."""
    text = detail.rstrip()
    if not text.endswith(")"):
        return None
    depth = 0
    for idx in range(len(text) - 1, -1, -1):
        ch = text[idx]
        if ch == ")":
            depth += 1
        elif ch == "(":
            depth -= 1
            if depth == 0:
                return idx, text[idx + 1 : -1]
    return None


def count_arity(arguments: str) -> int:
    """Count top-level comma separated arguments (``""`` -> 0)."""
    if not arguments.strip():
        return 0
    depth = 0
    commas = 0
    for ch in arguments:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            commas += 1
    return commas + 1


def _split_signature(signature: str) -> tuple[str, str] | None:
    match = _ELIXIR_SIGNATURE_RE.match(signature)
    if match:
        return match.group(1), match.group(2)
    final_dot = signature.rfind(".")
    if final_dot <= 0 or final_dot == len(signature) - 1:
        return None
    return signature[:final_dot], signature[final_dot + 1 :]


def _parse_signature(detail: str) -> tuple[str, str, int] | None:
    """Split ``"<kind> Module.fun(args)"`` into (module, name, arity)."""
    first_space = detail.find(" ")
    if first_space < 0:
        return None
    group = _trailing_argument_group(detail)
    if group is None:
        signature = detail[first_space + 1 :].strip()
        arity = 0
    else:
        open_idx, arguments = group
        if open_idx <= first_space:
            return None
        signature = detail[first_space + 1 : open_idx].strip()
        arity = count_arity(arguments)
    parts = _split_signature(signature)
    if parts is None:
        return None
    module, name = parts
    if not module or not name:
        return None
    return module, name, arity


# ---------------------------------------------------------
# Predicates, evaluated in this order
# ---------------------------------------------------------


def _as_behaviour(label: str, detail: str) -> Classified | None:
    if detail != "behaviour":
        return None
    return Behaviour(_strip_suffix(label, " (behaviour)"))


def _as_exception(label: str, detail: str) -> Classified | None:
    if detail != "exception":
        return None
    return ExceptionModule(_strip_suffix(label, " (exception)"))


def _as_struct(label: str, detail: str) -> Classified | None:
    if detail != "struct":
        return None
    return Struct(_strip_suffix(label, " (struct)"))


def _as_function_or_macro(label: str, detail: str) -> Classified | None:
    if not detail.startswith(_FUNCTION_PREFIXES):
        return None
    parsed = _parse_signature(detail)
    if parsed is None:
        return None
    raw_module, name, arity = parsed
    module, is_erlang = _strip_sigil(raw_module)
    if module == SPECIAL_FORMS_MODULE and label:
        # Special forms are documented under the completion label, not the detail name.
        name = _LABEL_ARITY_RE.sub("", label)
    return FunctionOrMacro(
        module=module,
        name=name,
        arity=arity,
        is_erlang=is_erlang,
        is_macro=detail.startswith("(macro)"),
    )


def _as_module(label: str, detail: str) -> Classified | None:
    if detail != "module":
        return None
    module, is_erlang = _strip_sigil(label)
    return ModuleRef(module=module, is_erlang=is_erlang)


def _as_typespec(label: str, detail: str) -> Classified | None:
    if not detail.startswith("typespec"):
        return None
    remote = _parse_signature(detail)
    if remote is not None:
        module, name, arity = remote
        if not module.startswith(ERLANG_SIGIL) and "." not in name:
            return Typespec(module=module, name=name, arity=arity)
    return Typespec()


_PREDICATES: tuple[Callable[[str, str], Classified | None], ...] = (
    _as_behaviour,
    _as_exception,
    _as_struct,
    _as_function_or_macro,
    _as_module,
    _as_typespec,
)


def _matches(candidate: Candidate) -> list[Classified]:
    label = str(candidate.label or "")
    detail = str(candidate.detail or "")
    out: list[Classified] = []
    for predicate in _PREDICATES:
        try:
            found = predicate(label, detail)
        except (ValueError, IndexError):
            found = None
        if found is not None:
            out.append(found)
    return out


def classify(candidate: Candidate) -> Classified:
    matches = _matches(candidate)
    return matches[0] if matches else Unclassified()


def update_for(kind: Classified) -> DocReferenceUpdate | None:
    if isinstance(kind, (Behaviour, ExceptionModule, Struct)):
        return DocReferenceUpdate(module=kind.module)
    if isinstance(kind, FunctionOrMacro):
        return DocReferenceUpdate(module=kind.module, fragment=kind.fragment, is_erlang=kind.is_erlang)
    if isinstance(kind, ModuleRef):
        return DocReferenceUpdate(module=kind.module, is_erlang=kind.is_erlang)
    if isinstance(kind, Typespec):
        if kind.is_remote:
            return DocReferenceUpdate(
                module=kind.module,
                fragment=f"{kind.name}/{kind.arity}",
                is_erlang=False,
                is_type=True,
            )
        return DocReferenceUpdate(module=kind.module, fragment="basic-types")
    return None


def candidate_updates(candidate: Candidate) -> list[DocReferenceUpdate]:
    updates: list[DocReferenceUpdate] = []
    for kind in _matches(candidate):
        update = update_for(kind)
        if update is not None:
            updates.append(update)
    return updates


def apply_updates(ref: DocReference, updates: Iterable[DocReferenceUpdate]) -> DocReference:
    """Fold ``updates`` into a copy of ``ref``; later updates win."""
    out = ref.copy()
    for update in updates:
        out = update.apply(out)
    return out


# ---------------------------------------------------------
# Dependency matching
# ---------------------------------------------------------


def module_to_snake_case(module: str) -> str:
    """``Phoenix.LiveView`` -> ``phoenix_live_view``; ``:cowboy_req`` -> ``cowboy_req``."""
    words: list[str] = []
    for segment in str(module or "").replace("/", ".").split("."):
        segment = segment.strip().lstrip(ERLANG_SIGIL)
        if not segment:
            continue
        words.extend(run.strip("_").lower() for run in _CAMEL_RUN_RE.findall(segment))
    return "_".join(word for word in words if word)


def match_dependency(module: str, dependencies: Iterable[Dependency]) -> Dependency | None:
    snake = module_to_snake_case(module)
    if not snake:
        return None
    best: Dependency | None = None
    for dep in dependencies:
        name = str(dep.name or "")
        if not name or not snake.startswith(name):
            continue
        if best is None or len(name) > len(best.name):
            best = dep
    return best


# ---------------------------------------------------------
# Candidate lists
# ---------------------------------------------------------


def filter_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    return [item for item in candidates if not isinstance(classify(item), Unclassified)]


def _label_name(label: str) -> str:
    text = _LABEL_ARITY_RE.sub("", str(label or ""))
    for suffix in (" (behaviour)", " (exception)", " (struct)"):
        text = _strip_suffix(text, suffix)
    return text


def rank_candidates(phrase: str, candidates: Sequence[Candidate]) -> list[Candidate]:
    """Stable ordering with candidates naming the phrase's last segment first."""
    target = str(phrase or "").strip()
    if not target:
        return list(candidates)
    tail = target.rstrip(".").rsplit(".", 1)[-1]
    exact = {target, tail, target.lstrip(ERLANG_SIGIL)}

    def _key(item: Candidate) -> int:
        name = _label_name(item.label)
        return 0 if name in exact or name.rsplit(".", 1)[-1] in exact else 1

    return sorted(candidates, key=_key)


def merge_candidate_lists(lists: Iterable[Sequence[Candidate]], limit: int) -> list[Candidate]:
    """Concatenate per-token lists in token order, drop repeats and cap the length."""
    merged: list[Candidate] = []
    seen: set[tuple[str, str | None]] = set()
    cap = max(0, int(limit))
    for items in lists:
        for item in items or ():
            key = (item.label, item.detail)
            if key in seen:
                continue
            seen.add(key)
            merged.append(item)
            if len(merged) >= cap:
                return merged
    return merged


# ---------------------------------------------------------
# Resolution
# ---------------------------------------------------------


ChooseCallback = Callable[[list[Candidate]], "Candidate | None"]


def resolve_candidate(
    base: DocReference,
    candidate: Candidate,
    dependencies: Iterable[Dependency] = (),
) -> DocReference:
    updates = candidate_updates(candidate)
    ref = apply_updates(base, updates)
    if updates:
        ref.package = match_dependency(ref.module, dependencies)
    return ref


def resolve(
    base: DocReference,
    candidates: Sequence[Candidate],
    dependencies: Iterable[Dependency] = (),
    choose: ChooseCallback | None = None,
) -> DocReference:
    """Resolve ``candidates`` against ``base``.

    One candidate is taken as-is; several are handed to ``choose`` (a ``None``
    answer or a missing chooser leaves the reference at ``base``).
    """
    items = list(candidates or ())
    if not items:
        return base.copy()
    if len(items) == 1:
        chosen: Candidate | None = items[0]
    elif choose is None:
        chosen = None
    else:
        chosen = choose(items)
    if chosen is None:
        return base.copy()
    return resolve_candidate(base, chosen, dependencies)


__all__ = [
    "Behaviour",
    "Candidate",
    "Classified",
    "Dependency",
    "DocReference",
    "DocReferenceUpdate",
    "ExceptionModule",
    "FunctionOrMacro",
    "ModuleRef",
    "Struct",
    "Typespec",
    "Unclassified",
    "apply_updates",
    "candidate_updates",
    "classify",
    "count_arity",
    "filter_candidates",
    "match_dependency",
    "merge_candidate_lists",
    "module_to_snake_case",
    "rank_candidates",
    "resolve",
    "resolve_candidate",
    "update_for",
]
