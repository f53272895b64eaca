"""mix.lock discovery, parsing and the process-wide dependency cache."""

from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from exdocs.core.doc_reference import Dependency

logger = logging.getLogger(__name__)

MIX_LOCK_FILENAME = "mix.lock"

# "jason": {:hex, :jason, "1.4.1", "af1504...", [:mix], [...], "hexpm", "..."},
_HEX_ENTRY_RE = re.compile(r'^\s*"(?P<name>[^"]+)"\s*:\s*\{\s*:hex\s*,\s*[^,]+,\s*"(?P<version>[^"]+)"')


class MixLockError(RuntimeError):
    """Raised when a mix.lock file cannot be read."""


def find_mix_lock(file_path: str) -> tuple[bool, str]:
    """Walk up from ``file_path``'s directory looking for a readable mix.lock."""
    text = str(file_path or "").strip()
    if not text:
        return False, ""
    start = Path(text).expanduser()
    current = start if start.is_dir() else start.parent
    try:
        current = current.resolve()
    except OSError:
        current = current.absolute()

    while True:
        candidate = current / MIX_LOCK_FILENAME
        logger.debug("Checking mix.lock at location: %s", candidate)
        if candidate.is_file() and os.access(candidate, os.R_OK):
            return True, str(candidate)
        parent = current.parent
        if parent == current:
            return False, ""
        current = parent


def parse_mix_lock(text: str) -> list[Dependency]:
    deps: list[Dependency] = []
    for raw in str(text or "").splitlines():
        match = _HEX_ENTRY_RE.match(raw)
        if not match:
            continue
        name = match.group("name").strip().lower()
        version = match.group("version").strip()
        if name and version:
            deps.append(Dependency(name=name, version=version))
    return deps


def load_dependencies(path: str) -> tuple[str, list[Dependency]]:
    try:
        blob = Path(path).read_bytes()
    except OSError as exc:
        raise MixLockError(f"Could not read lock file '{path}': {exc}") from exc
    content_hash = hashlib.sha256(blob).hexdigest()
    return content_hash, parse_mix_lock(blob.decode("utf-8", errors="replace"))


@dataclass(frozen=True)
class DependencyCacheState:
    lock_path: str = ""
    content_hash: str = ""
    dependencies: tuple[Dependency, ...] = field(default_factory=tuple)


class DependencyCache:
    """Dependency list of the active project, reloaded only when the lock file changes."""

    def __init__(self) -> None:
        self._state = DependencyCacheState()

    @property
    def dependencies(self) -> tuple[Dependency, ...]:
        return self._state.dependencies

    def refresh_if_stale(self, file_path: str) -> DependencyCacheState:
        found, lock_path = find_mix_lock(file_path)
        if not found:
            if self._state.lock_path:
                logger.debug("No mix.lock for %s; dropping cached dependencies", file_path)
            self._state = DependencyCacheState()
            return self._state

        try:
            content_hash, deps = load_dependencies(lock_path)
        except MixLockError as exc:
            logger.debug("%s", exc)
            self._state = DependencyCacheState()
            return self._state

        if lock_path == self._state.lock_path and content_hash == self._state.content_hash:
            return self._state

        logger.debug("Loaded %d dependencies from %s", len(deps), lock_path)
        self._state = DependencyCacheState(
            lock_path=lock_path,
            content_hash=content_hash,
            dependencies=tuple(deps),
        )
        return self._state
