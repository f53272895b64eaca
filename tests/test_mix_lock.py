import hashlib

import pytest

from exdocs.core.doc_reference import Dependency
from exdocs.services.mix_lock import (
    DependencyCache,
    MixLockError,
    find_mix_lock,
    load_dependencies,
    parse_mix_lock,
)

LOCK_TEXT = """%{
  "jason": {:hex, :jason, "1.4.1", "af1504e35f629ddcdd6addb3513c3853991f694921b1b9368b0bd32beb9f1b63", [:mix], [{:decimal, "~> 1.0 or ~> 2.0", [hex: :decimal, repo: "hexpm", optional: true]}], "hexpm", "fbb01ecdfd565b56261302f7e1fcc27c4fb8f32d56eab74db621fc154604a7a1"},
  "my_dep": {:git, "https://github.com/example/my_dep.git", "5c1f0f1e4c2b7d7a3e0a", []},
  "Plug": {:hex, :plug, "1.15.2", "94cf1fa375526f30ff8770837cb804798e0045fd97185f0bb9e5fcd858c792a3", [:mix], [], "hexpm", "02731fa0c2dcb03d8d21a1d941bdbbe99c2946c0db098eee31008e04c6283615"},
}
"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "mix.lock").write_text(LOCK_TEXT, encoding="utf-8")
    source = tmp_path / "lib" / "demo" / "worker.ex"
    source.parent.mkdir(parents=True)
    source.write_text("defmodule Demo.Worker do\nend\n", encoding="utf-8")
    return tmp_path


def test_parse_skips_header_trailer_and_non_hex_entries():
    assert parse_mix_lock(LOCK_TEXT) == [Dependency("jason", "1.4.1"), Dependency("plug", "1.15.2")]
    assert parse_mix_lock("") == []
    assert parse_mix_lock("%{\n}\n") == []


def test_find_mix_lock_walks_up_from_file(project):
    found, path = find_mix_lock(str(project / "lib" / "demo" / "worker.ex"))
    assert found
    assert path == str((project / "mix.lock").resolve())


def test_find_mix_lock_reports_missing(tmp_path):
    source = tmp_path / "loose.exs"
    source.write_text("IO.puts(:ok)\n", encoding="utf-8")
    assert find_mix_lock(str(source)) == (False, "")
    assert find_mix_lock("") == (False, "")


def test_load_dependencies_hashes_content(project):
    lock = project / "mix.lock"
    content_hash, deps = load_dependencies(str(lock))
    assert content_hash == hashlib.sha256(lock.read_bytes()).hexdigest()
    assert [dep.name for dep in deps] == ["jason", "plug"]


def test_load_dependencies_unreadable(tmp_path):
    with pytest.raises(MixLockError):
        load_dependencies(str(tmp_path / "missing.lock"))


def test_cache_reloads_only_when_lock_changes(project):
    source = str(project / "lib" / "demo" / "worker.ex")
    cache = DependencyCache()
    first = cache.refresh_if_stale(source)
    assert first.dependencies == (Dependency("jason", "1.4.1"), Dependency("plug", "1.15.2"))
    assert cache.refresh_if_stale(source) is first

    (project / "mix.lock").write_text(LOCK_TEXT.replace('"1.4.1"', '"1.4.2"'), encoding="utf-8")
    second = cache.refresh_if_stale(source)
    assert second is not first
    assert second.content_hash != first.content_hash
    assert Dependency("jason", "1.4.2") in cache.dependencies


def test_cache_empties_when_lock_disappears(project):
    source = str(project / "lib" / "demo" / "worker.ex")
    cache = DependencyCache()
    cache.refresh_if_stale(source)
    (project / "mix.lock").unlink()
    state = cache.refresh_if_stale(source)
    assert state.lock_path == ""
    assert cache.dependencies == ()

