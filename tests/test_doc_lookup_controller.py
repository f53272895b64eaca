import pytest

from exdocs.core.doc_reference import Candidate, DocReference
from exdocs.lsp.types import Position, Range
from exdocs.ui.doc_lookup_controller import DocLookupController

PIPE_LINE = "    |> Map.put(:config, cfg)"
PUT = Candidate("put/3", "(function) Map.put(map, key, value)")
PUT_NEW = Candidate("put_new/3", "(function) Map.put_new(map, key, value)")
CONFIG = Candidate("Config", "module")
LOCK_TEXT = """%{
  "jason": {:hex, :jason, "1.4.1", "af1504e35f629ddcdd6addb3513c3853991f694921b1b9368b0bd32beb9f1b63", [:mix], [], "hexpm", "fbb01ecdfd565b56261302f7e1fcc27c4fb8f32d56eab74db621fc154604a7a1"},
}
"""


class FakeEditorHost:
    def __init__(self, line, cursor, *, completions=None, selection=None, file_path="", choice=None, deferred=False):
        self.line = line
        self.cursor = cursor
        self.completions = completions or {}
        self.selection = selection
        self.file_path = file_path
        self.choice = choice
        self.deferred = deferred
        self.requests = []
        self.pending = []
        self.prompts = []
        self.opened = []
        self.focus_count = 0

    def active_file_path(self):
        return self.file_path

    def selection_or_word_range(self):
        return self.selection

    def cursor_position(self):
        return self.cursor

    def line_text(self, line):
        return self.line if line == self.cursor.line else ""

    def request_completions(self, position, on_done):
        self.requests.append(position)
        items = list(self.completions.get(position.character, []))
        if self.deferred:
            self.pending.append((on_done, items))
        else:
            on_done(items)

    def prompt_single_choice(self, candidates):
        self.prompts.append(list(candidates))
        return self.choice(candidates) if callable(self.choice) else None

    def open_url(self, url):
        self.opened.append(url)

    def focus_secondary_pane(self):
        self.focus_count += 1


@pytest.fixture
def base_reference():
    return DocReference(elixir_version="1.16.0", otp_version="26")


def _controller(host, base_reference, **kwargs):
    return DocLookupController(host, base_reference=base_reference, **kwargs)


def test_tokens_are_requested_cursor_first(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9))
    _controller(host, base_reference).lookup()
    assert [pos.character for pos in host.requests] == [14, 6, 22, 27]


def test_single_candidate_opens_without_prompt(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9), completions={14: [PUT]})
    controller = _controller(host, base_reference)
    finished = []
    controller.lookupFinished.connect(finished.append)
    controller.lookup()
    url = "https://hexdocs.pm/elixir/1.16.0/Map.html#put/3"
    assert host.opened == [url]
    assert finished == [url]
    assert host.prompts == []
    assert host.focus_count == 1


def test_several_candidates_are_ranked_and_prompted(qapp, base_reference):
    host = FakeEditorHost(
        PIPE_LINE,
        Position(0, 9),
        completions={14: [PUT_NEW, PUT], 27: [Candidate("cfg", "variable")]},
        choice=lambda items: items[1],
    )
    _controller(host, base_reference).lookup()
    assert host.prompts == [[PUT, PUT_NEW]]
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Map.html#put_new/3"]


def test_cancelled_prompt_opens_default_module(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9), completions={14: [PUT, PUT_NEW]})
    _controller(host, base_reference).lookup()
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Kernel.html"]


def test_no_candidates_opens_default_module(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9))
    _controller(host, base_reference).lookup()
    assert host.prompts == []
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Kernel.html"]


def test_blank_line_opens_default_module(qapp, base_reference):
    host = FakeEditorHost("    ", Position(0, 2))
    _controller(host, base_reference).lookup()
    assert host.requests == []
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Kernel.html"]


def test_out_of_order_answers_merge_in_token_order(qapp, base_reference):
    host = FakeEditorHost(
        PIPE_LINE,
        Position(0, 9),
        completions={14: [PUT], 22: [CONFIG]},
        deferred=True,
    )
    _controller(host, base_reference).lookup()
    assert host.opened == []
    for on_done, items in reversed(host.pending):
        on_done(items)
    assert host.prompts == [[PUT, CONFIG]]
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Kernel.html"]


def test_newer_lookup_supersedes_pending_one(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9), completions={14: [PUT]}, deferred=True)
    controller = _controller(host, base_reference)
    controller.lookup()
    controller.lookup()
    first, second = host.pending[:4], host.pending[4:]
    for on_done, items in second:
        on_done(items)
    for on_done, items in first:
        on_done(items)
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Map.html#put/3"]


def test_selection_limits_tokens(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 16), selection=Range.on_line(0, 15, 22))
    _controller(host, base_reference).lookup()
    assert [pos.character for pos in host.requests] == [22]


def test_token_cap(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 0))
    _controller(host, base_reference, max_tokens=2).lookup()
    assert [pos.character for pos in host.requests] == [6, 14]


def test_candidate_cap(qapp, base_reference):
    host = FakeEditorHost(
        PIPE_LINE,
        Position(0, 9),
        completions={14: [PUT, PUT_NEW], 22: [CONFIG]},
        choice=lambda items: items[-1],
    )
    _controller(host, base_reference, max_candidates=2).lookup()
    assert host.prompts == [[PUT, PUT_NEW]]


def test_failing_completion_request_degrades_to_default(qapp, base_reference):
    class BrokenHost(FakeEditorHost):
        def request_completions(self, position, on_done):
            raise RuntimeError("server gone")

    host = BrokenHost(PIPE_LINE, Position(0, 9))
    _controller(host, base_reference).lookup()
    assert host.opened == ["https://hexdocs.pm/elixir/1.16.0/Kernel.html"]


def test_dependency_modules_open_hexdocs_package(qapp, base_reference, tmp_path):
    (tmp_path / "mix.lock").write_text(LOCK_TEXT, encoding="utf-8")
    source = tmp_path / "lib" / "demo.ex"
    source.parent.mkdir()
    source.write_text("Jason.encode!(data)\n", encoding="utf-8")
    host = FakeEditorHost(
        "Jason.encode!(data)",
        Position(0, 2),
        completions={13: [Candidate("encode!/2", "(function) Jason.encode!(input, opts \\\\ [])")]},
        file_path=str(source),
    )
    controller = _controller(host, base_reference)
    controller.lookup()
    assert host.opened == ["https://hexdocs.pm/jason/1.4.1/Jason.html#encode!/2"]
    assert [dep.name for dep in controller.dependency_cache.dependencies] == ["jason"]


def test_main_documentation_commands(qapp, base_reference):
    host = FakeEditorHost("", Position(0, 0))
    controller = _controller(host, base_reference, elixir_main_url="https://elixir-lang.org/docs.html")
    assert controller.open_main_docs() == "https://elixir-lang.org/docs.html#v1.16"
    assert controller.open_erlang_docs() == "https://www.erlang.org/docs/26"
    assert host.opened == ["https://elixir-lang.org/docs.html#v1.16", "https://www.erlang.org/docs/26"]


def test_seeded_reference_is_reused_across_lookups(qapp, base_reference):
    host = FakeEditorHost(PIPE_LINE, Position(0, 9), completions={14: [PUT]})
    controller = _controller(host, base_reference)
    controller.lookup()
    host.completions = {}
    controller.lookup()
    assert host.opened == [
        "https://hexdocs.pm/elixir/1.16.0/Map.html#put/3",
        "https://hexdocs.pm/elixir/1.16.0/Kernel.html",
    ]
    assert base_reference.module == "Kernel"


def test_failing_open_still_reports_url(qapp, base_reference):
    class NoBrowserHost(FakeEditorHost):
        def open_url(self, url):
            raise RuntimeError("no browser")

    host = NoBrowserHost(PIPE_LINE, Position(0, 9), completions={14: [PUT]})
    controller = _controller(host, base_reference)
    finished = []
    statuses = []
    controller.lookupFinished.connect(finished.append)
    controller.statusMessage.connect(statuses.append)
    controller.lookup()
    url = "https://hexdocs.pm/elixir/1.16.0/Map.html#put/3"
    assert finished == [url]
    assert statuses[-1] == url
