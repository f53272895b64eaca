from urllib.parse import unquote, urlsplit

import pytest

from exdocs.core.doc_reference import Dependency, DocReference
from exdocs.core.doc_urls import MainDocs, escape_fragment, major_elixir_version, to_doc_url, to_main_doc_url


def _ref(**kwargs) -> DocReference:
    return DocReference(elixir_version="1.16.0", otp_version="26", **kwargs)


def test_elixir_function_url():
    assert to_doc_url(_ref(module="Map", fragment="put/3")) == "https://hexdocs.pm/elixir/1.16.0/Map.html#put/3"


def test_module_url_has_no_anchor():
    assert to_doc_url(_ref(module="Enum")) == "https://hexdocs.pm/elixir/1.16.0/Enum.html"


def test_erlang_url():
    ref = _ref(module="lists", fragment="map-2", is_erlang=True)
    assert to_doc_url(ref) == "https://www.erlang.org/docs/26/man/lists#map-2"


def test_dependency_url_wins_over_namespace():
    ref = _ref(module="Jason", fragment="encode!/2", package=Dependency("jason", "1.4.1"))
    assert to_doc_url(ref) == "https://hexdocs.pm/jason/1.4.1/Jason.html#encode!/2"
    ref.is_erlang = True
    assert to_doc_url(ref) == "https://hexdocs.pm/jason/1.4.1/Jason.html#encode!/2"


def test_type_anchor_prefix():
    assert to_doc_url(_ref(module="Map", fragment="t/0", is_type=True)) == "https://hexdocs.pm/elixir/1.16.0/Map.html#t:t/0"
    ref = _ref(module="Plug.Conn", fragment="t/0", is_type=True, package=Dependency("plug", "1.15.2"))
    assert to_doc_url(ref) == "https://hexdocs.pm/plug/1.15.2/Plug.Conn.html#t:t/0"


def test_basic_types_url():
    ref = _ref(module="typespecs", fragment="basic-types")
    assert to_doc_url(ref) == "https://hexdocs.pm/elixir/1.16.0/typespecs.html#basic-types"


def test_default_reference_renders_kernel_page():
    assert to_doc_url(_ref()) == "https://hexdocs.pm/elixir/1.16.0/Kernel.html"


def test_unknown_versions_still_render():
    assert to_doc_url(DocReference()) == "https://hexdocs.pm/elixir//Kernel.html"
    assert to_doc_url(DocReference(module="ets", is_erlang=True)) == "https://www.erlang.org/docs//man/ets"


def test_custom_bases_drop_trailing_slash():
    ref = _ref(module="Enum", hex_base="https://mirror.example/hex/", erl_base="https://erl.example/")
    assert to_doc_url(ref) == "https://mirror.example/hex/elixir/1.16.0/Enum.html"
    ref.module, ref.is_erlang = "ets", True
    assert to_doc_url(ref) == "https://erl.example/26/man/ets"


@pytest.mark.parametrize("fragment", ["|>/2", "<>/2", "||/2", "<<>>/1", "put/3"])
def test_fragment_escaping_round_trips(fragment):
    url = to_doc_url(_ref(fragment=fragment))
    anchor = urlsplit(url).fragment
    assert not set("|<>") & set(anchor)
    assert unquote(anchor) == fragment


def test_escape_fragment():
    assert escape_fragment("|>/2") == "%7C%3E/2"
    assert escape_fragment("") == ""


@pytest.mark.parametrize(
    ("version", "expected"),
    [("1.16.0", "v1.16"), ("1.16.0-rc.1", "v1.16"), ("1.16", "v1.16"), ("", "v")],
)
def test_major_elixir_version(version, expected):
    assert major_elixir_version(version) == expected


def test_main_doc_urls():
    ref = _ref()
    assert to_main_doc_url(ref, MainDocs.ELIXIR) == "https://elixir-lang.org/docs.html#v1.16"
    assert to_main_doc_url(ref, MainDocs.ERLANG) == "https://www.erlang.org/docs/26"
    assert (
        to_main_doc_url(ref, MainDocs.ELIXIR, elixir_main_url="https://docs.example/elixir")
        == "https://docs.example/elixir#v1.16"
    )
