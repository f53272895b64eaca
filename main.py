import logging
import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from exdocs.core.doc_reference import ERLANG_DOCS_BASE, HEX_DOCS_BASE, DocReference
from exdocs.services.runtime_version import DEFAULT_VERSION_COMMAND, probe_runtime_versions
from exdocs.settings_store import JsonSettingsStore, SettingsStoreError
from exdocs.ui.lookup_window import APP_NAME, DocLookupWindow

VERBOSE_ENV = "EXDOCS_DEBUG"


def _split_startup_args(argv: list[str]) -> tuple[list[str], bool]:
    filtered: list[str] = []
    verbose = os.environ.get(VERBOSE_ENV, "").strip() == "1"
    for arg in argv:
        if arg in {"-v", "--verbose"}:
            verbose = True
            continue
        filtered.append(arg)
    return filtered, verbose


def _existing_file(path_value: str | None) -> str | None:
    text = str(path_value or "").strip()
    if not text:
        return None
    candidate = Path(text).expanduser()
    if not candidate.is_file():
        return None
    return str(candidate.resolve())


def _load_settings() -> JsonSettingsStore:
    settings = JsonSettingsStore()
    settings.load()
    if settings.dirty:
        try:
            settings.save()
        except SettingsStoreError as exc:
            logging.getLogger(APP_NAME).warning("%s", exc)
    return settings


def _seed_reference(settings: JsonSettingsStore) -> DocReference:
    """Probe the runtime once; the result seeds every lookup for this session."""
    versions = probe_runtime_versions(
        settings.get_str_list("runtime.version_command", DEFAULT_VERSION_COMMAND),
        timeout_s=settings.get_int("runtime.timeout_s", 5),
    )
    return DocReference(
        erl_base=str(settings.get("docs.erlang_base", "") or ERLANG_DOCS_BASE),
        hex_base=str(settings.get("docs.hex_base", "") or HEX_DOCS_BASE),
        elixir_version=versions.elixir,
        otp_version=versions.otp,
    )


if __name__ == "__main__":
    cli_args, verbose = _split_startup_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    settings = _load_settings()
    if settings.last_error:
        logging.getLogger(APP_NAME).warning("Settings not loaded: %s", settings.last_error)

    app = QApplication([sys.argv[0], *cli_args])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)
    window = DocLookupWindow(settings=settings, base_reference=_seed_reference(settings))
    startup_file = _existing_file(cli_args[0]) if cli_args else None
    if startup_file:
        window.open_file(startup_file)
    window.show()
    sys.exit(app.exec())
