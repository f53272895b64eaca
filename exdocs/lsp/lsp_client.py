"""Async elixir-ls client over stdio using QProcess."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

from PySide6.QtCore import QObject, QProcess, QTimer, QUrl, Signal

from .json_rpc import (
    MessageReader,
    encode_message,
    is_response,
    make_method_not_found,
    make_notification,
    make_request,
)
from .types import Position

ResultCallback = Callable[[object], None]
ErrorCallback = Callable[[object], None]

DEFAULT_SERVER_PROGRAM = "elixir-ls"


@dataclass
class _PendingRequest:
    method: str
    on_result: ResultCallback | None
    on_error: ErrorCallback | None


class LspClient(QObject):
    """JSON-RPC client with request correlation and document versions."""

    statusMessage = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._proc = QProcess(self)
        self._proc.readyReadStandardOutput.connect(self._on_stdout_ready)
        self._proc.readyReadStandardError.connect(self._on_stderr_ready)
        self._proc.started.connect(self._on_process_started)
        self._proc.finished.connect(self._on_process_finished)
        self._proc.errorOccurred.connect(self._on_process_error)

        self._reader = MessageReader()
        self._next_request_id = 1
        self._pending: dict[int, _PendingRequest] = {}
        self._queued: list[dict[str, Any]] = []
        self._doc_versions: dict[str, int] = {}
        self._root_uri = ""
        self._running = False
        self._ready = False
        self._shutting_down = False

        self._shutdown_timer = QTimer(self)
        self._shutdown_timer.setSingleShot(True)
        self._shutdown_timer.timeout.connect(self._force_terminate)

    @staticmethod
    def path_to_uri(path: str) -> str:
        return QUrl.fromLocalFile(os.path.abspath(path)).toString()

    def is_running(self) -> bool:
        return self._proc.state() != QProcess.NotRunning

    def is_ready(self) -> bool:
        return self._ready and self._running

    def start(self, *, program: str, args: list[str] | None = None, cwd: str = "") -> None:
        self.stop()
        self._reset_session()
        clean_cwd = str(cwd or "").strip()
        self._root_uri = self.path_to_uri(clean_cwd) if clean_cwd else ""
        self._proc.setProgram(str(program or DEFAULT_SERVER_PROGRAM).strip() or DEFAULT_SERVER_PROGRAM)
        self._proc.setArguments([str(item) for item in (args or [])])
        if clean_cwd and os.path.isdir(clean_cwd):
            self._proc.setWorkingDirectory(clean_cwd)
        self._proc.start()

    def stop(self) -> None:
        state = self._proc.state()
        if state == QProcess.NotRunning:
            self._reset_session()
            return
        self._shutting_down = True
        if state == QProcess.Starting:
            self._force_terminate()
            return
        if self.is_ready():
            self.request(
                "shutdown",
                {},
                on_result=lambda _res: self._send_exit(),
                on_error=lambda _err: self._send_exit(),
            )
            self._shutdown_timer.start(1200)
            return
        self._send_exit()
        self._force_terminate()

    def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        on_result: ResultCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        self._pending[request_id] = _PendingRequest(str(method or ""), on_result, on_error)
        self._send_or_queue(
            make_request(request_id, method, params),
            requires_ready=str(method or "").strip().lower() != "initialize",
        )
        return request_id

    def notify(self, method: str, params: dict[str, Any] | None = None, *, requires_ready: bool = True) -> None:
        self._send_or_queue(make_notification(method, params), requires_ready=requires_ready)

    def sync_document(self, *, uri: str, text: str, language_id: str = "elixir") -> int:
        """Open ``uri`` on first use, otherwise send a full-text change."""
        clean_uri = str(uri or "").strip()
        if not clean_uri:
            return 0
        if clean_uri not in self._doc_versions:
            self._doc_versions[clean_uri] = 1
            self.notify(
                "textDocument/didOpen",
                {
                    "textDocument": {
                        "uri": clean_uri,
                        "languageId": str(language_id or "elixir"),
                        "version": 1,
                        "text": str(text or ""),
                    }
                },
            )
            return 1
        version = self._doc_versions[clean_uri] + 1
        self._doc_versions[clean_uri] = version
        self.notify(
            "textDocument/didChange",
            {
                "textDocument": {"uri": clean_uri, "version": version},
                "contentChanges": [{"text": str(text or "")}],
            },
        )
        return version

    def completion(
        self,
        *,
        uri: str,
        position: Position,
        on_result: ResultCallback,
        on_error: ErrorCallback | None = None,
    ) -> int:
        return self.request(
            "textDocument/completion",
            {
                "textDocument": {"uri": str(uri or "")},
                "position": {"line": int(position.line), "character": int(position.character)},
                "context": {"triggerKind": 1},
            },
            on_result=on_result,
            on_error=on_error,
        )

    # ---------- Process plumbing ----------

    def _reset_session(self) -> None:
        self._running = False
        self._ready = False
        self._shutting_down = False
        self._next_request_id = 1
        self._fail_pending("LSP session reset")
        self._queued.clear()
        self._doc_versions.clear()
        self._reader.reset()

    def _fail_pending(self, reason: str) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for item in pending:
            if callable(item.on_error):
                item.on_error({"message": reason})

    def _send_or_queue(self, payload: dict[str, Any], *, requires_ready: bool) -> None:
        if self._proc.state() == QProcess.NotRunning:
            request_id = payload.get("id")
            if isinstance(request_id, int):
                pending = self._pending.pop(request_id, None)
                if pending is not None and callable(pending.on_error):
                    pending.on_error({"message": "LSP server is not running"})
            return
        if requires_ready and not self.is_ready():
            self._queued.append(payload)
            return
        self._send_now(payload)

    def _send_now(self, payload: dict[str, Any]) -> None:
        if self._proc.state() == QProcess.NotRunning:
            return
        written = int(self._proc.write(encode_message(payload)))
        if written < 0 and not self._shutting_down:
            self.statusMessage.emit(f"LSP write failed: {self._proc.errorString()}")

    def _flush_queued(self) -> None:
        queued = list(self._queued)
        self._queued.clear()
        for payload in queued:
            self._send_now(payload)

    def _send_exit(self) -> None:
        if self._proc.state() != QProcess.NotRunning:
            self.notify("exit", {}, requires_ready=False)

    def _force_terminate(self) -> None:
        if self._proc.state() == QProcess.NotRunning:
            return
        self._proc.terminate()
        if self._proc.state() != QProcess.NotRunning:
            self._proc.kill()

    def _on_process_started(self) -> None:
        self._running = True
        params: dict[str, Any] = {
            "processId": int(os.getpid()),
            "clientInfo": {"name": "ExDocs"},
            "rootUri": self._root_uri or None,
            "capabilities": {
                "textDocument": {
                    "completion": {
                        "completionItem": {
                            "snippetSupport": False,
                            "documentationFormat": ["markdown", "plaintext"],
                        }
                    },
                    "synchronization": {"didSave": False, "willSave": False},
                },
            },
        }
        self.request("initialize", params, on_result=self._on_initialize_result, on_error=self._on_initialize_error)

    def _on_process_finished(self, _exit_code: int, _exit_status: QProcess.ExitStatus) -> None:
        self._shutdown_timer.stop()
        self._reset_session()

    def _on_process_error(self, error: QProcess.ProcessError) -> None:
        if self._shutting_down and error in {
            QProcess.ProcessError.Crashed,
            QProcess.ProcessError.ReadError,
            QProcess.ProcessError.WriteError,
        }:
            return
        self.statusMessage.emit(f"LSP process error: {self._proc.errorString()}")
        if error == QProcess.ProcessError.FailedToStart:
            self._reset_session()

    def _on_stdout_ready(self) -> None:
        raw = bytes(self._proc.readAllStandardOutput())
        for message in self._reader.feed(raw):
            self._handle_message(message)

    def _on_stderr_ready(self) -> None:
        text = bytes(self._proc.readAllStandardError()).decode("utf-8", errors="replace").strip()
        if text:
            self.statusMessage.emit(text)

    def _handle_message(self, message: dict[str, Any]) -> None:
        if is_response(message):
            self._handle_response(message)
            return
        method = str(message.get("method") or "").strip()
        if not method:
            return
        if "id" in message:
            self._send_now(make_method_not_found(message.get("id"), method))
            return
        params = message.get("params")
        if method in {"window/logMessage", "window/showMessage"} and isinstance(params, dict):
            text = str(params.get("message") or "").strip()
            if text:
                self.statusMessage.emit(text)

    def _handle_response(self, message: dict[str, Any]) -> None:
        try:
            request_id = int(message.get("id"))
        except (TypeError, ValueError):
            return
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        if "error" in message:
            if callable(pending.on_error):
                pending.on_error(message.get("error"))
            return
        if callable(pending.on_result):
            pending.on_result(message.get("result"))

    def _on_initialize_result(self, _result_obj: object) -> None:
        self._ready = True
        self.notify("initialized", {}, requires_ready=False)
        self._flush_queued()

    def _on_initialize_error(self, error_obj: object) -> None:
        self._ready = False
        self.statusMessage.emit(f"LSP initialize failed: {error_obj}")
        self._queued.clear()
        self._fail_pending("LSP initialize failed")
        # The next request starts a fresh server.
        self.stop()
