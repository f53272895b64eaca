"""JSON-RPC framing for talking to elixir-ls over stdio."""

from __future__ import annotations

import json
from typing import Any

JSONRPC_VERSION = "2.0"
METHOD_NOT_FOUND = -32601
_HEADER_TERMINATOR = b"\r\n\r\n"


def make_request(request_id: int, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": int(request_id),
        "method": str(method or ""),
        "params": params if isinstance(params, dict) else {},
    }


def make_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": str(method or ""),
        "params": params if isinstance(params, dict) else {},
    }


def make_method_not_found(request_id: object, method: str) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": METHOD_NOT_FOUND, "message": f"Method not supported: {method}"},
    }


def is_response(message: dict[str, Any]) -> bool:
    return "id" in message and "method" not in message


def encode_message(payload: dict[str, Any]) -> bytes:
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def content_length(header_blob: bytes) -> int | None:
    header_text = header_blob.decode("ascii", errors="ignore")
    for raw_line in header_text.split("\r\n"):
        key, sep, value = raw_line.partition(":")
        if not sep or key.strip().lower() != "content-length":
            continue
        try:
            length = int(value.strip())
        except ValueError:
            return None
        return length if length >= 0 else None
    return None


class MessageReader:
    """Accumulates stdout chunks and yields complete JSON-RPC messages."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._pending_length: int | None = None

    def reset(self) -> None:
        self._buffer.clear()
        self._pending_length = None

    def feed(self, data: bytes | bytearray) -> list[dict[str, Any]]:
        if data:
            self._buffer.extend(data)
        out: list[dict[str, Any]] = []
        while True:
            if self._pending_length is None:
                end = self._buffer.find(_HEADER_TERMINATOR)
                if end < 0:
                    return out
                header = bytes(self._buffer[:end])
                del self._buffer[: end + len(_HEADER_TERMINATOR)]
                self._pending_length = content_length(header)
                if self._pending_length is None:
                    continue
            if len(self._buffer) < self._pending_length:
                return out
            body = bytes(self._buffer[: self._pending_length])
            del self._buffer[: self._pending_length]
            self._pending_length = None
            try:
                decoded = json.loads(body.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                continue
            if isinstance(decoded, dict):
                out.append(decoded)
