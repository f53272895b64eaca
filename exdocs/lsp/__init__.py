"""LSP transport pieces; `lsp_client.LspClient` needs Qt and is imported directly."""

from .json_rpc import MessageReader, encode_message
from .types import Position, Range

__all__ = [
    "MessageReader",
    "Position",
    "Range",
    "encode_message",
]
