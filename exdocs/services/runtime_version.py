"""Detect the installed Elixir and Erlang/OTP versions."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_VERSION_COMMAND: tuple[str, ...] = ("iex", "-v")

# Erlang/OTP 26 [erts-14.2] ... IEx 1.16.0 (compiled with Erlang/OTP 26)
_IEX_VERSION_RE = re.compile(r"IEx\s+([\d.]+).+?OTP\s+(\d+)", re.DOTALL)
_OTP_BANNER_RE = re.compile(r"Erlang/OTP\s+(\d+)")


@dataclass(frozen=True)
class RuntimeVersions:
    elixir: str = ""
    otp: str = ""


def parse_iex_version(output: str) -> RuntimeVersions:
    text = str(output or "")
    match = _IEX_VERSION_RE.search(text)
    if match:
        return RuntimeVersions(elixir=match.group(1).rstrip("."), otp=match.group(2))
    elixir = re.search(r"(?:IEx|Elixir)\s+([\d.]+)", text)
    otp = _OTP_BANNER_RE.search(text)
    return RuntimeVersions(
        elixir=elixir.group(1).rstrip(".") if elixir else "",
        otp=otp.group(1) if otp else "",
    )


def probe_runtime_versions(
    command: Sequence[str] = DEFAULT_VERSION_COMMAND,
    *,
    timeout_s: float = 5,
) -> RuntimeVersions:
    """Run ``command`` once; any failure yields empty versions."""
    args = [str(part) for part in (command or ()) if str(part).strip()]
    if not args:
        return RuntimeVersions()
    try:
        completed = subprocess.run(
            args,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=max(1, float(timeout_s)),
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Runtime version probe %s failed: %s", args, exc)
        return RuntimeVersions()
    versions = parse_iex_version(completed.stdout or "")
    logger.debug("Elixir %s, OTP %s", versions.elixir or "?", versions.otp or "?")
    return versions
