"""
Settings resolved before a session starts. Values come from the
environment; the command line in main.py overrides them.

ENV (all optional):
  TERMGOPHER_START      -> start URL
  TERMGOPHER_TLS        -> 1/true/yes to use TLS
  TERMGOPHER_TOR        -> 1/true/yes to route through Tor
  TERMGOPHER_WIDE       -> 1/true/yes to start in wide mode
  TERMGOPHER_TIMEOUT    -> socket timeout in seconds (default: 15)
  TERMGOPHER_TOR_PROXY  -> SOCKS proxy as host:port (default: 127.0.0.1:9050)
  TERMGOPHER_DOWNLOADS  -> where downloads are saved
  TERMGOPHER_LOG        -> log file
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Mapping, Optional, Tuple

from gopherlib import SOCKET_TIMEOUT, TOR_PROXY

DEFAULT_START = "gopher://gopher.floodgap.com/1/"


class Mode(Enum):
    RUN = auto()
    RAW = auto()
    PRINT = auto()


def default_download_dir() -> str:
    downloads = os.path.expanduser("~/Downloads")
    if os.path.isdir(downloads):
        return downloads
    return os.getcwd()


@dataclass
class Config:
    start: str = DEFAULT_START
    tls: bool = False
    tor: bool = False
    wide: bool = False
    mode: Mode = Mode.RUN
    timeout: float = SOCKET_TIMEOUT
    tor_proxy: Tuple[str, int] = TOR_PROXY
    download_dir: str = field(default_factory=default_download_dir)
    log_file: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        cfg = cls()
        cfg.start = env.get("TERMGOPHER_START") or cfg.start
        cfg.tls = _env_flag(env, "TERMGOPHER_TLS")
        cfg.tor = _env_flag(env, "TERMGOPHER_TOR")
        cfg.wide = _env_flag(env, "TERMGOPHER_WIDE")

        timeout_raw = env.get("TERMGOPHER_TIMEOUT", "")
        try:
            cfg.timeout = float(timeout_raw) if timeout_raw else SOCKET_TIMEOUT
        except ValueError:
            cfg.timeout = SOCKET_TIMEOUT

        cfg.tor_proxy = _parse_proxy(env.get("TERMGOPHER_TOR_PROXY", ""))
        cfg.download_dir = env.get("TERMGOPHER_DOWNLOADS") or cfg.download_dir
        cfg.log_file = env.get("TERMGOPHER_LOG") or None
        return cfg


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def _parse_proxy(raw: str) -> Tuple[str, int]:
    if not raw:
        return TOR_PROXY
    host, _, port_raw = raw.rpartition(":")
    if not host:
        return TOR_PROXY
    try:
        port = int(port_raw)
    except ValueError:
        port = TOR_PROXY[1]
    return host, port


__all__ = ["Config", "Mode", "DEFAULT_START", "default_download_dir"]
