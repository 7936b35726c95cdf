#!/usr/bin/env python3
# gopherlib.py
import logging
import re
import socket
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import socks
from pubsub import pub

log = logging.getLogger(__name__)

DEFAULT_PORT = 70
SOCKET_TIMEOUT = 15
TOR_PROXY = ("127.0.0.1", 9050)
CRLF = "\r\n"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(.*)$", re.DOTALL)

TOPIC_ESTABLISHED = "gopher.connection.established"
TOPIC_FAILED = "gopher.connection.failed"
TOPIC_RECEIVED = "gopher.response.received"


class GopherError(Exception):
    """Raised when a resource can't be fetched."""


class ItemType(Enum):
    TEXT = "0"
    MENU = "1"
    CSO_ENTITY = "2"
    ERROR = "3"
    BINHEX = "4"
    DOS_FILE = "5"
    UUENCODED = "6"
    SEARCH = "7"
    TELNET = "8"
    BINARY = "9"
    MIRROR = "+"
    GIF = "g"
    TELNET3270 = "T"
    HTML = "h"
    INFO = "i"
    SOUND = "s"
    DOCUMENT = "d"
    IMAGE = "I"

    @property
    def char(self) -> str:
        return self.value

    @property
    def is_download(self) -> bool:
        return self in _DOWNLOAD_TYPES


_DOWNLOAD_TYPES = frozenset({
    ItemType.BINHEX,
    ItemType.DOS_FILE,
    ItemType.UUENCODED,
    ItemType.BINARY,
    ItemType.GIF,
    ItemType.IMAGE,
    ItemType.SOUND,
    ItemType.DOCUMENT,
})

_TYPES_BY_CHAR = {t.value: t for t in ItemType}


def type_for_char(c: str) -> Optional[ItemType]:
    return _TYPES_BY_CHAR.get(c)


@dataclass
class GopherURL:
    host: str
    port: int
    type: ItemType
    selector: str

    @property
    def request(self) -> str:
        """Selector as sent on the wire; a ?query becomes a tab-separated search."""
        if "?" in self.selector:
            sel, query = self.selector.split("?", 1)
            return f"{sel}\t{query}"
        return self.selector


def is_gopher_url(url: str) -> bool:
    """
    True for gopher:// and gophers:// URLs and for scheme-less addresses
    ("sdf.org", "sdf.org:7070/1/"). Anything else ("https://...",
    "mailto:...") belongs to another program.
    """
    url = url.strip()
    if url.lower().startswith(("gopher://", "gophers://")):
        return True
    m = _SCHEME_RE.match(url)
    if m is None:
        return True
    # "host:port" looks like a scheme, but its "scheme data" is a port number
    return m.group(1).split("/", 1)[0].isdigit()


def parse_url(url: str) -> GopherURL:
    """
    Split a gopher URL into its parts. Bare hosts ("sdf.org") and
    host:port pairs are accepted and point at the root menu.
    """
    body = url.strip()
    lowered = body.lower()
    for scheme in ("gopher://", "gophers://"):
        if lowered.startswith(scheme):
            body = body[len(scheme):]
            break
    else:
        if not is_gopher_url(body):
            raise GopherError(f"not a gopher URL: {url}")

    host_port, sep, rest = body.partition("/")
    host, port = _split_host_port(host_port)
    if not host:
        raise GopherError(f"missing host in URL: {url}")

    if not sep or not rest:
        return GopherURL(host=host, port=port, type=ItemType.MENU, selector="/")

    typ = type_for_char(rest[0])
    if typ is None:
        # no type prefix, treat the whole path as a menu selector
        return GopherURL(host=host, port=port, type=ItemType.MENU, selector="/" + rest)
    return GopherURL(host=host, port=port, type=typ, selector=rest[1:])


def _split_host_port(host_port: str) -> Tuple[str, int]:
    if host_port.startswith("["):
        # [ipv6]:port
        end = host_port.find("]")
        if end == -1:
            raise GopherError(f"bad IPv6 address: {host_port}")
        host = host_port[1:end]
        port_str = host_port[end + 1:].lstrip(":")
    elif host_port.count(":") == 1:
        host, port_str = host_port.split(":", 1)
    else:
        host, port_str = host_port, ""

    if not port_str:
        return host, DEFAULT_PORT
    try:
        return host, int(port_str)
    except ValueError:
        raise GopherError(f"bad port: {port_str}") from None


class GopherClient:
    def __init__(
        self,
        tls: bool = False,
        tor: bool = False,
        timeout: float = SOCKET_TIMEOUT,
        tor_proxy: Tuple[str, int] = TOR_PROXY,
    ):
        if tls and tor:
            raise ValueError("can't use both TLS and Tor")
        self.tls = tls
        self.tor = tor
        self.timeout = timeout
        self.tor_proxy = tor_proxy

    def fetch(self, host: str, port: int, selector: str) -> str:
        """Fetch a resource and return its body as text."""
        data = self.fetch_bytes(host, port, selector)
        return data.decode("utf-8", errors="replace")

    def fetch_url(self, url: str) -> Tuple[GopherURL, str]:
        gurl = parse_url(url)
        return gurl, self.fetch(gurl.host, gurl.port, gurl.request)

    def fetch_bytes(self, host: str, port: int, selector: str) -> bytes:
        request = f"{selector}{CRLF}"
        try:
            with self._connect(host, port) as s:
                pub.sendMessage(TOPIC_ESTABLISHED, host=host, port=port, tls=self.tls, tor=self.tor)
                s.sendall(request.encode("utf-8", errors="replace"))
                if not self.tls:
                    s.shutdown(socket.SHUT_WR)
                chunks = []
                while True:
                    data = s.recv(4096)
                    if not data:
                        break
                    chunks.append(data)
        except (OSError, socks.ProxyError, ValueError) as e:
            # ValueError: hosts the resolver refuses, like "bad..host" (IDNA) or embedded NULs
            log.info("[gopher] %s:%s failed: %s", host, port, e)
            pub.sendMessage(TOPIC_FAILED, host=host, port=port, error=str(e))
            raise GopherError(str(e)) from e

        body = b"".join(chunks)
        log.debug("[gopher] %s:%s%s -> %d bytes", host, port, selector, len(body))
        pub.sendMessage(TOPIC_RECEIVED, host=host, port=port, size=len(body))
        return body

    def _connect(self, host: str, port: int) -> socket.socket:
        log.debug("[gopher] connecting to %s:%s tls=%s tor=%s", host, port, self.tls, self.tor)
        if self.tor:
            proxy_host, proxy_port = self.tor_proxy
            return socks.create_connection(
                (host, port),
                timeout=self.timeout,
                proxy_type=socks.SOCKS5,
                proxy_addr=proxy_host,
                proxy_port=proxy_port,
                proxy_rdns=True,
            )
        sock = socket.create_connection((host, port), timeout=self.timeout)
        if self.tls:
            context = ssl.create_default_context()
            try:
                return context.wrap_socket(sock, server_hostname=host)
            except OSError:
                sock.close()
                raise
        return sock


def strip_terminator(body: str) -> str:
    """Drop the lone "." line that ends a gopher text response."""
    lines = body.splitlines()
    while lines and lines[-1].strip() == "":
        lines.pop()
    if lines and lines[-1] == ".":
        lines.pop()
    return "\n".join(lines)


def selector_filename(selector: str, fallback: str = "download") -> str:
    name = selector.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return name or fallback
