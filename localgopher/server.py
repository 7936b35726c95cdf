"""
File-backed Gopher server for `termgopher --local` and the test suite.

Directories are served as menus (their gophermap when they have one, a
generated listing otherwise), text files dot-stuffed and terminated,
everything else as raw bytes.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import socketserver
import threading
from typing import Iterable, Iterator, List, Optional

log = logging.getLogger(__name__)

CRLF = "\r\n"
MAP_NAMES = ("gophermap", ".gophermap")
TEXT_EXTENSIONS = (".txt", ".md", ".text", ".log", ".csv", ".py", ".rst")
READ_TIMEOUT = 10


class LocalGopherServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, host: str, port: int, root_dir: str):
        self.root_dir = os.path.abspath(root_dir)
        super().__init__((host, port), SelectorHandler)

    @property
    def host(self) -> str:
        bound = self.server_address[0]
        return "localhost" if bound == "0.0.0.0" else bound

    @property
    def port(self) -> int:
        return self.server_address[1]

    @property
    def url(self) -> str:
        return f"gopher://{self.host}:{self.port}/1/"

    def resolve(self, selector: str) -> Optional[str]:
        """Filesystem path for a selector, None if it points outside the root."""
        path = os.path.abspath(os.path.join(self.root_dir, selector.strip("/")))
        if path == self.root_dir or path.startswith(self.root_dir + os.sep):
            return path
        return None

    def menu_line(self, typ: str, name: str, selector: str) -> str:
        return f"{typ}{name}\t{selector}\t{self.host}\t{self.port}"


class SelectorHandler(socketserver.StreamRequestHandler):
    timeout = READ_TIMEOUT

    def handle(self):
        try:
            raw = self.rfile.readline(4096)
        except OSError as exc:
            log.info("[localgopher] read failed: %s", exc)
            return

        # anything after a tab is a search query, which files can't answer
        selector = raw.decode("utf-8", errors="replace").rstrip("\r\n").split("\t", 1)[0]
        log.debug("[localgopher] %s requested %r", self.client_address[0], selector)
        try:
            self.wfile.write(self.respond(selector))
        except (BrokenPipeError, ConnectionResetError):
            log.debug("[localgopher] client hung up")

    def respond(self, selector: str) -> bytes:
        path = self.server.resolve(selector)
        if path is None or not os.path.exists(path):
            return _error(f"Selector not found: {selector or '/'}")
        try:
            if os.path.isdir(path):
                return _terminated(self._menu(path, selector.strip("/")))
            if item_type(path) == "0":
                return _terminated(_read_text(path))
            with open(path, "rb") as fh:
                return fh.read()
        except OSError as exc:
            return _error(f"Can't read {selector}: {exc}")

    def _menu(self, directory: str, rel: str) -> List[str]:
        for name in MAP_NAMES:
            gophermap = os.path.join(directory, name)
            if os.path.isfile(gophermap):
                with open(gophermap, "r", encoding="utf-8") as fh:
                    return [line.rstrip("\r\n") for line in fh]
        return list(self._listing(directory, rel))

    def _listing(self, directory: str, rel: str) -> Iterator[str]:
        server: LocalGopherServer = self.server  # type: ignore[assignment]
        yield server.menu_line("i", "/" + rel, "")
        yield server.menu_line("i", "", "")
        for name in sorted(os.listdir(directory)):
            if name.startswith("."):
                continue
            path = os.path.join(directory, name)
            selector = "/" + "/".join(p for p in (rel, name) if p)
            if os.path.isdir(path):
                yield server.menu_line("1", name, selector + "/")
            else:
                yield server.menu_line(item_type(path), name, selector)


def item_type(path: str) -> str:
    """Gopher item type for a file, guessed from its name."""
    if path.lower().endswith(TEXT_EXTENSIONS):
        return "0"
    mime, _ = mimetypes.guess_type(path)
    if mime is None:
        return "9"
    if mime == "text/html":
        return "h"
    if mime == "image/gif":
        return "g"
    major = mime.split("/", 1)[0]
    return {"text": "0", "image": "I", "audio": "s"}.get(major, "9")


def _read_text(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        body = fh.read()
    lines = body.replace("\r\n", "\n").replace("\r", "\n").rstrip("\n").split("\n")
    # a line starting with "." is doubled so it can't end the response early
    return ["." + line if line.startswith(".") else line for line in lines]


def _terminated(lines: Iterable[str]) -> bytes:
    lines = list(lines)
    if not lines or lines[-1] != ".":
        lines.append(".")
    return (CRLF.join(lines) + CRLF).encode("utf-8")


def _error(message: str) -> bytes:
    return _terminated([f"3{message}\tfake\tlocalhost\t0"])


def start_local_gopher(
    root_dir: str,
    host: str = "127.0.0.1",
    port: int = 7070,
) -> LocalGopherServer:
    server = LocalGopherServer(host, port, root_dir)
    threading.Thread(target=server.serve_forever, daemon=True).start()
    log.info("[localgopher] serving %s on %s", server.root_dir, server.url)
    return server


__all__ = ["LocalGopherServer", "SelectorHandler", "item_type", "start_local_gopher"]
