import io
import socket
from collections import deque

import pytest

from gopherlib import GopherError, parse_url
from localgopher import start_local_gopher
from termgopher import keys
from termgopher.terminal import Terminal
from termgopher.ui import UI


class FakeTerminal(Terminal):
    """Scripted keys in, painted text collected."""

    def __init__(self, keys_=(), size=(80, 24)):
        super().__init__(stdin=io.StringIO(), stdout=io.StringIO())
        self.keys = deque(keys_)
        self.dimensions = size
        self.writes = []

    def size(self):
        return self.dimensions

    def read_key(self):
        if not self.keys:
            raise AssertionError("ran out of scripted keys")
        return self.keys.popleft()

    def write(self, text):
        self.writes.append(text)

    def type(self, text):
        self.keys.extend(keys.decode(text))

    @property
    def output(self):
        return "".join(self.writes)


class FakeClient:
    """Serves canned bodies keyed by URL."""

    def __init__(self, pages=None):
        self.responses = {}
        self.requests = []
        for url, body in (pages or {}).items():
            self.add(url, body)

    def add(self, url, body):
        gurl = parse_url(url)
        self.responses[(gurl.host, gurl.port, gurl.request)] = body

    def fetch(self, host, port, selector):
        return self.fetch_bytes(host, port, selector).decode("utf-8")

    def fetch_bytes(self, host, port, selector):
        self.requests.append((host, port, selector))
        try:
            body = self.responses[(host, port, selector)]
        except KeyError:
            raise GopherError(f"Connection refused ({host}:{port})") from None
        return body if isinstance(body, bytes) else body.encode("utf-8")


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def ui(client, terminal, tmp_path):
    copied = []
    opened = []
    session = UI(
        client,
        terminal,
        download_dir=str(tmp_path),
        clipboard=copied.append,
        browser=lambda url: opened.append(url) or True,
    )
    session.copied = copied
    session.opened = opened
    yield session
    session.close()


@pytest.fixture
def gopher_root(tmp_path):
    root = tmp_path / "root"
    (root / "docs").mkdir(parents=True)
    (root / "hello.txt").write_text("Hello, gopher!\n.hidden dot line\n", encoding="utf-8")
    (root / "blob.bin").write_bytes(bytes(range(256)))
    (root / "docs" / "gophermap").write_text(
        "iWelcome to the docs\tfake\t(NULL)\t0\n1Back home\t/\tlocalhost\t7070\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def local_server(gopher_root):
    server = start_local_gopher(str(gopher_root), host="127.0.0.1", port=0)
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def closed_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port


def menu_body(pattern, host="host", port=70):
    """Build a menu from a pattern like "ii11i1": i = info line, 1 = link."""
    lines = []
    count = 0
    for n, typ in enumerate(pattern):
        if typ == "i":
            lines.append(f"iinfo {n}\tfake\t(NULL)\t0")
        else:
            count += 1
            lines.append(f"{typ}Link {count}\t/{count}\t{host}\t{port}")
    return "\r\n".join(lines) + "\r\n.\r\n"
