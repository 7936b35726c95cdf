"""
The browsing session: a history of pages, the draw/read-key loop, and the
global key bindings that apply when a page doesn't handle a key itself.
"""

from __future__ import annotations

import logging
import os
import webbrowser
from typing import Callable, List, Optional, Tuple

from pubsub import pub

from gopherlib import (
    TOPIC_ESTABLISHED,
    TOPIC_FAILED,
    GopherClient,
    GopherError,
    GopherURL,
    ItemType,
    is_gopher_url,
    parse_url,
    selector_filename,
)

from . import ansi, keys
from . import menu
from .clipboard import ClipboardError, copy_to_clipboard
from .keys import Key
from .terminal import Terminal
from .text import TextView
from .view import BACK, FORWARD, NONE, QUIT, REDRAW, Action, ActionKind, View

log = logging.getLogger(__name__)

_TELNET_TYPES = (ItemType.TELNET, ItemType.TELNET3270)


class UI:
    def __init__(
        self,
        client: GopherClient,
        terminal: Terminal,
        wide: bool = False,
        download_dir: str = ".",
        clipboard: Callable[[str], None] = copy_to_clipboard,
        browser: Callable[[str], bool] = webbrowser.open,
    ):
        self.client = client
        self.terminal = terminal
        self.wide = wide
        self.download_dir = download_dir
        self.clipboard = clipboard
        self.browser = browser

        self.pages: List[View] = []
        self.page = 0           # currently focused page
        self.dirty = True       # redraw on next loop?
        self.running = True
        self._last_size: Optional[Tuple[int, int]] = None

        pub.subscribe(self._on_connection_established, TOPIC_ESTABLISHED)
        pub.subscribe(self._on_connection_failed, TOPIC_FAILED)

    def close(self) -> None:
        pub.unsubscribe(self._on_connection_established, TOPIC_ESTABLISHED)
        pub.unsubscribe(self._on_connection_failed, TOPIC_FAILED)

    # ---------- loop ----------

    def run(self) -> None:
        while self.running:
            self.draw()
            self.update()

    def draw(self) -> None:
        size = self.terminal.size()
        if size != self._last_size:
            self._last_size = size
            self.dirty = True
        if self.dirty:
            self.terminal.write(f"{ansi.CLEAR_SCREEN}{ansi.goto(1, 1)}{ansi.HIDE_CURSOR}{self.render()}")
            self.dirty = False

    def update(self) -> None:
        key = self.terminal.read_key()
        if self.process_key(key).kind == ActionKind.QUIT:
            self.running = False

    def render(self) -> str:
        view = self.current()
        if view is None:
            return "N/A"
        cols, rows = self.terminal.size()
        view.set_size(cols, rows)
        return view.render()

    def status(self, message: str) -> None:
        _, rows = self.terminal.size()
        self.terminal.write(f"{ansi.goto(1, rows)}{ansi.CLEAR_LINE}{message}")

    # ---------- history ----------

    def current(self) -> Optional[View]:
        if self.page < len(self.pages):
            return self.pages[self.page]
        return None

    def add_page(self, view: View) -> None:
        if self.pages and self.page < len(self.pages) - 1:
            del self.pages[self.page + 1:]
        self.pages.append(view)
        if len(self.pages) > 1:
            self.page += 1
        self.dirty = True

    def back(self) -> None:
        if self.page > 0:
            self.page -= 1
            self.dirty = True

    def forward(self) -> None:
        if self.page < len(self.pages) - 1:
            self.page += 1
            self.dirty = True

    def open(self, url: str) -> None:
        self.status(ansi.color("90", "Loading..."))
        if not is_gopher_url(url):
            self._open_external(url)
            return

        try:
            gurl = parse_url(url)
            if gurl.type in _TELNET_TYPES:
                raise GopherError("telnet sessions aren't supported")
            if gurl.type.is_download:
                self._download(gurl)
                return
            body = self.client.fetch(gurl.host, gurl.port, gurl.request)
        except GopherError as e:
            log.info("error loading %s: %s", url, e)
            self.add_page(TextView.error_page(url, e))
            return

        self.add_page(self._view_for(gurl, url, body))

    def _view_for(self, gurl: GopherURL, url: str, body: str) -> View:
        if gurl.type in (ItemType.MENU, ItemType.SEARCH):
            return menu.parse(url, body, prompt=self.terminal.prompt, wide=self.wide)
        return TextView(url, body, wide=self.wide)

    def _download(self, gurl: GopherURL) -> None:
        data = self.client.fetch_bytes(gurl.host, gurl.port, gurl.request)
        path = _unique_path(self.download_dir, selector_filename(gurl.selector))
        try:
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as e:
            raise GopherError(f"can't save download: {e}") from e
        log.info("saved %d bytes to %s", len(data), path)
        self.status(f"Saved {len(data)} bytes to {path}")

    def _open_external(self, url: str) -> None:
        try:
            opened = self.browser(url)
        except webbrowser.Error as e:
            log.warning("can't open %s: %s", url, e)
            opened = False
        if opened:
            self.status(f"Opened {url} in your browser")
        else:
            self.status(ansi.color("91", f"Can't open {url}"))

    # ---------- input ----------

    def process_key(self, key: Key) -> Action:
        view = self.current()
        action = view.process_input(key) if view is not None else Action.keypress(key)
        if action.kind in (ActionKind.UNKNOWN, ActionKind.KEYPRESS):
            action = self.global_action(action.key or key)
        return self.dispatch(action)

    def global_action(self, key: Key) -> Action:
        view = self.current()
        if key in (keys.ctrl("q"), keys.ctrl("c")):
            return QUIT
        if key in (keys.LEFT, keys.BACKSPACE):
            return BACK
        if key == keys.RIGHT:
            return FORWARD
        if key == keys.ENTER:
            return REDRAW
        if key == keys.ctrl("y") and view is not None:
            return Action.clipboard(view.url())
        if key == keys.ctrl("g"):
            url = self.terminal.prompt("Go to URL: ")
            if url:
                return Action.open(url.strip())
            return NONE
        if key == keys.ctrl("r") and view is not None:
            self.add_page(TextView(view.url(), view.raw(), wide=self.wide, verbatim=True))
            return NONE
        log.debug("no binding for %s", key)
        return NONE

    def dispatch(self, action: Action) -> Action:
        kind = action.kind
        if kind == ActionKind.REDRAW:
            self.dirty = True
            return NONE
        if kind == ActionKind.STATUS:
            view = self.current()
            if view is not None:
                self.terminal.write(view.render_status())
            return NONE
        if kind == ActionKind.OPEN:
            self.open(action.data)
            return NONE
        if kind == ActionKind.BACK:
            self.back()
            return NONE
        if kind == ActionKind.FORWARD:
            self.forward()
            return NONE
        if kind == ActionKind.CLIPBOARD:
            self.copy(action.data)
            return NONE
        return action

    def copy(self, data: str) -> None:
        try:
            self.clipboard(data)
        except ClipboardError as e:
            log.warning("clipboard copy failed: %s", e)
            self.status(ansi.color("91", f"Copy failed: {e}"))
            return
        self.status(f"Copied {data}")

    # ---------- transport events ----------

    def _on_connection_established(self, host, port, tls, tor):
        via = " via Tor" if tor else (" over TLS" if tls else "")
        self.status(ansi.color("90", f"Connected to {host}:{port}{via}, loading..."))

    def _on_connection_failed(self, host, port, error):
        self.status(ansi.color("91", f"Can't reach {host}:{port}"))


def _unique_path(directory: str, filename: str) -> str:
    path = os.path.join(directory, filename)
    stem, ext = os.path.splitext(path)
    n = 1
    while os.path.exists(path):
        path = f"{stem}-{n}{ext}"
        n += 1
    return path


__all__ = ["UI"]
