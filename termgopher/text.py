"""
Scrolling view over a plain-text document. Also used for error pages
and for showing the raw source of another page.
"""

from __future__ import annotations

from typing import List

from gopherlib import strip_terminator

from . import ansi, keys
from .keys import Key
from .view import MAX_COLS, NONE, REDRAW, SCROLL_LINES, Action, View, indent_for, visible_rows
from .wrap import wrap_text


class TextView(View):
    def __init__(self, url: str, raw: str, wide: bool = False, error: bool = False, verbatim: bool = False):
        self._url = url
        self._raw = raw
        self.body = raw if verbatim else strip_terminator(raw)
        self.error = error
        self.wide = wide
        self.scroll = 0
        self.size = (0, 0)
        self.longest = max((len(line) for line in self.body.split("\n")), default=0)
        self.lines: List[str] = []
        self._width = -1
        self._rewrap()

    @classmethod
    def error_page(cls, url: str, error: Exception) -> "TextView":
        body = f"Error loading {url}\n\n{error}\n\nPress Backspace to go back."
        return cls(url, body, error=True, verbatim=True)

    def url(self) -> str:
        return self._url

    def raw(self) -> str:
        return self._raw

    def set_size(self, cols: int, rows: int) -> None:
        self.size = (cols, rows)
        self._rewrap()

    def _wrap_width(self) -> int:
        cols = self.size[0] or MAX_COLS
        if self.wide:
            return cols
        return min(cols, MAX_COLS)

    def _rewrap(self) -> None:
        width = self._wrap_width()
        if width != self._width:
            self._width = width
            self.lines = wrap_text(self.body, width)
        self.scroll = min(self.scroll, self.max_scroll())

    def max_scroll(self) -> int:
        return max(0, len(self.lines) - visible_rows(self.size[1]))

    def process_input(self, key: Key) -> Action:
        if key in (keys.UP, keys.ctrl("p"), keys.char("k")):
            return self._scroll_to(self.scroll - 1)
        if key in (keys.DOWN, keys.ctrl("n"), keys.char("j")):
            return self._scroll_to(self.scroll + 1)
        if key in (keys.PAGE_UP, keys.char("-")):
            return self._scroll_to(self.scroll - SCROLL_LINES)
        if key in (keys.PAGE_DOWN, keys.char(" ")):
            return self._scroll_to(self.scroll + SCROLL_LINES)
        if key in (keys.HOME, keys.char("g")):
            return self._scroll_to(0)
        if key in (keys.END, keys.char("G")):
            return self._scroll_to(self.max_scroll())
        if key == keys.ctrl("w"):
            self.wide = not self.wide
            self._rewrap()
            return REDRAW
        return Action.keypress(key)

    def _scroll_to(self, scroll: int) -> Action:
        scroll = max(0, min(scroll, self.max_scroll()))
        if scroll == self.scroll:
            return NONE
        self.scroll = scroll
        return REDRAW

    def render(self) -> str:
        cols, rows = self.size
        indent = "" if self.wide else indent_for(min(self.longest, self._width), cols)
        out = []
        for line in self.lines[self.scroll:self.scroll + visible_rows(rows)]:
            out.append(indent)
            out.append(ansi.color("91", line) if self.error else line)
            out.append("\n")
        out.append(self.render_status())
        return "".join(out)


__all__ = ["TextView"]
