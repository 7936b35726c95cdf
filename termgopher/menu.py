"""
Gopher menus: parsing a menu response into numbered lines, and the
scrolling/link-selection state machine used to browse one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional

from gopherlib import ItemType, type_for_char

from . import ansi, keys
from .keys import Key, KeyKind
from .view import (
    BACK,
    MAX_COLS,
    NONE,
    QUIT,
    REDRAW,
    SCROLL_LINES,
    STATUS,
    Action,
    View,
    indent_for,
    visible_rows,
)

# asks the user for a line of text, None if they cancelled
Prompt = Callable[[str], Optional[str]]

_TYPE_COLORS = {
    ItemType.TEXT: "96",
    ItemType.MENU: "94",
    ItemType.INFO: "93",
    ItemType.HTML: "92",
    ItemType.ERROR: "91",
}


@dataclass
class Line:
    name: str
    url: str
    typ: ItemType
    link: int = 0  # 1-based link number, 0 for info lines


class LinkDir(Enum):
    ABOVE = auto()
    BELOW = auto()
    VISIBLE = auto()


def build_url(type_char: str, selector: str, host: str, port: str) -> str:
    """
    Resolve one menu entry to an absolute URL.

    `URL:` selectors point outside gopherspace and are used verbatim.
    Otherwise: gopher://host[:port]/<type><selector>, where port 70 is
    left out and an empty selector becomes "/".
    """
    if selector.startswith("URL:"):
        return selector[4:]

    url = "gopher://" + host
    port = port.rstrip("\r")
    if port and port != "70":
        url += ":" + port
    url += "/" + type_char
    if not selector:
        url += "/"
    return url + selector


def parse(url: str, raw: str, prompt: Optional[Prompt] = None, wide: bool = False) -> "Menu":
    lines: List[Line] = []
    links: List[int] = []
    longest = 0
    count = 0

    for text in raw.split("\n"):
        text = text.rstrip("\r")
        if not text:
            continue
        typ = type_for_char(text[0])
        if typ is None:
            continue

        parts = text.split("\t")
        name = parts[0][1:]
        selector = parts[1] if len(parts) > 1 else ""
        host = parts[2] if len(parts) > 2 else ""
        port = parts[3] if len(parts) > 3 else ""

        link = 0
        if typ != ItemType.INFO:
            count += 1
            link = count
            links.append(len(lines))
        longest = max(longest, len(name))

        lines.append(Line(name=name, url=build_url(typ.char, selector, host, port), typ=typ, link=link))

    return Menu(url, lines, links, longest, raw, prompt=prompt, wide=wide)


class Menu(View):
    def __init__(
        self,
        url: str,
        lines: List[Line],
        links: List[int],
        longest: int,
        raw: str,
        prompt: Optional[Prompt] = None,
        wide: bool = False,
    ):
        self._url = url
        self.lines = lines
        self.links = links      # index into self.lines for each link
        self.longest = longest
        self._raw = raw
        self.prompt = prompt
        self.input = ""
        self.link = 0           # selected link, index into self.links
        self.scroll = 0         # first visible line
        self.size = (0, 0)
        self.wide = wide

    # ---------- View ----------

    def url(self) -> str:
        return self._url

    def raw(self) -> str:
        return self._raw

    def set_size(self, cols: int, rows: int) -> None:
        self.size = (cols, rows)

    def status(self) -> str:
        return self.input

    def process_input(self, key: Key) -> Action:
        if key == keys.ENTER:
            return self.action_open()
        if key in (keys.UP, keys.ctrl("p")):
            return self.action_up()
        if key in (keys.DOWN, keys.ctrl("n")):
            return self.action_down()
        if key == keys.ctrl("w"):
            self.wide = not self.wide
            return REDRAW
        if key in (keys.BACKSPACE, keys.DELETE):
            if not self.input:
                return BACK
            self.input = self.input[:-1]
            return STATUS
        if key == keys.ESC:
            if self.input:
                self.input = ""
                return STATUS
            return NONE
        if key == keys.ctrl("c"):
            if self.input:
                self.input = ""
                return STATUS
            return QUIT
        if key == keys.PAGE_UP:
            return self.action_page_up()
        if key == keys.PAGE_DOWN:
            return self.action_page_down()
        if key == keys.char("-") and not self.input:
            return self.action_page_up()
        if key == keys.char(" ") and not self.input:
            return self.action_page_down()
        if key.kind == KeyKind.CHAR:
            return self.action_type(key.char)
        return Action.keypress(key)

    def render(self) -> str:
        cols, rows = self.size
        indent = "" if self.wide else indent_for(self.longest, cols)
        out = []
        for line in self.lines[self.scroll:self.scroll + visible_rows(rows)]:
            out.append(indent)
            if line.typ == ItemType.INFO:
                out.append("      ")
            else:
                if line.link - 1 == self.link:
                    out.append(ansi.color("97;1", "*"))
                else:
                    out.append(" ")
                out.append(" ")
                out.append(ansi.color("95", f"{line.link:>2}."))
                out.append(" ")
            # truncate long lines instead of wrapping
            name = line.name
            if len(name) > MAX_COLS:
                name = name[:MAX_COLS] + "..."
            out.append(ansi.color(_color_for(line.typ), name))
            out.append("\n")
        out.append(self.render_status())
        return "".join(out)

    def render_plain(self) -> str:
        """Numbered listing without colors or layout, for non-interactive output."""
        out = []
        for line in self.lines:
            if line.typ == ItemType.INFO:
                out.append(f"      {line.name}")
            else:
                out.append(f"  {line.link:>2}. {line.name}")
        return "\n".join(out)

    # ---------- selection helpers ----------

    def selected(self) -> Optional[Line]:
        if 0 <= self.link < len(self.links):
            return self.lines[self.links[self.link]]
        return None

    def link_visibility(self, i: int) -> Optional[LinkDir]:
        if not 0 <= i < len(self.links):
            return None
        pos = self.links[i]
        if pos < self.scroll:
            return LinkDir.ABOVE
        if pos >= self.scroll + visible_rows(self.size[1]):
            return LinkDir.BELOW
        return LinkDir.VISIBLE

    def _first_visible_link(self) -> Optional[int]:
        for i in range(len(self.links)):
            if self.link_visibility(i) == LinkDir.VISIBLE:
                return i
        return None

    def _last_visible_link(self) -> Optional[int]:
        for i in reversed(range(len(self.links))):
            if self.link_visibility(i) == LinkDir.VISIBLE:
                return i
        return None

    # ---------- actions ----------

    def action_up(self) -> Action:
        if self.link == 0:
            # nothing above the first link to select, just reveal what's there
            if self.scroll > 0:
                self.scroll -= 1
                return REDRAW
            return NONE

        new_link = self.link - 1
        direction = self.link_visibility(new_link)
        if direction is None:
            return NONE
        if direction == LinkDir.ABOVE:
            if self.scroll > 0:
                self.scroll -= 1
            if self.link_visibility(new_link) == LinkDir.VISIBLE:
                self.link = new_link
            elif self.link_visibility(self.link) != LinkDir.VISIBLE:
                # selection scrolled off the bottom, put the target on the last row
                rows = visible_rows(self.size[1])
                self.scroll = max(0, self.links[new_link] - rows + 1)
                self.link = new_link
        elif direction == LinkDir.BELOW:
            self.scroll = self.links[new_link]
            self.link = new_link
        else:
            self.link = new_link
        return REDRAW

    def action_down(self) -> Action:
        count = len(self.links)
        rows = visible_rows(self.size[1])

        if count == 0 or self.link == count - 1:
            # last link selected but there's more content
            if len(self.lines) > self.scroll + rows:
                self.scroll += 1
                return REDRAW
            return NONE

        new_link = self.link + 1
        pos = self.links[new_link]
        direction = self.link_visibility(new_link)
        if direction == LinkDir.ABOVE:
            self.scroll = pos
        elif direction == LinkDir.BELOW:
            if pos == self.scroll + rows:
                self.scroll += 1
            else:
                self.scroll = min(pos, max(0, len(self.lines) - rows))
        self.link = new_link
        return REDRAW

    def action_page_down(self) -> Action:
        total = len(self.lines)
        if total > SCROLL_LINES and self.scroll < total - SCROLL_LINES:
            self.scroll = min(self.scroll + SCROLL_LINES, total - SCROLL_LINES)
            if self.links and self.link_visibility(self.link) != LinkDir.VISIBLE:
                found = self._first_visible_link()
                if found is not None:
                    self.link = found
            return REDRAW
        return NONE

    def action_page_up(self) -> Action:
        if self.scroll > 0:
            self.scroll = max(0, self.scroll - SCROLL_LINES)
            if self.links and self.link_visibility(self.link) != LinkDir.VISIBLE:
                found = self._last_visible_link()
                if found is not None:
                    self.link = found
            return REDRAW
        if self.link > 0:
            return self.action_select_link(0)
        return NONE

    def action_select_link(self, link: int) -> Action:
        if not 0 <= link < len(self.links):
            return NONE
        if self.link_visibility(link) != LinkDir.VISIBLE:
            line = self.links[link]
            offset = min(SCROLL_LINES, visible_rows(self.size[1]) - 1)
            self.scroll = max(0, line - offset)
        self.link = link
        return REDRAW

    def action_follow_link(self, link: int) -> Action:
        self.input = ""
        self.action_select_link(link)
        return self.action_open()

    def action_open(self) -> Action:
        self.input = ""
        line = self.selected()
        if line is None:
            return NONE
        if line.typ == ItemType.SEARCH:
            if self.prompt is None:
                return NONE
            query = self.prompt(f"{line.name}> ")
            if query is None:
                return NONE
            return Action.open(f"{line.url}?{query}")
        return Action.open(line.url)

    def action_type(self, c: str) -> Action:
        self.input += c
        count = len(self.links)

        # 1-3 digits jump to a link number. Follow it right away unless
        # more digits could still name a different link.
        if len(self.input) <= 3 and self.input.isascii() and self.input.isdigit():
            num = int(self.input)
            if 0 < num <= count:
                if count < num * 10:
                    return self.action_follow_link(num - 1)
                return self.action_select_link(num - 1)

        query = self.input.lower()
        for i, pos in enumerate(self.links):
            if query in self.lines[pos].name.lower():
                return self.action_select_link(i)
        return STATUS


def _color_for(typ: ItemType) -> str:
    if typ in _TYPE_COLORS:
        return _TYPE_COLORS[typ]
    if typ.is_download:
        return "4;97"
    return "0"


__all__ = ["Line", "LinkDir", "Menu", "build_url", "parse"]
