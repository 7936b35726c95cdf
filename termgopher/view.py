"""
The contract every page in the history implements, and the actions
a page hands back to the UI after a keypress.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from . import ansi
from .keys import Key

# lines moved by page up/down
SCROLL_LINES = 15
# widest a menu name or text line is drawn before truncating/wrapping
MAX_COLS = 72


class ActionKind(Enum):
    NONE = auto()
    BACK = auto()
    FORWARD = auto()
    OPEN = auto()
    REDRAW = auto()
    STATUS = auto()
    QUIT = auto()
    CLIPBOARD = auto()
    UNKNOWN = auto()
    KEYPRESS = auto()


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    data: str = ""
    key: Optional[Key] = None

    @classmethod
    def open(cls, url: str) -> "Action":
        return cls(ActionKind.OPEN, data=url)

    @classmethod
    def clipboard(cls, data: str) -> "Action":
        return cls(ActionKind.CLIPBOARD, data=data)

    @classmethod
    def keypress(cls, key: Key) -> "Action":
        return cls(ActionKind.KEYPRESS, key=key)


NONE = Action(ActionKind.NONE)
BACK = Action(ActionKind.BACK)
FORWARD = Action(ActionKind.FORWARD)
REDRAW = Action(ActionKind.REDRAW)
STATUS = Action(ActionKind.STATUS)
QUIT = Action(ActionKind.QUIT)
UNKNOWN = Action(ActionKind.UNKNOWN)


class View(ABC):
    size = (0, 0)  # cols, rows

    @abstractmethod
    def render(self) -> str:
        """Everything to paint for the current scroll position and size."""

    @abstractmethod
    def process_input(self, key: Key) -> Action:
        ...

    @abstractmethod
    def url(self) -> str:
        ...

    @abstractmethod
    def set_size(self, cols: int, rows: int) -> None:
        ...

    @abstractmethod
    def raw(self) -> str:
        ...

    def status(self) -> str:
        return ""

    def render_status(self) -> str:
        rows = max(1, self.size[1])
        return f"{ansi.goto(1, rows)}{ansi.CLEAR_LINE}{self.status()}"


def visible_rows(rows: int) -> int:
    """Rows available for content; the last row holds the status line."""
    return max(1, rows - 1)


def indent_for(longest: int, cols: int) -> str:
    longest = min(longest, MAX_COLS)
    if longest > cols:
        return ""
    left = (cols - longest) // 2
    if left > 6:
        return " " * (left - 6)
    return ""
