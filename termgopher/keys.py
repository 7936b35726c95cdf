"""
Decoded keyboard events and the byte-level decoder for raw terminal input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class KeyKind(Enum):
    CHAR = auto()
    CTRL = auto()
    ALT = auto()
    UP = auto()
    DOWN = auto()
    LEFT = auto()
    RIGHT = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    HOME = auto()
    END = auto()
    BACKSPACE = auto()
    DELETE = auto()
    ESC = auto()
    F = auto()
    UNKNOWN = auto()


@dataclass(frozen=True)
class Key:
    kind: KeyKind
    char: str = ""

    def __str__(self) -> str:
        if self.kind == KeyKind.CHAR:
            return repr(self.char)
        if self.kind in (KeyKind.CTRL, KeyKind.ALT, KeyKind.F):
            return f"{self.kind.name.title()}-{self.char}"
        return self.kind.name.lower()


def char(c: str) -> Key:
    return Key(KeyKind.CHAR, c)


def ctrl(c: str) -> Key:
    return Key(KeyKind.CTRL, c)


def alt(c: str) -> Key:
    return Key(KeyKind.ALT, c)


ENTER = char("\n")
UP = Key(KeyKind.UP)
DOWN = Key(KeyKind.DOWN)
LEFT = Key(KeyKind.LEFT)
RIGHT = Key(KeyKind.RIGHT)
PAGE_UP = Key(KeyKind.PAGE_UP)
PAGE_DOWN = Key(KeyKind.PAGE_DOWN)
HOME = Key(KeyKind.HOME)
END = Key(KeyKind.END)
BACKSPACE = Key(KeyKind.BACKSPACE)
DELETE = Key(KeyKind.DELETE)
ESC = Key(KeyKind.ESC)

# CSI final bytes and "CSI n ~" codes
_CSI_FINAL = {
    "A": UP,
    "B": DOWN,
    "C": RIGHT,
    "D": LEFT,
    "H": HOME,
    "F": END,
}
_CSI_TILDE = {
    "1": HOME,
    "3": DELETE,
    "4": END,
    "5": PAGE_UP,
    "6": PAGE_DOWN,
    "7": HOME,
    "8": END,
}
_SS3 = {
    "A": UP,
    "B": DOWN,
    "C": RIGHT,
    "D": LEFT,
    "H": HOME,
    "F": END,
    "P": Key(KeyKind.F, "1"),
    "Q": Key(KeyKind.F, "2"),
    "R": Key(KeyKind.F, "3"),
    "S": Key(KeyKind.F, "4"),
}


def decode(data: str) -> List[Key]:
    """Turn a chunk of raw-mode terminal input into keys."""
    keys: List[Key] = []
    i = 0
    n = len(data)
    while i < n:
        c = data[i]
        if c == "\x1b":
            key, i = _decode_escape(data, i)
            keys.append(key)
            continue
        keys.append(_decode_plain(c))
        i += 1
    return keys


def _decode_plain(c: str) -> Key:
    if c in ("\r", "\n"):
        return ENTER
    if c in ("\x7f", "\x08"):
        return BACKSPACE
    if c == "\t":
        return char("\t")
    code = ord(c)
    if 1 <= code <= 26:
        return ctrl(chr(code + ord("a") - 1))
    if code < 32:
        return Key(KeyKind.UNKNOWN, c)
    return char(c)


def _decode_escape(data: str, i: int):
    n = len(data)
    if i + 1 >= n:
        return ESC, i + 1

    nxt = data[i + 1]
    if nxt == "[":
        j = i + 2
        while j < n and (data[j].isdigit() or data[j] == ";"):
            j += 1
        if j >= n:
            return Key(KeyKind.UNKNOWN, data[i:j]), j
        final = data[j]
        params = data[i + 2:j]
        if final == "~":
            key = _CSI_TILDE.get(params.split(";", 1)[0], Key(KeyKind.UNKNOWN, data[i:j + 1]))
        else:
            key = _CSI_FINAL.get(final, Key(KeyKind.UNKNOWN, data[i:j + 1]))
        return key, j + 1
    if nxt == "O" and i + 2 < n:
        return _SS3.get(data[i + 2], Key(KeyKind.UNKNOWN, data[i:i + 3])), i + 3
    if nxt == "\x1b":
        return ESC, i + 1
    return alt(nxt), i + 2


__all__ = [
    "Key",
    "KeyKind",
    "decode",
    "char",
    "ctrl",
    "alt",
    "ENTER",
    "UP",
    "DOWN",
    "LEFT",
    "RIGHT",
    "PAGE_UP",
    "PAGE_DOWN",
    "HOME",
    "END",
    "BACKSPACE",
    "DELETE",
    "ESC",
]
