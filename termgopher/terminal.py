"""
Raw-mode terminal I/O: reading keys, painting text, asking for a line of input.
Everything that touches tty state lives here so views stay plain strings.
"""

from __future__ import annotations

import codecs
import os
import select
import sys
import termios
import tty
from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, Optional, Tuple

from . import ansi, keys
from .keys import Key, KeyKind

# how long to wait for the rest of an escape sequence after a lone ESC
ESC_TIMEOUT = 0.05


class TerminalError(Exception):
    """The terminal can't be used (no size, not a tty)."""


class Terminal:
    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.is_raw = False
        self._pending: Deque[Key] = deque()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def size(self) -> Tuple[int, int]:
        try:
            size = os.get_terminal_size(self.stdout.fileno())
        except (OSError, ValueError) as e:
            raise TerminalError(f"can't get terminal size: {e}") from e
        return size.columns, size.lines

    @contextmanager
    def raw_mode(self) -> Iterator["Terminal"]:
        fd = self.stdin.fileno()
        try:
            old = termios.tcgetattr(fd)
        except termios.error as e:
            raise TerminalError(f"stdin is not a terminal: {e}") from e
        try:
            tty.setraw(fd)
            self.is_raw = True
            yield self
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old)
            self.is_raw = False
            self.write(ansi.SHOW_CURSOR + "\n")

    def write(self, text: str) -> None:
        if self.is_raw:
            # raw mode doesn't translate \n into \r\n
            text = text.replace("\n", "\r\n")
        self.stdout.write(text)
        self.stdout.flush()

    def read_key(self) -> Key:
        while not self._pending:
            self._pending.extend(keys.decode(self._read_chunk()))
        return self._pending.popleft()

    def _read_chunk(self) -> str:
        fd = self.stdin.fileno()
        data = os.read(fd, 1)
        if not data:
            raise TerminalError("stdin closed")
        if data == b"\x1b":
            # arrow/page keys arrive as one burst; a lone ESC doesn't
            ready, _, _ = select.select([fd], [], [], ESC_TIMEOUT)
            if ready:
                data += os.read(fd, 32)
        text = self._decoder.decode(data)
        while not text:
            # middle of a multi-byte character
            text = self._decoder.decode(os.read(fd, 1))
        return text

    def prompt(self, message: str) -> Optional[str]:
        """Read a line on the status row. None if the user cancels."""
        _, rows = self.size()
        value = ""
        try:
            while True:
                self.write(f"{ansi.goto(1, rows)}{ansi.CLEAR_LINE}{message}{value}{ansi.SHOW_CURSOR}")
                key = self.read_key()
                if key == keys.ENTER:
                    return value
                if key in (keys.ESC, keys.ctrl("c")):
                    return None
                if key in (keys.BACKSPACE, keys.DELETE):
                    value = value[:-1]
                elif key.kind == KeyKind.CHAR:
                    value += key.char
        finally:
            self.write(f"{ansi.goto(1, rows)}{ansi.CLEAR_LINE}{ansi.HIDE_CURSOR}")


__all__ = ["Terminal", "TerminalError", "ESC_TIMEOUT"]
