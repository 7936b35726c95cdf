"""
Whitespace-aware line wrapping for plain-text documents.
"""

from __future__ import annotations

from typing import List, Optional


def wrap_text(text: str, width: int) -> List[str]:
    """
    Break text into display lines no wider than `width`, splitting at the
    last blank inside the window when there is one.
    """
    width = max(1, width)
    out: List[str] = []
    for line in text.split("\n"):
        line = line.rstrip("\r").expandtabs(8)
        if len(line) <= width:
            out.append(line)
        else:
            out.extend(_wrap_line(line, width))
    return out


def _wrap_line(line: str, width: int) -> List[str]:
    pieces: List[str] = []
    idx = 0
    length = len(line)

    while length - idx > width:
        window = line[idx:idx + width]
        if line[idx + width] == " ":
            split_idx = width
        else:
            split_idx = _find_space_split(window) or width
        pieces.append(window[:split_idx].rstrip())
        idx += split_idx
        while idx < length and line[idx] == " ":
            idx += 1

    if idx < length:
        pieces.append(line[idx:])
    return pieces


def _find_space_split(window: str) -> Optional[int]:
    for pos in range(len(window) - 1, 0, -1):
        if window[pos] == " " and window[:pos].strip():
            return pos + 1
    return None


__all__ = ["wrap_text"]
