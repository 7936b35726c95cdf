"""
ANSI escape sequences used when painting views.
"""

CLEAR_SCREEN = "\x1b[2J"
CLEAR_LINE = "\x1b[2K"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
RESET = "\x1b[0m"


def goto(col: int, row: int) -> str:
    """Move the cursor; both coordinates are 1-based."""
    return f"\x1b[{row};{col}H"


def color(code: str, text: str) -> str:
    return f"\x1b[{code}m{text}{RESET}"

