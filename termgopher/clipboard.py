"""
Copy text to the OS clipboard by piping it into the platform's helper program.
"""

from __future__ import annotations

import subprocess
import sys
from typing import List


class ClipboardError(Exception):
    pass


def clipboard_command(platform: str = sys.platform) -> List[str]:
    if platform == "darwin":
        return ["pbcopy"]
    return ["xclip", "-sel", "clip"]


def copy_to_clipboard(data: str) -> None:
    cmd = clipboard_command()
    try:
        subprocess.run(cmd, input=data.encode("utf-8"), check=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as e:
        raise ClipboardError(f"{cmd[0]}: {e}") from e


__all__ = ["ClipboardError", "clipboard_command", "copy_to_clipboard"]
