"""
Serve a directory tree over Gopher, for `termgopher --local` and tests.
"""

from .server import LocalGopherServer, start_local_gopher

__all__ = ["LocalGopherServer", "start_local_gopher"]
