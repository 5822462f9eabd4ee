from __future__ import annotations

import os
import sys
from typing import Protocol, TextIO, cast


class ReconfigurableIO(Protocol):
    def reconfigure(self, *, encoding: str, errors: str) -> None: ...


def _reconfigure(stream: TextIO) -> None:
    if not callable(getattr(stream, "reconfigure", None)):
        return
    try:
        cast(ReconfigurableIO, stream).reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, OSError, ValueError):
        # Redirected or detached streams may refuse reconfigure
        return


def configure_utf8_console() -> None:
    """Ensure stdout/stderr use UTF-8 on Windows consoles.

    Progress messages and reports contain emoji; a cp1252 console would raise
    UnicodeEncodeError on the first one. No-op on other platforms.
    """
    if os.name != "nt":
        return
    _reconfigure(sys.stdout)
    _reconfigure(sys.stderr)
