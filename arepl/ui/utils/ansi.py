#!/usr/bin/env python3
# arepl/ui/utils/ansi.py
from __future__ import annotations

import ctypes
import os
import re
from typing import IO, Optional

# SGR codes used by status lines and log records
ANSI = {
    "reset": "\x1b[0m",
    "bold": "\x1b[1m",
    "red": "\x1b[31m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "magenta": "\x1b[35m",
    "cyan": "\x1b[36m",
    "bright_black": "\x1b[90m",
}

ANSI_REGEX = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

_vt_state: Optional[bool] = None


def strip_ansi(text: str) -> str:
    """Remove SGR escape sequences (help tables, log files)."""
    return ANSI_REGEX.sub("", text)


def enable_windows_vt() -> bool:
    """
    Turn on VT processing for the Windows console behind stderr.

    Returns whether escape sequences are understood; always True elsewhere.
    The answer is computed once per process.
    """
    global _vt_state
    if _vt_state is None:
        _vt_state = os.name != "nt" or _enable_nt_console()
    return _vt_state


def _enable_nt_console() -> bool:
    if os.environ.get("WT_SESSION") or os.environ.get("TERM", "").startswith("xterm"):
        return True
    try:
        kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        handle = kernel32.GetStdHandle(-12)  # STD_ERROR_HANDLE
        mode = ctypes.c_uint()
        if not kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
            return False
        # ENABLE_VIRTUAL_TERMINAL_PROCESSING
        return bool(kernel32.SetConsoleMode(handle, mode.value | 0x0004))
    except (AttributeError, OSError):
        return False


def supports_color(stream: Optional[IO[str]]) -> bool:
    """True when `stream` is a terminal that renders escape sequences."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty()) and enable_windows_vt()


def colorize(text: str, *styles: str, stream: Optional[IO[str]] = None) -> str:
    """
    Wrap text in the given ANSI styles ('red', 'bold', ...), reset at the end.

    With `stream`, text is returned untouched unless that stream supports
    color, so redirected output stays plain.
    """
    if stream is not None and not supports_color(stream):
        return text
    seq = "".join(ANSI[s] for s in styles if s in ANSI)
    return f"{seq}{text}{ANSI['reset']}" if seq else text
