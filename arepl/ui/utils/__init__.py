#!/usr/bin/env python3
# arepl/ui/utils/__init__.py
from __future__ import annotations
from .ansi import (
    ANSI,
    strip_ansi,
    enable_windows_vt,
    supports_color,
    colorize,
)
from .console import PRINT_MUTEX, print_line, get_terminal_columns

__all__ = [
    "ANSI",
    "strip_ansi",
    "enable_windows_vt",
    "supports_color",
    "colorize",
    "PRINT_MUTEX",
    "print_line",
    "get_terminal_columns",
]
