#!/usr/bin/env python3
# arepl/ui/__init__.py
from __future__ import annotations
# Re-export convenient top-level API
from .utils import (
    ANSI,
    strip_ansi,
    enable_windows_vt,
    supports_color,
    PRINT_MUTEX,
    print_line,
    get_terminal_columns,
    colorize,
)
from .static import (
    format_table,
    init_logger,
    ColorizingStreamHandler,
    PlainFormatter,
)

__all__ = [
    "ANSI",
    "strip_ansi",
    "enable_windows_vt",
    "supports_color",
    "colorize",
    "PRINT_MUTEX",
    "print_line",
    "get_terminal_columns",
    "format_table",
    "init_logger",
    "ColorizingStreamHandler",
    "PlainFormatter",
]
