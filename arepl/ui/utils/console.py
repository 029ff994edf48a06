#!/usr/bin/env python3
# arepl/ui/utils/console.py
from __future__ import annotations

import shutil
import sys
import threading
from typing import IO, Optional

# Serializes frontend writes with log records emitted from other threads
PRINT_MUTEX = threading.Lock()


def print_line(text: str = "", *, file: Optional[IO[str]] = None, flush: bool = False) -> None:
    """Write one line of output atomically."""
    stream = file if file is not None else sys.stdout
    with PRINT_MUTEX:
        stream.write(text + "\n")
        if flush:
            stream.flush()


def get_terminal_columns(fallback: int = 100) -> int:
    """Width available for help tables."""
    return shutil.get_terminal_size((fallback, 24)).columns
