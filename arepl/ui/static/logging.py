#!/usr/bin/env python3
# arepl/ui/static/logging.py
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from arepl.ui.utils import ANSI, PRINT_MUTEX, strip_ansi, supports_color

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class ColorizingStreamHandler(logging.StreamHandler):
    """
    Console handler coloring records by level.

    Without an explicit stream it writes to whatever `sys.stderr` is at emit
    time, so records land above the prompt while the line editor has stdio
    patched.
    """

    _LEVEL_COLORS = {
        logging.DEBUG: ANSI["bright_black"],
        logging.WARNING: ANSI["yellow"],
        logging.ERROR: ANSI["red"],
        logging.CRITICAL: ANSI["magenta"],
    }

    def __init__(self, stream=None) -> None:
        super().__init__(stream)
        self._follow_stderr = stream is None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = sys.stderr if self._follow_stderr else self.stream
            message = self.format(record)
            color = self._LEVEL_COLORS.get(record.levelno, "")
            if color and supports_color(stream):
                message = f"{color}{message}{ANSI['reset']}"
            else:
                message = strip_ansi(message)
            with PRINT_MUTEX:
                stream.write(message + self.terminator)
                stream.flush()
        except Exception:
            self.handleError(record)


class PlainFormatter(logging.Formatter):
    """Formatter for log files: same layout, escape sequences removed."""

    def format(self, record: logging.LogRecord) -> str:
        return strip_ansi(super().format(record))


def init_logger(
    name: str = "arepl",
    level: Union[int, str] = logging.WARNING,
    logfile: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger; calling it again reconfigures levels.

    Console: stderr at `level`, colored on terminals.
    File (optional): rotating, plain text, UTF-8, everything from DEBUG up.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if logfile else level)
    logger.propagate = False

    console = next((h for h in logger.handlers if isinstance(h, ColorizingStreamHandler)), None)
    if console is None:
        console = ColorizingStreamHandler()
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)
    console.setLevel(level)

    if logfile and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        file_handler = RotatingFileHandler(
            logfile, maxBytes=2_000_000, backupCount=3, encoding="utf-8", delay=True
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(PlainFormatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    return logger
