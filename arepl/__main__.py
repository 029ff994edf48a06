#!/usr/bin/env python3
# arepl/__main__.py
from __future__ import annotations
"""Run the demo REPL: `python -m arepl`."""

import asyncio
import sys

from arepl.boot import boot_repl
from arepl.config import ReplConfig, load_config
from arepl.errors import CriticalError, RegistrationError
from arepl.ui import colorize, print_line

DEMO_PACKAGE = "arepl.plugins"


async def _amain(config: ReplConfig) -> int:
    if config.commands_package is None:
        config.commands_package = DEMO_PACKAGE
    state = boot_repl(config)

    with state.frontend:
        await state.loop.run()
    return 0


def main() -> int:
    try:
        config = load_config()
    except ValueError as exc:
        print_line(colorize(f"[FAILED] Load configuration ({exc})", "red", stream=sys.stderr), file=sys.stderr)
        return 2

    try:
        return asyncio.run(_amain(config))
    except RegistrationError:
        # already reported by the boot step
        return 2
    except CriticalError as exc:
        print_line(colorize(f"[CRITICAL] {exc}", "magenta", stream=sys.stderr), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
