#!/usr/bin/env python3
# arepl/boot/boot.py
from __future__ import annotations
"""
Boot sequence for the REPL.

Steps (each reported as [  OK  ] / [FAILED] when `verbose`, logged at DEBUG
otherwise):
- Load configuration and initialize logging.
- Build the registry, register built-ins, then load plugin commands.
  Registration errors fail the boot; no loop is started.
- Build completion/hint engines, the frontend and the dispatch loop.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

from arepl.commands import CommandRegistry
from arepl.config import ReplConfig, load_config
from arepl.interface import (
    HELP_TEXT,
    CompletionEngine,
    DispatchLoop,
    Frontend,
    HintEngine,
    load_commands,
    make_cli,
    register_builtins,
)
from arepl.ui import colorize, enable_windows_vt, init_logger, print_line

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BootState:
    config: ReplConfig
    logger: logging.Logger
    registry: CommandRegistry
    completion_engine: Optional[CompletionEngine]
    hint_engine: Optional[HintEngine]
    frontend: Frontend
    loop: DispatchLoop
    loaded_count: int


def _step(label: str, fn: Callable[[], Any], *, verbose: bool = False) -> Any:
    """Run a boot step with status output."""
    try:
        out = fn()
    except Exception as exc:
        # failures are always shown
        print_line(
            colorize(f"[FAILED] {label} ({type(exc).__name__}: {exc})", "red", stream=sys.stderr),
            file=sys.stderr,
        )
        raise
    if verbose:
        print_line(colorize(f"[  OK  ] {label}", "green", stream=sys.stderr), file=sys.stderr)
    else:
        logger.debug("Boot step ok: %s", label)
    return out


def boot_repl(
    config: Optional[ReplConfig] = None,
    registry: Optional[CommandRegistry] = None,
    frontend: Optional[Frontend] = None,
    *,
    verbose: bool = False,
) -> BootState:
    """
    Wire every collaborator together and return them, loop not yet running.

    `registry` may come pre-populated by the host; built-ins are registered
    into it first so that user commands colliding with them are rejected.
    """
    # ---------- console + config ----------
    _step("Enable ANSI sequences", enable_windows_vt, verbose=verbose)
    if config is None:
        config = _step("Load configuration", load_config, verbose=verbose)

    # ---------- logging ----------
    def _init_logging() -> logging.Logger:
        logfile = config.log_file_path
        if logfile is not None:
            logfile.parent.mkdir(parents=True, exist_ok=True)
        return init_logger("arepl", level=config.log_level,
                           logfile=str(logfile) if logfile else None)

    log = _step("Initialize logger", _init_logging, verbose=verbose)

    # ---------- commands ----------
    if registry is None:
        registry = CommandRegistry(strictness=config.strictness,
                                   prefix_resolution=config.prefix_resolution)

    if config.builtins:
        # Built-ins go in before user commands
        _step(
            "Register built-in commands",
            lambda: register_builtins(registry, description=config.description),
            verbose=verbose,
        )

    loaded_count = 0
    if config.commands_package:
        pkg_name = config.commands_package
        loaded_count = _step(
            f"Load commands from '{pkg_name}'",
            lambda: load_commands(registry, pkg_name),
            verbose=verbose,
        )

    # ---------- interactive services ----------
    completion_engine = CompletionEngine(registry) if config.enable_completion else None
    hint_engine = HintEngine(registry) if config.enable_hints else None

    if frontend is None:
        frontend = _step(
            f"Select frontend ({config.frontend})",
            lambda: make_cli(
                completion_engine,
                hint_engine,
                frontend=config.frontend,
                prompt=config.prompt,
                history_path=config.history_file_path,
                filename_completion=config.enable_filename_completion,
            ),
            verbose=verbose,
        )

    loop = DispatchLoop(registry, frontend, interrupt_policy=config.interrupt_policy)
    _step(f"Boot complete: {len(registry)} commands. {HELP_TEXT}",
          lambda: None, verbose=verbose)

    return BootState(
        config=config,
        logger=log,
        registry=registry,
        completion_engine=completion_engine,
        hint_engine=hint_engine,
        frontend=frontend,
        loop=loop,
        loaded_count=loaded_count,
    )
