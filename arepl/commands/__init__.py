#!/usr/bin/env python3
# arepl/commands/__init__.py
from __future__ import annotations

"""
Package for command definitions and registration.

Provides:
- Data structures and the handler contract (`Command`, `ArgumentDescriptor`,
  `Handler`, `FunctionHandler`, `CommandResult`, `CommandStatus`).
- The explicit registry (`CommandRegistry`, `Strictness`) and the `command`
  decorator.

This package re-exports public APIs from:
- command_types.py
- commands.py
"""


# Re-export from submodules
from .command_types import (
    ArgumentDescriptor,
    Command,
    CommandResult,
    CommandStatus,
    CompletionProvider,
    FunctionHandler,
    Handler,
    HandlerDescription,
    arg,
    opt,
)
from .commands import CommandRegistry, Strictness, command

__all__ = [
    "ArgumentDescriptor",
    "Command",
    "CommandResult",
    "CommandStatus",
    "CompletionProvider",
    "FunctionHandler",
    "Handler",
    "HandlerDescription",
    "arg",
    "opt",
    "CommandRegistry",
    "Strictness",
    "command",
]
