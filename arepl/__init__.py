#!/usr/bin/env python3
# arepl/__init__.py
from __future__ import annotations
"""
arepl: an embeddable asynchronous command REPL.

Convenience re-exports for hosts; the subpackages expose their full APIs
via their own __init__.py files.
"""

from arepl.commands import (
    ArgumentDescriptor,
    Command,
    CommandRegistry,
    CommandResult,
    CommandStatus,
    Handler,
    Strictness,
    arg,
    command,
    opt,
)
from arepl.errors import CriticalError, HandlerError, ReplError, critical
from arepl.interface import (
    CompletionEngine,
    DispatchLoop,
    DispatchOutcome,
    HintEngine,
    InterruptPolicy,
    register_builtins,
    tokenize,
)

__version__ = "0.1.0"

__all__ = [
    "ArgumentDescriptor",
    "Command",
    "CommandRegistry",
    "CommandResult",
    "CommandStatus",
    "Handler",
    "Strictness",
    "arg",
    "command",
    "opt",
    "CriticalError",
    "HandlerError",
    "ReplError",
    "critical",
    "CompletionEngine",
    "DispatchLoop",
    "DispatchOutcome",
    "HintEngine",
    "InterruptPolicy",
    "register_builtins",
    "tokenize",
]
