#!/usr/bin/env python3
# arepl/interface/__init__.py
from __future__ import annotations

"""
Package for the interactive loop and its collaborators.

Provides:
- Tokenizer, argument binding and usage rendering.
- Completion and hint engines queried by the line editor.
- The asynchronous dispatch loop and its outcome types.
- Built-in help/quit commands.
- CLI frontends (prompt_toolkit / readline / plain).
- Dynamic command loader for plugin packages.
"""


# Parser FIRST (everything else depends on it)
from .parser import (
    Invocation,
    NOOP,
    Token,
    bind_args,
    build_usage,
    quote_token,
    split_tokens,
    tokenize,
)

# Interactive query engines
from .completion import Candidate, CompletionEngine, Completions
from .hints import HintEngine

# Dispatch loop
from .dispatch import (
    DispatchLoop,
    DispatchOutcome,
    Frontend,
    InterruptPolicy,
    LoopState,
    LoopStatus,
    OutcomeKind,
    outcome_from_result,
    route_sigint,
)

# Built-ins / help
from .handler import HELP_TEXT, format_command_help, format_help, register_builtins

# Loader
from .loader import load_commands

# CLI frontends (after the engines are available)
from .cli import BaseCLI, PlainCLI, PromptToolkitCLI, ReadlineCLI, make_cli

__all__ = [
    # parser
    "Invocation",
    "NOOP",
    "Token",
    "bind_args",
    "build_usage",
    "quote_token",
    "split_tokens",
    "tokenize",
    # engines
    "Candidate",
    "CompletionEngine",
    "Completions",
    "HintEngine",
    # dispatch
    "DispatchLoop",
    "DispatchOutcome",
    "Frontend",
    "InterruptPolicy",
    "LoopState",
    "LoopStatus",
    "OutcomeKind",
    "outcome_from_result",
    "route_sigint",
    # handler
    "HELP_TEXT",
    "format_command_help",
    "format_help",
    "register_builtins",
    # loader
    "load_commands",
    # cli
    "BaseCLI",
    "PlainCLI",
    "PromptToolkitCLI",
    "ReadlineCLI",
    "make_cli",
]
