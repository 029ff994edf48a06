#!/usr/bin/env python3
# arepl/interface/parser.py
from __future__ import annotations

"""
Argument parsing helpers for commands.

Responsibilities:
- Tokenize a command line into shell-like tokens (with source spans, so the
  completion engine can tell which token the cursor is in).
- Bind raw tokens to a command's positional argument slots, enforcing arity
  and applying per-argument converters.
- Render compact usage strings from a command's argument descriptors.
"""

import shlex
from dataclasses import dataclass
from typing import Any, Sequence

from arepl.commands import ArgumentDescriptor, Command
from arepl.errors import ArgumentValueError, ArityError, UnterminatedQuote

_QUOTES = ("\"", "'")


@dataclass(frozen=True, slots=True)
class Token:
    """One token and the [start, end) span it occupies in the source line."""

    text: str
    start: int
    end: int
    closed: bool = True


@dataclass(frozen=True, slots=True)
class Invocation:
    """One parsed user request: command name + raw argument tokens."""

    command_name: str
    raw_args: tuple[str, ...] = ()

    @property
    def is_noop(self) -> bool:
        # `""` is an empty command name, not a blank line
        return self is NOOP


NOOP = Invocation("")


def split_tokens(line: str, *, strict: bool = True) -> list[Token]:
    """
    Split `line` on whitespace honoring quotes and backslash escapes.

    A quoted span (double or single quotes) joins the token it appears in,
    embedded whitespace included. Inside double quotes a backslash escapes
    `"` and `\\`; inside single quotes nothing is special.

    With `strict=False` an unterminated quote extends to the end of the line
    and the last token is marked `closed=False` instead of raising.
    """
    tokens: list[Token] = []
    buffer: list[str] = []
    in_token = False
    start = 0
    index = 0
    length = len(line)

    while index < length:
        ch = line[index]
        if ch.isspace():
            if in_token:
                tokens.append(Token("".join(buffer), start, index))
                buffer = []
                in_token = False
            index += 1
            continue

        if not in_token:
            in_token = True
            start = index

        if ch in _QUOTES:
            quote = ch
            index += 1
            while index < length and line[index] != quote:
                if quote == "\"" and line[index] == "\\" and index + 1 < length \
                        and line[index + 1] in ("\"", "\\"):
                    index += 1
                buffer.append(line[index])
                index += 1
            if index >= length:
                if strict:
                    raise UnterminatedQuote(quote)
                tokens.append(Token("".join(buffer), start, length, closed=False))
                return tokens
            index += 1  # closing quote
            continue

        if ch == "\\" and index + 1 < length:
            buffer.append(line[index + 1])
            index += 2
            continue

        buffer.append(ch)
        index += 1

    if in_token:
        tokens.append(Token("".join(buffer), start, length))
    return tokens


def tokenize(line: str) -> Invocation:
    """
    Parse one raw input line into an Invocation.

    Empty or whitespace-only lines yield the NOOP invocation. The first token
    is the command name (exact, case-sensitive); no coercion happens here.
    """
    tokens = split_tokens(line, strict=True)
    if not tokens:
        return NOOP
    command_name, *arg_tokens = (token.text for token in tokens)
    return Invocation(command_name, tuple(arg_tokens))


def quote_token(text: str) -> str:
    """Quote a completion candidate when it would not survive tokenization."""
    if text and not any(ch.isspace() or ch in "\"'\\" for ch in text):
        return text
    return shlex.quote(text)


_BOOL_TRUE = {"1", "true", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "no", "n", "off"}


def _coerce_value(text_value: str, descriptor: ArgumentDescriptor) -> Any:
    """
    Convert a string with the descriptor's converter.

    Supported coercions:
        - no converter / str -> original text
        - bool -> accepts '1,true,yes,y,on' / '0,false,no,n,off' (case-insensitive)
        - any other callable -> called with the text; ValueError/TypeError
          become ArgumentValueError
    """
    convert = descriptor.convert
    if convert is None or convert is str:
        return text_value
    if convert is bool:
        lowered = text_value.strip().lower()
        if lowered in _BOOL_TRUE:
            return True
        if lowered in _BOOL_FALSE:
            return False
        raise ArgumentValueError(descriptor.name, text_value, "expected a boolean")
    try:
        return convert(text_value)
    except (ValueError, TypeError) as exc:
        raise ArgumentValueError(descriptor.name, text_value, str(exc)) from exc


def bind_args(command_obj: Command, raw_args: Sequence[str]) -> list[Any]:
    """
    Bind raw tokens to `command_obj.arg_spec` by position.

    Raises ArityError when too few required or too many total tokens are
    given, and ArgumentValueError when a converter rejects a token. Missing
    optional arguments are simply not passed.
    """
    got = len(raw_args)
    if got < command_obj.min_args or got > command_obj.max_args:
        raise ArityError(command_obj.name, got, command_obj.min_args,
                         command_obj.max_args, build_usage(command_obj))
    return [_coerce_value(raw, descriptor)
            for raw, descriptor in zip(raw_args, command_obj.arg_spec)]


def render_arg_spec(arg_spec: Sequence[ArgumentDescriptor]) -> str:
    return " ".join(descriptor.render() for descriptor in arg_spec)


def build_usage(command_obj: Command) -> str:
    """
    Render a compact usage string.

    Examples:
        'scan <host> [port:int]'
    """
    rendered = render_arg_spec(command_obj.arg_spec)
    return f"{command_obj.name} {rendered}" if rendered else command_obj.name
