#!/usr/bin/env python3
# arepl/interface/completion.py
from __future__ import annotations

"""
Command line completion.

Token-aware candidates for:
- First token: every registered name and alias with the typed prefix.
- Subsequent tokens: delegated to the resolved command's argument completer.

Runs inline in the frontend's keystroke path: synchronous, no side effects
on the registry, never raises into the editor.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from arepl.commands import CommandRegistry
from arepl.errors import ResolveError
from arepl.interface.parser import Token, quote_token, split_tokens

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Candidate:
    """One completion: the text replacing span [start, cursor) of the line."""

    replacement: str
    span: tuple[int, int]


@dataclass(frozen=True, slots=True)
class Completions:
    """
    Finite, restartable set of candidates sharing one replaced span.

    Iterating yields Candidate objects; iterate as many times as needed.
    """

    start: int
    end: int
    words: tuple[str, ...] = ()

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __iter__(self) -> Iterator[Candidate]:
        for word in self.words:
            yield Candidate(word, self.span)

    def __len__(self) -> int:
        return len(self.words)

    def __bool__(self) -> bool:
        return bool(self.words)


def _split_current_token(text_before_cursor: str) -> tuple[list[Token], Token]:
    """
    Return (tokens, current) for the text left of the cursor.

    Behavior:
      - Unterminated quotes are tolerated (the open token is current).
      - Trailing whitespace outside quotes starts a new, empty token.
    """
    tokens = split_tokens(text_before_cursor, strict=False)
    cursor = len(text_before_cursor)
    starts_new = (
        not tokens
        or (text_before_cursor[-1].isspace() and tokens[-1].closed)
        or tokens[-1].end < cursor
    )
    if starts_new:
        current = Token("", cursor, cursor)
        tokens.append(current)
    return tokens, tokens[-1]


class CompletionEngine:
    """Answers completion queries against a shared, read-only registry."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def complete(self, line: str, cursor: int | None = None) -> Completions:
        """
        Candidates for the token under the cursor.

        `cursor` defaults to the end of the line and is clamped to it. Only
        the part of the token left of the cursor is the partial token: it
        filters candidates, and the span is [token start, cursor). Text right
        of the cursor is left alone (`he|lp` replaces `he`), the same way
        line editors insert a completion at the cursor.
        """
        cursor = len(line) if cursor is None else max(0, min(cursor, len(line)))
        tokens, current = _split_current_token(line[:cursor])
        empty = Completions(current.start, cursor)

        # First token: propose names + aliases
        if len(tokens) == 1:
            words = tuple(quote_token(name)
                          for name in self.registry.candidates(current.text))
            return Completions(current.start, cursor, words)

        try:
            command_obj = self.registry.resolve(tokens[0].text)
        except ResolveError:
            return empty

        arg_index = len(tokens) - 2
        if arg_index >= command_obj.max_args:
            return empty

        try:
            words = command_obj.complete_arg(arg_index, current.text)
        except Exception:  # noqa: BLE001 - a broken provider must not kill the editor
            logger.debug("Argument completer for %r failed",
                         command_obj.name, exc_info=True)
            return empty
        return Completions(current.start, cursor, tuple(quote_token(w) for w in words))

    def wants_paths(self, line: str, cursor: int | None = None) -> bool:
        """
        True when the cursor sits in an argument slot the command does not
        complete itself (filesystem paths are offered there, when enabled).
        """
        cursor = len(line) if cursor is None else max(0, min(cursor, len(line)))
        tokens, _current = _split_current_token(line[:cursor])
        if len(tokens) == 1:
            return False
        try:
            command_obj = self.registry.resolve(tokens[0].text)
        except ResolveError:
            return False
        arg_index = len(tokens) - 2
        return arg_index < command_obj.max_args and not command_obj.completes_arg(arg_index)
