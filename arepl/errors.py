#!/usr/bin/env python3
# arepl/errors.py
from __future__ import annotations

"""
Error taxonomy for the REPL engine.

Setup-time:
    RegistrationError -> DuplicateName, InvalidArgSpec, InvalidName,
                         PrefixConflict, RegistryFrozen

Per-invocation (recovered by the dispatch loop, one line each):
    UserError -> ParseError (UnterminatedQuote), ResolveError (Unknown,
                 Ambiguous), ArityError, ArgumentValueError
    HandlerError

Escaping the loop:
    CriticalError
"""

from typing import Iterable, Sequence


class ReplError(Exception):
    """Base class for every error raised by arepl."""


# ---------------- Setup-time ----------------

class RegistrationError(ReplError):
    """A command set is misconfigured; raised before the loop starts."""


class DuplicateName(RegistrationError):
    def __init__(self, name: str, owner: str | None = None) -> None:
        self.name = name
        self.owner = owner
        if owner and owner != name:
            msg = f"name '{name}' is already used by command '{owner}'"
        else:
            msg = f"command '{name}' already registered"
        super().__init__(msg)


class InvalidArgSpec(RegistrationError):
    def __init__(self, command_name: str, detail: str) -> None:
        self.command_name = command_name
        super().__init__(f"invalid arguments for '{command_name}': {detail}")


class InvalidName(RegistrationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"name {name!r} cannot be typed as a single token")


class PrefixConflict(RegistrationError):
    def __init__(self, name: str, other: str) -> None:
        self.name = name
        self.other = other
        super().__init__(
            f"name '{name}' and '{other}' are prefixes of one another")


class RegistryFrozen(RegistrationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"cannot register '{name}': the registry is in use by a running loop")


# ---------------- Per-invocation ----------------

class UserError(ReplError):
    """A bad command line. Reported, never fatal."""


class ParseError(UserError):
    pass


class UnterminatedQuote(ParseError):
    def __init__(self, quote: str = '"') -> None:
        self.quote = quote
        super().__init__(f"unterminated quote ({quote})")


class ResolveError(UserError):
    pass


class Unknown(ResolveError):
    def __init__(self, name: str, suggestions: Iterable[str] = ()) -> None:
        self.name = name
        self.suggestions = list(suggestions)
        msg = f"unknown command '{name}'"
        if self.suggestions:
            msg += f" (did you mean: {', '.join(self.suggestions)}?)"
        super().__init__(msg)


class Ambiguous(ResolveError):
    def __init__(self, name: str, candidates: Sequence[str]) -> None:
        self.name = name
        self.candidates = sorted(candidates)
        super().__init__(
            f"ambiguous command '{name}': {', '.join(self.candidates)}")


class ArityError(UserError):
    def __init__(self, command_name: str, got: int, minimum: int, maximum: int, usage: str = "") -> None:
        self.command_name = command_name
        self.got = got
        self.minimum = minimum
        self.maximum = maximum
        expected = str(minimum) if minimum == maximum else f"{minimum} to {maximum}"
        msg = f"wrong number of arguments for '{command_name}': got {got}, expected {expected}"
        if usage:
            msg += f" (usage: {usage})"
        super().__init__(msg)


class ArgumentValueError(UserError):
    def __init__(self, argument: str, value: str, detail: str) -> None:
        self.argument = argument
        self.value = value
        super().__init__(
            f"failed to parse argument '{argument}' from {value!r}: {detail}")


class HandlerError(ReplError):
    """Domain failure raised by a command handler. Reported, never fatal."""


# ---------------- Escaping the loop ----------------

class CriticalError(ReplError):
    """
    Wraps an error that must not be handled by the loop.

    The loop restores its own state and re-raises it to the host.
    """

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause if isinstance(cause, BaseException) else None
        super().__init__(str(cause))


def critical(exc: BaseException) -> CriticalError:
    """Wrap `exc` so that raising the result terminates the loop."""
    wrapped = CriticalError(exc)
    wrapped.__cause__ = exc
    return wrapped
