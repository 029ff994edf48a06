#!/usr/bin/env python3
# arepl/commands/command_types.py
from __future__ import annotations

"""
Command data structures and the handler contract.

This module defines:
- ArgumentDescriptor: one positional argument slot of a command.
- CommandStatus / CommandResult: what a handler may hand back to the loop.
- Handler: the capability every command implements (describe / invoke /
  complete_arg).
- FunctionHandler: a Handler built from a plain or `async def` callable.
- Command: a registered, immutable command with its name, aliases and handler.
"""

import enum
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

# Completion provider: a callable `provider(text=..., index=...)` or a static
# sequence of choices filtered by prefix.
CompletionProvider = Union[Callable[..., Iterable[str]], Sequence[str]]


def _type_label(convert: Callable[[str], Any] | None) -> str:
    if convert is None:
        return ""
    return getattr(convert, "__name__", type(convert).__name__)


@dataclass(frozen=True, slots=True)
class ArgumentDescriptor:
    """
    A positional argument slot.

    Attributes:
        name: Display/binding name of the argument.
        required: Required arguments must precede all optional ones.
        hint: Human-readable type/shape hint. Derived from name and
            converter when empty.
        convert: Optional `str -> value` converter applied before the
            handler is invoked.
    """

    name: str
    required: bool = True
    hint: str = ""
    convert: Callable[[str], Any] | None = field(default=None, compare=False)

    @property
    def display_hint(self) -> str:
        if self.hint:
            return self.hint
        label = _type_label(self.convert)
        return f"{self.name}:{label}" if label else self.name

    def render(self) -> str:
        """`<hint>` for required arguments, `[hint]` for optional ones."""
        text = self.display_hint
        return f"<{text}>" if self.required else f"[{text}]"


def arg(name: str, convert: Callable[[str], Any] | None = None, *, hint: str = "") -> ArgumentDescriptor:
    """Shorthand for a required argument."""
    return ArgumentDescriptor(name=name, required=True, hint=hint, convert=convert)


def opt(name: str, convert: Callable[[str], Any] | None = None, *, hint: str = "") -> ArgumentDescriptor:
    """Shorthand for an optional argument."""
    return ArgumentDescriptor(name=name, required=False, hint=hint, convert=convert)


class CommandStatus(enum.Enum):
    """Loop control signal returned by a handler."""

    DONE = "done"
    QUIT = "quit"


@dataclass(slots=True)
class CommandResult:
    """
    Normalized result container from command execution.

    Attributes:
        ok: False turns the result into a handler error.
        message: Human-readable summary or primary output.
        data: Optional machine-readable payload (dict/list/primitive).
        status: QUIT asks the loop to terminate after reporting.
    """
    ok: bool = True
    message: str = ""
    data: Any = None
    status: CommandStatus = CommandStatus.DONE

    def __str__(self) -> str:
        if self.message:
            return self.message
        if self.data is not None:
            return str(self.data)
        return ""


@dataclass(frozen=True, slots=True)
class HandlerDescription:
    summary: str
    arg_spec: tuple[ArgumentDescriptor, ...]


class Handler:
    """
    Base class for command implementations.

    Subclasses override `invoke` and, optionally, `complete_arg`. `invoke`
    may await arbitrarily; it must tolerate being cancelled at any await
    point (the loop cancels it on interrupt).
    """

    summary: str = ""
    arg_spec: Sequence[ArgumentDescriptor] = ()

    def describe(self) -> HandlerDescription:
        return HandlerDescription(self.summary, tuple(self.arg_spec))

    async def invoke(self, args: Sequence[Any]) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def complete_arg(self, index: int, partial: str) -> list[str]:
        """Candidates for argument `index`. Must not block or await."""
        return []

    def completes_arg(self, index: int) -> bool:
        """Whether argument `index` has candidates of its own."""
        return type(self).complete_arg is not Handler.complete_arg


class FunctionHandler(Handler):
    """
    Adapt a callable into a Handler.

    The callable receives the bound argument values positionally. Coroutine
    functions are awaited; plain functions run inline on the event loop, so
    they should be quick.

    Completers are keyed "pos0", "pos1", ... or "pos*" for any position.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        summary: str = "",
        arg_spec: Sequence[ArgumentDescriptor] = (),
        completers: Mapping[str, CompletionProvider] | None = None,
    ) -> None:
        self.func = func
        self.summary = summary
        self.arg_spec = tuple(arg_spec)
        self.completers: dict[str, CompletionProvider] = dict(completers or {})

    async def invoke(self, args: Sequence[Any]) -> Any:
        result = self.func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def complete_arg(self, index: int, partial: str) -> list[str]:
        provider = self.completers.get(f"pos{index}") or self.completers.get("pos*")
        if provider is None:
            return []
        if callable(provider):
            return [str(word) for word in provider(text=partial, index=index)]
        return [word for word in provider if word.startswith(partial)]

    def completes_arg(self, index: int) -> bool:
        return f"pos{index}" in self.completers or "pos*" in self.completers

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self.func, '__qualname__', self.func)!r})"


@dataclass(frozen=True, slots=True)
class Command:
    """
    A registered command. Immutable once built.

    `summary` and `arg_spec` default to what the handler describes.
    """

    name: str
    handler: Handler
    aliases: tuple[str, ...] = ()
    summary: str = ""
    arg_spec: tuple[ArgumentDescriptor, ...] = ()
    example: str = ""
    module: str = field(default="", repr=False, compare=False)

    def __post_init__(self) -> None:
        described = self.handler.describe()
        object.__setattr__(self, "aliases", tuple(self.aliases))
        object.__setattr__(self, "summary", self.summary or described.summary)
        object.__setattr__(self, "arg_spec", tuple(self.arg_spec or described.arg_spec))

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    @property
    def min_args(self) -> int:
        return sum(1 for descriptor in self.arg_spec if descriptor.required)

    @property
    def max_args(self) -> int:
        return len(self.arg_spec)

    async def invoke(self, args: Sequence[Any]) -> Any:
        """Execute the underlying handler with already bound arguments."""
        return await self.handler.invoke(list(args))

    def complete_arg(self, index: int, partial: str) -> list[str]:
        return self.handler.complete_arg(index, partial)

    def completes_arg(self, index: int) -> bool:
        return self.handler.completes_arg(index)
