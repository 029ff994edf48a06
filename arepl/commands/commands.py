#!/usr/bin/env python3
# arepl/commands/commands.py
from __future__ import annotations

"""
Command registry and decorator utilities.

This module provides:
- CommandRegistry: registered commands and aliases, exact/prefix resolution.
- command: decorator turning a function into a Command (no registration).
- CommandRegistry.command: same decorator, registering the result.
"""

import difflib
import enum
import inspect
import logging
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence

from arepl.commands.command_types import (
    ArgumentDescriptor,
    Command,
    CompletionProvider,
    FunctionHandler,
)
from arepl.errors import (
    Ambiguous,
    DuplicateName,
    InvalidArgSpec,
    InvalidName,
    PrefixConflict,
    RegistryFrozen,
    Unknown,
)

logger = logging.getLogger(__name__)

# Characters that would split or quote a name when typed on the command line
_FORBIDDEN_NAME_CHARS = frozenset("\"'\\")


class Strictness(enum.Enum):
    """
    How prefix overlaps between names are treated.

    LENIENT: allowed; an ambiguous abbreviation is reported at resolution time.
    STRICT:  a name/alias that is a proper prefix of another one is rejected
             at registration time.
    """

    LENIENT = "lenient"
    STRICT = "strict"


def _validate_name(name: str) -> None:
    if not name or any(ch.isspace() or ch in _FORBIDDEN_NAME_CHARS for ch in name):
        raise InvalidName(name)


def _validate_arg_spec(command_obj: Command) -> None:
    seen: set[str] = set()
    optional_seen: str | None = None
    for descriptor in command_obj.arg_spec:
        if not descriptor.name:
            raise InvalidArgSpec(command_obj.name, "argument names must be non-empty")
        if descriptor.name in seen:
            raise InvalidArgSpec(
                command_obj.name, f"argument '{descriptor.name}' declared twice")
        seen.add(descriptor.name)
        if descriptor.required and optional_seen is not None:
            raise InvalidArgSpec(
                command_obj.name,
                f"required argument '{descriptor.name}' follows optional argument '{optional_seen}'",
            )
        if not descriptor.required:
            optional_seen = descriptor.name


class CommandRegistry:
    """
    Holds all command definitions and provides lookup utilities.

    Mutated only during setup; `freeze()` (called by the dispatch loop when
    it starts) turns further registration into an error. Lookups are pure
    reads and are safe from completion/hint callbacks.
    """

    def __init__(
        self,
        *,
        strictness: Strictness = Strictness.LENIENT,
        prefix_resolution: bool = True,
    ) -> None:
        self.strictness = strictness
        self.prefix_resolution = prefix_resolution
        # Primary name -> Command (insertion order = registration order)
        self._commands_by_name: Dict[str, Command] = {}
        # Alias name -> primary name
        self._alias_to_primary: Dict[str, str] = {}
        self._frozen = False

    # ---------------- Registration ----------------

    def register(self, command_obj: Command) -> Command:
        """Register a command and its aliases, ensuring no collisions."""
        if self._frozen:
            raise RegistryFrozen(command_obj.name)
        _validate_arg_spec(command_obj)

        new_names = command_obj.names
        for name in new_names:
            _validate_name(name)
        if len(set(new_names)) != len(new_names):
            duplicated = next(n for n in new_names if new_names.count(n) > 1)
            raise DuplicateName(duplicated, command_obj.name)

        for name in new_names:
            owner = self._owner_of(name)
            if owner is not None:
                raise DuplicateName(name, owner)

        if self.strictness is Strictness.STRICT:
            existing = self.names()
            for name in new_names:
                for other in existing:
                    if other.startswith(name) or name.startswith(other):
                        raise PrefixConflict(name, other)

        self._commands_by_name[command_obj.name] = command_obj
        for alias in command_obj.aliases:
            self._alias_to_primary[alias] = command_obj.name
        logger.debug("Registered command %r (aliases=%s)",
                     command_obj.name, list(command_obj.aliases))
        return command_obj

    def command(
        self,
        *,
        name: str | None = None,
        summary: str | None = None,
        args: Sequence[ArgumentDescriptor | str] | None = None,
        aliases: Sequence[str] = (),
        completers: Mapping[str, CompletionProvider] | None = None,
        example: str = "",
    ) -> Callable[[Callable[..., Any]], Command]:
        """Decorator: build a Command from the function and register it."""
        build = command(name=name, summary=summary, args=args, aliases=aliases,
                        completers=completers, example=example)

        def wrapper(func: Callable[..., Any]) -> Command:
            return self.register(build(func))

        return wrapper

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---------------- Lookup ----------------

    def _owner_of(self, name: str) -> Optional[str]:
        if name in self._commands_by_name:
            return name
        return self._alias_to_primary.get(name)

    def get(self, name: str) -> Optional[Command]:
        """Return the command by exact primary name or alias, or None."""
        primary = self._owner_of(name)
        return None if primary is None else self._commands_by_name[primary]

    def candidates(self, prefix: str) -> list[str]:
        """All names and aliases starting with `prefix`, sorted."""
        return sorted(n for n in self.names() if n.startswith(prefix))

    def resolve(self, name: str) -> Command:
        """
        Resolve an exact name/alias, else an unambiguous prefix.

        Raises Unknown when nothing matches and Ambiguous when the prefix
        matches names of two or more different commands.
        """
        exact = self.get(name)
        if exact is not None:
            return exact

        matches = self.candidates(name) if name else []
        owners = {self._owner_of(match) for match in matches}
        if not self.prefix_resolution or not matches:
            suggestions = matches or difflib.get_close_matches(
                name, self.names(), n=3, cutoff=0.6)
            raise Unknown(name, suggestions)
        if len(owners) > 1:
            raise Ambiguous(name, matches)

        resolved = self._commands_by_name[owners.pop()]  # type: ignore[index]
        logger.debug("Resolved prefix %r to %r", name, resolved.name)
        return resolved

    def list(self) -> list[Command]:
        """Primary commands in registration order (no alias duplicates)."""
        return [*self._commands_by_name.values()]

    def names(self) -> list[str]:
        """Return all primary names and aliases."""
        return [*self._commands_by_name.keys(), *self._alias_to_primary.keys()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._owner_of(name) is not None

    def __len__(self) -> int:
        return len(self._commands_by_name)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.list())


def _descriptors_from_signature(func: Callable[..., Any]) -> list[ArgumentDescriptor]:
    """
    Derive positional argument descriptors from a function signature.

    int/float/bool annotations become converters; parameters with defaults
    become optional arguments.
    """
    signature = inspect.signature(func, eval_str=True)
    descriptors: list[ArgumentDescriptor] = []
    for parameter in signature.parameters.values():
        if parameter.kind not in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            continue
        annotation = parameter.annotation
        convert = annotation if annotation in (int, float, bool) else None
        descriptors.append(ArgumentDescriptor(
            name=parameter.name,
            required=parameter.default is inspect.Parameter.empty,
            convert=convert,
        ))
    return descriptors


def command(
    *,
    name: str | None = None,
    summary: str | None = None,
    args: Sequence[ArgumentDescriptor | str] | None = None,
    aliases: Sequence[str] = (),
    completers: Mapping[str, CompletionProvider] | None = None,
    example: str = "",
) -> Callable[[Callable[..., Any]], Command]:
    """
    Decorator turning a function into a Command with metadata.

    - Function name is transformed from snake_case to kebab-case for `name`
      if not provided.
    - `summary` defaults to the first docstring line.
    - `args` defaults to descriptors derived from the signature; plain
      strings are shorthand for required untyped arguments.
    """

    def wrapper(func: Callable[..., Any]) -> Command:
        if args is None:
            arg_spec = _descriptors_from_signature(func)
        else:
            arg_spec = [a if isinstance(a, ArgumentDescriptor) else ArgumentDescriptor(a)
                        for a in args]
        doc_lines = (func.__doc__ or "").strip().splitlines()
        handler = FunctionHandler(
            func,
            summary=(summary or (doc_lines[0] if doc_lines else "")).strip(),
            arg_spec=arg_spec,
            completers=completers,
        )
        return Command(
            name=name or func.__name__.replace("_", "-"),
            handler=handler,
            aliases=tuple(aliases),
            example=example,
            module=func.__module__,
        )

    return wrapper
