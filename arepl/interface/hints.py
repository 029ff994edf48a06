#!/usr/bin/env python3
# arepl/interface/hints.py
from __future__ import annotations

"""
Inline hints: a non-editable rendering of the input still expected after
what has been typed so far, e.g. `add 1` -> `<y:int>`.
"""

from typing import Optional

from arepl.commands import CommandRegistry
from arepl.errors import ResolveError
from arepl.interface.parser import render_arg_spec, split_tokens


class HintEngine:
    """Pure, synchronous hint queries against a shared registry."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def hint(self, line: str) -> Optional[str]:
        """
        Joined hints of the arguments not yet supplied, or None.

        None when the first token does not resolve (unknown or ambiguous) or
        when nothing remains to be typed. A partially typed argument counts
        as supplied. Optional arguments render as `[hint]`.
        """
        tokens = split_tokens(line, strict=False)
        if not tokens:
            return None
        try:
            command_obj = self.registry.resolve(tokens[0].text)
        except ResolveError:
            return None
        remaining = command_obj.arg_spec[len(tokens) - 1:]
        return render_arg_spec(remaining) or None

    def inline(self, line: str) -> str:
        """
        Text to draw past the cursor at the end of `line`.

        While the command name is still being typed, the rest of the resolved
        name is shown first, followed by the argument hints.
        """
        tokens = split_tokens(line, strict=False)
        if not tokens:
            return ""
        try:
            command_obj = self.registry.resolve(tokens[0].text)
        except ResolveError:
            return ""

        typed_name = tokens[0].text
        name_suffix = ""
        if len(tokens) == 1 and not line[-1].isspace():
            for name in command_obj.names:
                if name.startswith(typed_name):
                    name_suffix = name[len(typed_name):]
                    break

        hint_text = self.hint(line)
        if not hint_text:
            return name_suffix
        if line[-1].isspace():
            return f"{name_suffix}{hint_text}"
        return f"{name_suffix} {hint_text}"
