#!/usr/bin/env python3
# arepl/interface/handler.py
from __future__ import annotations

"""
Built-in commands and help formatting.

Built-ins are ordinary registered commands:
  help [command]  - list commands, or show one command in detail
  quit            - leave the loop (alias 'exit' by default)
"""

from typing import Any, Optional, Sequence

from arepl.commands import (
    Command,
    CommandRegistry,
    CommandStatus,
    Handler,
    opt,
)
from arepl.interface.parser import build_usage
from arepl.ui import format_table, get_terminal_columns

# Short hint shown at startup and appended to the command listing
HELP_TEXT = "Type 'help <command>' for more information on a specific command."


def format_help(registry: CommandRegistry, description: str = "", width: Optional[int] = None) -> str:
    """Render the command overview table in registration order, fit to `width`."""
    commands = registry.list()
    if not commands:
        return "No commands registered."

    rows = []
    for command_obj in commands:
        alias_display = ", ".join(command_obj.aliases) if command_obj.aliases else "-"
        rows.append([command_obj.name, alias_display,
                     build_usage(command_obj), command_obj.summary])

    table = format_table(rows, headers=["Command", "Aliases", "Usage", "Description"],
                         max_width=width)
    parts = [description.strip()] if description.strip() else []
    parts.extend([table, HELP_TEXT])
    return "\n".join(parts)


def format_command_help(command_obj: Command) -> str:
    """Render help for a single command."""
    alias_text = ", ".join(command_obj.aliases) if command_obj.aliases else "(none)"
    lines = [
        f"Name:        {command_obj.name}",
        f"Aliases:     {alias_text}",
        f"Description: {command_obj.summary or '(none)'}",
        f"Example:     {command_obj.example or '(none)'}",
        f"Usage:       {build_usage(command_obj)}",
    ]
    if command_obj.arg_spec:
        lines.append("Arguments:")
        width = max(len(d.render()) for d in command_obj.arg_spec)
        for descriptor in command_obj.arg_spec:
            kind = "required" if descriptor.required else "optional"
            lines.append(f"  {descriptor.render():<{width}}  {kind}")
    return "\n".join(lines)


class HelpHandler(Handler):
    summary = "Show this help message"

    def __init__(self, registry: CommandRegistry, description: str = "") -> None:
        self.registry = registry
        self.description = description
        self.arg_spec = (opt("command"),)

    async def invoke(self, args: Sequence[Any]) -> str:
        if args:
            # Unknown/Ambiguous propagate as user errors
            return format_command_help(self.registry.resolve(args[0]))
        return format_help(self.registry, self.description, get_terminal_columns())

    def complete_arg(self, index: int, partial: str) -> list[str]:
        return self.registry.candidates(partial) if index == 0 else []


class QuitHandler(Handler):
    summary = "Quit the REPL"

    async def invoke(self, args: Sequence[Any]) -> CommandStatus:
        return CommandStatus.QUIT


def register_builtins(
    registry: CommandRegistry,
    *,
    description: str = "",
    quit_aliases: Sequence[str] = ("exit",),
) -> list[Command]:
    """Register `help` and `quit`. Call before registering user commands."""
    return [
        registry.register(Command("help", HelpHandler(registry, description), aliases=("?",))),
        registry.register(Command("quit", QuitHandler(), aliases=tuple(quit_aliases))),
    ]
