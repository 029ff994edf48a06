#!/usr/bin/env python3
# arepl/plugins/demo.py
from __future__ import annotations
"""
Demo commands.

Plain and `async def` handlers side by side; `sleep` and `countdown` suspend
and can be interrupted with Ctrl-C while the prompt stays usable afterwards.
"""

import asyncio

from arepl.commands import CommandResult, arg, command, opt

_GREETINGS = ["hello", "hi", "hey", "howdy"]


# ---------- echo ----------
@command(example="echo \"hello world\"")
def echo(text):
    """Print the argument back unchanged."""
    return text


# ---------- add ----------
@command(example="add 1 2")
def add(x: int, y: int) -> int:
    """Add two integers."""
    return x + y


# ---------- hello ----------
@command(
    args=[opt("greeting"), opt("name")],
    completers={"pos0": _GREETINGS},
    example="hello hi world",
)
def hello(greeting: str = "hello", name: str = "world") -> str:
    """Greet someone."""
    return f"{greeting}, {name}!"


# ---------- sleep ----------
@command(args=[arg("seconds", float)], example="sleep 2.5")
async def sleep(seconds: float) -> CommandResult:
    """Suspend for a number of seconds."""
    if seconds < 0:
        return CommandResult(ok=False, message="seconds must not be negative")
    await asyncio.sleep(seconds)
    return CommandResult(message=f"slept {seconds:g}s", data=seconds)


# ---------- countdown ----------
@command(example="countdown 5")
async def countdown(start: int, delay: float = 1.0) -> str:
    """Count down to zero, one tick per delay."""
    ticks = []
    for n in range(start, -1, -1):
        ticks.append(str(n))
        if n:
            await asyncio.sleep(delay)
    return " ".join(ticks)


COMMANDS = [echo, add, hello, sleep, countdown]
