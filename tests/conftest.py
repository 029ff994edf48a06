from __future__ import annotations

import asyncio

import pytest

from arepl.commands import CommandRegistry, CommandStatus, arg, opt


class ScriptedFrontend:
    """In-memory frontend: replays lines, then signals end of input."""

    def __init__(self, lines=()):
        self.lines = list(lines)
        self.output: list[str] = []
        self.reads = 0

    async def read_line(self) -> str:
        await asyncio.sleep(0)
        self.reads += 1
        if not self.lines:
            raise EOFError
        item = self.lines.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def write(self, text: str) -> None:
        self.output.append(text)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None


@pytest.fixture
def scripted():
    return ScriptedFrontend


@pytest.fixture
def calls():
    return []


@pytest.fixture
def registry(calls):
    reg = CommandRegistry()

    @reg.command(name="echo")
    def echo(text):
        """Print the argument back unchanged."""
        return text

    @reg.command(name="add")
    def add(x: int, y: int):
        """Add two integers."""
        calls.append((x, y))
        return x + y

    @reg.command(
        name="hello",
        args=[opt("greeting"), opt("name")],
        completers={"pos0": ["hello", "hi", "hey", "howdy"]},
    )
    def hello(greeting="hello", name="world"):
        """Greet someone."""
        return f"{greeting}, {name}!"

    @reg.command(name="help", args=[opt("topic")])
    def help_(topic=None):
        return "help text"

    @reg.command(name="exit")
    def exit_():
        return CommandStatus.QUIT

    @reg.command(name="scale", args=[arg("value", float), opt("verbose", bool)])
    def scale(value, verbose=False):
        return value * 2 if not verbose else f"value={value * 2}"

    return reg
