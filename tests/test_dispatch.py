from __future__ import annotations

import asyncio
import os
import signal
import sys

import pytest

from arepl.commands import CommandRegistry, CommandResult, CommandStatus
from arepl.errors import CriticalError, HandlerError, RegistryFrozen, critical
from arepl.interface.dispatch import (
    DispatchLoop,
    InterruptPolicy,
    LoopState,
    LoopStatus,
    OutcomeKind,
    outcome_from_result,
)


def _run(registry, frontend, **kwargs):
    kwargs.setdefault("handle_signals", False)
    loop = DispatchLoop(registry, frontend, **kwargs)
    asyncio.run(loop.run())
    return loop


def test_end_to_end_session(registry, scripted):
    frontend = scripted(["echo hi", "bogus", "exit", "echo never"])
    loop = _run(registry, frontend)
    assert frontend.output == ["hi", "<error: unknown command 'bogus'>"]
    assert loop.state is LoopState.EXITED
    # nothing read after the exit line
    assert frontend.lines == ["echo never"]


def test_end_of_input_exits_cleanly(registry, scripted):
    frontend = scripted(["echo a", "", "   ", "echo b"])
    loop = _run(registry, frontend)
    assert frontend.output == ["a", "b"]
    assert loop.state is LoopState.EXITED


def test_empty_quoted_command_name_is_unknown(registry, scripted):
    frontend = scripted(['""', '"" x'])
    _run(registry, frontend)
    assert frontend.output == ["<error: unknown command ''>"] * 2


def test_every_user_error_is_one_line(registry, scripted):
    frontend = scripted([
        'echo "open',
        "h",
        "add 1",
        "add x 2",
        "exit",
    ])
    _run(registry, frontend)
    assert frontend.output == [
        "<error: unterminated quote (\")>",
        "<error: ambiguous command 'h': hello, help>",
        "<error: wrong number of arguments for 'add': got 1, expected 2 "
        "(usage: add <x:int> <y:int>)>",
        "<error: failed to parse argument 'x' from 'x': "
        "invalid literal for int() with base 10: 'x'>",
    ]


def test_arity_errors_never_invoke_the_handler(registry, scripted, calls):
    frontend = scripted(["add 1", "add 1 2 3", "add 1 2"])
    loop = _run(registry, frontend)
    assert frontend.output[0].startswith("<error: wrong number of arguments for 'add': got 1")
    assert frontend.output[1].startswith("<error: wrong number of arguments for 'add': got 3")
    assert frontend.output[2] == "3"
    assert calls == [(1, 2)]
    assert loop.last_outcome.kind is OutcomeKind.SUCCESS


def test_prefix_and_converted_arguments(registry, scripted):
    frontend = scripted(["sc 1.5", "scale 2 yes", "hell", "hello hi bob"])
    _run(registry, frontend)
    assert frontend.output == ["3.0", "value=4.0", "hello, world!", "hi, bob!"]


def test_handler_errors_are_reported_and_recovered(scripted):
    registry = CommandRegistry()

    @registry.command(name="fail")
    def fail():
        raise HandlerError("disk full")

    @registry.command(name="crash")
    async def crash():
        await asyncio.sleep(0)
        return {}["missing"]

    @registry.command(name="nope")
    def nope():
        return CommandResult(ok=False, message="not allowed")

    @registry.command(name="ok")
    def ok():
        return CommandResult(message="fine", data=[1, 2])

    frontend = scripted(["fail", "crash", "nope", "ok"])
    loop = _run(registry, frontend)
    assert frontend.output == [
        "<error: disk full>",
        "<error: KeyError: 'missing'>",
        "<error: not allowed>",
        "fine",
    ]
    assert loop.state is LoopState.EXITED


def test_multiline_error_messages_are_collapsed(scripted):
    registry = CommandRegistry()

    @registry.command(name="fail")
    def fail():
        raise HandlerError("first line\n  second line")

    frontend = scripted(["fail"])
    _run(registry, frontend)
    assert frontend.output == ["<error: first line second line>"]


def test_custom_error_format(registry, scripted):
    frontend = scripted(["bogus"])
    _run(registry, frontend, error_format="!! {message}")
    assert frontend.output == ["!! unknown command 'bogus'"]


def test_interrupt_cancels_handler_and_loop_is_reusable(registry, scripted):
    started = []

    @registry.command(name="wait")
    async def wait():
        started.append(True)
        await asyncio.sleep(3600)
        return "finished"

    async def scenario():
        frontend = scripted()
        loop = DispatchLoop(registry, frontend, handle_signals=False)
        pending = asyncio.create_task(loop.handle_line("wait"))
        while not started:
            await asyncio.sleep(0)
        assert loop.state is LoopState.INVOKING
        assert loop.busy
        with pytest.raises(RuntimeError):
            await loop.handle_line("echo too-early")

        assert loop.interrupt() is True
        outcome = await pending
        assert outcome.kind is OutcomeKind.CANCELLED
        assert loop.state is LoopState.IDLE
        assert not loop.busy
        assert loop.interrupt() is False

        again = await loop.handle_line("echo after")
        return frontend.output, again

    output, again = asyncio.run(scenario())
    assert output == ["<cancelled>", "after"]
    assert again.kind is OutcomeKind.SUCCESS


def test_handler_may_finish_cleanup_on_cancel(registry, scripted):
    cleaned = []

    @registry.command(name="job")
    async def job():
        try:
            await asyncio.sleep(3600)
        finally:
            cleaned.append(True)

    async def scenario():
        frontend = scripted()
        loop = DispatchLoop(registry, frontend, handle_signals=False)
        pending = asyncio.create_task(loop.handle_line("job"))
        await asyncio.sleep(0.01)
        loop.interrupt()
        return await pending

    assert asyncio.run(scenario()).kind is OutcomeKind.CANCELLED
    assert cleaned == [True]


def test_cancelling_the_loop_itself_propagates(registry, scripted):
    @registry.command(name="wait")
    async def wait():
        await asyncio.sleep(3600)

    async def scenario():
        loop = DispatchLoop(registry, scripted(), handle_signals=False)
        pending = asyncio.create_task(loop.handle_line("wait"))
        await asyncio.sleep(0.01)
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending
        return loop

    loop = asyncio.run(scenario())
    assert not loop.busy


def test_other_tasks_run_while_a_handler_is_awaited(registry, scripted):
    ticks = []

    @registry.command(name="slow")
    async def slow():
        await asyncio.sleep(0.05)
        return f"ticks={len(ticks)}"

    async def ticker():
        while True:
            ticks.append(1)
            await asyncio.sleep(0.005)

    async def scenario():
        frontend = scripted(["slow"])
        background = asyncio.create_task(ticker())
        await DispatchLoop(registry, frontend, handle_signals=False).run()
        background.cancel()
        return frontend.output

    output = asyncio.run(scenario())
    assert output[0] != "ticks=0"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal delivery")
def test_sigint_during_a_handler_cancels_it(registry, scripted):
    @registry.command(name="wait")
    async def wait():
        os.kill(os.getpid(), signal.SIGINT)
        await asyncio.sleep(3600)

    frontend = scripted(["wait", "echo still-here"])
    loop = _run(registry, frontend, handle_signals=True)
    assert frontend.output == ["<cancelled>", "still-here"]
    assert loop.state is LoopState.EXITED


@pytest.mark.parametrize(
    "policy, expected_output, expected_reads",
    [
        (InterruptPolicy.REPROMPT, ["x"], 3),
        (InterruptPolicy.EXIT, [], 1),
    ],
)
def test_interrupt_while_reading_follows_policy(
    registry, scripted, policy, expected_output, expected_reads
):
    frontend = scripted([KeyboardInterrupt(), "echo x"])
    loop = _run(registry, frontend, interrupt_policy=policy)
    assert frontend.output == expected_output
    assert frontend.reads == expected_reads
    assert loop.state is LoopState.EXITED


def test_critical_error_escapes_the_loop(registry, scripted):
    @registry.command(name="boom")
    def boom():
        raise critical(RuntimeError("store corrupted"))

    frontend = scripted(["echo a", "boom", "echo b"])
    loop = DispatchLoop(registry, frontend, handle_signals=False)
    with pytest.raises(CriticalError) as excinfo:
        asyncio.run(loop.run())
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert loop.state is LoopState.EXITED
    assert not loop.busy
    assert frontend.output == ["a"]
    assert asyncio.run(loop.step()) is LoopStatus.BREAK


def test_quit_result_ends_the_loop_after_reporting(scripted):
    registry = CommandRegistry()

    @registry.command(name="bye")
    def bye():
        return CommandResult(message="goodbye", status=CommandStatus.QUIT)

    frontend = scripted(["bye", "never"])
    loop = _run(registry, frontend)
    assert frontend.output == ["goodbye"]
    assert loop.last_outcome.kind is OutcomeKind.EXIT


def test_running_freezes_the_registry(registry, scripted):
    _run(registry, scripted())
    with pytest.raises(RegistryFrozen):
        registry.command(name="late")(lambda: None)


@pytest.mark.parametrize(
    "result, kind, output",
    [
        (None, OutcomeKind.SUCCESS, None),
        (CommandStatus.DONE, OutcomeKind.SUCCESS, None),
        (CommandStatus.QUIT, OutcomeKind.EXIT, None),
        (42, OutcomeKind.SUCCESS, 42),
        (CommandResult(data={"a": 1}), OutcomeKind.SUCCESS, CommandResult(data={"a": 1})),
        (CommandResult(), OutcomeKind.SUCCESS, None),
    ],
)
def test_outcome_from_result(result, kind, output):
    outcome = outcome_from_result(result)
    assert outcome.kind is kind
    assert outcome.output == output


def test_structured_results_reach_the_outcome(scripted):
    registry = CommandRegistry()

    @registry.command(name="save")
    def save():
        return CommandResult(message="saved", data={"id": 7})

    frontend = scripted(["save"])
    loop = _run(registry, frontend)
    assert frontend.output == ["saved"]
    assert loop.last_outcome.kind is OutcomeKind.SUCCESS
    assert loop.last_outcome.output.data == {"id": 7}
