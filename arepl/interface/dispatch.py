#!/usr/bin/env python3
# arepl/interface/dispatch.py
from __future__ import annotations

"""
The dispatch loop: read -> parse -> resolve -> invoke -> await -> report.

State machine:
    IDLE -> READING -> PARSING -> RESOLVING -> INVOKING -> REPORTING -> IDLE
with EXITED reached on an Exit outcome or end of input.

Suspension points are exactly the frontend's `read_line()` and the awaited
handler task. At most one handler task is in flight; `interrupt()` cancels it
and the loop reports `Cancelled` and keeps going.
"""

import asyncio
import enum
import logging
import signal
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

from arepl.commands import Command, CommandRegistry, CommandResult, CommandStatus
from arepl.errors import CriticalError, HandlerError, UserError
from arepl.interface.parser import bind_args, tokenize

logger = logging.getLogger(__name__)

DEFAULT_ERROR_FORMAT = "<error: {message}>"
DEFAULT_CANCELLED_NOTICE = "<cancelled>"


class LoopState(enum.Enum):
    IDLE = "idle"
    READING = "reading"
    PARSING = "parsing"
    RESOLVING = "resolving"
    INVOKING = "invoking"
    REPORTING = "reporting"
    EXITED = "exited"


class LoopStatus(enum.Enum):
    """Whether the loop should keep going after one step."""

    CONTINUE = "continue"
    BREAK = "break"


class InterruptPolicy(enum.Enum):
    """What an interrupt (Ctrl-C) means while waiting for input."""

    REPROMPT = "reprompt"
    EXIT = "exit"


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    USER_ERROR = "user_error"
    HANDLER_ERROR = "handler_error"
    CANCELLED = "cancelled"
    EXIT = "exit"


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Result of one invocation, consumed immediately by the reporting step."""

    kind: OutcomeKind
    output: Any = None
    message: str = ""

    @classmethod
    def success(cls, output: Any = None) -> "DispatchOutcome":
        return cls(OutcomeKind.SUCCESS, output=output)

    @classmethod
    def user_error(cls, message: str) -> "DispatchOutcome":
        return cls(OutcomeKind.USER_ERROR, message=message)

    @classmethod
    def handler_error(cls, message: str) -> "DispatchOutcome":
        return cls(OutcomeKind.HANDLER_ERROR, message=message)

    @classmethod
    def cancelled(cls) -> "DispatchOutcome":
        return cls(OutcomeKind.CANCELLED)

    @classmethod
    def exit(cls, output: Any = None) -> "DispatchOutcome":
        return cls(OutcomeKind.EXIT, output=output)

    @property
    def is_error(self) -> bool:
        return self.kind in (OutcomeKind.USER_ERROR, OutcomeKind.HANDLER_ERROR)


class Frontend(Protocol):
    """
    Line-editing collaborator.

    `read_line` raises EOFError at end of input and KeyboardInterrupt when
    the user interrupts the line being edited.
    """

    async def read_line(self) -> str:  # pragma: no cover - interface
        ...

    def write(self, text: str) -> None:  # pragma: no cover - interface
        ...


def outcome_from_result(result: Any) -> DispatchOutcome:
    """Map a handler's return value to an outcome."""
    if result is CommandStatus.QUIT:
        return DispatchOutcome.exit()
    if result is None or result is CommandStatus.DONE:
        return DispatchOutcome.success()
    if isinstance(result, CommandResult):
        if not result.ok:
            return DispatchOutcome.handler_error(str(result) or "command failed")
        # structured payload stays on the outcome; reporting renders it
        output = result if str(result) else None
        if result.status is CommandStatus.QUIT:
            return DispatchOutcome.exit(output)
        return DispatchOutcome.success(output)
    return DispatchOutcome.success(result)


def route_sigint(callback: Callable[[], Any]) -> Callable[[], None]:
    """
    Call `callback` on SIGINT until the returned restore function is called.

    Needs the running event loop on the main thread. Elsewhere (worker
    threads, Windows event loops) nothing is installed and restore does
    nothing.
    """
    if threading.current_thread() is not threading.main_thread():
        return lambda: None
    loop = asyncio.get_running_loop()
    previous = signal.getsignal(signal.SIGINT)
    try:
        loop.add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError, ValueError):
        return lambda: None

    def restore() -> None:
        loop.remove_signal_handler(signal.SIGINT)
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    return restore


class DispatchLoop:
    """
    Drives one frontend against one registry.

    The registry is frozen when the loop first handles input. Handler tasks
    run one at a time; other tasks on the same event loop keep running while
    a handler is awaited.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        frontend: Frontend,
        *,
        interrupt_policy: InterruptPolicy = InterruptPolicy.REPROMPT,
        error_format: str = DEFAULT_ERROR_FORMAT,
        cancelled_notice: str = DEFAULT_CANCELLED_NOTICE,
        handle_signals: bool = True,
    ) -> None:
        self.registry = registry
        self.frontend = frontend
        self.interrupt_policy = interrupt_policy
        self.error_format = error_format
        self.cancelled_notice = cancelled_notice
        self.handle_signals = handle_signals
        self.last_outcome: Optional[DispatchOutcome] = None
        self._state = LoopState.IDLE
        self._task: Optional[asyncio.Task[Any]] = None
        self._interrupted = False

    # ---------------- State ----------------

    @property
    def state(self) -> LoopState:
        return self._state

    def _set_state(self, state: LoopState) -> None:
        if state is not self._state:
            logger.debug("Loop state %s -> %s", self._state.value, state.value)
        self._state = state

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    # ---------------- Driving ----------------

    async def run(self) -> None:
        """Process lines until Exit or end of input. CriticalError escapes."""
        self.registry.freeze()
        while await self.step() is LoopStatus.CONTINUE:
            pass

    async def step(self) -> LoopStatus:
        """Read and process a single line."""
        if self._state is LoopState.EXITED:
            return LoopStatus.BREAK

        self._set_state(LoopState.READING)
        try:
            line = await self.frontend.read_line()
        except EOFError:
            logger.debug("End of input")
            self._set_state(LoopState.EXITED)
            return LoopStatus.BREAK
        except KeyboardInterrupt:
            if self.interrupt_policy is InterruptPolicy.EXIT:
                logger.debug("Interrupted while reading; exiting")
                self._set_state(LoopState.EXITED)
                return LoopStatus.BREAK
            logger.debug("Interrupted while reading; line abandoned")
            self._set_state(LoopState.IDLE)
            return LoopStatus.CONTINUE

        await self.handle_line(line)
        return LoopStatus.BREAK if self._state is LoopState.EXITED else LoopStatus.CONTINUE

    async def handle_line(self, line: str) -> Optional[DispatchOutcome]:
        """
        Parse, resolve, invoke and report one line.

        Returns the reported outcome, or None for a blank line.
        """
        if self.busy:
            raise RuntimeError("a command is already running")
        self.registry.freeze()

        self._set_state(LoopState.PARSING)
        try:
            invocation = tokenize(line)
        except UserError as exc:
            return self._report(DispatchOutcome.user_error(str(exc)))
        if invocation.is_noop:
            self._set_state(LoopState.IDLE)
            return None

        self._set_state(LoopState.RESOLVING)
        try:
            command_obj = self.registry.resolve(invocation.command_name)
            values = bind_args(command_obj, invocation.raw_args)
        except UserError as exc:
            return self._report(DispatchOutcome.user_error(str(exc)))

        self._set_state(LoopState.INVOKING)
        try:
            outcome = await self._invoke(command_obj, values)
        except CriticalError:
            logger.error("Critical error in command %r", command_obj.name, exc_info=True)
            self._set_state(LoopState.EXITED)
            raise
        return self._report(outcome)

    # ---------------- Invocation ----------------

    def interrupt(self) -> bool:
        """Cancel the in-flight handler, if any. Returns True if one was cancelled."""
        if not self.busy:
            return False
        self._interrupted = True
        self._task.cancel()  # type: ignore[union-attr]
        return True

    async def _invoke(self, command_obj: Command, values: Sequence[Any]) -> DispatchOutcome:
        self._interrupted = False
        self._task = asyncio.create_task(
            command_obj.invoke(values), name=f"arepl:{command_obj.name}")
        restore_signals = self._install_interrupt_handler()
        try:
            result = await self._task
        except asyncio.CancelledError:
            if not self._interrupted:
                # the loop itself is being cancelled by its owner
                raise
            logger.debug("Command %r cancelled", command_obj.name)
            return DispatchOutcome.cancelled()
        except CriticalError:
            raise
        except UserError as exc:
            return DispatchOutcome.user_error(str(exc))
        except HandlerError as exc:
            return DispatchOutcome.handler_error(str(exc))
        except Exception as exc:  # noqa: BLE001 - any handler failure is reported
            logger.warning("Command %r failed: %s: %s",
                           command_obj.name, type(exc).__name__, exc)
            logger.debug("Traceback for %r", command_obj.name, exc_info=True)
            return DispatchOutcome.handler_error(f"{type(exc).__name__}: {exc}")
        finally:
            restore_signals()
            self._task = None
            self._interrupted = False
        return outcome_from_result(result)

    def _install_interrupt_handler(self) -> Callable[[], None]:
        """Route SIGINT to `interrupt()` while a handler runs, where supported."""
        if not self.handle_signals:
            return lambda: None
        return route_sigint(self.interrupt)

    # ---------------- Reporting ----------------

    def format_error(self, message: str) -> str:
        return self.error_format.format(message=" ".join(message.split()))

    def _report(self, outcome: DispatchOutcome) -> DispatchOutcome:
        self._set_state(LoopState.REPORTING)
        self.last_outcome = outcome
        kind = outcome.kind
        if outcome.is_error:
            self.frontend.write(self.format_error(outcome.message))
        elif kind is OutcomeKind.CANCELLED:
            self.frontend.write(self.cancelled_notice)
        elif outcome.output is not None and str(outcome.output) != "":
            self.frontend.write(str(outcome.output))

        self._set_state(LoopState.EXITED if kind is OutcomeKind.EXIT else LoopState.IDLE)
        return outcome
