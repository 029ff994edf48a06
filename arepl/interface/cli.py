#!/usr/bin/env python3
# arepl/interface/cli.py
from __future__ import annotations

"""
Interactive input frontends.

Every frontend offers `async read_line()` (EOFError at end of input,
KeyboardInterrupt when the line is interrupted) and `write(text)`.

Selection order (make_cli, FRONTEND=auto):
    1) prompt_toolkit on an interactive terminal (live completion, inline
       hints, file history)
    2) plain line reader for piped/scripted input
ReadlineCLI is available explicitly (FRONTEND=readline).
"""

import asyncio
import sys
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import IO, Any, Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion, PathCompleter, merge_completers
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.processors import Processor, Transformation, TransformationInput
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style

from arepl.interface.completion import CompletionEngine
from arepl.interface.dispatch import route_sigint
from arepl.interface.hints import HintEngine
from arepl.ui import print_line

cli_style = Style.from_dict({
    "prompt": "bold cyan",
    "hint": "#888888 italic",
    "completion-menu.completion": "bg:#1e1e1e #bcbcbc",
    "completion-menu.completion.current": "bg:#005f5f #ffffff bold",
})


def _start_reader(func: Callable[..., str], *args: Any) -> Future[str]:
    """Run one blocking read on a daemon thread; interpreter exit never joins it."""
    future: Future[str] = Future()
    future.set_running_or_notify_cancel()

    def _run() -> None:
        try:
            future.set_result(func(*args))
        except BaseException as exc:  # noqa: BLE001 - re-raised by the awaiting side
            future.set_exception(exc)

    threading.Thread(target=_run, name="arepl-reader", daemon=True).start()
    return future


class BaseCLI:
    """
    Base interface for CLI frontends.

    Subclasses should implement:
        - read_line()
    and may override setup(), teardown() and write().

    This base also provides context manager support to guarantee teardown.
    """

    def __init__(self, *, output: Optional[IO[str]] = None) -> None:
        self.output = output
        self._pending: Optional[Future[str]] = None

    def setup(self) -> None:
        pass

    async def read_line(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    async def _read_interruptibly(self, func: Callable[..., str], *args: Any) -> str:
        """
        Await a blocking read without tying up the event loop's executor.

        A SIGINT while waiting raises KeyboardInterrupt here. The read itself
        keeps going on its thread and the next call returns its line.
        """
        if self._pending is None:
            self._pending = _start_reader(func, *args)
        pending = self._pending
        loop = asyncio.get_running_loop()
        wakeup = loop.create_future()

        def _wake() -> None:
            if not wakeup.done():
                wakeup.set_result(None)

        def _wake_from_reader(_future: Future[str]) -> None:
            try:
                loop.call_soon_threadsafe(_wake)
            except RuntimeError:
                # event loop closed; the line has no reader left
                pass

        pending.add_done_callback(_wake_from_reader)
        restore = route_sigint(_wake)
        try:
            await wakeup
        finally:
            restore()
        if not pending.done():
            raise KeyboardInterrupt
        self._pending = None
        return pending.result()

    def write(self, text: str) -> None:
        print_line(text, file=self.output, flush=True)

    def teardown(self) -> None:
        pass

    # Context manager helpers
    def __enter__(self) -> "BaseCLI":
        self.setup()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()


class EngineCompleter(Completer):
    """prompt_toolkit adapter over CompletionEngine."""

    def __init__(self, engine: CompletionEngine) -> None:
        self.engine = engine

    def get_completions(self, document, complete_event):
        cursor = document.cursor_position
        for candidate in self.engine.complete(document.text, cursor):
            start, _end = candidate.span
            # replace exactly the current token
            yield Completion(candidate.replacement, start_position=start - cursor)


class ArgumentPathCompleter(Completer):
    """Filesystem paths for argument slots the command does not complete itself."""

    def __init__(self, engine: CompletionEngine) -> None:
        self.engine = engine
        self.paths = PathCompleter(expanduser=True)

    def get_completions(self, document, complete_event):
        if not self.engine.wants_paths(document.text, document.cursor_position):
            return
        word = document.get_word_before_cursor(WORD=True)
        yield from self.paths.get_completions(Document(word, len(word)), complete_event)


def build_completer(
    engine: Optional[CompletionEngine], *, filename_completion: bool = False
) -> Optional[Completer]:
    """Command/argument completer, merged with path completion when enabled."""
    if engine is None:
        return None
    completer: Completer = EngineCompleter(engine)
    if filename_completion:
        completer = merge_completers([completer, ArgumentPathCompleter(engine)])
    return completer


class HintProcessor(Processor):
    """Draws the hint after the input; display only, never part of the buffer."""

    def __init__(self, engine: HintEngine) -> None:
        self.engine = engine

    def apply_transformation(self, transformation_input: TransformationInput) -> Transformation:
        document = transformation_input.document
        fragments = transformation_input.fragments
        if transformation_input.lineno != document.line_count - 1 or not document.is_cursor_at_the_end:
            return Transformation(fragments)
        text = self.engine.inline(document.text)
        if not text:
            return Transformation(fragments)
        return Transformation(fragments + [("class:hint", text)])


# ===== Preferred: prompt_toolkit =====
class PromptToolkitCLI(BaseCLI):
    """Rich line editor with history, live completion and inline hints."""

    def __init__(
        self,
        completion_engine: Optional[CompletionEngine] = None,
        hint_engine: Optional[HintEngine] = None,
        *,
        prompt: str = "> ",
        history_path: Optional[Path] = None,
        filename_completion: bool = False,
    ) -> None:
        super().__init__()
        self.prompt = prompt
        self._patch = None
        history = FileHistory(str(history_path)) if history_path else InMemoryHistory()
        completer = build_completer(completion_engine, filename_completion=filename_completion)
        processors = [HintProcessor(hint_engine)] if hint_engine else []

        # Key bindings to trigger completion when deleting characters.
        kb = KeyBindings()

        @kb.add("backspace")
        def _(event):
            b = event.app.current_buffer
            if b.read_only():
                return
            if b.selection_state:
                b.cut_selection()
            else:
                b.delete_before_cursor(1)
            if completer is not None:
                b.start_completion(select_first=False)

        self._history_path = history_path
        self._session: PromptSession[str] = PromptSession(
            history=history,
            completer=completer,
            complete_while_typing=completer is not None,
            input_processors=processors,
            key_bindings=kb,
            style=cli_style,
        )

    def setup(self) -> None:
        if self._history_path is not None:
            self._history_path.parent.mkdir(parents=True, exist_ok=True)
            self._history_path.touch(exist_ok=True)
        # Output from other tasks is printed above the prompt instead of through it
        self._patch = patch_stdout(raw=True)
        self._patch.__enter__()

    async def read_line(self) -> str:
        return await self._session.prompt_async([("class:prompt", self.prompt)])

    def teardown(self) -> None:
        # prompt_toolkit flushes history automatically
        if self._patch is not None:
            self._patch.__exit__(None, None, None)
            self._patch = None


# ===== Fallback: readline =====
class ReadlineCLI(BaseCLI):
    """Editor with basic completion and history via the readline module."""

    def __init__(
        self,
        completion_engine: Optional[CompletionEngine] = None,
        *,
        prompt: str = "> ",
        history_path: Optional[Path] = None,
    ) -> None:
        super().__init__()
        import readline  # type: ignore[attr-defined]

        self.readline = readline
        self.prompt = prompt
        self.completion_engine = completion_engine
        self.history_path = history_path

    def setup(self) -> None:
        if self.history_path is not None:
            self.history_path.touch(exist_ok=True)
            try:
                self.readline.read_history_file(str(self.history_path))
            except OSError:
                pass

        self.readline.set_completer_delims(" \t\n")
        engine = self.completion_engine
        if engine is None:
            return

        def _complete(text_fragment: str, state_index: int) -> Optional[str]:
            # Candidates for the whole buffer, up to the cursor
            buffer_text = self.readline.get_line_buffer()
            cursor = self.readline.get_endidx()
            matches = [c.replacement for c in engine.complete(buffer_text, cursor)]
            return matches[state_index] if state_index < len(matches) else None

        self.readline.set_completer(_complete)
        self.readline.parse_and_bind("tab: complete")

    async def read_line(self) -> str:
        return await self._read_interruptibly(input, self.prompt)

    def teardown(self) -> None:
        if self.history_path is not None:
            try:
                self.readline.write_history_file(str(self.history_path))
            except OSError:
                pass


# ===== Scripts / pipes =====
class PlainCLI(BaseCLI):
    """Reads lines from a stream without echoing a prompt (piped input)."""

    def __init__(self, stream: Optional[IO[str]] = None, *, output: Optional[IO[str]] = None) -> None:
        super().__init__(output=output)
        self.stream = stream

    async def read_line(self) -> str:
        stream = self.stream or sys.stdin
        line = await self._read_interruptibly(stream.readline)
        if line == "":
            raise EOFError
        return line.rstrip("\r\n")


def make_cli(
    completion_engine: Optional[CompletionEngine],
    hint_engine: Optional[HintEngine],
    *,
    frontend: str = "auto",
    prompt: str = "> ",
    history_path: Optional[Path] = None,
    filename_completion: bool = False,
) -> BaseCLI:
    """
    Select a frontend.

    `frontend` is one of 'auto', 'prompt_toolkit', 'readline', 'plain'.
    `filename_completion` only affects the prompt_toolkit frontend.
    """
    if frontend == "auto":
        frontend = "prompt_toolkit" if sys.stdin.isatty() else "plain"
    if frontend == "prompt_toolkit":
        return PromptToolkitCLI(completion_engine, hint_engine, prompt=prompt,
                                history_path=history_path,
                                filename_completion=filename_completion)
    if frontend == "readline":
        return ReadlineCLI(completion_engine, prompt=prompt, history_path=history_path)
    if frontend == "plain":
        return PlainCLI()
    raise ValueError(f"unknown frontend: {frontend!r}")
