"""
Interactive session: host-independent logic of the interactive runtime.

Owns one engine on an in-memory I/O pair and the operator state around
it. A host (the line REPL in bfvm.py, a test, a TUI) drives it:

    session = InteractiveSession()
    session.submit("load hello.bf")
    session.submit("start")
    while session.status == "Running":   # or tick() from an event loop
        session.tick()
    print(session.output)

The session starts paused. While running, tick() executes at most one
instruction per clock interval (100 ms by default).
"""

from __future__ import annotations

import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional, Union

from bf_runtime.config import INTERACTIVE_PROFILE, SPEED_STEPS
from bf_runtime.context import BufferedIO, RuntimeContext
from bf_runtime.engine import ExecutionEngine, StopReason, format_state
from bf_runtime.program import Program

from .command_input import CommandInputState
from .dispatch import CommandDispatcher, CommandOutput, InteractiveState
from .segments import CannotContinue, ParseResult, Parsed
from .tokenizer import CommandTokenizer


class InteractiveSession:

    def __init__(self, profile: str = INTERACTIVE_PROFILE, source: str = "", *,
                 cwd: Union[str, Path, None] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.io = BufferedIO()
        context = RuntimeContext.from_profile(profile, self.io.read, self.io.write)
        self.engine = ExecutionEngine(Program(source), context)
        self.state = InteractiveState(self.engine)
        self.dispatcher = CommandDispatcher()
        self.tokenizer = CommandTokenizer(cell_type=context.cell_type, cwd=cwd)
        self.input = CommandInputState(self.tokenizer)
        self._clock = clock
        self._last_step: Optional[float] = None

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def finished(self) -> bool:
        return not self.engine.program.has_remaining_instructions()

    def step(self) -> Optional[StopReason]:
        """Execute one instruction, whether paused or not."""
        if self.finished:
            return StopReason.HALT
        reason = self.engine.step()
        if reason is StopReason.UNDERFLOW:
            self.state.execution_paused = True
            self.state.cmd_error("data pointer cannot move below 0")
        return reason

    def tick(self, now: Optional[float] = None) -> bool:
        """Execute one instruction if running and the interval has elapsed.

        Returns True when an instruction was executed.
        """
        if self.state.execution_paused or self.finished:
            return False
        now = self._clock() if now is None else now
        interval = self.state.execution_clock_speed.total_seconds()
        if self._last_step is not None and now - self._last_step < interval:
            return False
        self._last_step = now
        return self.step() is None

    def seconds_until_next_step(self, now: Optional[float] = None) -> float:
        if self._last_step is None:
            return 0.0
        now = self._clock() if now is None else now
        interval = self.state.execution_clock_speed.total_seconds()
        return max(0.0, self._last_step + interval - now)

    # ══════════════════════════════════════════════
    # Commands
    # ══════════════════════════════════════════════

    def submit(self, text: str) -> ParseResult:
        """Parse a committed line and apply it, or report why not."""
        result = self.tokenizer.parse(text)
        if isinstance(result, Parsed):
            self.dispatcher.apply(result.command, self.state)
        elif isinstance(result, CannotContinue):
            self.state.cmd_error(
                f"could not parse command ({', '.join(result.invalid_reasons)})")
        else:
            self.state.cmd_error("command is not complete (and maybe has errors)")
        return result

    def commit_input(self) -> ParseResult:
        return self.submit(self.input.commit())

    def toggle_pause(self):
        self.state.execution_paused = not self.state.execution_paused

    def faster(self, modifier: str = "none"):
        step = SPEED_STEPS[modifier]
        speed = self.state.execution_clock_speed
        self.state.execution_clock_speed = max(speed - step, timedelta(0))

    def slower(self, modifier: str = "none"):
        self.state.execution_clock_speed += SPEED_STEPS[modifier]

    # ══════════════════════════════════════════════
    # Inspection
    # ══════════════════════════════════════════════

    @property
    def status(self) -> str:
        if self.finished:
            return "Finished"
        return "Paused" if self.state.execution_paused else "Running"

    @property
    def should_quit(self) -> bool:
        return self.state.should_quit

    @property
    def output(self) -> str:
        return self.io.output_text()

    def feed_input(self, data: Union[bytes, str]):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.io.feed(data)

    def state_line(self) -> str:
        return format_state(self.engine.program, self.engine.context)

    def take_messages(self) -> List[CommandOutput]:
        messages = list(self.state.command_output)
        self.state.command_output.clear()
        return messages
