"""
Command dispatch: applies parsed commands to the interactive state.

Every command type maps to one handler in a dispatch table. Handlers
mutate the engine (pointers, cells, band, program) or the session flags
(paused, speed, quit) and leave operator feedback in
state.command_output. Apply never raises for a parsed command.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Type

from bf_runtime.config import DEFAULT_SPEED
from bf_runtime.engine import ExecutionEngine, ScriptLoadError

from .commands import (
    Command, LoadScriptFromFile, Pause, Quit, SetBounds, SetData,
    SetDataPointer, SetInstructionPointer, SetSpeed, Start,
)
from .literals import format_duration

log = logging.getLogger("bfvm.dispatch")


@dataclass(frozen=True)
class CommandOutput:
    level: int              # logging level, INFO or ERROR
    message: str

    @property
    def is_error(self) -> bool:
        return self.level >= logging.ERROR


@dataclass
class InteractiveState:
    engine: ExecutionEngine
    execution_paused: bool = True
    execution_clock_speed: timedelta = DEFAULT_SPEED
    should_quit: bool = False
    command_output: List[CommandOutput] = field(default_factory=list)

    def cmd_info(self, message: str):
        self.command_output.append(CommandOutput(logging.INFO, message))

    def cmd_error(self, message: str):
        self.command_output.append(CommandOutput(logging.ERROR, f"Error: {message}"))


Handler = Callable[[Command, InteractiveState], None]


class CommandDispatcher:
    """Applies Command values to an InteractiveState."""

    def __init__(self):
        self._dispatch: Dict[Type[Command], Handler] = self._build_dispatch()

    def _build_dispatch(self) -> Dict[Type[Command], Handler]:
        return {
            Start: self._start,
            Pause: self._pause,
            Quit: self._quit,
            SetInstructionPointer: self._set_instruction_pointer,
            SetDataPointer: self._set_data_pointer,
            SetData: self._set_data,
            SetSpeed: self._set_speed,
            SetBounds: self._set_bounds,
            LoadScriptFromFile: self._load_script,
        }

    def apply(self, command: Command, state: InteractiveState):
        handler = self._dispatch.get(type(command))
        if handler is None:
            raise TypeError(f"no handler for command {command!r}")
        log.debug("Applying %r", command)
        handler(command, state)

    # ══════════════════════════════════════════════
    # Handlers
    # ══════════════════════════════════════════════

    @staticmethod
    def _start(command: Start, state: InteractiveState):
        state.execution_paused = False

    @staticmethod
    def _pause(command: Pause, state: InteractiveState):
        state.execution_paused = True

    @staticmethod
    def _quit(command: Quit, state: InteractiveState):
        state.should_quit = True

    @staticmethod
    def _set_instruction_pointer(command: SetInstructionPointer,
                                 state: InteractiveState):
        # Not bounds-checked: past the end simply reads as halted
        state.engine.program.instruction_pointer = command.idx

    @staticmethod
    def _set_data_pointer(command: SetDataPointer, state: InteractiveState):
        state.engine.context.data_pointer = command.idx

    @staticmethod
    def _set_data(command: SetData, state: InteractiveState):
        ctx = state.engine.context
        idx = ctx.data_pointer if command.idx is None else command.idx
        ctx.write_cell(idx, command.value)
        ctx.clamp_cell(idx)

    @staticmethod
    def _set_speed(command: SetSpeed, state: InteractiveState):
        state.execution_clock_speed = command.speed
        state.cmd_info(f"Set speed to {format_duration(command.speed)}")

    @staticmethod
    def _set_bounds(command: SetBounds, state: InteractiveState):
        ctx = state.engine.context
        try:
            ctx.set_bounds(command.lower, command.upper)
        except ValueError as e:
            # Parsed against a wider cell type than the running machine
            state.cmd_error(str(e))
            return
        state.cmd_info(f"Set bounds to [{command.lower}, {command.upper}]")

    @staticmethod
    def _load_script(command: LoadScriptFromFile, state: InteractiveState):
        try:
            state.engine.load_file(command.path)
        except ScriptLoadError as e:
            log.warning("%s", e)
            state.cmd_error(str(e))
            return
        state.cmd_info(f"Loaded file {command.path}")
