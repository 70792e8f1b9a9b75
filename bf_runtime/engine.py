"""
bfvm runtime: Execution engine.

Integrates:
  - Program        (program.py)  instruction list, pointer, cycle counter
  - RuntimeContext (context.py)  cell memory + injected I/O callbacks

Execution model:
  1. Check termination conditions (halted, breakpoint)
  2. Execute one instruction via Program.step()
  3. Record the executed instruction and the trace line

Termination reasons:
  - HALT:      instruction pointer reached the end of the program
  - BREAK:     breakpoint instruction index hit
  - UNDERFLOW: '<' at data pointer 0 under the FAIL pointer policy
  - TIMEOUT:   max_cycles exceeded

The engine is single-threaded and never suspends inside a step; callers
decide the pacing.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set, Union

from .config import DEFAULT_MAX_CYCLES, DEFAULT_PROFILE
from .context import BufferedIO, PointerUnderflowError, RuntimeContext
from .program import LoadedInstruction, Program

log = logging.getLogger("bfvm.engine")


class StopReason(Enum):
    HALT = 'HALT'
    BREAK = 'BREAK'
    UNDERFLOW = 'UNDERFLOW'
    TIMEOUT = 'TIMEOUT'


class ScriptLoadError(Exception):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"could not load {self.path}: {reason}")


def format_state(program: Program, context: RuntimeContext) -> str:
    """One-line machine state: cycle, data cell and next instruction."""
    instruction = program.current_instruction()
    if instruction is not None:
        instr = instruction.display_name
    else:
        instr = f"<end+{program.instruction_pointer - len(program.instructions)}>"
    dp = context.data_pointer
    return (f"{program.cycles}: data(*{dp}={context.read_cell(dp)}) "
            f"instr(*{program.instruction_pointer}={instr})")


class ExecutionEngine:
    """Steps a Program against a RuntimeContext.

    Usage:
        io = BufferedIO(b"A")
        engine = ExecutionEngine(Program(",+."),
                                 RuntimeContext(io.read, io.write))
        engine.run()
        bytes(io.output)  # b"B"
    """

    def __init__(self, program: Optional[Program] = None,
                 context: Optional[RuntimeContext] = None):
        if context is None:
            io = BufferedIO()
            context = RuntimeContext.from_profile(DEFAULT_PROFILE, io.read, io.write)
        self.program = program if program is not None else Program("")
        self.context = context
        self.last_executed: Optional[LoadedInstruction] = None

        # Breakpoints: instruction indices that stop execution before running
        self._breakpoints: Set[int] = set()
        self._resume_from: Optional[int] = None

        self._trace = False
        self._trace_output: List[str] = []

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_source(self, source: str):
        """Replace the program. Cell memory is left as-is."""
        self.program = Program(source)
        self.last_executed = None
        self._resume_from = None

    def load_file(self, path: Union[str, Path]):
        """Load a program from a text file.

        Raises ScriptLoadError with a one-line reason on any I/O or
        decoding failure; the current program is kept in that case.
        """
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ScriptLoadError(path, f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise ScriptLoadError(path, e.strerror or str(e)) from e
        self.load_source(source)
        log.debug("Loaded %s (%d instructions)", path, len(self.program))

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        program = self.program
        ip = program.instruction_pointer

        if not program.has_remaining_instructions():
            return StopReason.HALT

        if ip in self._breakpoints and self._resume_from != ip:
            self._resume_from = ip
            return StopReason.BREAK
        self._resume_from = None

        loaded = program.loaded_instruction()
        try:
            program.step(self.context)
        except PointerUnderflowError as e:
            log.warning("Execution stopped: %s", e)
            return StopReason.UNDERFLOW

        self.last_executed = loaded
        if self._trace:
            self._trace_output.append(format_state(program, self.context))
        return None

    def run(self, max_cycles: Optional[int] = None) -> StopReason:
        """Run until termination condition.

        Args:
            max_cycles: Maximum program cycles before TIMEOUT

        Returns:
            StopReason indicating why execution stopped
        """
        if max_cycles is None:
            max_cycles = DEFAULT_MAX_CYCLES

        while self.program.cycles < max_cycles:
            reason = self.step()
            if reason is not None:
                return reason

        if not self.program.has_remaining_instructions():
            return StopReason.HALT
        return StopReason.TIMEOUT

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, index: int):
        """Stop before the instruction at this index executes."""
        self._breakpoints.add(index)

    def remove_breakpoint(self, index: int):
        self._breakpoints.discard(index)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record a state line after every executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Rewind the program and clear cell memory."""
        self.program.instruction_pointer = 0
        self.program.cycles = 0
        self.context.clear()
        self.last_executed = None
        self._resume_from = None
        self._trace_output.clear()
