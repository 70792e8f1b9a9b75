"""
bfvm runtime
============
A small virtual machine for the eight-instruction bracket language
(> < + - . , [ ]) over an unbounded cell array with a configurable value band.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌────────────────┐    ┌──────────────┐
    │  Source  │───>│ Program  │───>│ ExecutionEngine│<──>│RuntimeContext│
    │  (text)  │    │ (instrs) │    │ (step / run)   │    │ (cells + I/O)│
    └──────────┘    └──────────┘    └────────────────┘    └──────────────┘

    - cells.py:    unsigned cell widths, radix parsing, byte encoding
    - memory.py:   CellStore, growable memory with band wraparound
    - context.py:  RuntimeContext, CellStore plus read/write/refresh callbacks
    - program.py:  loader, bracket search and the single-step primitive
    - engine.py:   run loop, stop reasons, breakpoints, trace
    - config.py:   machine profiles and defaults
"""

__version__ = "0.2.0"

from .cells import CellType, U8, U16, U32, U64, USIZE, CELL_TYPES, get_cell_type
from .memory import CellStore
from .context import (
    BufferedIO, PointerPolicy, PointerUnderflowError, RuntimeContext,
)
from .program import Instruction, LoadedInstruction, Program
from .engine import ExecutionEngine, ScriptLoadError, StopReason, format_state
from .config import DEFAULT_PROFILE, MACHINE_PROFILES


def run_source(source: str, input_data: bytes = b"", *,
               profile: str = DEFAULT_PROFILE,
               max_cycles: int = None,
               pointer_policy: PointerPolicy = PointerPolicy.FAIL) -> bytes:
    """Run a program to completion on an in-memory I/O pair.

    Full pipeline: Program -> RuntimeContext(profile) -> ExecutionEngine.run().

    Args:
        source: program text; non-instruction characters are comments.
        input_data: bytes served to ',' one at a time (EOF leaves the cell).
        profile: machine profile name from config.MACHINE_PROFILES.
        max_cycles: stop after this many cycles (default: config value).
        pointer_policy: what '<' does at data pointer 0.

    Returns:
        The output bytes (low byte of every '.' value).
    """
    io = BufferedIO(input_data)
    context = RuntimeContext.from_profile(profile, io.read, io.write,
                                          pointer_policy=pointer_policy)
    engine = ExecutionEngine(Program(source), context)
    engine.run(max_cycles)
    return bytes(io.output)
