"""
Runtime context: cell memory plus injected I/O.

The engine itself defines no console or file behavior. Everything it
reads or writes goes through three callables:

  read_fn()                   -> Optional[int]  next input value, None at EOF
  write_fn(value)             -> None           one output cell value
  refresh_fn(program, ctx)    -> None           observer, after every step and
                                                every pointer move of a
                                                bracket search

Callbacks may block (e.g. waiting on a queue); the runtime imposes no
timeout.
"""

from __future__ import annotations

import sys
from collections import deque
from enum import Enum
from typing import Callable, Optional, TYPE_CHECKING

from .cells import CellType, U8, get_cell_type
from .config import get_profile
from .memory import CellStore

if TYPE_CHECKING:
    from .program import Program


ReadFn = Callable[[], Optional[int]]
WriteFn = Callable[[int], None]
RefreshFn = Callable[["Program", "RuntimeContext"], None]


class PointerPolicy(Enum):
    """What '<' does when the data pointer is already 0."""
    FAIL = "fail"           # raise PointerUnderflowError, state untouched
    SATURATE = "saturate"   # stay at 0


class PointerUnderflowError(Exception):
    def __init__(self, instruction_pointer: int):
        self.instruction_pointer = instruction_pointer
        super().__init__(
            f"data pointer moved below 0 by instruction {instruction_pointer}"
        )


class RuntimeContext(CellStore):
    """CellStore wired to read/write/refresh callbacks."""

    def __init__(self, read_fn: ReadFn, write_fn: WriteFn,
                 cell_type: Optional[CellType] = None,
                 min_cell_value: Optional[int] = None,
                 max_cell_value: Optional[int] = None,
                 refresh_fn: Optional[RefreshFn] = None,
                 pointer_policy: PointerPolicy = PointerPolicy.FAIL):
        super().__init__(cell_type or U8, min_cell_value, max_cell_value)
        self.read_fn = read_fn
        self.write_fn = write_fn
        self.refresh_fn = refresh_fn
        self.pointer_policy = pointer_policy

    @classmethod
    def stdio(cls, profile: Optional[str] = None, **kwargs) -> RuntimeContext:
        """Context reading single bytes from stdin and writing raw cell bytes to stdout."""
        ctx: RuntimeContext

        def read() -> Optional[int]:
            data = sys.stdin.buffer.read(1)
            return data[0] if data else None

        def write(value: int):
            sys.stdout.buffer.write(ctx.cell_type.to_bytes(value))

        if profile is not None:
            ctx = cls.from_profile(profile, read, write, **kwargs)
        else:
            ctx = cls(read, write, **kwargs)
        return ctx

    @classmethod
    def from_profile(cls, name: str, read_fn: ReadFn, write_fn: WriteFn,
                     **kwargs) -> RuntimeContext:
        """Build a context from a machine profile in config.MACHINE_PROFILES.

        Explicit min_cell_value / max_cell_value keyword arguments win over
        the profile's band.
        """
        profile = get_profile(name)
        if kwargs.get("min_cell_value") is None:
            kwargs["min_cell_value"] = profile["min"]
        if kwargs.get("max_cell_value") is None:
            kwargs["max_cell_value"] = profile["max"]
        return cls(read_fn, write_fn,
                   cell_type=get_cell_type(profile["cell_type"]), **kwargs)

    # --- Pointer movement ---

    def move_pointer_left(self, instruction_pointer: int):
        if self.data_pointer > 0:
            self.data_pointer -= 1
        elif self.pointer_policy is PointerPolicy.FAIL:
            raise PointerUnderflowError(instruction_pointer)

    # --- Callback plumbing ---

    def refresh(self, program: Program):
        if self.refresh_fn is not None:
            self.refresh_fn(program, self)

    def read(self) -> Optional[int]:
        return self.read_fn()

    def write(self, value: int):
        self.write_fn(value)


class BufferedIO:
    """In-memory I/O pair: an input byte queue and an output byte buffer.

    Output keeps only the low byte of every written value.
    """

    def __init__(self, input_data: bytes = b""):
        self.input: deque = deque(input_data)
        self.output = bytearray()

    def feed(self, data: bytes):
        self.input.extend(data)

    def read(self) -> Optional[int]:
        if not self.input:
            return None
        return self.input.popleft()

    def write(self, value: int):
        self.output.append(value & 0xFF)

    def output_text(self) -> str:
        return self.output.decode("utf-8", errors="replace")
