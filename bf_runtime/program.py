"""
bfvm runtime: Program loader and stepper.

Source text is scanned once, left to right. Each recognised character
becomes one instruction tagged with its character offset; every other
character is a comment that stays in the source for display but yields
no instruction.

    >   IncrementDataPointer        <   DecrementDataPointer
    +   IncrementData               -   DecrementData
    .   OutputData                  ,   AcceptData
    [   JumpForwardsIfZero          ]   JumpBackwardsIfNonzero

Execution model (one step):
  1. Resolve the instruction at instruction_pointer (none -> halted, no-op)
  2. Apply it against the runtime context
  3. Advance instruction_pointer, unless a bracket search relocated it
  4. Fire the refresh observer
  5. Count the cycle

Brackets are matched at run time by a depth-counted scan over the
instruction list. Brackets nest but never cross, so a single integer
captures the whole bracket stack.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .context import RuntimeContext

log = logging.getLogger("bfvm.program")


class Instruction(enum.Enum):
    INCREMENT_DATA_POINTER = ">"
    DECREMENT_DATA_POINTER = "<"
    INCREMENT_DATA = "+"
    DECREMENT_DATA = "-"
    OUTPUT_DATA = "."
    ACCEPT_DATA = ","
    JUMP_FORWARDS_IF_ZERO = "["
    JUMP_BACKWARDS_IF_NONZERO = "]"

    @classmethod
    def from_char(cls, ch: str) -> Optional[Instruction]:
        return _BY_CHAR.get(ch)

    @property
    def display_name(self) -> str:
        return "".join(word.capitalize() for word in self.name.split("_"))


_BY_CHAR: Dict[str, Instruction] = {i.value: i for i in Instruction}


@dataclass(frozen=True)
class LoadedInstruction:
    instruction: Instruction
    source_position: int


class Program:
    """A loaded instruction stream with its pointer and cycle counter."""

    def __init__(self, source: str):
        self.source = source
        self.instructions: List[LoadedInstruction] = []
        for pos, ch in enumerate(source):
            instruction = Instruction.from_char(ch)
            if instruction is None:
                continue  # comment
            self.instructions.append(LoadedInstruction(instruction, pos))
        self.instruction_pointer = 0
        self.cycles = 0
        log.debug("Loaded program: %d instructions from %d source characters",
                  len(self.instructions), len(source))

    @classmethod
    def load(cls, source: str) -> Program:
        return cls(source)

    def __len__(self) -> int:
        return len(self.instructions)

    # --- Inspection ---

    def current_instruction(self) -> Optional[Instruction]:
        loaded = self.loaded_instruction()
        return loaded.instruction if loaded is not None else None

    def loaded_instruction(self) -> Optional[LoadedInstruction]:
        if 0 <= self.instruction_pointer < len(self.instructions):
            return self.instructions[self.instruction_pointer]
        return None

    def has_remaining_instructions(self) -> bool:
        return len(self.instructions) > self.instruction_pointer

    @property
    def halted(self) -> bool:
        return not self.has_remaining_instructions()

    # --- Bracket matching ---

    def jump_forwards(self, context: RuntimeContext) -> bool:
        """Move forward to the matching ']'.

        On success the pointer rests on the matching ']' (which then falls
        through, the cell being zero). Returns False when the search ran
        off the end; the pointer is then len(instructions).
        """
        depth = 0
        while self.instruction_pointer < len(self.instructions):
            self.instruction_pointer += 1
            context.refresh(self)
            instruction = self.current_instruction()
            if instruction is None:
                break
            if instruction is Instruction.JUMP_BACKWARDS_IF_NONZERO:
                if depth == 0:
                    return True
                depth -= 1
            if instruction is Instruction.JUMP_FORWARDS_IF_ZERO:
                depth += 1
        log.debug("Unmatched '[': forward search ran off the end")
        return False

    def jump_backwards(self, context: RuntimeContext) -> bool:
        """Move back to just after the matching '['.

        Returns False when the search reached instruction 0 without a
        match; the pointer then stays at 0.
        """
        depth = 0
        while self.instruction_pointer > 0:
            self.instruction_pointer -= 1
            context.refresh(self)
            instruction = self.current_instruction()
            if instruction is None:
                break
            if instruction is Instruction.JUMP_FORWARDS_IF_ZERO:
                if depth == 0:
                    self.instruction_pointer += 1
                    return True
                depth -= 1
            if instruction is Instruction.JUMP_BACKWARDS_IF_NONZERO:
                depth += 1
        log.debug("Unmatched ']': backward search reached the start")
        return False

    # --- Execution ---

    def step(self, context: RuntimeContext):
        """Execute one instruction against the context.

        A no-op once halted. Raises PointerUnderflowError (before changing
        any state) when '<' runs below 0 under the FAIL pointer policy.
        """
        instruction = self.current_instruction()
        if instruction is None:
            return

        next_instruction = True
        dp = context.data_pointer

        if instruction is Instruction.INCREMENT_DATA_POINTER:
            context.data_pointer += 1
        elif instruction is Instruction.DECREMENT_DATA_POINTER:
            context.move_pointer_left(self.instruction_pointer)
        elif instruction is Instruction.INCREMENT_DATA:
            context.increment_cell(dp)
        elif instruction is Instruction.DECREMENT_DATA:
            context.decrement_cell(dp)
        elif instruction is Instruction.OUTPUT_DATA:
            context.write(context.read_cell(dp))
        elif instruction is Instruction.ACCEPT_DATA:
            value = context.read()
            if value is not None:
                context.write_cell(dp, value)
        elif instruction is Instruction.JUMP_FORWARDS_IF_ZERO:
            if context.read_cell(dp) == 0:
                self.jump_forwards(context)
                next_instruction = False
        elif instruction is Instruction.JUMP_BACKWARDS_IF_NONZERO:
            if context.read_cell(dp) != 0:
                self.jump_backwards(context)
                next_instruction = False

        if next_instruction:
            self.instruction_pointer += 1
        context.refresh(self)
        self.cycles += 1
