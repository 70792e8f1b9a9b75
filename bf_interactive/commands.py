"""
Command values produced by the tokenizer and consumed by the dispatcher.

Every field is validated at parse time; a command value is always safe
to apply.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional


class Command:
    """Base class for all executable commands."""


@dataclass(frozen=True)
class Start(Command):
    pass


@dataclass(frozen=True)
class Pause(Command):
    pass


@dataclass(frozen=True)
class Quit(Command):
    pass


@dataclass(frozen=True)
class SetInstructionPointer(Command):
    idx: int


@dataclass(frozen=True)
class SetDataPointer(Command):
    idx: int


@dataclass(frozen=True)
class SetData(Command):
    idx: Optional[int]          # None = current data pointer
    value: int


@dataclass(frozen=True)
class SetSpeed(Command):
    speed: timedelta


@dataclass(frozen=True)
class SetBounds(Command):
    lower: int
    upper: int


@dataclass(frozen=True)
class LoadScriptFromFile(Command):
    path: Path
