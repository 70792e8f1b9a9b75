"""
Incremental command tokenizer.

Scans a (possibly partially typed) command line left to right into typed
segments and decides one of three outcomes:

    Parsed          every required segment matched; carries the command
    CannotContinue  a present segment cannot match; a dead end
    TooShort        the line ended early; more typing may still succeed

Grammar (whitespace-delimited, keywords case-insensitive):

    command := "start" | "pause" | "quit"
             | "set" target "=" value
             | "load" path
    target  := "instruction pointer" | "ip" | "data pointer" | "dp"
             | "data" ["(" index ")"] | "d" ["(" index ")"]
             | "data" index | "d" index
             | "speed" | "bound"
    value   := number | duration (speed) | number number (bound)

With autocomplete enabled (live feedback while typing) an unmatched
keyword gets the first candidate starting with the typed prefix, and the
'load' path gets a filesystem suggestion. Committed command lines are
parsed with autocomplete disabled.

The tokenizer never raises for any input string.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from bf_runtime.cells import CellType, U64, USIZE

from .commands import (
    Command, LoadScriptFromFile, Pause, Quit, SetBounds, SetData,
    SetDataPointer, SetInstructionPointer, SetSpeed, Start,
)
from .literals import DurationError, parse_duration, parse_number
from .paths import complete_path
from .segments import (
    CannotContinue, CommandSegment, ParseResult, Parsed, SegmentKind,
    TooShort, normalize,
)


AUTOCOMPLETE_COMMAND = ("start", "pause", "set", "load", "quit")
AUTOCOMPLETE_SET_VARIABLE = (
    "instruction pointer",
    "ip",
    "data pointer",
    "dp",
    "data",
    "d",
    "speed",
    "bound",
)
EQUALS = "="
AUTOCOMPLETE_EQUAL = (EQUALS,)

_SIMPLE_COMMANDS: Dict[str, Callable[[], Command]] = {
    "start": Start,
    "pause": Pause,
    "quit": Quit,
}

_MULTI_WORD_TARGETS = [t for t in AUTOCOMPLETE_SET_VARIABLE if " " in t]

# data(5), d(0x10), data(  -- name, index text, optional closing paren
_INDEXED = re.compile(r'^(?P<name>[^(]+)\((?P<index>[^)]*)(?P<close>\)?)$')


class TargetVariable(enum.Enum):
    INSTRUCTION_POINTER = "instruction pointer"
    DATA_POINTER = "data pointer"
    DATA = "data"
    SPEED = "speed"
    BOUND = "bound"

    @classmethod
    def from_str(cls, text: str) -> Optional[TargetVariable]:
        return _TARGETS.get(normalize(text))


_TARGETS: Dict[str, TargetVariable] = {
    "instruction pointer": TargetVariable.INSTRUCTION_POINTER,
    "ip": TargetVariable.INSTRUCTION_POINTER,
    "data pointer": TargetVariable.DATA_POINTER,
    "dp": TargetVariable.DATA_POINTER,
    "data": TargetVariable.DATA,
    "d": TargetVariable.DATA,
    "speed": TargetVariable.SPEED,
    "bound": TargetVariable.BOUND,
}


class CommandTokenizer:
    """Stateless command line parser.

    cell_type validates data values and bounds, index_type validates
    pointers and cell indices, cwd anchors relative 'load' paths
    (default: the process working directory at parse time).
    """

    def __init__(self, cell_type: CellType = U64, index_type: CellType = USIZE,
                 cwd: Union[str, Path, None] = None):
        self.cell_type = cell_type
        self.index_type = index_type
        self.cwd = Path(cwd) if cwd is not None else None

    def parse(self, text: str, autocomplete: bool = False) -> ParseResult:
        main = CommandSegment.whole(text).trim_start()
        if not len(main):
            return TooShort([], None)

        parts: List[CommandSegment] = []
        command_part, remaining = main.split_whitespace()
        word = command_part.normalized

        if word in _SIMPLE_COMMANDS:
            parts.append(command_part)
            return self._finish(parts, remaining, _SIMPLE_COMMANDS[word]())

        if word == "set":
            parts.append(command_part)
            return self._parse_set(parts, remaining, autocomplete)

        if word == "load":
            parts.append(command_part)
            return self._parse_load(parts, remaining, autocomplete)

        command_part.mark_invalid(f"unrecognised command '{command_part.content}'")
        if autocomplete:
            command_part.autocomplete(AUTOCOMPLETE_COMMAND)
        parts.append(command_part)
        return CannotContinue(parts)

    # ── Helpers ─────────────────────────────

    @staticmethod
    def _finish(parts: List[CommandSegment], remaining: Optional[CommandSegment],
                command: Command) -> Parsed:
        if remaining is not None:
            parts.append(remaining)
        return Parsed(parts, command)

    @staticmethod
    def _dead_end(parts: List[CommandSegment],
                  remaining: Optional[CommandSegment]) -> CannotContinue:
        if remaining is not None:
            parts.append(remaining)
        return CannotContinue(parts)

    @staticmethod
    def _number(segment: CommandSegment, cell_type: CellType) -> Optional[int]:
        try:
            return parse_number(segment.content, cell_type)
        except ValueError:
            segment.mark_invalid("not a valid number")
            return None

    @staticmethod
    def _split_target(remaining: CommandSegment
                      ) -> Tuple[CommandSegment, Optional[CommandSegment]]:
        """Take the target word, or two words for 'instruction pointer' / 'data pointer'."""
        first, rest = remaining.split_whitespace()
        if rest is not None:
            second, after = rest.split_whitespace()
            joined = first.span_to(second)
            typed = joined.normalized
            if any(target.startswith(typed) for target in _MULTI_WORD_TARGETS):
                return joined, after
        return first, rest

    @staticmethod
    def _expect_equals(parts: List[CommandSegment], remaining: CommandSegment,
                       autocomplete: bool) -> Tuple[bool, Optional[CommandSegment]]:
        equals_part, rest = remaining.split_whitespace()
        if equals_part.content != EQUALS:
            equals_part.mark_invalid(f"expected '=', got '{equals_part.content}'")
            if autocomplete:
                equals_part.autocomplete(AUTOCOMPLETE_EQUAL)
            parts.append(equals_part)
            return False, rest
        parts.append(equals_part)
        return True, rest

    # ── set ─────────────────────────────────

    def _parse_set(self, parts: List[CommandSegment],
                   remaining: Optional[CommandSegment],
                   autocomplete: bool) -> ParseResult:
        if remaining is None:
            return TooShort(parts, "variable name required")

        variable_part, remaining = self._split_target(remaining)

        indexed = _INDEXED.match(variable_part.content)
        if indexed and TargetVariable.from_str(indexed.group("name")) is TargetVariable.DATA:
            return self._parse_indexed_data(parts, variable_part, indexed,
                                            remaining, autocomplete)

        variable = TargetVariable.from_str(variable_part.content)
        if variable is None:
            variable_part.mark_invalid(f"unknown variable '{variable_part.content}'")
            if autocomplete:
                variable_part.autocomplete(AUTOCOMPLETE_SET_VARIABLE)
            parts.append(variable_part)
            return self._dead_end(parts, remaining)

        parts.append(variable_part)

        if variable is TargetVariable.DATA:
            return self._parse_set_data(parts, remaining, None, autocomplete)

        if remaining is None:
            return TooShort(parts, "expecting =")
        is_correct, remaining = self._expect_equals(parts, remaining, autocomplete)
        if not is_correct:
            return self._dead_end(parts, remaining)
        if remaining is None:
            return TooShort(parts, "expecting value")

        if variable is TargetVariable.INSTRUCTION_POINTER:
            return self._parse_index_value(parts, remaining, SetInstructionPointer)
        if variable is TargetVariable.DATA_POINTER:
            return self._parse_index_value(parts, remaining, SetDataPointer)
        if variable is TargetVariable.SPEED:
            return self._parse_speed(parts, remaining)
        return self._parse_bounds(parts, remaining)

    def _parse_indexed_data(self, parts: List[CommandSegment],
                            variable_part: CommandSegment, indexed: re.Match,
                            remaining: Optional[CommandSegment],
                            autocomplete: bool) -> ParseResult:
        """data(<index>) written as a single word."""
        name_len = len(indexed.group("name"))
        index_len = len(indexed.group("index"))
        closed = bool(indexed.group("close"))

        parts.append(variable_part.sub(0, name_len))
        parts.append(variable_part.sub(name_len, name_len + 1, SegmentKind.IGNORED))
        index_part = variable_part.sub(name_len + 1, name_len + 1 + index_len)
        if index_len == 0 and not closed:
            if remaining is None:
                return TooShort(parts, "expecting index")
            index_part.mark_invalid("expecting index")
            parts.append(index_part)
            return self._dead_end(parts, remaining)

        index = self._number(index_part, self.index_type)
        parts.append(index_part)
        if index is None:
            return self._dead_end(parts, remaining)
        if not closed:
            if remaining is None:
                return TooShort(parts, "expecting ')'")
            index_part.mark_invalid("expecting ')'")
            return self._dead_end(parts, remaining)
        parts.append(variable_part.sub(len(variable_part) - 1, len(variable_part),
                                       SegmentKind.IGNORED))
        return self._parse_set_data(parts, remaining, index, autocomplete)

    def _parse_set_data(self, parts: List[CommandSegment],
                        remaining: Optional[CommandSegment], index: Optional[int],
                        autocomplete: bool) -> ParseResult:
        if remaining is None:
            return TooShort(parts, "expecting index or =" if index is None else "expecting =")

        if index is None:
            idx_part, rest = remaining.split_whitespace()
            if idx_part.content != EQUALS:
                index = self._number(idx_part, self.index_type)
                parts.append(idx_part)
                if index is None:
                    return self._dead_end(parts, rest)
                if rest is None:
                    return TooShort(parts, "expecting =")
                remaining = rest

        is_correct, remaining = self._expect_equals(parts, remaining, autocomplete)
        if not is_correct:
            return self._dead_end(parts, remaining)
        if remaining is None:
            return TooShort(parts, "expecting value")

        value_part, rest = remaining.split_whitespace()
        value = self._number(value_part, self.cell_type)
        parts.append(value_part)
        if value is None:
            return self._dead_end(parts, rest)
        return self._finish(parts, rest, SetData(index, value))

    def _parse_index_value(self, parts: List[CommandSegment],
                           remaining: CommandSegment,
                           command: Callable[[int], Command]) -> ParseResult:
        value_part, rest = remaining.split_whitespace()
        idx = self._number(value_part, self.index_type)
        parts.append(value_part)
        if idx is None:
            return self._dead_end(parts, rest)
        return self._finish(parts, rest, command(idx))

    def _parse_speed(self, parts: List[CommandSegment],
                     remaining: CommandSegment) -> ParseResult:
        # The whole rest of the line is the duration, e.g. "1s 500ms"
        remaining.mark_ok()
        parts.append(remaining)
        try:
            speed = parse_duration(remaining.content)
        except DurationError as e:
            remaining.mark_invalid(str(e))
            return CannotContinue(parts)
        return Parsed(parts, SetSpeed(speed))

    def _parse_bounds(self, parts: List[CommandSegment],
                      remaining: CommandSegment) -> ParseResult:
        lower_part, rest = remaining.split_whitespace()
        lower = self._number(lower_part, self.cell_type)
        parts.append(lower_part)
        if lower is None:
            return self._dead_end(parts, rest)
        if rest is None:
            return TooShort(parts, "expecting upper bound")

        upper_part, rest = rest.split_whitespace()
        upper = self._number(upper_part, self.cell_type)
        parts.append(upper_part)
        if upper is None:
            return self._dead_end(parts, rest)
        if upper < lower:
            upper_part.mark_invalid("upper bound is below lower bound")
            return self._dead_end(parts, rest)
        return self._finish(parts, rest, SetBounds(lower, upper))

    # ── load ────────────────────────────────

    def _parse_load(self, parts: List[CommandSegment],
                    remaining: Optional[CommandSegment],
                    autocomplete: bool) -> ParseResult:
        if remaining is None:
            return TooShort(parts, "expected file name")

        # The whole rest of the line is the path
        file_part = remaining
        file_part.mark_ok()
        path_text = file_part.content
        cwd = self.cwd if self.cwd is not None else Path.cwd()
        file_path = cwd / path_text

        try:
            if not file_path.exists():
                file_part.mark_invalid("file not found")
            elif not file_path.is_file():
                file_part.mark_invalid("path does not refer to a file")
        except (OSError, ValueError) as e:
            file_part.mark_invalid(f"cannot access path ({e})")
        is_valid = file_part.kind is SegmentKind.OK

        if autocomplete:
            suggestion = complete_path(path_text, cwd)
            if suggestion is not None:
                file_part.kind = SegmentKind.AUTOCOMPLETE
                file_part.suggestion = suggestion

        parts.append(file_part)
        if not is_valid:
            return CannotContinue(parts)
        path = Path(path_text) if self.cwd is None else file_path
        return Parsed(parts, LoadScriptFromFile(path))


def parse_command(text: str, autocomplete: bool = False, *,
                  cell_type: CellType = U64,
                  cwd: Union[str, Path, None] = None) -> ParseResult:
    """Parse one command line. See CommandTokenizer."""
    return CommandTokenizer(cell_type=cell_type, cwd=cwd).parse(text, autocomplete)
