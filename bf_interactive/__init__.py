"""
bfvm interactive
================
Command interpreter for inspecting and mutating a running machine.

    text ──> CommandTokenizer ──> ParseResult ──> CommandDispatcher ──> InteractiveState
               (segments,           Parsed /         (handler table)       (engine, paused,
                autocomplete)       CannotContinue /                        speed, messages)
                                    TooShort

    - literals.py:      numbers (0b/0o/0x/h) and humantime durations
    - commands.py:      Command value types
    - segments.py:      CommandSegment and parse results
    - tokenizer.py:     incremental tokenizer with autocomplete
    - paths.py:         filesystem completion for 'load'
    - dispatch.py:      applies commands to the interactive state
    - command_input.py: live input buffer, history, tab completion
    - session.py:       pacing and submit logic for a host
"""

from .commands import (
    Command, LoadScriptFromFile, Pause, Quit, SetBounds, SetData,
    SetDataPointer, SetInstructionPointer, SetSpeed, Start,
)
from .segments import (
    CannotContinue, CommandSegment, ParseResult, Parsed, SegmentKind, TooShort,
)
from .tokenizer import CommandTokenizer, TargetVariable, parse_command
from .dispatch import CommandDispatcher, CommandOutput, InteractiveState
from .command_input import CommandInputState
from .session import InteractiveSession
