"""
Command line segments and parse results.

A segment is a [start, end) slice of the command string plus a kind:

    OK            matched what the parser expected
    IGNORED       whitespace or trailing text after a complete command
    AUTOCOMPLETE  not (yet) matching; carries a suggested completion
    INVALID       cannot match; carries a human-readable reason

Segment content is always sliced from the source string; only
suggestions are separate strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .commands import Command


class SegmentKind(enum.Enum):
    OK = "ok"
    IGNORED = "ignored"
    AUTOCOMPLETE = "autocomplete"
    INVALID = "invalid"


def normalize(text: str) -> str:
    """Lower-case and collapse whitespace runs to single spaces."""
    return " ".join(text.split()).lower()


@dataclass
class CommandSegment:
    source: str = field(repr=False)
    start: int
    end: int
    kind: SegmentKind = SegmentKind.OK
    suggestion: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def whole(cls, source: str) -> CommandSegment:
        return cls(source, 0, len(source))

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return self.content

    @property
    def content(self) -> str:
        return self.source[self.start:self.end]

    @property
    def normalized(self) -> str:
        return normalize(self.content)

    # --- State ---

    def mark_ok(self):
        self.kind = SegmentKind.OK
        self.suggestion = self.reason = None

    def mark_invalid(self, reason: str):
        self.kind = SegmentKind.INVALID
        self.reason = reason

    def autocomplete(self, choices: Sequence[str]) -> bool:
        """Attach the first choice whose normalized form starts with the content."""
        typed = self.normalized
        for choice in choices:
            if normalize(choice).startswith(typed):
                self.kind = SegmentKind.AUTOCOMPLETE
                self.suggestion = choice
                return True
        return False

    # --- Slicing ---

    def span_to(self, other: CommandSegment) -> CommandSegment:
        """A fresh OK segment from this segment's start to other's end."""
        return CommandSegment(self.source, self.start, other.end)

    def sub(self, start: int, end: int,
            kind: SegmentKind = SegmentKind.OK) -> CommandSegment:
        """A segment for content[start:end], offsets relative to this segment."""
        return CommandSegment(self.source, self.start + start,
                              self.start + end, kind)

    def trim_start(self) -> CommandSegment:
        content = self.content
        offset = len(content) - len(content.lstrip())
        return CommandSegment(self.source, self.start + offset, self.end, self.kind)

    def split_whitespace(self) -> Tuple[CommandSegment, Optional[CommandSegment]]:
        """Split off the first word.

        Returns (word, rest). The rest starts at the next non-whitespace
        character, is marked IGNORED, and is None when nothing follows.
        """
        content = self.content
        for i, ch in enumerate(content):
            if ch.isspace():
                first = CommandSegment(self.source, self.start, self.start + i)
                rest = CommandSegment(self.source, self.start + i, self.end,
                                      SegmentKind.IGNORED).trim_start()
                return first, (rest if len(rest) else None)
        return CommandSegment(self.source, self.start, self.end), None


# ──────────────────────────────────────────────
# Parse results
# ──────────────────────────────────────────────

@dataclass
class ParseResult:
    segments: List[CommandSegment]

    @property
    def invalid_reasons(self) -> List[str]:
        return [s.reason for s in self.segments
                if s.kind is SegmentKind.INVALID and s.reason]

    @property
    def last_segment(self) -> Optional[CommandSegment]:
        return self.segments[-1] if self.segments else None


@dataclass
class Parsed(ParseResult):
    """Every required segment matched."""
    command: Command


@dataclass
class CannotContinue(ParseResult):
    """A present segment failed to match; more typing at the end cannot help."""


@dataclass
class TooShort(ParseResult):
    """The line ended before a command could be determined."""
    message: Optional[str] = None
