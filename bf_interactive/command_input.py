"""
Live command input buffer.

Holds the text being typed and its parse result. The parse result is a
plain value rebuilt (with autocomplete) on every change, so it always
describes the current text. Also keeps an in-memory history of committed
lines.
"""

from __future__ import annotations

from typing import List, Optional

from .segments import ParseResult, SegmentKind, normalize
from .tokenizer import CommandTokenizer


class CommandInputState:

    def __init__(self, tokenizer: Optional[CommandTokenizer] = None):
        self.tokenizer = tokenizer or CommandTokenizer()
        self.value = ""
        self.current: ParseResult = self.tokenizer.parse("", autocomplete=True)
        self.history: List[str] = []           # most recent first
        self._history_index: Optional[int] = None
        self._draft = ""

    def set_value(self, text: str):
        self.value = text
        self.current = self.tokenizer.parse(text, autocomplete=True)

    def insert(self, text: str):
        self.set_value(self.value + text)

    def backspace(self):
        self.set_value(self.value[:-1])

    def complete(self) -> bool:
        """Accept the suggestion on the last segment (tab completion).

        Only a suggestion for the segment at the very end of the input is
        taken; the missing suffix is appended. Returns True when the input
        changed.
        """
        last = self.current.last_segment
        if last is None or last.kind is not SegmentKind.AUTOCOMPLETE:
            return False
        if last.suggestion is None or last.end != len(self.value):
            return False

        suggestion = last.suggestion
        if suggestion.startswith(last.content):
            # Paths come back with the raw typed text as prefix
            typed = last.content
        else:
            typed = last.normalized
            if not normalize(suggestion).startswith(typed):
                return False
        if len(suggestion) <= len(typed):
            return False
        self.set_value(self.value + suggestion[len(typed):])
        return True

    def commit(self) -> str:
        """Take the typed line, remember it and clear the buffer."""
        text = self.value
        if text.strip():
            self.history.insert(0, text)
        self._history_index = None
        self._draft = ""
        self.set_value("")
        return text

    # --- History ---

    def history_previous(self) -> bool:
        if not self.history:
            return False
        if self._history_index is None:
            self._draft = self.value
            index = 0
        else:
            index = min(self._history_index + 1, len(self.history) - 1)
        self._history_index = index
        self.set_value(self.history[index])
        return True

    def history_next(self) -> bool:
        if self._history_index is None:
            return False
        if self._history_index == 0:
            self._history_index = None
            self.set_value(self._draft)
        else:
            self._history_index -= 1
            self.set_value(self.history[self._history_index])
        return True
