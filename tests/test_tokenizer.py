"""
Command tokenizer tests.

Tests cover:
  - Simple commands, case and whitespace handling, trailing text
  - 'set' for every target, all index forms and value kinds
  - Every TooShort message and CannotContinue reason
  - Keyword autocompletion, including two-word targets
  - 'load' path validation and filesystem suggestions
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import timedelta
from pathlib import Path

import pytest
from bf_runtime.cells import U8
from bf_interactive.commands import (
    LoadScriptFromFile, Pause, Quit, SetBounds, SetData, SetDataPointer,
    SetInstructionPointer, SetSpeed, Start,
)
from bf_interactive.segments import CannotContinue, Parsed, SegmentKind, TooShort
from bf_interactive.tokenizer import CommandTokenizer, TargetVariable, parse_command


def _parsed(text: str, **kwargs):
    result = parse_command(text, **kwargs)
    assert isinstance(result, Parsed), result
    return result.command


def _too_short(text: str) -> str:
    result = parse_command(text)
    assert isinstance(result, TooShort), result
    return result.message


def _cannot_continue(text: str, **kwargs):
    result = parse_command(text, **kwargs)
    assert isinstance(result, CannotContinue), result
    return result


# ─── Simple commands ─────────────────────

class TestSimpleCommands:
    def test_empty_line(self):
        result = parse_command("")
        assert isinstance(result, TooShort)
        assert result.segments == []
        assert result.message is None

    def test_parsed_always_carries_a_command(self):
        with pytest.raises(TypeError):
            Parsed([])

    def test_blank_line(self):
        result = parse_command("   \t")
        assert isinstance(result, TooShort)
        assert result.segments == []

    @pytest.mark.parametrize("text,command", [
        ("start", Start()),
        ("pause", Pause()),
        ("quit", Quit()),
        ("  START  ", Start()),
        ("Quit", Quit()),
    ])
    def test_keywords(self, text, command):
        assert _parsed(text) == command

    def test_segment_offsets_skip_leading_whitespace(self):
        result = parse_command("  start")
        seg = result.segments[0]
        assert (seg.start, seg.end) == (2, 7)
        assert seg.kind is SegmentKind.OK

    def test_trailing_text_is_ignored(self):
        result = parse_command("pause right now")
        assert isinstance(result, Parsed)
        assert result.command == Pause()
        assert result.last_segment.kind is SegmentKind.IGNORED
        assert result.last_segment.content == "right now"

    def test_unknown_command(self):
        result = _cannot_continue("bogus")
        assert result.segments[0].kind is SegmentKind.INVALID
        assert "unrecognised command" in result.segments[0].reason
        assert result.invalid_reasons == ["unrecognised command 'bogus'"]

    def test_unknown_command_autocomplete(self):
        result = _cannot_continue("sta", autocomplete=True)
        seg = result.last_segment
        assert seg.kind is SegmentKind.AUTOCOMPLETE
        assert seg.suggestion == "start"

    def test_autocomplete_is_case_insensitive(self):
        result = _cannot_continue("LO", autocomplete=True)
        assert result.last_segment.suggestion == "load"

    def test_no_candidate_stays_invalid(self):
        result = _cannot_continue("xyz", autocomplete=True)
        assert result.last_segment.kind is SegmentKind.INVALID

    def test_valid_keyword_not_autocompleted(self):
        result = parse_command("start", autocomplete=True)
        assert isinstance(result, Parsed)
        assert result.segments[0].kind is SegmentKind.OK


# ─── set: targets ─────────────────────

class TestSetTargets:
    def test_variable_required(self):
        assert _too_short("set") == "variable name required"
        assert _too_short("set   ") == "variable name required"

    @pytest.mark.parametrize("text,command", [
        ("set ip = 10", SetInstructionPointer(10)),
        ("set instruction pointer = 3", SetInstructionPointer(3)),
        ("set Instruction   Pointer = 3", SetInstructionPointer(3)),
        ("set data pointer = 0x10", SetDataPointer(16)),
        ("set dp = 2", SetDataPointer(2)),
        ("SET DP = 0b11", SetDataPointer(3)),
    ])
    def test_pointers(self, text, command):
        assert _parsed(text) == command

    def test_unknown_variable(self):
        result = _cannot_continue("set foo = 1")
        assert result.invalid_reasons == ["unknown variable 'foo'"]

    def test_unknown_variable_autocomplete(self):
        result = _cannot_continue("set spee", autocomplete=True)
        seg = result.last_segment
        assert seg.kind is SegmentKind.AUTOCOMPLETE
        assert seg.suggestion == "speed"

    def test_first_word_of_two_word_target_autocompletes(self):
        result = _cannot_continue("set instruction", autocomplete=True)
        assert result.last_segment.suggestion == "instruction pointer"

    def test_two_word_prefix_is_one_segment(self):
        result = _cannot_continue("set data p", autocomplete=True)
        seg = result.last_segment
        assert seg.content == "data p"
        assert seg.suggestion == "data pointer"

    def test_target_lookup(self):
        assert TargetVariable.from_str("D") is TargetVariable.DATA
        assert TargetVariable.from_str("data  pointer") is TargetVariable.DATA_POINTER
        assert TargetVariable.from_str("datum") is None


# ─── set: equals / value ─────────────────────

class TestSetEqualsAndValues:
    def test_expecting_equals(self):
        assert _too_short("set ip") == "expecting ="
        assert _too_short("set speed") == "expecting ="

    def test_expecting_value(self):
        assert _too_short("set ip =") == "expecting value"
        assert _too_short("set speed =     ") == "expecting value"

    def test_wrong_equals_token(self):
        result = _cannot_continue("set ip 5")
        assert result.invalid_reasons == ["expected '=', got '5'"]

    def test_wrong_equals_stops_parsing(self):
        result = _cannot_continue("set dp := 5")
        assert result.invalid_reasons == ["expected '=', got ':='"]
        assert result.last_segment.kind is SegmentKind.IGNORED

    def test_bad_number(self):
        result = _cannot_continue("set ip = abc")
        assert result.invalid_reasons == ["not a valid number"]

    def test_trailing_text_after_value(self):
        result = parse_command("set ip = 5 extra")
        assert isinstance(result, Parsed)
        assert result.command == SetInstructionPointer(5)
        assert result.last_segment.kind is SegmentKind.IGNORED
        assert result.last_segment.content == "extra"


# ─── set: data ─────────────────────

class TestSetData:
    def test_indexed_with_hex_value(self):
        result = parse_command("set data(5) = 0x1F")
        assert isinstance(result, Parsed)
        assert result.command == SetData(idx=5, value=31)
        assert [s.content for s in result.segments] == \
            ["set", "data", "(", "5", ")", "=", "0x1F"]
        assert [s.kind for s in result.segments] == [
            SegmentKind.OK, SegmentKind.OK, SegmentKind.IGNORED, SegmentKind.OK,
            SegmentKind.IGNORED, SegmentKind.OK, SegmentKind.OK,
        ]

    @pytest.mark.parametrize("text,command", [
        ("set d(5) = 1", SetData(5, 1)),
        ("set data(0x10) = 1Fh", SetData(16, 31)),
        ("set data 5 = 3", SetData(5, 3)),
        ("set d 7 = 0", SetData(7, 0)),
        ("set data = 7", SetData(None, 7)),
        ("set d = 7", SetData(None, 7)),
    ])
    def test_forms(self, text, command):
        assert _parsed(text) == command

    def test_expecting_index_or_equals(self):
        assert _too_short("set data") == "expecting index or ="
        assert _too_short("set d") == "expecting index or ="

    def test_expecting_equals_after_index(self):
        assert _too_short("set data 5") == "expecting ="
        assert _too_short("set data(5)") == "expecting ="

    def test_expecting_index(self):
        assert _too_short("set data(") == "expecting index"

    def test_expecting_close_paren(self):
        assert _too_short("set data(5") == "expecting ')'"

    def test_unclosed_index_with_more_text(self):
        """Text after an unclosed index cannot be fixed by typing more."""
        text = "set data(5 = 3"
        result = _cannot_continue(text)
        assert result.invalid_reasons == ["expecting ')'"]
        assert result.segments[-1].content == "= 3"
        assert result.segments[-1].end == len(text)

    def test_missing_index_with_more_text(self):
        result = _cannot_continue("set data( = 3")
        assert result.invalid_reasons == ["expecting index"]
        assert result.segments[-1].content == "= 3"

    def test_expecting_value(self):
        assert _too_short("set data(5) =") == "expecting value"

    @pytest.mark.parametrize("text", [
        "set data(x) = 1", "set data() = 1", "set data x = 1", "set data(5) = y",
    ])
    def test_bad_numbers(self, text):
        result = _cannot_continue(text)
        assert result.invalid_reasons == ["not a valid number"]

    def test_value_checked_against_cell_type(self):
        tokenizer = CommandTokenizer(cell_type=U8)
        assert isinstance(tokenizer.parse("set data = 255"), Parsed)
        result = tokenizer.parse("set data = 256")
        assert isinstance(result, CannotContinue)
        assert result.invalid_reasons == ["not a valid number"]


# ─── set: speed / bound ─────────────────────

class TestSetSpeedAndBound:
    def test_speed(self):
        assert _parsed("set speed = 1s 500ms") == SetSpeed(timedelta(milliseconds=1500))
        assert _parsed("set speed = 20ms") == SetSpeed(timedelta(milliseconds=20))

    def test_bad_speed(self):
        result = _cannot_continue("set speed = fast")
        assert result.invalid_reasons == ["expected number at 0"]

    def test_speed_without_unit(self):
        result = _cannot_continue("set speed = 100")
        assert "time unit needed" in result.invalid_reasons[0]

    def test_bound(self):
        assert _parsed("set bound = 10 20") == SetBounds(10, 20)
        assert _parsed("set bound = 0 0xFFFF") == SetBounds(0, 65535)

    def test_bound_needs_upper(self):
        assert _too_short("set bound = 10") == "expecting upper bound"

    def test_bound_upper_below_lower(self):
        result = _cannot_continue("set bound = 20 10")
        assert result.invalid_reasons == ["upper bound is below lower bound"]

    def test_bound_bad_number(self):
        result = _cannot_continue("set bound = 1 two")
        assert result.invalid_reasons == ["not a valid number"]


# ─── load ─────────────────────

class TestLoad:
    @pytest.fixture
    def workdir(self, tmp_path):
        (tmp_path / "prog.bf").write_text("+.", encoding="utf-8")
        (tmp_path / "My File.bf").write_text("+", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        return tmp_path

    def test_file_name_required(self):
        assert _too_short("load") == "expected file name"

    def test_existing_file(self, workdir):
        result = parse_command("load prog.bf", cwd=workdir)
        assert isinstance(result, Parsed)
        assert result.command == LoadScriptFromFile(workdir / "prog.bf")

    def test_relative_path_without_cwd(self, workdir, monkeypatch):
        monkeypatch.chdir(workdir)
        assert _parsed("load prog.bf") == LoadScriptFromFile(Path("prog.bf"))

    def test_rest_of_line_is_the_path(self, workdir):
        result = parse_command("load My File.bf", cwd=workdir)
        assert isinstance(result, Parsed)
        assert result.last_segment.content == "My File.bf"

    def test_missing_file(self, workdir):
        result = _cannot_continue("load nope.bf", cwd=workdir)
        assert result.invalid_reasons == ["file not found"]

    def test_directory(self, workdir):
        result = _cannot_continue("load sub", cwd=workdir)
        assert result.invalid_reasons == ["path does not refer to a file"]

    def test_partial_name_suggests_file(self, workdir):
        result = _cannot_continue("load pr", cwd=workdir, autocomplete=True)
        seg = result.last_segment
        assert seg.kind is SegmentKind.AUTOCOMPLETE
        assert seg.suggestion == "prog.bf"

    def test_directory_suggestion_gets_separator(self, workdir):
        result = parse_command("load sub", cwd=workdir, autocomplete=True)
        assert result.last_segment.suggestion == "sub" + os.sep

    def test_valid_file_still_gets_suggestion(self, workdir):
        result = parse_command("load prog.bf", cwd=workdir, autocomplete=True)
        assert isinstance(result, Parsed)
        assert result.last_segment.suggestion == "prog.bf"


# ─── Robustness ─────────────────────

class TestNeverRaises:
    @pytest.mark.parametrize("text", [
        "=", "(", ")", "set (", "set d(5)x = 1", "set data(((", "set = =",
        "load \x00", "set speed = 1s x", "set bound = = =", "start\tpause",
        "set data(5) = 0x", "set ip = 99999999999999999999999", "µs",
        "set speed = ²", "set speed = 1s ²ms", "set data(5 = 3",
    ])
    @pytest.mark.parametrize("autocomplete", [False, True])
    def test_arbitrary_input(self, text, autocomplete, tmp_path):
        result = parse_command(text, autocomplete=autocomplete, cwd=tmp_path)
        assert isinstance(result, (Parsed, CannotContinue, TooShort))
        for seg in result.segments:
            assert 0 <= seg.start <= seg.end <= len(text)
