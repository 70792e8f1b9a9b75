"""
Execution engine tests: stop reasons, breakpoints, trace, loading and
the run_source pipeline.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from bf_runtime import run_source
from bf_runtime.context import BufferedIO, PointerPolicy, RuntimeContext
from bf_runtime.engine import ExecutionEngine, ScriptLoadError, StopReason, format_state
from bf_runtime.program import Instruction, Program

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


def _engine(source: str, input_data: bytes = b"", profile: str = "classic",
            **kwargs) -> ExecutionEngine:
    io = BufferedIO(input_data)
    ctx = RuntimeContext.from_profile(profile, io.read, io.write, **kwargs)
    engine = ExecutionEngine(Program(source), ctx)
    engine.io = io
    return engine


class TestStopReasons:
    def test_halt(self):
        engine = _engine("+++")
        assert engine.run() == StopReason.HALT
        assert engine.program.cycles == 3

    def test_halt_on_empty_program(self):
        engine = ExecutionEngine()
        assert engine.run() == StopReason.HALT
        assert engine.step() == StopReason.HALT

    def test_timeout(self):
        engine = _engine("+[]")
        assert engine.run(max_cycles=50) == StopReason.TIMEOUT
        assert engine.program.cycles == 50

    def test_underflow_stops_with_state_unchanged(self):
        engine = _engine("+<+")
        assert engine.run() == StopReason.UNDERFLOW
        assert engine.program.instruction_pointer == 1
        assert engine.program.cycles == 1
        assert engine.context.read_cell(0) == 1

    def test_underflow_saturate_policy(self):
        engine = _engine("<+", pointer_policy=PointerPolicy.SATURATE)
        assert engine.run() == StopReason.HALT
        assert engine.context.read_cell(0) == 1

    def test_last_executed(self):
        engine = _engine("x+")
        engine.step()
        assert engine.last_executed.instruction is Instruction.INCREMENT_DATA
        assert engine.last_executed.source_position == 1


class TestBreakpoints:
    def test_break_then_resume(self):
        engine = _engine("+++")
        engine.add_breakpoint(1)
        assert engine.run() == StopReason.BREAK
        assert engine.program.instruction_pointer == 1
        assert engine.run() == StopReason.HALT
        assert engine.context.read_cell(0) == 3

    def test_breakpoint_inside_loop_hits_every_iteration(self):
        engine = _engine("+++[-]")
        engine.add_breakpoint(4)
        hits = 0
        while engine.run() == StopReason.BREAK:
            hits += 1
        assert hits == 3

    def test_remove_and_clear(self):
        engine = _engine("++")
        engine.add_breakpoint(1)
        engine.remove_breakpoint(1)
        engine.add_breakpoint(0)
        engine.clear_breakpoints()
        assert engine.run() == StopReason.HALT


class TestTrace:
    def test_transfer_loop_trace(self):
        engine = _engine("++[>+<-]", profile="extended")
        engine.enable_trace()
        assert engine.run() == StopReason.HALT
        lines = engine.get_trace().splitlines()
        assert len(lines) == 13
        assert lines[0] == "1: data(*0=1) instr(*1=IncrementData)"
        assert lines[2] == "3: data(*0=2) instr(*3=IncrementDataPointer)"
        assert lines[-1] == "13: data(*0=0) instr(*8=<end+0>)"
        assert engine.context.data[:2] == [0, 2]

    def test_format_state_initial(self):
        engine = _engine(">+")
        assert format_state(engine.program, engine.context) == \
            "0: data(*0=0) instr(*0=IncrementDataPointer)"

    def test_clear_trace_and_reset(self):
        engine = _engine("++")
        engine.enable_trace()
        engine.run()
        engine.clear_trace()
        assert engine.get_trace() == ""
        engine.reset()
        assert engine.program.instruction_pointer == 0
        assert engine.program.cycles == 0
        assert len(engine.context) == 0


class TestLoading:
    def test_load_file(self, tmp_path):
        script = tmp_path / "prog.bf"
        script.write_text("+++ comment", encoding="utf-8")
        engine = ExecutionEngine()
        engine.load_file(script)
        assert engine.program.source == "+++ comment"
        assert len(engine.program) == 3

    def test_load_keeps_cells(self):
        engine = _engine("+++")
        engine.run()
        engine.load_source("+")
        engine.run()
        assert engine.context.read_cell(0) == 4

    def test_missing_file(self, tmp_path):
        engine = _engine("+")
        with pytest.raises(ScriptLoadError) as exc:
            engine.load_file(tmp_path / "missing.bf")
        assert "could not load" in str(exc.value)
        assert engine.program.source == "+"

    def test_directory(self, tmp_path):
        engine = ExecutionEngine()
        with pytest.raises(ScriptLoadError):
            engine.load_file(tmp_path)

    def test_not_utf8(self, tmp_path):
        script = tmp_path / "bin.bf"
        script.write_bytes(b"+\xff\xfe")
        engine = ExecutionEngine()
        with pytest.raises(ScriptLoadError) as exc:
            engine.load_file(script)
        assert "UTF-8" in exc.value.reason


class TestRunSource:
    def test_hello_world(self):
        assert run_source(HELLO_WORLD) == b"Hello World!\n"

    def test_echo_with_input(self):
        assert run_source(",+.,+.", b"AB") == b"BC"

    def test_cat_until_eof(self):
        # EOF leaves the cell, so clear it first for a zero-terminated loop
        assert run_source(",[.[-],]", b"hi") == b"hi"

    def test_u16_profile_wraps_at_16_bits(self):
        assert run_source("-.", profile="u16") == b"\xff"

    def test_max_cycles(self):
        assert run_source("+[.]", max_cycles=10) == b"\x01" * 4
