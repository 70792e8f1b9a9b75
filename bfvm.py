#!/usr/bin/env python3
"""
bfvm: Bracket language virtual machine CLI

Usage:
    python bfvm.py [code] [--stdin] [--mode default|dump|debug|interactive]
                   [--profile classic|extended|u16|u32|u64] [--min N] [--max N]
                   [--max-cycles N] [--pointer-policy fail|saturate]
                   [--input TEXT] [-v] [--log-dir DIR] [--plain-log]

Program source comes from the positional argument, all of stdin with
--stdin, or a single line of stdin otherwise. While running, ',' reads
single bytes from stdin and '.' writes raw cell bytes to stdout.

Modes:
    default      run the program
    dump         run, then print the cell array
    debug        print a state line to stderr after every step, then dump
    interactive  line-based operator console (empty program unless given)

Interactive console:
    <empty line>         execute one instruction
    start                run at the configured speed until paused (Ctrl-C)
    set speed = 20ms     set ip = 0     set data(3) = 0x41     load prog.bf
    quit

Examples:
    python bfvm.py "++++++++[>++++++++<-]>+."
    python bfvm.py --stdin --mode dump < hello.bf
    python bfvm.py ",[.,]" --profile u16 < input.txt
    python bfvm.py --mode interactive
"""

import argparse
import logging
import sys
import os
import time
from typing import Optional

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rich.console import Console

from bf_runtime import __version__
from bf_runtime.cells import U64
from bf_runtime.config import DEFAULT_PROFILE, INTERACTIVE_PROFILE, MACHINE_PROFILES
from bf_runtime.context import PointerPolicy, RuntimeContext
from bf_runtime.engine import ExecutionEngine, StopReason, format_state
from bf_runtime.log_setup import setup_logging
from bf_runtime.program import Program
from bf_interactive.literals import parse_number
from bf_interactive.session import InteractiveSession

MODES = ("default", "dump", "debug", "interactive")


def parse_int_arg(value: str) -> int:
    """Parse an integer argument: decimal, 0b/0o/0x prefix or trailing h."""
    try:
        return parse_number(value.strip(), U64)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a valid number: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfvm",
        description="Bracket language virtual machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="profiles:\n" + "\n".join(
            f"  {name:<10} {p['description']}" for name, p in MACHINE_PROFILES.items()
        ),
    )
    parser.add_argument("code", nargs="?", default=None,
                        help="Program source (default: read from stdin)")
    parser.add_argument("--stdin", action="store_true",
                        help="Read the whole program from stdin instead of one line")
    parser.add_argument("--mode", choices=MODES, default="default",
                        help="Execution mode (default: default)")
    parser.add_argument("--profile", choices=list(MACHINE_PROFILES), default=None,
                        help=f"Machine profile (default: {DEFAULT_PROFILE}, "
                             f"{INTERACTIVE_PROFILE} for interactive)")
    parser.add_argument("--min", type=parse_int_arg, default=None,
                        help="Lowest cell value (overrides the profile)")
    parser.add_argument("--max", type=parse_int_arg, default=None,
                        help="Highest cell value (overrides the profile)")
    parser.add_argument("--max-cycles", type=parse_int_arg, default=None,
                        help="Stop after this many cycles (default: $BFVM_MAX_CYCLES or 10000000)")
    parser.add_argument("--pointer-policy", choices=[p.value for p in PointerPolicy],
                        default=PointerPolicy.FAIL.value,
                        help="What '<' does at cell 0 (default: fail)")
    parser.add_argument("--input", default="",
                        help="Bytes queued for ',' in interactive mode")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging on the console")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a full debug log into this directory")
    parser.add_argument("--plain-log", action="store_true",
                        help="Plain text console logging instead of rich")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING,
                  log_dir=args.log_dir, rich_console=not args.plain_log)

    if args.mode == "interactive":
        return run_interactive(args)

    # Read program source. Bytes level, so whatever follows a single
    # program line stays available to ','
    if args.code is not None:
        source = args.code
    else:
        stdin = sys.stdin.buffer
        try:
            raw = stdin.read() if args.stdin else stdin.readline()
            source = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: could not read program from stdin: {e}", file=sys.stderr)
            return 1

    return run_batch(args, source)


# ═════════════════════════════════════════════════════════════════════════════
# BATCH MODES
# ═════════════════════════════════════════════════════════════════════════════

def run_batch(args, source: str) -> int:
    profile = args.profile or DEFAULT_PROFILE
    refresh = _print_state if args.mode == "debug" else None
    try:
        context = RuntimeContext.stdio(
            profile,
            min_cell_value=args.min,
            max_cell_value=args.max,
            refresh_fn=refresh,
            pointer_policy=PointerPolicy(args.pointer_policy),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    engine = ExecutionEngine(Program(source), context)
    reason = engine.run(args.max_cycles)
    sys.stdout.flush()

    if args.mode in ("dump", "debug"):
        print()
        print("--- DATA ---")
        print(context.dump())
        sys.stdout.flush()

    if reason is StopReason.UNDERFLOW:
        print(f"Error: data pointer moved below 0 at instruction "
              f"{engine.program.instruction_pointer}", file=sys.stderr)
        return 1
    if reason is StopReason.TIMEOUT:
        print(f"Error: cycle limit reached after {engine.program.cycles} cycles",
              file=sys.stderr)
        return 1
    return 0


def _print_state(program: Program, context: RuntimeContext):
    print(format_state(program, context), file=sys.stderr)


# ═════════════════════════════════════════════════════════════════════════════
# INTERACTIVE MODE
# ═════════════════════════════════════════════════════════════════════════════

def run_interactive(args) -> int:
    console = Console(highlight=False)
    try:
        session = InteractiveSession(args.profile or INTERACTIVE_PROFILE, args.code or "")
        if args.min is not None or args.max is not None:
            ctx = session.engine.context
            ctx.set_bounds(ctx.min_cell_value if args.min is None else args.min,
                           ctx.max_cell_value if args.max is None else args.max)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    session.engine.context.pointer_policy = PointerPolicy(args.pointer_policy)
    session.feed_input(args.input)

    console.print("bfvm interactive: empty line steps, 'start' runs, "
                  "Ctrl-C pauses, 'quit' exits", style="bold")
    shown = 0
    while not session.should_quit:
        try:
            line = console.input(f"[{session.status}] {session.state_line()}\n> ",
                                 markup=False)
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        if not line.strip():
            session.step()
        else:
            session.submit(line)
        shown = _show_updates(session, console, shown)

        if session.status == "Running":
            shown = _run_paced(session, console, shown)
    return 0


def _run_paced(session: InteractiveSession, console: Console, shown: int) -> int:
    try:
        while session.status == "Running":
            time.sleep(session.seconds_until_next_step())
            session.tick()
            shown = _show_updates(session, console, shown)
    except KeyboardInterrupt:
        session.state.execution_paused = True
        console.print()
    return shown


def _show_updates(session: InteractiveSession, console: Console, shown: int) -> int:
    """Print output produced since the last call and any pending messages."""
    output = session.output
    if len(output) > shown:
        console.out(output[shown:], end="", highlight=False)
        shown = len(output)
    for msg in session.take_messages():
        console.print(msg.message, style="red" if msg.is_error else "cyan", markup=False)
    return shown


if __name__ == "__main__":
    sys.exit(main())
