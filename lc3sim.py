#!/usr/bin/env python3
"""
lc3sim — LC-3 instruction-level simulator CLI

Usage:
    python lc3sim.py <program.obj> [-i input.txt] [-o output.txt]
                     [-t trace.txt [--instr ADD ...] [-u]]
                     [--os LC3_OS.obj] [-d data.obj ...]
                     [--max-steps N] [--dump START:LEN] [-v]

Load order: operating system image, then each --data image, then the
program. PC starts at the program's origin.

Without --input keystrokes come from the terminal (ESC cancels); without
--output characters go to the terminal.

Examples:
    python lc3sim.py hello.obj
    python lc3sim.py echo.obj -i test.in -o test.out
    python lc3sim.py fib.obj -t fib.trace --instr ADD --instr BR -u
"""

import argparse
import logging
import os
import sys
from contextlib import ExitStack, nullcontext

from lc3_emulator import __version__
from lc3_emulator.cpu.decoder import MNEMONICS
from lc3_emulator.emu import LC3Simulator, StopReason
from lc3_emulator.log import setup_logging, verbosity_level
from lc3_emulator.mem.memory import LoadError
from lc3_emulator.periph.reader import FileReader, KeyboardReader, raw_terminal
from lc3_emulator.periph.writer import FileWriter, TerminalWriter
from lc3_emulator.trace import NullTracer, Tracer

DEFAULT_OS_IMAGE = "LC3_OS.obj"
DEFAULT_MAX_STEPS = None

log = logging.getLogger("lc3_emulator.cli")


def parse_int_arg(value: str) -> int:
    """Parse an integer that may be hex (0x..., x..., $...) or decimal."""
    value = value.strip()
    if value[:2].lower() == "0x":
        return int(value[2:], 16)
    if value[:1] in ("x", "X", "$"):
        return int(value[1:], 16)  # LC-3 assembler / Motorola hex conventions
    return int(value)


def mnemonic_arg(value: str) -> str:
    name = value.upper()
    if name not in MNEMONICS:
        raise argparse.ArgumentTypeError(
            f"expected one of {', '.join(MNEMONICS)}, got {value!r}"
        )
    return name


def dump_arg(value: str) -> tuple:
    start, sep, length = value.partition(":")
    try:
        return parse_int_arg(start), parse_int_arg(length) if sep else 64
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START[:LEN], got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lc3sim",
        description="LC-3 instruction-level simulator",
        epilog="Traceable instructions: " + ", ".join(MNEMONICS),
    )
    parser.add_argument("file", help="Program object file")
    parser.add_argument("-o", "--output",
                        help="Output file (default: the terminal)")
    parser.add_argument("-i", "--input",
                        help="Input file (default: the keyboard)")
    parser.add_argument("-t", "--trace",
                        help="Trace file (default: no tracing)")
    parser.add_argument("--instr", action="append", type=mnemonic_arg,
                        metavar="MNEMONIC",
                        help="Only trace this instruction (repeatable)")
    parser.add_argument("-u", "--user-only", action="store_true",
                        help="Only trace instructions at addresses >= x3000")
    parser.add_argument("--os", default=os.environ.get("LC3_OS", DEFAULT_OS_IMAGE),
                        help="Operating system image (default: $LC3_OS or %(default)s)")
    parser.add_argument("-d", "--data", action="append", default=[],
                        help="Extra object file loaded before the program (repeatable)")
    parser.add_argument("--max-steps", type=parse_int_arg, default=DEFAULT_MAX_STEPS,
                        help="Stop after this many instructions")
    parser.add_argument("--dump", type=dump_arg, default=None, metavar="START[:LEN]",
                        help="Hex dump memory after the run (e.g. x3000:32)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--log-file", help="Write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"lc3sim {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbosity_level(args.verbose), args.log_file)

    with ExitStack() as stack:
        # Open I/O back-ends
        try:
            reader = FileReader.open(args.input) if args.input else KeyboardReader()
            stack.callback(reader.close)
            writer = FileWriter.open(args.output) if args.output else TerminalWriter()
            stack.callback(writer.close)
            if args.trace:
                tracer = Tracer.open(args.trace, args.instr, args.user_only)
            else:
                tracer = NullTracer()
            stack.callback(tracer.close)
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        sim = LC3Simulator(reader, writer, tracer)

        # Load OS, data, program
        try:
            sim.load_operating_system(args.os)
            for data in args.data:
                sim.load(data)
            sim.load(args.file)
        except LoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        terminal = raw_terminal() if args.input is None else nullcontext()
        with terminal:
            reason = sim.run(max_steps=args.max_steps)

        if sim.diagnostic:
            print(sim.diagnostic, file=sys.stderr)
        elif reason is StopReason.TIMEOUT:
            print(f"Stopped after {sim.steps} instructions (--max-steps)", file=sys.stderr)

        if args.dump:
            start, length = args.dump
            print(sim.mem.hexdump(start, length))

    return 0


if __name__ == "__main__":
    sys.exit(main())
