"""
LC-3 Emulator — Tracer Tests
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
import struct

import pytest

from lc3_emulator.cpu.decoder import Opcode
from lc3_emulator.cpu.regs import Registers
from lc3_emulator.emu import LC3Simulator
from lc3_emulator.periph.reader import FileReader
from lc3_emulator.periph.writer import FileWriter
from lc3_emulator.trace import ALL_OPCODES, NullTracer, Tracer, format_snapshot, opcode_mask


class _ClosedSink(io.StringIO):
    def write(self, s):
        raise ValueError("I/O operation on closed file")


class TestOpcodeMask:

    def test_default_is_everything(self):
        assert opcode_mask(None) == ALL_OPCODES
        assert opcode_mask([]) == ALL_OPCODES

    def test_single(self):
        assert opcode_mask(['ADD']) == 1 << Opcode.ADD

    def test_case_insensitive(self):
        assert opcode_mask(['br', 'Trap']) == (1 << Opcode.BR) | (1 << Opcode.TRAP)

    def test_jsrr_is_jsr(self):
        assert opcode_mask(['JSRR']) == opcode_mask(['JSR'])

    def test_unknown(self):
        with pytest.raises(ValueError, match="MUL"):
            opcode_mask(['MUL'])


class TestFilter:

    def test_add_only_user_space(self):
        tracer = Tracer(io.StringIO(), opcode_mask(['ADD']), user_only=True)
        assert tracer.wants(Opcode.ADD, 0x3010)
        assert not tracer.wants(Opcode.ADD, 0x2FF0)
        assert not tracer.wants(Opcode.LD, 0x3010)

    def test_user_space_boundary(self):
        tracer = Tracer(io.StringIO(), user_only=True)
        assert tracer.wants(Opcode.BR, 0x3000)
        assert not tracer.wants(Opcode.BR, 0x2FFF)

    def test_everything_everywhere(self):
        tracer = Tracer(io.StringIO())
        for opcode in Opcode:
            assert tracer.wants(opcode, 0x0200)

    def test_null_tracer(self):
        tracer = NullTracer()
        assert not tracer.wants(Opcode.ADD, 0x3000)
        tracer.trace("ignored\n")
        tracer.close()


class TestSnapshot:

    def test_format(self):
        regs = Registers()
        regs.IR = 0x1025
        regs.PC = 0x3001
        regs.write(0, 5)
        assert format_snapshot(regs) == (
            "IR=1025 PC=3001 R0=0005 R1=0000 R2=0000 R3=0000 "
            "R4=0000 R5=0000 R6=0000 R7=0000 CC=P\n"
        )

    def test_failing_sink_is_ignored(self):
        tracer = Tracer(_ClosedSink())
        tracer.trace("IR=0000\n")

    def test_open_writes_file(self, tmp_path):
        path = tmp_path / "run.trace"
        tracer = Tracer.open(path, ['ADD'])
        tracer.trace("line\n")
        tracer.close()
        assert path.read_text() == "line\n"


class TestTraceFromSimulator:

    def test_one_line_per_selected_instruction(self):
        sink = io.StringIO()
        sim = LC3Simulator(FileReader(io.BytesIO()), FileWriter(io.BytesIO()),
                           Tracer(sink, opcode_mask(['ADD'])))
        # AND R0,R0,#0; ADD R0,R0,#5; ADD R0,R0,#3
        sim.load(struct.pack('>4H', 0x3000, 0x5020, 0x1025, 0x1023))
        for _ in range(3):
            sim.step()
        lines = sink.getvalue().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("IR=1025 PC=3002 R0=0005")
        assert lines[1].startswith("IR=1023 PC=3003 R0=0008")
        assert lines[1].endswith("CC=P")

    def test_user_only_skips_os_code(self):
        sink = io.StringIO()
        sim = LC3Simulator(FileReader(io.BytesIO()), FileWriter(io.BytesIO()),
                           Tracer(sink, user_only=True))
        # ADD R0,R0,#1 at x0200, then JMP R1 into user space
        sim.load(struct.pack('>3H', 0x0200, 0x1021, 0xC040))
        sim.regs.R[1] = 0x3000
        sim.step()
        sim.step()
        lines = sink.getvalue().splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("IR=C040 PC=3000")
