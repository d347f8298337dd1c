"""
LC-3 Emulator — Main Simulator Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Memory with device routing (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - ALU helpers (cpu/alu.py)
  - Devices: keyboard (KBSR/KBDR), display (DSR/DDR), clock (MCR)
  - Tracer (trace.py)

Execution model, repeated while MCR bit 15 is set:
  1. Fetch the word at PC through memory into IR, PC += 1 (wrapping)
  2. Decode IR into an Instruction
  3. Execute: all register results go through Registers.write() (which
     sets CC) and all memory traffic through Memory.read()/write()
  4. Trace: offer a snapshot to the tracer for IR's opcode at the new PC

Termination reasons:
  - HALTED:           MCR cleared by the program (OS HALT trap)
  - INPUT_EXHAUSTED:  a KBSR poll found the input file empty
  - CANCELLED:        a KBSR poll saw the user's cancel key
  - TIMEOUT:          max_steps instructions executed
  - BREAK:            breakpoint address reached
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Set, Union

from .cpu.regs import Registers
from .cpu.decoder import Opcode, decode
from .cpu.alu import add16, and16, not16, offset_address
from .mem.memory import Memory
from .periph.reader import InputCancelled, InputClosed, KeyboardReader, Reader
from .periph.writer import TerminalWriter, Writer
from .periph.keyboard import KeyboardPeripheral
from .periph.display import DisplayPeripheral
from .periph.clock import ClockPeripheral
from .predictor import BranchOutcome
from .trace import NullTracer, Tracer, format_snapshot

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALTED = 'HALTED'
    INPUT_EXHAUSTED = 'INPUT_EXHAUSTED'
    CANCELLED = 'CANCELLED'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


DIAGNOSTICS = {
    StopReason.INPUT_EXHAUSTED: "Program halted: more input required than the input file supplies",
    StopReason.CANCELLED: "Program halted: cancelled by user",
}


class LC3Simulator:
    """LC-3 instruction-level simulator.

    Usage:
        sim = LC3Simulator(FileReader.open('in.txt'), FileWriter.open('out.txt'))
        sim.load_operating_system('LC3_OS.obj')
        sim.load('program.obj')   # PC = program origin
        reason = sim.run()
    """

    def __init__(self, reader: Optional[Reader] = None,
                 writer: Optional[Writer] = None,
                 tracer: Optional[Tracer] = None):
        # Core components
        self.regs = Registers()
        self.mem = Memory()

        # Devices
        self.keyboard = KeyboardPeripheral(
            reader if reader is not None else KeyboardReader(),
            on_close=self._input_closed,
        )
        self.display = DisplayPeripheral(
            writer if writer is not None else TerminalWriter()
        )
        self.clock = ClockPeripheral()

        # Register devices with memory routing
        self.keyboard.register(self.mem)
        self.display.register(self.mem)
        self.clock.register(self.mem)

        self.tracer = tracer if tracer is not None else NullTracer()

        self.stop_reason: Optional[StopReason] = None
        self.steps = 0
        self._breakpoints: Set[int] = set()

        # Opcode -> handler
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, path_or_data: Union[str, Path, bytes, bytearray]) -> int:
        """Load an object image (file path or raw bytes) and point PC at it.

        Later loads overwrite earlier ones where they overlap, and the
        last image loaded supplies the starting PC.
        """
        if isinstance(path_or_data, (str, Path)):
            origin = self.mem.load_file(path_or_data)
            name = str(path_or_data)
        else:
            origin = self.mem.load_image(bytes(path_or_data))
            name = '<bytes>'
        self.regs.PC = origin
        log.info("loaded %s at x%04X", name, origin)
        return origin

    def load_operating_system(self, path: Union[str, Path]) -> int:
        """Load the OS image. Call before data files and the program."""
        return self.load(path)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def running(self) -> bool:
        return self.clock.running

    def halt(self, reason: StopReason = StopReason.HALTED):
        """Stop the machine after the current instruction."""
        if self.stop_reason is None:
            self.stop_reason = reason
        self.clock.stop()

    @property
    def diagnostic(self) -> Optional[str]:
        """User-facing message for an input-related halt, else None."""
        return DIAGNOSTICS.get(self.stop_reason)

    def _input_closed(self, error: InputClosed):
        if isinstance(error, InputCancelled):
            reason = StopReason.CANCELLED
        else:
            reason = StopReason.INPUT_EXHAUSTED
        log.warning("%s (PC=x%04X)", DIAGNOSTICS[reason], self.regs.PC)
        self.halt(reason)

    def step(self) -> BranchOutcome:
        """Execute one fetch/decode/execute/trace cycle.

        Returns the control-flow outcome of the instruction, for feeding
        a BranchPredictor.
        """
        # Fetch
        pc = self.regs.PC
        self.regs.IR = self.mem.read(pc)
        self.regs.PC = (pc + 1) & 0xFFFF

        # Decode + execute
        instr = decode(self.regs.IR)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("x%04X: %04X  %s", pc, self.regs.IR, instr)
        outcome = self._dispatch[instr.opcode](instr)
        self.steps += 1

        # Trace
        if self.tracer.wants(self.regs.IR >> 12, self.regs.PC):
            self.tracer.trace(format_snapshot(self.regs))

        return outcome

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until MCR bit 15 clears (or a breakpoint / step budget hits).

        A breakpoint at the current PC is ignored for the first
        instruction, so calling run() again resumes past it.
        """
        executed = 0
        while self.clock.running:
            if max_steps is not None and executed >= max_steps:
                return StopReason.TIMEOUT
            if executed and self.regs.PC in self._breakpoints:
                return StopReason.BREAK
            self.step()
            executed += 1

        if self.stop_reason is None:
            self.stop_reason = StopReason.HALTED
        log.info("stopped: %s after %d instructions", self.stop_reason.value, self.steps)
        return self.stop_reason

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr) -> BranchOutcome
    # PC already points at the next instruction when a handler runs.

    def _build_dispatch(self) -> dict:
        return {
            Opcode.BR:       self._op_br,
            Opcode.ADD:      self._op_add,
            Opcode.LD:       self._op_ld,
            Opcode.ST:       self._op_st,
            Opcode.JSR:      self._op_jsr,
            Opcode.AND:      self._op_and,
            Opcode.LDR:      self._op_ldr,
            Opcode.STR:      self._op_str,
            Opcode.RTI:      self._op_nop,
            Opcode.NOT:      self._op_not,
            Opcode.LDI:      self._op_ldi,
            Opcode.STI:      self._op_sti,
            Opcode.JMP:      self._op_jmp,
            Opcode.RESERVED: self._op_nop,
            Opcode.LEA:      self._op_lea,
            Opcode.TRAP:     self._op_trap,
        }

    def _second_operand(self, instr) -> int:
        if instr.immediate:
            return instr.operand
        return self.regs.read(instr.operand)

    # ── Control flow ──

    def _op_br(self, instr):
        if instr.nzp & self.regs.CC:
            self.regs.PC = offset_address(self.regs.PC, instr.offset)
            return BranchOutcome.TAKEN
        return BranchOutcome.NOT_TAKEN

    def _op_jsr(self, instr):
        if instr.pc_relative:
            target = offset_address(self.regs.PC, instr.operand)
        else:
            target = self.regs.read(instr.operand)  # read before R7 is overwritten
        self.regs.link(self.regs.PC)
        self.regs.PC = target
        return BranchOutcome.JUMP

    def _op_jmp(self, instr):
        self.regs.PC = self.regs.read(instr.base)
        return BranchOutcome.JUMP

    def _op_trap(self, instr):
        """No privilege switch and no bounds check: PC <- mem[vector]."""
        target = self.mem.read(instr.vector)
        self.regs.link(self.regs.PC)
        self.regs.PC = target
        return BranchOutcome.JUMP

    def _op_nop(self, instr):
        return BranchOutcome.NONE

    # ── Operate ──

    def _op_add(self, instr):
        result = add16(self.regs.read(instr.sr1), self._second_operand(instr))
        self.regs.write(instr.dr, result)
        return BranchOutcome.NONE

    def _op_and(self, instr):
        result = and16(self.regs.read(instr.sr1), self._second_operand(instr))
        self.regs.write(instr.dr, result)
        return BranchOutcome.NONE

    def _op_not(self, instr):
        self.regs.write(instr.dr, not16(self.regs.read(instr.sr)))
        return BranchOutcome.NONE

    # ── Loads ──

    def _op_ld(self, instr):
        addr = offset_address(self.regs.PC, instr.offset)
        self.regs.write(instr.reg, self.mem.read(addr))
        return BranchOutcome.NONE

    def _op_ldi(self, instr):
        pointer = self.mem.read(offset_address(self.regs.PC, instr.offset))
        self.regs.write(instr.reg, self.mem.read(pointer))
        return BranchOutcome.NONE

    def _op_ldr(self, instr):
        addr = offset_address(self.regs.read(instr.base), instr.offset)
        self.regs.write(instr.reg, self.mem.read(addr))
        return BranchOutcome.NONE

    def _op_lea(self, instr):
        self.regs.write(instr.reg, offset_address(self.regs.PC, instr.offset))
        return BranchOutcome.NONE

    # ── Stores ──

    def _op_st(self, instr):
        addr = offset_address(self.regs.PC, instr.offset)
        self.mem.write(addr, self.regs.read(instr.reg))
        return BranchOutcome.NONE

    def _op_sti(self, instr):
        pointer = self.mem.read(offset_address(self.regs.PC, instr.offset))
        self.mem.write(pointer, self.regs.read(instr.reg))
        return BranchOutcome.NONE

    def _op_str(self, instr):
        addr = offset_address(self.regs.read(instr.base), instr.offset)
        self.mem.write(addr, self.regs.read(instr.reg))
        return BranchOutcome.NONE

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Stop run() before fetching the instruction at addr."""
        self._breakpoints.add(addr & 0xFFFF)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr & 0xFFFF)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Lifecycle
    # ══════════════════════════════════════════════

    def reset(self):
        """Power-on reset of CPU and devices. Memory contents are kept."""
        self.regs.reset()
        self.keyboard.reset()
        self.display.reset()
        self.clock.reset()
        self.stop_reason = None
        self.steps = 0
        self._breakpoints.clear()

    def close(self):
        """Release the I/O back-ends and the trace sink."""
        self.keyboard.reader.close()
        self.display.writer.close()
        self.tracer.close()
