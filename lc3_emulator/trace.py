"""
LC-3 Emulator — Execution Tracer

After each instruction the simulator asks `tracer.wants(opcode, pc)`
with the opcode nibble of IR and the already incremented PC. If the
answer is yes it sends one snapshot line:

    IR=1025 PC=3001 R0=0005 R1=0000 ... R7=0000 CC=P

Filtering:
  mask        bit n set => opcode n is traced (0xFFFF = everything)
  user_only   only trace while PC >= $3000

Tracing is best-effort: a failing sink is logged at DEBUG and ignored.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union

from .cpu.decoder import MNEMONICS

log = logging.getLogger(__name__)

USER_SPACE = 0x3000
ALL_OPCODES = 0xFFFF


def opcode_mask(names: Optional[Iterable[str]] = None) -> int:
    """Build an opcode bitmask from mnemonics. None or empty => all opcodes.

    >>> hex(opcode_mask(['add', 'JSRR']))
    '0x12'
    """
    if not names:
        return ALL_OPCODES
    mask = 0
    for name in names:
        try:
            opcode = MNEMONICS[name.upper()]
        except KeyError:
            raise ValueError(f"unknown instruction mnemonic: {name!r}") from None
        mask |= 1 << opcode
    return mask


def format_snapshot(regs) -> str:
    return regs.display() + '\n'


class Tracer:
    """Writes snapshots of selected instructions to a text sink."""

    def __init__(self, sink: TextIO, mask: int = ALL_OPCODES,
                 user_only: bool = False):
        self._sink = sink
        self.mask = mask & 0xFFFF
        self.user_only = user_only

    @classmethod
    def open(cls, path: Union[str, Path],
             instructions: Optional[Iterable[str]] = None,
             user_only: bool = False) -> 'Tracer':
        mask = opcode_mask(instructions)
        return cls(open(path, 'w', encoding='ascii'), mask, user_only)

    def wants(self, opcode: int, pc: int) -> bool:
        if self.user_only and pc < USER_SPACE:
            return False
        return bool(self.mask & (1 << (opcode & 0xF)))

    def trace(self, text: str):
        try:
            self._sink.write(text)
        except (OSError, ValueError) as e:
            log.debug("trace write dropped: %s", e)

    def close(self):
        try:
            self._sink.close()
        except OSError as e:
            log.debug("trace close failed: %s", e)


class NullTracer(Tracer):
    """Tracer that never wants anything and discards what it is given."""

    def __init__(self):
        self.mask = 0
        self.user_only = False

    def wants(self, opcode: int, pc: int) -> bool:
        return False

    def trace(self, text: str):
        pass

    def close(self):
        pass
