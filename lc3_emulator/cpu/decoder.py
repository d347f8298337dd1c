"""
LC-3 Emulator — Instruction Decoder / Encoder

Maps 16-bit instruction words to typed Instruction objects and back.
The top four bits select one of 16 opcode groups, so `decode()` is total:
every word decodes to something. Opcode 0xD has no defined behaviour and
decodes to `Reserved`, carrying its low 12 bits verbatim.

Field layout (bit 15 = MSB):

  BR    0000 n z p  PCoffset9
  ADD   0001 DR SR1 0 00 SR2        / 0001 DR SR1 1 imm5
  LD    0010 DR  PCoffset9
  ST    0011 SR  PCoffset9
  JSR   0100 1 PCoffset11            / JSRR 0100 0 00 BaseR 000000
  AND   0101 DR SR1 0 00 SR2        / 0101 DR SR1 1 imm5
  LDR   0110 DR BaseR offset6
  STR   0111 SR BaseR offset6
  RTI   1000 000000000000
  NOT   1001 DR SR 111111
  LDI   1010 DR  PCoffset9
  STI   1011 SR  PCoffset9
  JMP   1100 000 BaseR 000000
  ---   1101 (reserved)
  LEA   1110 DR  PCoffset9
  TRAP  1111 0000 trapvect8

`encode(decode(w)) == w` holds for every word whose unused bits match
the encoder output above (the canonical form).
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Dict, Iterable

from .alu import sign_extend


class Opcode(IntEnum):
    BR = 0x0
    ADD = 0x1
    LD = 0x2
    ST = 0x3
    JSR = 0x4
    AND = 0x5
    LDR = 0x6
    STR = 0x7
    RTI = 0x8
    NOT = 0x9
    LDI = 0xA
    STI = 0xB
    JMP = 0xC
    RESERVED = 0xD
    LEA = 0xE
    TRAP = 0xF


# Mnemonics accepted for trace filtering. JSRR shares the JSR opcode.
MNEMONICS: Dict[str, Opcode] = {
    'BR':   Opcode.BR,
    'ADD':  Opcode.ADD,
    'LD':   Opcode.LD,
    'ST':   Opcode.ST,
    'JSR':  Opcode.JSR,
    'JSRR': Opcode.JSR,
    'AND':  Opcode.AND,
    'LDR':  Opcode.LDR,
    'STR':  Opcode.STR,
    'RTI':  Opcode.RTI,
    'NOT':  Opcode.NOT,
    'LDI':  Opcode.LDI,
    'STI':  Opcode.STI,
    'JMP':  Opcode.JMP,
    'LEA':  Opcode.LEA,
    'TRAP': Opcode.TRAP,
}


def opcode_of(word: int) -> Opcode:
    """Opcode nibble of an instruction word."""
    return Opcode((word >> 12) & 0xF)


def _dr(word: int) -> int:
    return (word >> 9) & 0x7


def _sr1(word: int) -> int:
    return (word >> 6) & 0x7


# ──────────────────────────────────────────────
# Instruction variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """Base class for a decoded instruction."""
    opcode: ClassVar[Opcode]

    @property
    def mnemonic(self) -> str:
        return self.opcode.name

    @property
    def branches(self) -> bool:
        """True for instructions that may redirect the PC."""
        return self.opcode in (Opcode.BR, Opcode.JSR, Opcode.JMP, Opcode.TRAP)

    @classmethod
    def from_word(cls, word: int) -> 'Instruction':
        raise NotImplementedError

    def encode(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class Branch(Instruction):
    opcode = Opcode.BR
    nzp: int
    offset: int

    @classmethod
    def from_word(cls, word):
        return cls(_dr(word), sign_extend(word, 9))

    def encode(self):
        return (self.nzp & 0x7) << 9 | (self.offset & 0x1FF)

    def __str__(self):
        flags = ''.join(c for c, bit in zip('nzp', (4, 2, 1)) if self.nzp & bit)
        return f"BR{flags} #{self.offset}"


@dataclass(frozen=True)
class _Operate(Instruction):
    """ADD/AND: DR <- SR1 op (imm5 if immediate else R[SR2])."""
    dr: int
    sr1: int
    immediate: bool
    operand: int

    @classmethod
    def from_word(cls, word):
        if word & 0x20:
            return cls(_dr(word), _sr1(word), True, sign_extend(word, 5))
        return cls(_dr(word), _sr1(word), False, word & 0x7)

    def encode(self):
        word = self.opcode << 12 | self.dr << 9 | self.sr1 << 6
        if self.immediate:
            return word | 0x20 | (self.operand & 0x1F)
        return word | (self.operand & 0x7)

    def __str__(self):
        src2 = f"#{self.operand}" if self.immediate else f"R{self.operand}"
        return f"{self.mnemonic} R{self.dr}, R{self.sr1}, {src2}"


@dataclass(frozen=True)
class Add(_Operate):
    opcode = Opcode.ADD


@dataclass(frozen=True)
class And(_Operate):
    opcode = Opcode.AND


@dataclass(frozen=True)
class _PCRelative(Instruction):
    """LD/ST/LDI/STI/LEA: one register and a 9-bit PC offset."""
    reg: int
    offset: int

    @classmethod
    def from_word(cls, word):
        return cls(_dr(word), sign_extend(word, 9))

    def encode(self):
        return self.opcode << 12 | self.reg << 9 | (self.offset & 0x1FF)

    def __str__(self):
        return f"{self.mnemonic} R{self.reg}, #{self.offset}"


@dataclass(frozen=True)
class Load(_PCRelative):
    opcode = Opcode.LD


@dataclass(frozen=True)
class Store(_PCRelative):
    opcode = Opcode.ST


@dataclass(frozen=True)
class LoadIndirect(_PCRelative):
    opcode = Opcode.LDI


@dataclass(frozen=True)
class StoreIndirect(_PCRelative):
    opcode = Opcode.STI


@dataclass(frozen=True)
class LoadEffectiveAddress(_PCRelative):
    opcode = Opcode.LEA


@dataclass(frozen=True)
class JumpSubroutine(Instruction):
    """JSR (pc_relative, operand = PCoffset11) or JSRR (operand = BaseR)."""
    opcode = Opcode.JSR
    pc_relative: bool
    operand: int

    @classmethod
    def from_word(cls, word):
        if word & 0x0800:
            return cls(True, sign_extend(word, 11))
        return cls(False, _sr1(word))

    def encode(self):
        if self.pc_relative:
            return 0x4800 | (self.operand & 0x7FF)
        return 0x4000 | (self.operand & 0x7) << 6

    @property
    def mnemonic(self):
        return 'JSR' if self.pc_relative else 'JSRR'

    def __str__(self):
        if self.pc_relative:
            return f"JSR #{self.operand}"
        return f"JSRR R{self.operand}"


@dataclass(frozen=True)
class _BaseOffset(Instruction):
    """LDR/STR: register, base register and a 6-bit offset."""
    reg: int
    base: int
    offset: int

    @classmethod
    def from_word(cls, word):
        return cls(_dr(word), _sr1(word), sign_extend(word, 6))

    def encode(self):
        return (self.opcode << 12 | self.reg << 9 | self.base << 6
                | (self.offset & 0x3F))

    def __str__(self):
        return f"{self.mnemonic} R{self.reg}, R{self.base}, #{self.offset}"


@dataclass(frozen=True)
class LoadRelative(_BaseOffset):
    opcode = Opcode.LDR


@dataclass(frozen=True)
class StoreRelative(_BaseOffset):
    opcode = Opcode.STR


@dataclass(frozen=True)
class Not(Instruction):
    opcode = Opcode.NOT
    dr: int
    sr: int

    @classmethod
    def from_word(cls, word):
        return cls(_dr(word), _sr1(word))

    def encode(self):
        return 0x9000 | self.dr << 9 | self.sr << 6 | 0x3F

    def __str__(self):
        return f"NOT R{self.dr}, R{self.sr}"


@dataclass(frozen=True)
class Jump(Instruction):
    opcode = Opcode.JMP
    base: int

    @classmethod
    def from_word(cls, word):
        return cls(_sr1(word))

    def encode(self):
        return 0xC000 | (self.base & 0x7) << 6

    @property
    def mnemonic(self):
        return 'RET' if self.base == 7 else 'JMP'

    def __str__(self):
        return 'RET' if self.base == 7 else f"JMP R{self.base}"


@dataclass(frozen=True)
class Trap(Instruction):
    opcode = Opcode.TRAP
    vector: int

    @classmethod
    def from_word(cls, word):
        return cls(word & 0xFF)

    def encode(self):
        return 0xF000 | (self.vector & 0xFF)

    def __str__(self):
        return f"TRAP x{self.vector:02X}"


@dataclass(frozen=True)
class _Unused(Instruction):
    """RTI and the reserved opcode: no-ops that keep their low 12 bits."""
    bits: int = 0

    @classmethod
    def from_word(cls, word):
        return cls(word & 0x0FFF)

    def encode(self):
        return self.opcode << 12 | (self.bits & 0x0FFF)

    def __str__(self):
        return f"{self.mnemonic} x{self.bits:03X}"


@dataclass(frozen=True)
class ReturnFromInterrupt(_Unused):
    opcode = Opcode.RTI


@dataclass(frozen=True)
class Reserved(_Unused):
    opcode = Opcode.RESERVED


# ──────────────────────────────────────────────
# Main opcode table: one entry per opcode nibble
# ──────────────────────────────────────────────

OPCODES: Dict[Opcode, type] = {
    Opcode.BR:       Branch,
    Opcode.ADD:      Add,
    Opcode.LD:       Load,
    Opcode.ST:       Store,
    Opcode.JSR:      JumpSubroutine,
    Opcode.AND:      And,
    Opcode.LDR:      LoadRelative,
    Opcode.STR:      StoreRelative,
    Opcode.RTI:      ReturnFromInterrupt,
    Opcode.NOT:      Not,
    Opcode.LDI:      LoadIndirect,
    Opcode.STI:      StoreIndirect,
    Opcode.JMP:      Jump,
    Opcode.RESERVED: Reserved,
    Opcode.LEA:      LoadEffectiveAddress,
    Opcode.TRAP:     Trap,
}


def decode(word: int) -> Instruction:
    """Decode a 16-bit word. Never fails."""
    word &= 0xFFFF
    return OPCODES[opcode_of(word)].from_word(word)


def encode(instruction: Instruction) -> int:
    """Encode an instruction back to its canonical 16-bit word."""
    return instruction.encode() & 0xFFFF


def disassemble(words: Iterable[int], origin: int = 0x3000) -> str:
    """Render a block of words as `addr: word  text` lines."""
    lines = []
    for i, word in enumerate(words):
        addr = (origin + i) & 0xFFFF
        lines.append(f"x{addr:04X}: {word & 0xFFFF:04X}  {decode(word)}")
    return '\n'.join(lines)
