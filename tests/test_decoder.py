"""
LC-3 Emulator — Decoder / Encoder Tests

Covers decode totality, canonical round-trips, sign extension of the
5/6/9/11-bit fields and the operand fields of each opcode group.
Expected words are hand-assembled from the LC-3 ISA field layout.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from lc3_emulator.cpu.alu import sign_extend
from lc3_emulator.cpu.decoder import (
    Add, And, Branch, Jump, JumpSubroutine, Load, LoadEffectiveAddress,
    LoadIndirect, LoadRelative, Not, Opcode, Reserved, ReturnFromInterrupt,
    Store, StoreIndirect, StoreRelative, Trap, decode, disassemble, encode,
    opcode_of,
)


# Opcodes where every one of the 16 bits is meaningful, so any word is canonical
FULLY_SPECIFIED = {
    Opcode.BR, Opcode.LD, Opcode.ST, Opcode.LDR, Opcode.STR, Opcode.RTI,
    Opcode.LDI, Opcode.STI, Opcode.RESERVED, Opcode.LEA,
}


class TestSignExtension:

    @pytest.mark.parametrize("value, bits, expected", [
        (0x1FF, 9, -1),
        (0x100, 9, -256),
        (0x0FF, 9, 255),
        (0x10, 5, -16),
        (0x0F, 5, 15),
        (0x1F, 5, -1),
        (0x20, 6, -32),
        (0x3F, 6, -1),
        (0x400, 11, -1024),
        (0x3FF, 11, 1023),
    ])
    def test_examples(self, value, bits, expected):
        assert sign_extend(value, bits) == expected

    @pytest.mark.parametrize("bits", [5, 6, 9, 11])
    def test_matches_twos_complement(self, bits):
        """Every field value equals its w-bit two's-complement reading."""
        for value in range(1 << bits):
            expected = value - (1 << bits) if value >= (1 << (bits - 1)) else value
            assert sign_extend(value, bits) == expected

    def test_ignores_bits_above_field(self):
        assert sign_extend(0xFE1F, 5) == -1
        assert sign_extend(0xFE0F, 5) == 15


class TestDecodeTotality:

    def test_every_word_decodes(self):
        for word in range(0x10000):
            instr = decode(word)
            assert instr.opcode == opcode_of(word)

    def test_fully_specified_opcodes_round_trip(self):
        """Opcodes with no unused bits: encode(decode(w)) == w for all w."""
        for word in range(0x10000):
            if opcode_of(word) in FULLY_SPECIFIED:
                assert encode(decode(word)) == word, hex(word)

    def test_canonical_form_is_stable(self):
        """Decoding the encoder output gives the same instruction back."""
        for word in range(0x10000):
            instr = decode(word)
            assert decode(encode(instr)) == instr, hex(word)

    @pytest.mark.parametrize("word", [
        0x1025,  # ADD R0, R0, #5
        0x1642,  # ADD R3, R1, R2
        0x5020,  # AND R0, R0, #0
        0x5642,  # AND R3, R1, R2
        0x4810,  # JSR #16
        0x4080,  # JSRR R2
        0x947F,  # NOT R2, R1
        0xC1C0,  # RET
        0xC080,  # JMP R2
        0xF025,  # TRAP x25
        0x8000,  # RTI
    ])
    def test_canonical_words_round_trip(self, word):
        assert encode(decode(word)) == word


class TestDecodeFields:

    def test_branch(self):
        instr = decode(0x0FFB)  # BRnzp #-5
        assert instr == Branch(nzp=0b111, offset=-5)

    def test_branch_single_flag(self):
        assert decode(0x0403) == Branch(nzp=0b010, offset=3)

    def test_add_immediate(self):
        assert decode(0x1025) == Add(dr=0, sr1=0, immediate=True, operand=5)

    def test_add_negative_immediate(self):
        assert decode(0x103F) == Add(dr=0, sr1=0, immediate=True, operand=-1)

    def test_add_register(self):
        assert decode(0x1642) == Add(dr=3, sr1=1, immediate=False, operand=2)

    def test_and_immediate(self):
        assert decode(0x5020) == And(dr=0, sr1=0, immediate=True, operand=0)

    def test_bit5_selects_mode(self):
        assert decode(0x1042).immediate is False
        assert decode(0x1062).immediate is True

    def test_pc_relative_group(self):
        assert decode(0x2001) == Load(reg=0, offset=1)
        assert decode(0x3001) == Store(reg=0, offset=1)
        assert decode(0xA004) == LoadIndirect(reg=0, offset=4)
        assert decode(0xB003) == StoreIndirect(reg=0, offset=3)
        assert decode(0xE3FF) == LoadEffectiveAddress(reg=1, offset=-1)

    def test_base_offset_group(self):
        assert decode(0x647F) == LoadRelative(reg=2, base=1, offset=-1)
        assert decode(0x7A9F) == StoreRelative(reg=5, base=2, offset=31)

    def test_jsr_pc_relative(self):
        instr = decode(0x4FFF)
        assert instr == JumpSubroutine(pc_relative=True, operand=-1)
        assert instr.mnemonic == 'JSR'

    def test_jsrr(self):
        instr = decode(0x4080)
        assert instr == JumpSubroutine(pc_relative=False, operand=2)
        assert instr.mnemonic == 'JSRR'

    def test_not(self):
        assert decode(0x947F) == Not(dr=2, sr=1)

    def test_jmp_and_ret(self):
        assert decode(0xC080) == Jump(base=2)
        assert decode(0xC1C0).mnemonic == 'RET'

    def test_trap(self):
        assert decode(0xF025) == Trap(vector=0x25)

    def test_rti_keeps_low_bits(self):
        assert decode(0x8ABC) == ReturnFromInterrupt(bits=0xABC)

    def test_reserved_opcode(self):
        """Opcode 1101 is not an error, it decodes to Reserved."""
        instr = decode(0xD123)
        assert isinstance(instr, Reserved)
        assert instr.bits == 0x123
        assert encode(instr) == 0xD123


class TestInstructionProperties:

    @pytest.mark.parametrize("word, branches", [
        (0x0FFB, True),   # BR
        (0x4810, True),   # JSR
        (0xC1C0, True),   # RET
        (0xF025, True),   # TRAP
        (0x1025, False),  # ADD
        (0x2001, False),  # LD
        (0x8000, False),  # RTI
    ])
    def test_branches(self, word, branches):
        assert decode(word).branches is branches

    def test_instructions_are_immutable(self):
        instr = decode(0x1025)
        with pytest.raises(Exception):
            instr.dr = 3

    def test_text(self):
        assert str(decode(0x1025)) == "ADD R0, R0, #5"
        assert str(decode(0x5642)) == "AND R3, R1, R2"
        assert str(decode(0x0E02)) == "BRnzp #2"
        assert str(decode(0x647F)) == "LDR R2, R1, #-1"
        assert str(decode(0xF025)) == "TRAP x25"

    def test_disassemble(self):
        text = disassemble([0x5020, 0xF025], origin=0x3000)
        assert text.splitlines() == [
            "x3000: 5020  AND R0, R0, #0",
            "x3001: F025  TRAP x25",
        ]
