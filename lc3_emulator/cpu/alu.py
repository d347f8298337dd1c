"""
LC-3 Emulator — ALU Operations

Pure 16-bit arithmetic helpers used by the instruction handlers in emu.py.
Every value passed around the CPU is an unsigned int in 0x0000–0xFFFF;
signed interpretation only happens inside these functions.

  ADD   wrapping two's-complement addition
  AND   bitwise AND on the 16-bit pattern
  NOT   bitwise complement
"""

WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000


# ══════════════════════════════════════════════
# Field helpers
# ══════════════════════════════════════════════

def sign_extend(value: int, bits: int) -> int:
    """Sign-extend the low `bits` of value to a Python int.

    The field's top bit is the sign bit:
        sign_extend(0x1FF, 9) == -1
        sign_extend(0x100, 9) == -256
        sign_extend(0x0FF, 9) == 255
    """
    value &= (1 << bits) - 1
    sign = 1 << (bits - 1)
    return (value ^ sign) - sign


def offset_address(base: int, offset: int) -> int:
    """base + signed offset, wrapped into the 16-bit address space."""
    return (base + offset) & WORD_MASK


# ══════════════════════════════════════════════
# 16-bit ALU functions, returning the result word
# ══════════════════════════════════════════════

def add16(a: int, b: int) -> int:
    """Wrapping two's-complement add. b may be a negative immediate."""
    return (a + b) & WORD_MASK


def and16(a: int, b: int) -> int:
    """Bitwise AND. A negative immediate is masked to its 16-bit pattern first."""
    return (a & WORD_MASK) & (b & WORD_MASK)


def not16(a: int) -> int:
    return ~a & WORD_MASK
