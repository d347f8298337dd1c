"""
LC-3 Emulator — CPU Register Set + Condition Code

Register model:
  R0–R7  eight 16-bit general purpose registers
  PC     16-bit program counter (incremented on fetch)
  IR     16-bit instruction register (last fetched word)
  CC     condition code, exactly one of N, Z, P

The CC bit values line up with the n/z/p mask of a BR instruction
(bits 11–9 shifted down), so a branch is taken when `mask & CC` is
non-zero.

R7 doubles as the link register for JSR/JSRR/TRAP; those writes go
through `link()` and leave CC alone.
"""

# CC bit masks
CC_N = 0x4
CC_Z = 0x2
CC_P = 0x1

CC_NAMES = {CC_N: 'N', CC_Z: 'Z', CC_P: 'P'}

NUM_REGISTERS = 8
LINK_REGISTER = 7


def condition_for(value: int) -> int:
    """Condition code produced by writing `value` to a register.

    Z iff value == 0, N iff bit 15 is set, P otherwise.
    """
    value &= 0xFFFF
    if value == 0:
        return CC_Z
    if value & 0x8000:
        return CC_N
    return CC_P


class Registers:
    """LC-3 register file."""

    __slots__ = ('R', 'PC', 'IR', 'CC')

    def __init__(self):
        self.R: list = [0] * NUM_REGISTERS
        self.PC: int = 0
        self.IR: int = 0
        self.CC: int = CC_Z

    # --- Register access ---

    def read(self, index: int) -> int:
        return self.R[index & 0x7]

    def write(self, index: int, value: int):
        """Write a general purpose register and update CC from the value.

        This is the only path ADD/AND/NOT/LD/LDI/LDR/LEA use to store a
        result.
        """
        value &= 0xFFFF
        self.R[index & 0x7] = value
        self.CC = condition_for(value)

    def link(self, return_address: int):
        """Save a return address in R7 (JSR, JSRR, TRAP). CC is unchanged."""
        self.R[LINK_REGISTER] = return_address & 0xFFFF

    # --- Condition code access ---

    @property
    def negative(self) -> bool:
        return self.CC == CC_N

    @property
    def zero(self) -> bool:
        return self.CC == CC_Z

    @property
    def positive(self) -> bool:
        return self.CC == CC_P

    @property
    def cc_name(self) -> str:
        return CC_NAMES[self.CC]

    # --- Display ---

    def display(self) -> str:
        """One-line register dump, also used as the trace snapshot."""
        gprs = ' '.join(f"R{i}={v:04X}" for i, v in enumerate(self.R))
        return f"IR={self.IR:04X} PC={self.PC:04X} {gprs} CC={self.cc_name}"

    def reset(self):
        """Reset CPU to power-on state."""
        self.R = [0] * NUM_REGISTERS
        self.PC = 0
        self.IR = 0
        self.CC = CC_Z
