"""
LC-3 Virtual Machine - CPU Register Set + Condition Flags

Register model:
  R0-R7  16-bit general purpose (R7 = return address after JSR/JSRR)
  PC     16-bit program counter
  COND   condition flags, exactly one of:
           bit 2: N (negative - bit 15 of the last defined register)
           bit 1: Z (zero)
           bit 0: P (positive)
"""

from ..config import PC_START, WORD_MASK

# Register indices (R_PC / R_COND follow the eight general registers)
R_R0 = 0
R_R1 = 1
R_R2 = 2
R_R3 = 3
R_R4 = 4
R_R5 = 5
R_R6 = 6
R_R7 = 7
R_PC = 8
R_COND = 9
R_COUNT = 10

# Condition flag bits
FL_POS = 0x01
FL_ZRO = 0x02
FL_NEG = 0x04


def sign_extend(x: int, bit_count: int) -> int:
    """Widen a bit_count-wide two's-complement field to 16 bits."""
    x &= (1 << bit_count) - 1
    if (x >> (bit_count - 1)) & 1:
        x |= (WORD_MASK << bit_count)
    return x & WORD_MASK


def flags_for(value: int) -> int:
    """Condition flag a register holding value would produce."""
    value &= WORD_MASK
    if value == 0:
        return FL_ZRO
    if value >> 15:
        return FL_NEG
    return FL_POS


class Registers:
    """LC-3 register file."""

    __slots__ = ('R', 'PC', 'COND')

    def __init__(self, pc_start: int = PC_START):
        self.R = [0] * 8
        self.PC: int = pc_start & WORD_MASK
        self.COND: int = FL_ZRO

    # --- Indexed access (R_PC / R_COND included) ---

    def __getitem__(self, index: int) -> int:
        if index == R_PC:
            return self.PC
        if index == R_COND:
            return self.COND
        return self.R[index]

    def __setitem__(self, index: int, value: int):
        value &= WORD_MASK
        if index == R_PC:
            self.PC = value
        elif index == R_COND:
            self.COND = value
        else:
            self.R[index] = value

    # --- Flags ---

    def update_flags(self, r: int):
        """Set COND from the value now held in general register r."""
        self.COND = flags_for(self.R[r])

    @property
    def positive(self) -> bool:
        return bool(self.COND & FL_POS)

    @property
    def zero(self) -> bool:
        return bool(self.COND & FL_ZRO)

    @property
    def negative(self) -> bool:
        return bool(self.COND & FL_NEG)

    # --- Display ---

    def display(self) -> str:
        """One-line register dump."""
        flags = ''.join(c if self.COND & bit else '.'
                        for c, bit in (('N', FL_NEG), ('Z', FL_ZRO), ('P', FL_POS)))
        gprs = ' '.join(f"R{i}={v:04X}" for i, v in enumerate(self.R))
        return f"PC={self.PC:04X} {gprs} COND=[{flags}]"

    def snapshot(self) -> tuple:
        return (tuple(self.R), self.PC, self.COND)

    def reset(self, pc_start: int = PC_START):
        """Power-on state: registers zero, Z set, PC at the start address."""
        self.R = [0] * 8
        self.PC = pc_start & WORD_MASK
        self.COND = FL_ZRO
