"""
LC-3 Virtual Machine - Instruction Decoder

Every instruction is one 16-bit word; the opcode is bits 15-12 and the
rest are operand fields at fixed positions:

  15..12  11..9   8..6    5     4..0
  opcode  DR/SR   SR1     imm   imm5 / (2..0 = SR2)        ADD AND
  opcode  DR      SR      111111                           NOT
  opcode  n z p   PCoffset9                                BR
  opcode  DR/SR   PCoffset9                                LD LDI LEA ST STI
  opcode  DR/SR   BaseR   offset6                          LDR STR
  opcode  000     BaseR   000000                           JMP
  opcode  1  PCoffset11                                    JSR
  opcode  0  00   BaseR   000000                           JSRR
  opcode  0000    trapvect8                                TRAP

RTI (1000) and the reserved opcode (1101) have no behaviour in this
machine.
"""

from ..diagnostics import LC3Error
from .regs import sign_extend

# ──────────────────────────────────────────────
# Opcodes
# ──────────────────────────────────────────────

OP_BR   = 0x0
OP_ADD  = 0x1
OP_LD   = 0x2
OP_ST   = 0x3
OP_JSR  = 0x4
OP_AND  = 0x5
OP_LDR  = 0x6
OP_STR  = 0x7
OP_RTI  = 0x8
OP_NOT  = 0x9
OP_LDI  = 0xA
OP_STI  = 0xB
OP_JMP  = 0xC
OP_RES  = 0xD
OP_LEA  = 0xE
OP_TRAP = 0xF

OPCODES = {
    OP_BR:   'BR',
    OP_ADD:  'ADD',
    OP_LD:   'LD',
    OP_ST:   'ST',
    OP_JSR:  'JSR',
    OP_AND:  'AND',
    OP_LDR:  'LDR',
    OP_STR:  'STR',
    OP_RTI:  'RTI',
    OP_NOT:  'NOT',
    OP_LDI:  'LDI',
    OP_STI:  'STI',
    OP_JMP:  'JMP',
    OP_RES:  'RES',
    OP_LEA:  'LEA',
    OP_TRAP: 'TRAP',
}


class IllegalOpcode(LC3Error):
    """Reserved opcode executed while the emulator runs in strict mode."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(
            f"Illegal opcode {OPCODES.get(opcode, '?')} ({opcode:#x}) at x{address:04X}")


class Instruction:
    """Decoded view of one instruction word.

    Fields are computed on access; handlers only touch the ones their
    format defines.
    """

    __slots__ = ('raw',)

    def __init__(self, raw: int):
        self.raw = raw & 0xFFFF

    @property
    def opcode(self) -> int:
        return self.raw >> 12

    @property
    def mnemonic(self) -> str:
        if self.opcode == OP_JSR and not self.long_flag:
            return 'JSRR'
        return OPCODES[self.opcode]

    # --- Register fields ---

    @property
    def dr(self) -> int:
        """Destination (or store source) register, bits 11-9."""
        return (self.raw >> 9) & 0x7

    sr = dr

    @property
    def sr1(self) -> int:
        """First source / base register, bits 8-6."""
        return (self.raw >> 6) & 0x7

    base_r = sr1

    @property
    def sr2(self) -> int:
        return self.raw & 0x7

    # --- Flag fields ---

    @property
    def imm_flag(self) -> bool:
        return bool((self.raw >> 5) & 0x1)

    @property
    def long_flag(self) -> bool:
        return bool((self.raw >> 11) & 0x1)

    @property
    def cond_mask(self) -> int:
        """n z p branch mask, bits 11-9 (same bit order as COND)."""
        return (self.raw >> 9) & 0x7

    # --- Immediates / offsets (already sign-extended) ---

    @property
    def imm5(self) -> int:
        return sign_extend(self.raw & 0x1F, 5)

    @property
    def offset6(self) -> int:
        return sign_extend(self.raw & 0x3F, 6)

    @property
    def pc_offset9(self) -> int:
        return sign_extend(self.raw & 0x1FF, 9)

    @property
    def pc_offset11(self) -> int:
        return sign_extend(self.raw & 0x7FF, 11)

    @property
    def trapvect8(self) -> int:
        return self.raw & 0xFF

    def __repr__(self):
        return f"Instruction({self.raw:#06x} {self.mnemonic})"


def decode(word: int) -> Instruction:
    """Decode one fetched word."""
    return Instruction(word)
