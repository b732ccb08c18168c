"""
LC-3 Virtual Machine - Opcode Handlers

Handler signature: handler(machine, instr)
  machine  the emulator (uses machine.regs, machine.mem, machine.diagnostics,
           machine.config)
  instr    decoder.Instruction for the fetched word

PC has already been advanced past the instruction when a handler runs,
so every PC-relative address is relative to the following word.
All address and value arithmetic wraps to 16 bits.
"""

from ..config import WORD_MASK
from ..diagnostics import DiagnosticKind
from .decoder import IllegalOpcode, OPCODES
from .regs import R_R7


# ── Operate ──

def op_add(machine, instr):
    regs = machine.regs
    if instr.imm_flag:
        operand = instr.imm5
    else:
        operand = regs.R[instr.sr2]
    regs.R[instr.dr] = (regs.R[instr.sr1] + operand) & WORD_MASK
    regs.update_flags(instr.dr)


def op_and(machine, instr):
    regs = machine.regs
    if instr.imm_flag:
        operand = instr.imm5
    else:
        operand = regs.R[instr.sr2]
    regs.R[instr.dr] = regs.R[instr.sr1] & operand
    regs.update_flags(instr.dr)


def op_not(machine, instr):
    regs = machine.regs
    regs.R[instr.dr] = ~regs.R[instr.sr1] & WORD_MASK
    regs.update_flags(instr.dr)


# ── Control transfer ──

def op_br(machine, instr):
    regs = machine.regs
    if instr.cond_mask & regs.COND:
        regs.PC = (regs.PC + instr.pc_offset9) & WORD_MASK


def op_jmp(machine, instr):
    """JMP BaseR; RET is JMP R7."""
    regs = machine.regs
    regs.PC = regs.R[instr.base_r]


def op_jsr(machine, instr):
    """JSR PCoffset11 / JSRR BaseR.

    R7 gets the return address first; JSRR then reads BaseR, so
    JSRR R7 continues at the next instruction.
    """
    regs = machine.regs
    regs.R[R_R7] = regs.PC
    if instr.long_flag:
        regs.PC = (regs.PC + instr.pc_offset11) & WORD_MASK
    else:
        regs.PC = regs.R[instr.base_r]


# ── Loads ──

def op_ld(machine, instr):
    regs = machine.regs
    regs.R[instr.dr] = machine.mem.read((regs.PC + instr.pc_offset9) & WORD_MASK)
    regs.update_flags(instr.dr)


def op_ldi(machine, instr):
    regs, mem = machine.regs, machine.mem
    pointer = mem.read((regs.PC + instr.pc_offset9) & WORD_MASK)
    regs.R[instr.dr] = mem.read(pointer)
    regs.update_flags(instr.dr)


def op_ldr(machine, instr):
    regs = machine.regs
    addr = (regs.R[instr.base_r] + instr.offset6) & WORD_MASK
    regs.R[instr.dr] = machine.mem.read(addr)
    regs.update_flags(instr.dr)


def op_lea(machine, instr):
    """Load effective address: the computed address itself, no memory read."""
    regs = machine.regs
    regs.R[instr.dr] = (regs.PC + instr.pc_offset9) & WORD_MASK
    regs.update_flags(instr.dr)


# ── Stores ──

def op_st(machine, instr):
    regs = machine.regs
    machine.mem.write((regs.PC + instr.pc_offset9) & WORD_MASK, regs.R[instr.sr])


def op_sti(machine, instr):
    regs, mem = machine.regs, machine.mem
    pointer = mem.read((regs.PC + instr.pc_offset9) & WORD_MASK)
    mem.write(pointer, regs.R[instr.sr])


def op_str(machine, instr):
    regs = machine.regs
    addr = (regs.R[instr.base_r] + instr.offset6) & WORD_MASK
    machine.mem.write(addr, regs.R[instr.sr])


# ── Reserved (RTI, 1101) ──

def op_reserved(machine, instr):
    """No-op. Recorded as a diagnostic; raises IllegalOpcode in strict mode."""
    address = (machine.regs.PC - 1) & WORD_MASK
    machine.diagnostics.record(
        DiagnosticKind.ILLEGAL_OPCODE,
        f"reserved opcode {OPCODES[instr.opcode]} ({instr.raw:#06x}) ignored",
        address=address, opcode=instr.opcode, word=instr.raw,
    )
    if machine.config.strict:
        raise IllegalOpcode(instr.opcode, address)
