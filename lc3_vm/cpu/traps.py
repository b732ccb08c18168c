"""
LC-3 Virtual Machine - Trap Routines

TRAP trapvect8 vectors into a fixed routine table instead of the
operating-system code at the addresses in the trap vector table:

  x20 GETC   placeholder
  x21 OUT    placeholder
  x22 PUTS   write the zero-terminated string at R0, then flush
  x23 IN     placeholder
  x24 PUTSP  placeholder
  x25 HALT   stop the machine

Placeholders do nothing besides recording an UNIMPLEMENTED_TRAP
diagnostic. Vectors missing from the table record UNKNOWN_TRAP.
In strict mode both raise UnimplementedTrap.
"""

from ..config import WORD_MASK
from ..diagnostics import DiagnosticKind, LC3Error
from .regs import R_R0

TRAP_GETC  = 0x20
TRAP_OUT   = 0x21
TRAP_PUTS  = 0x22
TRAP_IN    = 0x23
TRAP_PUTSP = 0x24
TRAP_HALT  = 0x25

TRAP_NAMES = {
    TRAP_GETC:  'GETC',
    TRAP_OUT:   'OUT',
    TRAP_PUTS:  'PUTS',
    TRAP_IN:    'IN',
    TRAP_PUTSP: 'PUTSP',
    TRAP_HALT:  'HALT',
}


class UnimplementedTrap(LC3Error):
    """Placeholder or unknown trap executed while running in strict mode."""

    def __init__(self, vector: int, address: int):
        self.vector = vector
        self.address = address
        name = TRAP_NAMES.get(vector, 'unknown')
        super().__init__(f"Trap x{vector:02X} ({name}) not implemented at x{address:04X}")


def trap_puts(machine, instr):
    """Write one character per word (low byte) from mem[R0] up to a zero word."""
    mem, console = machine.mem, machine.console
    addr = machine.regs.R[R_R0]
    word = mem.peek(addr)
    while word:
        console.write_char(chr(word & 0xFF))
        addr = (addr + 1) & WORD_MASK
        word = mem.peek(addr)
    console.flush()


def trap_halt(machine, instr):
    machine.halt()


def trap_unimplemented(machine, instr):
    _report(machine, instr, DiagnosticKind.UNIMPLEMENTED_TRAP,
            f"trap {TRAP_NAMES[instr.trapvect8]} is not implemented")


TRAP_TABLE = {
    TRAP_GETC:  trap_unimplemented,
    TRAP_OUT:   trap_unimplemented,
    TRAP_PUTS:  trap_puts,
    TRAP_IN:    trap_unimplemented,
    TRAP_PUTSP: trap_unimplemented,
    TRAP_HALT:  trap_halt,
}


def op_trap(machine, instr):
    """TRAP handler: route trapvect8 through TRAP_TABLE."""
    routine = TRAP_TABLE.get(instr.trapvect8)
    if routine is None:
        _report(machine, instr, DiagnosticKind.UNKNOWN_TRAP,
                f"unknown trap vector x{instr.trapvect8:02X}")
        return
    routine(machine, instr)


def _report(machine, instr, kind, message):
    address = (machine.regs.PC - 1) & WORD_MASK
    machine.diagnostics.record(kind, message, address=address,
                               vector=instr.trapvect8)
    if machine.config.strict:
        raise UnimplementedTrap(instr.trapvect8, address)
