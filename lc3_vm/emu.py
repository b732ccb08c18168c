"""
LC-3 Virtual Machine - Main Emulator Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Memory + image loader (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - Opcode handlers (cpu/ops.py) and trap routines (cpu/traps.py)
  - Console output (periph/console.py)
  - Diagnostics (diagnostics.py)

Execution model, one instruction per step():
  1. Fetch the word at PC
  2. Advance PC by one (wrapping)
  3. Decode: opcode = bits 15-12
  4. Dispatch to the handler -> update registers, memory, flags
  5. HALT clears the running flag; the host stops stepping

Stop reasons:
  - HALT:     HALT trap executed
  - ILLEGAL:  reserved opcode / unimplemented trap in strict mode
  - TIMEOUT:  run() step budget exhausted
"""

import logging
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Optional, TextIO, Union

from .config import EmulatorConfig, KBSR_READY, MR_KBDR, MR_KBSR, WORD_MASK
from .cpu import ops
from .cpu.decoder import (
    decode, IllegalOpcode,
    OP_BR, OP_ADD, OP_LD, OP_ST, OP_JSR, OP_AND, OP_LDR, OP_STR,
    OP_RTI, OP_NOT, OP_LDI, OP_STI, OP_JMP, OP_RES, OP_LEA, OP_TRAP,
)
from .cpu.regs import Registers
from .cpu.traps import UnimplementedTrap, op_trap
from .diagnostics import Diagnostics
from .mem.memory import ImageLoadResult, Memory
from .periph.console import ConsoleOutput

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    ILLEGAL = 'ILLEGAL'
    TIMEOUT = 'TIMEOUT'


class LC3Emulator:
    """LC-3 virtual machine.

    Usage:
        emu = LC3Emulator()
        if not emu.load_image('hello.obj'):
            ...
        while emu.is_running():
            emu.step()
        print(emu.console.output)
    """

    def __init__(self, config: Optional[EmulatorConfig] = None,
                 console: Optional[ConsoleOutput] = None):
        self.config = config if config is not None else EmulatorConfig()
        self.diagnostics = Diagnostics(history=self.config.event_history)
        self.regs = Registers(self.config.pc_start)
        self.mem = Memory(self.diagnostics)
        self.console = console if console is not None else ConsoleOutput()

        self.running = True
        self.stop_reason: Optional[StopReason] = None
        self.steps = 0

        self._trace = self.config.trace
        self._trace_output: deque = deque(maxlen=self.config.trace_history)
        self._trace_stream: Optional[TextIO] = None

        # Instruction dispatch table: opcode -> handler(machine, instr)
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Lifecycle / loading
    # ══════════════════════════════════════════════

    def init(self):
        """Power-on state: memory zeroed, COND=Z, PC at the start address, running.

        Captured console output and diagnostics are cleared too.
        """
        self.mem.clear()
        self.console.reset()
        self.diagnostics.clear()
        self.regs.reset(self.config.pc_start)
        self.running = True
        self.stop_reason = None
        self.steps = 0

    def load_image(self, path: Union[str, Path]) -> ImageLoadResult:
        """Load an image file into memory. The result is falsy if it cannot be opened."""
        return self.mem.load_image(path)

    def load_image_bytes(self, data: bytes) -> ImageLoadResult:
        return self.mem.load_image_bytes(data)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def is_running(self) -> bool:
        return self.running

    def halt(self, reason: StopReason = StopReason.HALT):
        """Clear the running flag. Used by the HALT trap."""
        if self.running:
            log.info("Machine stopped (%s) at x%04X after %d step(s)",
                     reason.value, (self.regs.PC - 1) & WORD_MASK, self.steps + 1)
        self.running = False
        self.stop_reason = reason

    def step(self) -> Optional[StopReason]:
        """Execute one instruction if running.

        Returns None while the machine keeps running, otherwise the
        reason it stopped. Calling step() on a stopped machine changes
        nothing and returns the same reason again.
        """
        if not self.running:
            return self.stop_reason

        regs = self.regs
        pc = regs.PC
        instr = decode(self.mem.read(pc))
        regs.PC = (pc + 1) & WORD_MASK

        try:
            self._dispatch[instr.opcode](self, instr)
        except (IllegalOpcode, UnimplementedTrap) as e:
            log.error("%s", e)
            self.halt(StopReason.ILLEGAL)

        self.steps += 1

        if self._trace:
            line = f"x{pc:04X}: {instr.raw:04X} {instr.mnemonic:5s} {regs.display()}"
            self._trace_output.append(line)
            if self._trace_stream is not None:
                print(line, file=self._trace_stream)
            log.debug("%s", line)

        return None if self.running else self.stop_reason

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Step until the machine stops or the step budget runs out."""
        if max_steps is None:
            max_steps = self.config.step_budget

        for _ in range(max_steps):
            reason = self.step()
            if reason is not None:
                return reason

        if not self.running:
            return self.stop_reason
        log.warning("Step budget of %d exhausted at x%04X", max_steps, self.regs.PC)
        return StopReason.TIMEOUT

    # ══════════════════════════════════════════════
    # Keyboard input (memory-mapped)
    # ══════════════════════════════════════════════

    def press_key(self, char: str):
        """Post a key: KBDR = character code, KBSR ready bit set.

        The program sees it through one read of KBSR, which then clears.
        """
        self.mem.write(MR_KBDR, ord(char) & 0xFF)
        self.mem.write(MR_KBSR, KBSR_READY)

    # ══════════════════════════════════════════════
    # Dispatch table
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        return {
            OP_BR:   ops.op_br,
            OP_ADD:  ops.op_add,
            OP_LD:   ops.op_ld,
            OP_ST:   ops.op_st,
            OP_JSR:  ops.op_jsr,
            OP_AND:  ops.op_and,
            OP_LDR:  ops.op_ldr,
            OP_STR:  ops.op_str,
            OP_RTI:  ops.op_reserved,
            OP_NOT:  ops.op_not,
            OP_LDI:  ops.op_ldi,
            OP_STI:  ops.op_sti,
            OP_JMP:  ops.op_jmp,
            OP_RES:  ops.op_reserved,
            OP_LEA:  ops.op_lea,
            OP_TRAP: op_trap,
        }

    # ══════════════════════════════════════════════
    # Trace
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True, stream: Optional[TextIO] = None):
        """Record one line per executed instruction.

        The last trace_history lines are kept for get_trace(); with a
        stream, every line is also written there as it is produced.
        """
        self._trace = enable
        self._trace_stream = stream if enable else None

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()
