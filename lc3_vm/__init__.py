"""
LC-3 Virtual Machine
====================
An emulator for the LC-3 educational architecture: 16-bit words, a flat
64K-word address space, R0-R7, PC, N/Z/P condition flags, and a small
trap set (PUTS and HALT implemented).

    ┌────────────┐    ┌──────────┐    ┌─────────┐    ┌────────────────┐
    │ .obj image │───>│  Memory  │───>│ decoder │───>│ ops / traps    │
    │ (big-end.) │    │ (loader) │    │ (fields)│    │ (regs, memory) │
    └────────────┘    └──────────┘    └─────────┘    └────────────────┘

The host owns the loop: it calls LC3Emulator.step() while
LC3Emulator.is_running() is true.
"""

__version__ = "0.1.0"

from .config import EmulatorConfig, PC_START, MR_KBSR, MR_KBDR
from .diagnostics import Diagnostics, DiagnosticEvent, DiagnosticKind, LC3Error
from .cpu.regs import Registers, sign_extend, FL_POS, FL_ZRO, FL_NEG
from .cpu.decoder import IllegalOpcode, Instruction, decode
from .cpu.traps import UnimplementedTrap
from .mem.memory import ImageLoadResult, Memory
from .periph.console import ConsoleOutput
from .emu import LC3Emulator, StopReason
