"""
LC-3 Virtual Machine - Machine Constants and Emulator Configuration
=====================================================================

Fixed architectural constants live at module level. Per-run options
(start address, strict mode, trace, step budget) are grouped in
EmulatorConfig, which the emulator takes at construction and the CLI
builds from its arguments.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
#  ADDRESS SPACE
# =============================================================================
MEMORY_SIZE = 0x10000     # 65536 words
WORD_MASK = 0xFFFF        # all arithmetic wraps modulo 2^16

# Default load/start address for user programs
PC_START = 0x3000


# =============================================================================
#  MEMORY-MAPPED DEVICE REGISTERS
# =============================================================================
MR_KBSR = 0xFE00          # keyboard status (bit 15 = key ready, one-shot read)
MR_KBDR = 0xFE02          # keyboard data (low byte = character code)

KBSR_READY = 0x8000


# =============================================================================
#  RUN LIMITS
# =============================================================================
DEFAULT_MAX_STEPS = 10_000_000
DEFAULT_EVENT_HISTORY = 256     # diagnostics kept for inspection
DEFAULT_TRACE_HISTORY = 10_000  # trace lines kept in memory


@dataclass
class EmulatorConfig:
    """Options for one emulator instance.

    strict: reserved opcodes and unimplemented traps stop the machine
        (StopReason.ILLEGAL) instead of being ignored.
    trace: record one line per executed instruction; only the last
        trace_history lines are kept.
    max_steps: step budget for run(); None means DEFAULT_MAX_STEPS.
    """
    pc_start: int = PC_START
    strict: bool = False
    trace: bool = False
    max_steps: Optional[int] = None
    event_history: int = DEFAULT_EVENT_HISTORY
    trace_history: int = DEFAULT_TRACE_HISTORY

    def __post_init__(self):
        if not 0 <= self.pc_start <= WORD_MASK:
            raise ValueError(f"pc_start out of range: {self.pc_start:#x}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError("max_steps must be >= 0")
        if self.event_history < 0 or self.trace_history < 0:
            raise ValueError("history sizes must be >= 0")

    @property
    def step_budget(self) -> int:
        return DEFAULT_MAX_STEPS if self.max_steps is None else self.max_steps
