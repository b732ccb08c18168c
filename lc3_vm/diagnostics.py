"""
LC-3 Virtual Machine - Diagnostic Events

The engine degrades silently on bad input (missing image, oversize image,
reserved opcodes, unimplemented traps). Each of those cases is recorded
here so a host or a test can see that it happened:

  - a Counter of events per kind
  - a bounded history of recent events
  - a WARNING log record per event
  - listener callbacks: listener(event)
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import DEFAULT_EVENT_HISTORY

log = logging.getLogger(__name__)


class LC3Error(Exception):
    """Base class for errors raised by the emulator."""


class DiagnosticKind(Enum):
    IMAGE_OPEN_FAILED = 'IMAGE_OPEN_FAILED'
    IMAGE_TRUNCATED = 'IMAGE_TRUNCATED'
    ILLEGAL_OPCODE = 'ILLEGAL_OPCODE'
    UNIMPLEMENTED_TRAP = 'UNIMPLEMENTED_TRAP'
    UNKNOWN_TRAP = 'UNKNOWN_TRAP'


@dataclass(frozen=True)
class DiagnosticEvent:
    kind: DiagnosticKind
    message: str
    address: Optional[int] = None     # PC of the offending instruction, if any
    detail: Dict[str, object] = field(default_factory=dict, hash=False)

    def __str__(self):
        where = f" @x{self.address:04X}" if self.address is not None else ""
        return f"{self.kind.value}{where}: {self.message}"


class Diagnostics:
    """Collects diagnostic events for one emulator instance."""

    def __init__(self, history: int = DEFAULT_EVENT_HISTORY):
        self.counts: Counter = Counter()
        self._events: deque = deque(maxlen=history)
        self._listeners: List[Callable[[DiagnosticEvent], None]] = []

    def record(self, kind: DiagnosticKind, message: str,
               address: Optional[int] = None, **detail) -> DiagnosticEvent:
        event = DiagnosticEvent(kind, message, address, dict(detail))
        self.counts[kind] += 1
        self._events.append(event)
        log.warning("%s", event)
        for listener in self._listeners:
            listener(event)
        return event

    def add_listener(self, listener: Callable[[DiagnosticEvent], None]):
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[DiagnosticEvent], None]):
        self._listeners = [cb for cb in self._listeners if cb != listener]

    @property
    def events(self) -> List[DiagnosticEvent]:
        return list(self._events)

    def count(self, kind: DiagnosticKind) -> int:
        return self.counts[kind]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def clear(self):
        self.counts.clear()
        self._events.clear()

    def summary(self) -> str:
        if not self.counts:
            return "no diagnostics"
        return ", ".join(f"{kind.value}={n}" for kind, n in
                         sorted(self.counts.items(), key=lambda kv: kv[0].value))
