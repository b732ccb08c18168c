"""
LC-3 Virtual Machine - Console Output Surface

Characters leave the machine one at a time through write_char(); the
only buffering guarantee is the flush() the PUTS trap issues when it
finishes. Everything written is also kept in `output` so tests and hosts
can inspect it without capturing the stream.
"""

import sys
from typing import Optional, TextIO


class ConsoleOutput:
    """Single-character output collaborator."""

    def __init__(self, stream: Optional[TextIO] = None, echo: bool = True):
        self._stream = stream
        self.echo = echo
        self._output: list = []
        self.flush_count = 0

    @property
    def stream(self) -> TextIO:
        # resolved late so a replaced sys.stdout (pytest capsys) is honoured
        return self._stream if self._stream is not None else sys.stdout

    def write_char(self, ch: str):
        self._output.append(ch)
        if self.echo:
            self.stream.write(ch)

    def flush(self):
        self.flush_count += 1
        if self.echo:
            self.stream.flush()

    @property
    def output(self) -> str:
        return ''.join(self._output)

    def reset(self):
        self._output.clear()
        self.flush_count = 0
