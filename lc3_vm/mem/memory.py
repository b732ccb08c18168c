"""
LC-3 Virtual Machine - 64K Word Memory + Image Loader

Memory map:
  x0000-x2FFF  system space (trap vectors, OS) - unused here
  x3000-xFDFF  user program space
  xFE00        KBSR  keyboard status (read is one-shot: value, then 0)
  xFE02        KBDR  keyboard data
  xFE04-xFFFF  other device registers - plain storage here

Image file format (".obj"):
  word 0      origin address, big-endian
  word 1..n   payload words, big-endian, placed at origin, origin+1, ...
No header, no checksum. Payload past xFFFF is dropped.
"""

import logging
import os
import sys
from array import array
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from ..config import MEMORY_SIZE, MR_KBSR, WORD_MASK
from ..diagnostics import DiagnosticKind, Diagnostics

log = logging.getLogger(__name__)


@dataclass
class ImageLoadResult:
    """Outcome of an image load. Truthy iff the image could be read."""
    ok: bool
    path: Optional[str] = None
    origin: Optional[int] = None
    words_loaded: int = 0
    words_dropped: int = 0
    error: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.words_dropped > 0

    @property
    def end(self) -> Optional[int]:
        """Address one past the last loaded word."""
        if self.origin is None:
            return None
        return self.origin + self.words_loaded

    def __bool__(self):
        return self.ok


class Memory:
    """Flat 65536-word memory with the keyboard-status read side effect.

    Addresses and values are masked to 16 bits on every access, so there
    is no out-of-range case.
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self._mem = array('H', bytes(2 * MEMORY_SIZE))
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def __len__(self):
        return MEMORY_SIZE

    # --- Core read/write ---

    def read(self, address: int) -> int:
        """Read a word. KBSR returns its value and is then cleared."""
        address &= WORD_MASK
        value = self._mem[address]
        if address == MR_KBSR:
            self._mem[MR_KBSR] = 0
        return value

    def write(self, address: int, value: int):
        self._mem[address & WORD_MASK] = value & WORD_MASK

    def peek(self, address: int) -> int:
        """Read a word without device side effects."""
        return self._mem[address & WORD_MASK]

    def clear(self):
        self._mem = array('H', bytes(2 * MEMORY_SIZE))

    # --- Bulk load ---

    def load_words(self, words: Iterable[int], origin: int) -> ImageLoadResult:
        """Store words from origin upward; anything past xFFFF is dropped."""
        origin &= WORD_MASK
        words = list(words)
        room = MEMORY_SIZE - origin
        kept = words[:room]
        return self._store(origin, kept, len(words) - len(kept))

    def _store(self, origin: int, words, dropped: int) -> ImageLoadResult:
        for i, word in enumerate(words):
            self._mem[origin + i] = word & WORD_MASK
        result = ImageLoadResult(ok=True, origin=origin, words_loaded=len(words),
                                 words_dropped=dropped)
        if result.truncated:
            self.diagnostics.record(
                DiagnosticKind.IMAGE_TRUNCATED,
                f"image at x{origin:04X} overruns memory, "
                f"{result.words_dropped} word(s) dropped",
                origin=origin, dropped=result.words_dropped,
            )
        return result

    def load_image_bytes(self, data: bytes) -> ImageLoadResult:
        """Decode an image held in memory (big-endian origin + payload)."""
        data = bytes(data)
        if len(data) < 2:
            log.warning("Image has no origin word (%d byte(s)); nothing loaded", len(data))
            return ImageLoadResult(ok=True)
        origin = int.from_bytes(data[0:2], 'big')
        return self.load_words(_decode_words(data[2:]), origin)

    def load_image(self, path: Union[str, Path]) -> ImageLoadResult:
        """Load an image file. Returns a falsy result if it cannot be opened.

        Only the words that fit between the origin and xFFFF are read;
        the rest of the file is measured, not loaded.
        """
        try:
            with open(path, 'rb') as f:
                head = f.read(2)
                if len(head) < 2:
                    result = self.load_image_bytes(head)
                else:
                    origin = int.from_bytes(head, 'big')
                    room = MEMORY_SIZE - origin
                    payload = _decode_words(f.read(2 * room))
                    pos = f.tell()
                    dropped = (f.seek(0, os.SEEK_END) - pos) // 2
                    result = self._store(origin, payload, dropped)
        except OSError as e:
            self.diagnostics.record(
                DiagnosticKind.IMAGE_OPEN_FAILED,
                f"cannot open image {path}: {e.strerror or e}",
                path=str(path),
            )
            return ImageLoadResult(ok=False, path=str(path), error=str(e))

        result.path = str(path)
        if result.origin is not None:
            log.info("Loaded %s: %d word(s) at x%04X-x%04X", path,
                     result.words_loaded, result.origin,
                     (result.end - 1) & WORD_MASK if result.words_loaded else result.origin)
        return result

    # --- Snapshots ---

    def snapshot(self, start: int = 0x0000, end: int = WORD_MASK) -> tuple:
        """Copy of words start..end (inclusive) for later comparison."""
        return tuple(self._mem[start:end + 1])

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 64) -> str:
        """Word dump of exactly length words, 8 per line, with low-byte ASCII."""
        lines = []
        for offset in range(0, length, 8):
            addr = (start + offset) & WORD_MASK
            count = min(8, length - offset)
            words = [self._mem[(addr + i) & WORD_MASK] for i in range(count)]
            # short last row keeps the text column aligned
            hex_words = ' '.join(f'{w:04X}' for w in words).ljust(8 * 5 - 1)
            text = ''.join(chr(w) if 0x20 <= w < 0x7F else '.' for w in words)
            lines.append(f'x{addr:04X}  {hex_words}  {text}')
        return '\n'.join(lines)


def _decode_words(raw: bytes) -> array:
    """Big-endian bytes to host-order words; a trailing odd byte is ignored."""
    words = array('H', raw[:len(raw) - (len(raw) % 2)])
    if sys.byteorder == 'little':
        words.byteswap()
    return words
