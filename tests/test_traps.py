"""
Trap routines: PUTS output, HALT, placeholder and unknown vectors.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
import logging

import pytest

from lc3_vm.config import EmulatorConfig
from lc3_vm.diagnostics import DiagnosticKind
from lc3_vm.emu import LC3Emulator, StopReason
from lc3_vm.periph.console import ConsoleOutput


def _emu(*words, strict=False):
    stream = io.StringIO()
    emu = LC3Emulator(EmulatorConfig(strict=strict), console=ConsoleOutput(stream))
    emu.mem.load_words(words, 0x3000)
    return emu, stream


def _string(emu, text, addr):
    emu.mem.load_words([ord(c) for c in text] + [0], addr)


class TestPuts:
    def test_puts_hi(self):
        """R0 -> 'H','i',0 emits exactly "Hi", then one flush."""
        emu, stream = _emu(0xF022)   # TRAP x22
        _string(emu, "Hi", 0x4000)
        emu.regs.R[0] = 0x4000
        emu.step()
        assert emu.console.output == "Hi"
        assert stream.getvalue() == "Hi"
        assert emu.console.flush_count == 1
        assert emu.is_running()

    def test_puts_empty_string_still_flushes(self):
        emu, stream = _emu(0xF022)
        emu.regs.R[0] = 0x4000
        emu.step()
        assert stream.getvalue() == ""
        assert emu.console.flush_count == 1

    def test_puts_uses_low_byte(self):
        emu, stream = _emu(0xF022)
        emu.mem.load_words([0x1F41, 0x0000], 0x4000)
        emu.regs.R[0] = 0x4000
        emu.step()
        assert stream.getvalue() == "A"

    def test_puts_wraps_around_memory(self):
        emu, stream = _emu(0xF022)
        emu.mem.write(0xFFFF, ord('A'))
        emu.mem.write(0x0000, ord('B'))
        emu.regs.R[0] = 0xFFFF
        emu.step()
        assert stream.getvalue() == "AB"

    def test_puts_leaves_registers(self):
        emu, _ = _emu(0xF022)
        _string(emu, "ok", 0x4000)
        emu.regs.R[0] = 0x4000
        emu.step()
        assert emu.regs.R[0] == 0x4000

    def test_hello_program(self):
        emu, stream = _emu(
            0xE002,                  # x3000 LEA R0, #2 -> x3003
            0xF022,                  # x3001 PUTS
            0xF025,                  # x3002 HALT
        )
        _string(emu, "Hello", 0x3003)
        assert emu.run() == StopReason.HALT
        assert stream.getvalue() == "Hello"

    def test_default_console_writes_stdout(self, capsys):
        emu = LC3Emulator()
        emu.mem.load_words([0xF022], 0x3000)
        _string(emu, "Hi", 0x4000)
        emu.regs.R[0] = 0x4000
        emu.step()
        assert capsys.readouterr().out == "Hi"


class TestHalt:
    def test_halt(self):
        emu, stream = _emu(0xF025)
        assert emu.step() == StopReason.HALT
        assert not emu.is_running()
        assert stream.getvalue() == ""


class TestPlaceholderTraps:
    @pytest.mark.parametrize("word", [0xF020, 0xF021, 0xF023, 0xF024])
    def test_placeholder_is_noop(self, word):
        emu, stream = _emu(word)
        emu.regs.R[0] = ord('x')
        before = emu.regs.R[:]
        assert emu.step() is None
        assert emu.is_running()
        assert emu.regs.R == before
        assert emu.regs.PC == 0x3001
        assert stream.getvalue() == ""
        assert emu.diagnostics.count(DiagnosticKind.UNIMPLEMENTED_TRAP) == 1

    def test_unknown_vector(self):
        emu, _ = _emu(0xF030)        # TRAP x30
        assert emu.step() is None
        assert emu.diagnostics.count(DiagnosticKind.UNKNOWN_TRAP) == 1
        assert emu.diagnostics.events[0].detail["vector"] == 0x30

    def test_strict_mode_stops(self):
        emu, _ = _emu(0xF020, strict=True)
        assert emu.step() == StopReason.ILLEGAL
        assert not emu.is_running()

    def test_strict_unknown_vector_stops(self):
        emu, _ = _emu(0xF0FF, strict=True)
        assert emu.step() == StopReason.ILLEGAL

    def test_diagnostic_is_logged(self, caplog):
        emu, _ = _emu(0xF021)
        with caplog.at_level(logging.WARNING, logger="lc3_vm"):
            emu.step()
        assert any("UNIMPLEMENTED_TRAP" in r.getMessage() for r in caplog.records)

    def test_listener_sees_event(self):
        emu, _ = _emu(0xF023)
        seen = []
        emu.diagnostics.add_listener(seen.append)
        emu.step()
        assert len(seen) == 1
        assert seen[0].kind == DiagnosticKind.UNIMPLEMENTED_TRAP
        assert seen[0].address == 0x3000
