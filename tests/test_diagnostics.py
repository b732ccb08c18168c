"""
Diagnostic event collection and emulator configuration.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from lc3_vm.config import EmulatorConfig, DEFAULT_MAX_STEPS
from lc3_vm.diagnostics import Diagnostics, DiagnosticKind


class TestDiagnostics:
    def test_record_counts(self):
        d = Diagnostics()
        d.record(DiagnosticKind.ILLEGAL_OPCODE, "rti", address=0x3000)
        d.record(DiagnosticKind.ILLEGAL_OPCODE, "res", address=0x3001)
        d.record(DiagnosticKind.UNKNOWN_TRAP, "x30")
        assert d.count(DiagnosticKind.ILLEGAL_OPCODE) == 2
        assert d.count(DiagnosticKind.IMAGE_TRUNCATED) == 0
        assert d.total == 3

    def test_event_str(self):
        d = Diagnostics()
        event = d.record(DiagnosticKind.ILLEGAL_OPCODE, "reserved", address=0x3000)
        assert str(event) == "ILLEGAL_OPCODE @x3000: reserved"

    def test_history_is_bounded(self):
        d = Diagnostics(history=2)
        for i in range(5):
            d.record(DiagnosticKind.UNKNOWN_TRAP, f"#{i}")
        assert [e.message for e in d.events] == ["#3", "#4"]
        assert d.count(DiagnosticKind.UNKNOWN_TRAP) == 5

    def test_listener_add_remove(self):
        d = Diagnostics()
        seen = []
        d.add_listener(seen.append)
        d.record(DiagnosticKind.IMAGE_OPEN_FAILED, "a")
        d.remove_listener(seen.append)
        d.record(DiagnosticKind.IMAGE_OPEN_FAILED, "b")
        assert [e.message for e in seen] == ["a"]

    def test_summary_and_clear(self):
        d = Diagnostics()
        assert d.summary() == "no diagnostics"
        d.record(DiagnosticKind.UNKNOWN_TRAP, "x")
        d.record(DiagnosticKind.ILLEGAL_OPCODE, "y")
        assert d.summary() == "ILLEGAL_OPCODE=1, UNKNOWN_TRAP=1"
        d.clear()
        assert d.total == 0
        assert d.events == []


class TestConfig:
    def test_defaults(self):
        cfg = EmulatorConfig()
        assert cfg.pc_start == 0x3000
        assert not cfg.strict
        assert cfg.step_budget == DEFAULT_MAX_STEPS

    def test_step_budget_override(self):
        assert EmulatorConfig(max_steps=0).step_budget == 0

    @pytest.mark.parametrize("kwargs", [{"pc_start": 0x10000}, {"pc_start": -1},
                                        {"max_steps": -5}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EmulatorConfig(**kwargs)

    def test_history_sizes_validated(self):
        with pytest.raises(ValueError):
            EmulatorConfig(trace_history=-1)


class TestDiagnosticEvent:
    def test_event_with_detail_is_hashable(self):
        d = Diagnostics()
        event = d.record(DiagnosticKind.IMAGE_TRUNCATED, "overrun",
                         origin=0xFFFE, dropped=2)
        assert event.detail == {"origin": 0xFFFE, "dropped": 2}
        assert event in {event}
        hash(event)

    def test_equal_events_hash_equal(self):
        d = Diagnostics()
        a = d.record(DiagnosticKind.UNKNOWN_TRAP, "x30", address=0x3000, vector=0x30)
        b = d.record(DiagnosticKind.UNKNOWN_TRAP, "x30", address=0x3000, vector=0x30)
        assert a == b
        assert hash(a) == hash(b)
