"""Integration tests for Wt3000 through BulkSession and the emulator."""

from __future__ import annotations

import struct

import pytest

from pwrtest_scpi.errors import ResponseTruncated, ScpiCommandError
from pwrtest_scpi.session import BulkSession
from pwrtest_yokogawa.emulator import Wt3000Emulator, make_wt3000_emulator
from pwrtest_yokogawa.grammar import Transition
from pwrtest_yokogawa.numeric import NumericFormat
from pwrtest_yokogawa.wt3000 import StatusFilterSpec, Wt3000


def _make_wt(chunk_size: int = 512) -> tuple[Wt3000, Wt3000Emulator]:
    """Create a driver backed by a WT3000 emulator."""
    emu = make_wt3000_emulator(chunk_size=chunk_size)
    wt = Wt3000(BulkSession(emu))
    return wt, emu


class TestIdentify:
    """Tests for identification and connect."""

    def test_identify(self) -> None:
        wt, _ = _make_wt()
        assert wt.identify() == "YOKOGAWA,WT3000,91234,F1.05"

    def test_get_identity(self) -> None:
        wt, _ = _make_wt()
        identity = wt.get_identity()
        assert identity.model == "WT3000"
        assert identity.serial == "91234"

    def test_connect(self) -> None:
        wt, emu = _make_wt()
        wt.connect()
        assert emu.remote is True
        assert emu.received == ["*CLS", ":COMMunicate:REMote 1"]

    def test_identify_small_chunks(self) -> None:
        wt, _ = _make_wt(chunk_size=3)
        assert wt.identify() == "YOKOGAWA,WT3000,91234,F1.05"


class TestSettings:
    """Driver settings reach the emulated instrument."""

    def test_flags(self) -> None:
        wt, emu = _make_wt()
        wt.set_verbose(True)
        wt.set_header(True)
        wt.set_overlap(True)
        wt.set_extended_event_status_enable(True)
        assert (emu.verbose, emu.header, emu.overlap, emu.extended_event_status_enable) == (
            True,
            True,
            True,
            True,
        )
        wt.check_errors()

    def test_status_filters(self) -> None:
        wt, emu = _make_wt()
        wt.set_status_filters(
            [StatusFilterSpec("3", Transition.BOTH), StatusFilterSpec("4", Transition.NEVER)]
        )
        assert emu.status_filters == {"3": Transition.BOTH, "4": Transition.NEVER}
        assert emu.status_filters == wt.state.status_filters

    def test_input_module(self) -> None:
        wt, _ = _make_wt()
        assert wt.get_input_module("4") == "760902"

    def test_unknown_module_reports_error(self) -> None:
        wt, _ = _make_wt()
        assert wt.get_input_module("7") == ""
        with pytest.raises(ScpiCommandError) as exc_info:
            wt.check_errors()
        assert exc_info.value.errors[0].code == 224


class TestNumeric:
    """Numeric data round trips through the emulator."""

    VALUES = (230.5, 4.25, 979.625, 0.5)

    def test_ascii(self) -> None:
        wt, emu = _make_wt()
        emu.set_numeric_values([125.0, -0.34])
        wt.set_numeric_format(NumericFormat.ASCII)
        assert wt.get_numeric_values_as_floats() == (125.0, -0.34)

    def test_float(self) -> None:
        wt, emu = _make_wt()
        emu.set_numeric_values(self.VALUES)
        wt.set_numeric_format(NumericFormat.FLOAT)
        assert emu.numeric_format is NumericFormat.FLOAT
        assert wt.get_numeric_values_as_floats() == self.VALUES

    @pytest.mark.parametrize("chunk_size", [1, 2, 5, 7])
    def test_float_small_chunks(self, chunk_size: int) -> None:
        wt, emu = _make_wt(chunk_size=chunk_size)
        emu.set_numeric_values(self.VALUES)
        wt.set_numeric_format(NumericFormat.FLOAT)
        assert wt.get_numeric_values_as_floats() == self.VALUES

    def test_float_with_newline_byte(self) -> None:
        # Packs to 00 00 00 0A, so the block data ends in the terminator byte.
        (value,) = struct.unpack(">f", b"\x00\x00\x00\x0a")
        wt, emu = _make_wt(chunk_size=2)
        emu.set_numeric_values([1.0, value])
        wt.set_numeric_format(NumericFormat.FLOAT)
        assert wt.get_numeric_values_as_floats() == (1.0, value)

    def test_float_then_ascii_with_terminator_left_behind(self) -> None:
        wt, emu = _make_wt(chunk_size=5)
        emu.set_numeric_values([1.0])
        wt.set_numeric_format(NumericFormat.FLOAT)
        assert wt.get_numeric_values_as_floats() == (1.0,)
        assert emu.pending == b"\n"
        wt.set_numeric_format(NumericFormat.ASCII)
        assert wt.get_numeric_values_as_floats() == (1.0,)
        assert emu.pending == b""

    def test_switch_format(self) -> None:
        wt, emu = _make_wt()
        emu.set_numeric_values([1.5])
        wt.set_numeric_format("FLO")
        assert wt.get_numeric_values_as_floats() == (1.5,)
        wt.set_numeric_format("ASC")
        assert wt.get_numeric_values_as_floats() == (1.5,)

    def test_response_bound(self) -> None:
        emu = make_wt3000_emulator()
        wt = Wt3000(BulkSession(emu), max_response_length=8)
        emu.set_numeric_values(self.VALUES)
        wt.set_numeric_format(NumericFormat.ASCII)
        with pytest.raises(ResponseTruncated) as exc_info:
            wt.get_numeric_values_as_floats()
        assert exc_info.value.response.length == 8
