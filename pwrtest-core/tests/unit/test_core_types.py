"""Tests for core types and errors."""

import pytest

from pwrtest_core import ConfigError, InstrumentIdentity, PwrtestError


class TestInstrumentIdentity:
    """Tests for InstrumentIdentity."""

    def test_fields(self) -> None:
        identity = InstrumentIdentity(
            manufacturer="YOKOGAWA", model="WT3000", serial="91234", firmware="F1.05"
        )
        assert identity.manufacturer == "YOKOGAWA"
        assert identity.model == "WT3000"
        assert identity.serial == "91234"
        assert identity.firmware == "F1.05"

    def test_str_uses_idn_field_order(self) -> None:
        identity = InstrumentIdentity("YOKOGAWA", "WT3000", "91234", "F1.05")
        assert str(identity) == "YOKOGAWA,WT3000,91234,F1.05"

    def test_frozen(self) -> None:
        identity = InstrumentIdentity("YOKOGAWA", "WT3000", "91234", "F1.05")
        with pytest.raises(AttributeError):
            identity.model = "WT1800"  # type: ignore[misc]

    def test_equality(self) -> None:
        a = InstrumentIdentity("YOKOGAWA", "WT3000", "91234", "F1.05")
        b = InstrumentIdentity("YOKOGAWA", "WT3000", "91234", "F1.05")
        assert a == b
        assert hash(a) == hash(b)


class TestErrors:
    """Tests for the error hierarchy."""

    def test_config_error_is_pwrtest_error(self) -> None:
        assert issubclass(ConfigError, PwrtestError)

    def test_catch_with_base(self) -> None:
        with pytest.raises(PwrtestError):
            raise ConfigError("bad timeout")
