"""Unit tests for WT3000 configuration loading and the driver factory."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pwrtest_core.errors import ConfigError
from pwrtest_scpi.errors import TransportWriteError
from pwrtest_yokogawa.config import Wt3000Config, config_from_dict, load_config
from pwrtest_yokogawa.emulator import Wt3000Emulator, Wt3000EmulatorConfig
from pwrtest_yokogawa.numeric import NumericFormat
from pwrtest_yokogawa.wt3000 import create_instrument


class TestWt3000Config:
    """Tests for the configuration dataclass."""

    def test_defaults(self) -> None:
        config = Wt3000Config()
        assert (config.vendor_id, config.product_id) == (0x0B21, 0x0025)
        assert (config.endpoint_out, config.endpoint_in) == (0x01, 0x83)
        assert config.timeout == 2.0
        assert config.max_response_length == 65536
        assert config.numeric_format is None
        assert config.byte_order == ">"
        assert config.log_level == logging.DEBUG
        assert config.visa_address is None

    def test_frozen(self) -> None:
        config = Wt3000Config()
        with pytest.raises(AttributeError):
            config.timeout = 5.0  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"timeout": 0}, "timeout"),
            ({"max_response_length": 0}, "max_response_length"),
            ({"byte_order": "@"}, "byte_order"),
            ({"vendor_id": 0x10000}, "vendor_id"),
            ({"product_id": -1}, "product_id"),
            ({"endpoint_out": 0x100}, "endpoint_out"),
            ({"endpoint_out": 0x81}, "IN endpoint"),
            ({"endpoint_in": 0x02}, "OUT endpoint"),
        ],
    )
    def test_invalid(self, kwargs: dict[str, object], match: str) -> None:
        with pytest.raises(ConfigError, match=match):
            Wt3000Config(**kwargs)  # type: ignore[arg-type]


class TestConfigFromDict:
    """Tests for building configuration from parsed data."""

    def test_empty_section(self) -> None:
        assert config_from_dict({}) == Wt3000Config()

    def test_nested_under_wt3000(self) -> None:
        config = config_from_dict({"wt3000": {"timeout": 5, "numeric_format": "FLOat"}})
        assert config.timeout == 5.0
        assert config.numeric_format is NumericFormat.FLOAT

    def test_flat_section(self) -> None:
        config = config_from_dict({"usb": {"serial_number": 91234}, "log_level": "info"})
        assert config.serial_number == "91234"
        assert config.log_level == logging.INFO

    def test_numeric_log_level(self) -> None:
        assert config_from_dict({"log_level": 30}).log_level == logging.WARNING

    def test_visa_address(self) -> None:
        config = config_from_dict({"visa_address": "USB0::0x0B21::0x0025::91234::INSTR"})
        assert config.visa_address == "USB0::0x0B21::0x0025::91234::INSTR"

    @pytest.mark.parametrize(
        ("data", "match"),
        [
            ([], "mapping"),
            ({"wt3000": "yes"}, "mapping"),
            ({"speed": 1}, "Unknown configuration key"),
            ({"usb": {"port": 1}}, "Unknown usb key"),
            ({"usb": [1, 2]}, "'usb' must be a mapping"),
            ({"usb": {"vendor_id": "0x0B21"}}, "vendor_id must be an integer"),
            ({"max_response_length": True}, "max_response_length must be an integer"),
            ({"timeout": "fast"}, "timeout must be a number"),
            ({"numeric_format": "REAL"}, "Invalid numeric format"),
            ({"log_level": "LOUD"}, "Invalid log_level"),
            ({"log_level": True}, "Invalid log_level"),
            ({"byte_order": "big"}, "byte_order"),
        ],
    )
    def test_invalid(self, data: object, match: str) -> None:
        with pytest.raises(ConfigError, match=match):
            config_from_dict(data)  # type: ignore[arg-type]


class TestLoadConfig:
    """Tests for loading YAML files."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "wt3000.yaml"
        path.write_text(
            "wt3000:\n"
            "  timeout: 1.5\n"
            "  numeric_format: ASCii\n"
            "  byte_order: '<'\n"
            "  log_level: WARNING\n"
            "  usb:\n"
            "    vendor_id: 0x0B21\n"
            "    product_id: 0x0025\n"
            "    serial_number: '91234'\n"
        )
        config = load_config(path)
        assert config.timeout == 1.5
        assert config.numeric_format is NumericFormat.ASCII
        assert config.byte_order == "<"
        assert config.log_level == logging.WARNING
        assert config.vendor_id == 0x0B21
        assert config.serial_number == "91234"

    def test_load_str_path(self, tmp_path: Path) -> None:
        path = tmp_path / "wt3000.yaml"
        path.write_text("wt3000:\n  max_response_length: 4096\n")
        assert load_config(str(path)).max_response_length == 4096

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == Wt3000Config()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("wt3000: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)


# ---------------------------------------------------------------------------
# create_instrument
# ---------------------------------------------------------------------------


class OpenableEmulator(Wt3000Emulator):
    """Emulator that also provides the ``open`` step of a real channel."""

    def __init__(self) -> None:
        super().__init__(Wt3000EmulatorConfig(identity="YOKOGAWA,WT3000,91234,F1.05"))
        self.opened = False

    def open(self) -> None:
        self.opened = True


class TestCreateInstrument:
    """Tests for the factory entry point."""

    def test_usb_default(self) -> None:
        emu = OpenableEmulator()
        with patch("pwrtest_yokogawa.wt3000.UsbBulkChannel", return_value=emu) as channel_cls:
            wt = create_instrument()
        channel_cls.assert_called_once_with(
            0x0B21, 0x0025, endpoint_out=0x01, endpoint_in=0x83, serial_number=None
        )
        assert emu.opened is True
        assert emu.received == ["*CLS", ":COMMunicate:REMote 1"]
        assert wt.state.remote is True
        assert wt.numeric_format is None
        assert wt.session.timeout == 2.0

    def test_numeric_format_applied(self) -> None:
        emu = OpenableEmulator()
        config = Wt3000Config(numeric_format=NumericFormat.FLOAT, serial_number="91234")
        with patch("pwrtest_yokogawa.wt3000.UsbBulkChannel", return_value=emu) as channel_cls:
            wt = create_instrument(config)
        assert channel_cls.call_args.kwargs["serial_number"] == "91234"
        assert emu.received[-1] == ":NUMeric:FORMat FLOat"
        assert emu.numeric_format is NumericFormat.FLOAT
        assert wt.numeric_format is NumericFormat.FLOAT

    def test_visa_address(self) -> None:
        emu = OpenableEmulator()
        config = Wt3000Config(visa_address="USB0::0x0B21::0x0025::91234::INSTR", log_level=logging.INFO)
        with (
            patch("pwrtest_yokogawa.wt3000.VisaChannel", return_value=emu) as visa_cls,
            patch("pwrtest_yokogawa.wt3000.UsbBulkChannel") as usb_cls,
        ):
            wt = create_instrument(config)
        visa_cls.assert_called_once_with("USB0::0x0B21::0x0025::91234::INSTR")
        usb_cls.assert_not_called()
        assert wt.log_level == logging.INFO

    def test_close_closes_channel(self) -> None:
        emu = OpenableEmulator()
        with patch("pwrtest_yokogawa.wt3000.UsbBulkChannel", return_value=emu):
            wt = create_instrument()
        wt.close()
        assert emu.closed is True

    def test_failed_connect_closes_channel(self) -> None:
        channel = MagicMock()
        channel.write.side_effect = OSError("endpoint stalled")
        with patch("pwrtest_yokogawa.wt3000.UsbBulkChannel", return_value=channel):
            with pytest.raises(TransportWriteError):
                create_instrument()
        channel.open.assert_called_once_with()
        channel.close.assert_called_once_with()
