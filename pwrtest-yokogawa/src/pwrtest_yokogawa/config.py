"""YAML configuration loading for the WT3000 driver.

This module loads driver settings (USB identification, timeouts, response
bounds, numeric format, logging level) from a YAML file and validates them.

Example YAML configuration:
    wt3000:
      timeout: 2.0
      max_response_length: 65536
      numeric_format: "FLOat"
      byte_order: ">"
      log_level: "INFO"
      usb:
        vendor_id: 0x0B21
        product_id: 0x0025
        endpoint_out: 0x01
        endpoint_in: 0x83
        serial_number: "91234"

    # Or reach the instrument through a VISA library instead of pyusb:
    #   visa_address: "USB0::0x0B21::0x0025::91234::INSTR"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pwrtest_core.errors import ConfigError

from pwrtest_yokogawa.grammar import USB
from pwrtest_yokogawa.numeric import (
    BYTE_ORDERS,
    DEFAULT_BYTE_ORDER,
    DEFAULT_MAX_RESPONSE_LENGTH,
    NumericFormat,
    parse_numeric_format,
)

_TOP_LEVEL_KEY = "wt3000"
_KNOWN_KEYS = frozenset(
    {
        "timeout",
        "max_response_length",
        "numeric_format",
        "byte_order",
        "log_level",
        "usb",
        "visa_address",
    }
)
_KNOWN_USB_KEYS = frozenset({"vendor_id", "product_id", "endpoint_out", "endpoint_in", "serial_number"})


@dataclass(frozen=True)
class Wt3000Config:
    """Settings for opening and driving a WT3000.

    Attributes:
        vendor_id: USB vendor ID.
        product_id: USB product ID.
        endpoint_out: Bulk OUT endpoint address.
        endpoint_in: Bulk IN endpoint address.
        serial_number: Optional USB serial number to pick one instrument.
        visa_address: If set, open this VISA resource instead of using pyusb.
        timeout: Per-read timeout in seconds.
        max_response_length: Bound on numeric responses, in bytes.
        numeric_format: Format applied right after connecting, or None to
            leave the instrument as it is.
        byte_order: ``struct`` byte order of FLOat data.
        log_level: Logging level of the session.
    """

    vendor_id: int = USB.vendor_id
    product_id: int = USB.product_id
    endpoint_out: int = USB.endpoint_out
    endpoint_in: int = USB.endpoint_in
    serial_number: str | None = None
    visa_address: str | None = None
    timeout: float = 2.0
    max_response_length: int = DEFAULT_MAX_RESPONSE_LENGTH
    numeric_format: NumericFormat | None = None
    byte_order: str = DEFAULT_BYTE_ORDER
    log_level: int = logging.DEBUG

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if self.max_response_length < 1:
            raise ConfigError(f"max_response_length must be >= 1, got {self.max_response_length}")
        if self.byte_order not in BYTE_ORDERS:
            raise ConfigError(f"byte_order must be one of {sorted(BYTE_ORDERS)}, got {self.byte_order!r}")
        for name in ("vendor_id", "product_id"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ConfigError(f"{name} must be a 16-bit value, got {value}")
        for name in ("endpoint_out", "endpoint_in"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ConfigError(f"{name} must be an 8-bit value, got {value}")
        if self.endpoint_out & 0x80:
            raise ConfigError(f"endpoint_out 0x{self.endpoint_out:02x} is an IN endpoint")
        if not self.endpoint_in & 0x80:
            raise ConfigError(f"endpoint_in 0x{self.endpoint_in:02x} is an OUT endpoint")


def _parse_log_level(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid log_level: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    raise ConfigError(f"Invalid log_level: {value!r}")


def _require_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    return value


def config_from_dict(data: dict[str, Any]) -> Wt3000Config:
    """Build a :class:`Wt3000Config` from parsed YAML data.

    Accepts either the ``wt3000`` mapping itself or a document containing it
    under the ``wt3000`` key.

    Args:
        data: Parsed configuration mapping.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If keys are unknown or values are invalid.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")
    section = data.get(_TOP_LEVEL_KEY, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{_TOP_LEVEL_KEY}' must be a mapping")

    unknown = set(section) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")

    usb = section.get("usb") or {}
    if not isinstance(usb, dict):
        raise ConfigError("'usb' must be a mapping")
    unknown_usb = set(usb) - _KNOWN_USB_KEYS
    if unknown_usb:
        raise ConfigError(f"Unknown usb key(s): {', '.join(sorted(unknown_usb))}")

    numeric_format: NumericFormat | None = None
    if section.get("numeric_format") is not None:
        try:
            numeric_format = parse_numeric_format(str(section["numeric_format"]))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    timeout = section.get("timeout", 2.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError(f"timeout must be a number, got {timeout!r}")

    serial_number = usb.get("serial_number")
    visa_address = section.get("visa_address")

    return Wt3000Config(
        vendor_id=_require_int(usb, "vendor_id", USB.vendor_id),
        product_id=_require_int(usb, "product_id", USB.product_id),
        endpoint_out=_require_int(usb, "endpoint_out", USB.endpoint_out),
        endpoint_in=_require_int(usb, "endpoint_in", USB.endpoint_in),
        serial_number=None if serial_number is None else str(serial_number),
        visa_address=None if visa_address is None else str(visa_address),
        timeout=float(timeout),
        max_response_length=_require_int(section, "max_response_length", DEFAULT_MAX_RESPONSE_LENGTH),
        numeric_format=numeric_format,
        byte_order=str(section.get("byte_order", DEFAULT_BYTE_ORDER)),
        log_level=_parse_log_level(section.get("log_level", logging.DEBUG)),
    )


def load_config(path: str | Path) -> Wt3000Config:
    """Load a driver configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file cannot be read or parsed, or is invalid.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return Wt3000Config()
    return config_from_dict(data)
