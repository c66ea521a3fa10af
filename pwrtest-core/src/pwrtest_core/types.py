"""Common types used across pwrtest packages.

Classes:
    InstrumentIdentity: Instrument identification metadata.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InstrumentIdentity:
    """Instrument identification metadata.

    Represents the four standard fields returned by the ``*IDN?`` query.

    Attributes:
        manufacturer: Instrument manufacturer name (e.g., "YOKOGAWA").
        model: Instrument model number or name (e.g., "WT3000").
        serial: Serial number string.
        firmware: Firmware version string.

    Example:
        >>> identity = InstrumentIdentity(
        ...     manufacturer="YOKOGAWA",
        ...     model="WT3000",
        ...     serial="91234",
        ...     firmware="F1.05"
        ... )
    """

    manufacturer: str
    model: str
    serial: str
    firmware: str

    def __str__(self) -> str:
        """Return the identity in ``*IDN?`` field order."""
        return f"{self.manufacturer},{self.model},{self.serial},{self.firmware}"
