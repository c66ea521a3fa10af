"""Yokogawa WT3000 command grammar.

Immutable catalog of the mnemonics, literal common commands, and parameter
tokens the WT3000 driver sends. Mnemonics keep the instrument's mixed-case
spelling: the uppercase prefix is the short form the instrument also accepts.

Numbered headers (``FILTer<n>``, ``MODUle<n>``) are built at call time with
:meth:`pwrtest_scpi.CommandPath.with_suffix`; the number is inserted
verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pwrtest_scpi.command import CommandPath

# ---------------------------------------------------------------------------
# USB identification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsbIds:
    """USB identification of the WT3000.

    Attributes:
        vendor_id: Yokogawa USB vendor ID.
        product_id: WT3000 USB product ID.
        endpoint_out: Bulk endpoint for host to device data.
        endpoint_in: Bulk endpoint for device to host data.
    """

    vendor_id: int = 0x0B21
    product_id: int = 0x0025
    endpoint_out: int = 0x01
    endpoint_in: int = 0x83


USB = UsbIds()

# ---------------------------------------------------------------------------
# Common commands
# ---------------------------------------------------------------------------

CLEAR_STATUS = "*CLS"
IDENTIFY = "*IDN?"

# ---------------------------------------------------------------------------
# Subsystem mnemonics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Communicate:
    group: str = "COMMunicate"
    header: str = "HEADer"
    overlap: str = "OVERlap"
    remote: str = "REMote"
    verbose: str = "VERBose"


@dataclass(frozen=True)
class _Input:
    group: str = "INPut"
    module: str = "MODUle"
    voltage: str = "VOLTage"
    current: str = "CURRent"


@dataclass(frozen=True)
class _Numeric:
    group: str = "NUMeric"
    format: str = "FORMat"
    value: str = "VALue"


@dataclass(frozen=True)
class _Status:
    group: str = "STATus"
    extended_event_status_enable: str = "EESE"
    filter: str = "FILTer"
    error: str = "ERRor"


COMMUNICATE = _Communicate()
INPUT = _Input()
NUMERIC = _Numeric()
STATUS = _Status()

# ---------------------------------------------------------------------------
# Command paths
# ---------------------------------------------------------------------------

HEADER_PATH = CommandPath((COMMUNICATE.group, COMMUNICATE.header))
OVERLAP_PATH = CommandPath((COMMUNICATE.group, COMMUNICATE.overlap))
REMOTE_PATH = CommandPath((COMMUNICATE.group, COMMUNICATE.remote))
VERBOSE_PATH = CommandPath((COMMUNICATE.group, COMMUNICATE.verbose))
INPUT_MODULE_PATH = CommandPath((INPUT.group, INPUT.module))
NUMERIC_FORMAT_PATH = CommandPath((NUMERIC.group, NUMERIC.format))
NUMERIC_VALUE_PATH = CommandPath((NUMERIC.group, NUMERIC.value))
EESE_PATH = CommandPath((STATUS.group, STATUS.extended_event_status_enable))
STATUS_FILTER_PATH = CommandPath((STATUS.group, STATUS.filter))
STATUS_ERROR_PATH = CommandPath((STATUS.group, STATUS.error))

# ---------------------------------------------------------------------------
# Parameter tokens
# ---------------------------------------------------------------------------


def short_form(mnemonic: str) -> str:
    """Return the short form of a mixed-case mnemonic (``"ASCii"`` -> ``"ASC"``)."""
    short = "".join(ch for ch in mnemonic if not ch.islower())
    return short or mnemonic.upper()


def matches_mnemonic(text: str, mnemonic: str) -> bool:
    """Return True if *text* is the long or short form of *mnemonic*.

    Matching is case-insensitive, as on the instrument.
    """
    token = text.strip().upper()
    return token in (mnemonic.upper(), short_form(mnemonic))


class Transition(Enum):
    """Status bit transition that produces an event."""

    RISE = "RISE"
    FALL = "FALL"
    BOTH = "BOTH"
    NEVER = "NEVER"


def parse_transition(text: str) -> Transition:
    """Parse a transition token (case-insensitive).

    Raises:
        ValueError: If *text* is not RISE, FALL, BOTH, or NEVER.
    """
    token = text.strip().upper()
    try:
        return Transition(token)
    except ValueError:
        raise ValueError(f"Invalid transition condition: {text!r}") from None
