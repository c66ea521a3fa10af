"""SCPI protocol layer for pwrtest instrument drivers.

This package provides the instrument-independent half of a command/response
driver. It includes:

- Command path and command line encoding
- Byte channel protocol plus pyusb and PyVISA channel adapters
- A transport session with terminator- and block-aware response framing
- Number, boolean and IEEE 488.2 block parsing and formatting utilities
- Exception types for every protocol failure

Typical usage::

    from pwrtest_scpi import BulkSession, CommandMode, UsbBulkChannel, encode

    channel = UsbBulkChannel(0x0B21, 0x0025, endpoint_out=0x01, endpoint_in=0x83)
    channel.open()
    session = BulkSession(channel, owns_channel=True)
    response = session.query(encode("*IDN?", CommandMode.EVENT), max_length=256)
    print(response.text())
    session.close()
"""

from pwrtest_scpi.channel import ByteChannel
from pwrtest_scpi.command import CommandMode, CommandPath, encode
from pwrtest_scpi.errors import (
    DecodeError,
    InvalidCommand,
    NotConnected,
    ResponseTruncated,
    ScpiCommandError,
    ScpiError,
    ScpiInstrumentError,
    TransportError,
    TransportReadError,
    TransportWriteError,
)
from pwrtest_scpi.identity import parse_idn_response
from pwrtest_scpi.number import (
    BlockHeader,
    format_block,
    format_bool,
    format_number,
    format_numbers,
    parse_block_header,
    parse_bool,
    parse_number,
)
from pwrtest_scpi.session import BulkSession, RawResponse
from pwrtest_scpi.usb_bulk import UsbBulkChannel
from pwrtest_scpi.visa import VisaChannel

__all__ = [
    # Channels
    "ByteChannel",
    "UsbBulkChannel",
    "VisaChannel",
    # Commands
    "CommandMode",
    "CommandPath",
    "encode",
    # Session
    "BulkSession",
    "RawResponse",
    # Identity
    "parse_idn_response",
    # Errors
    "DecodeError",
    "InvalidCommand",
    "NotConnected",
    "ResponseTruncated",
    "ScpiCommandError",
    "ScpiError",
    "ScpiInstrumentError",
    "TransportError",
    "TransportReadError",
    "TransportWriteError",
    # Number parsing/formatting
    "BlockHeader",
    "format_block",
    "format_bool",
    "format_number",
    "format_numbers",
    "parse_block_header",
    "parse_bool",
    "parse_number",
]
