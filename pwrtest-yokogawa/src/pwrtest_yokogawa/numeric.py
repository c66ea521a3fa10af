"""Numeric data format and decoding for WT3000 measurement responses.

The instrument answers ``:NUMeric:VALue?`` either as comma-separated ASCII
numbers or as an IEEE 488.2 block of packed single-precision floats. Which
one it sends is set by ``:NUMeric:FORMat`` and mirrored in the driver state;
:func:`decode_numeric` never guesses the format from the payload.
"""

from __future__ import annotations

import struct
from enum import Enum

from pwrtest_scpi.errors import DecodeError
from pwrtest_scpi.number import parse_block_header, parse_number
from pwrtest_scpi.session import RawResponse

from pwrtest_yokogawa.grammar import matches_mnemonic

FLOAT_SIZE = 4
"""Bytes per value in FLOat format."""

DEFAULT_BYTE_ORDER = ">"
"""struct byte order of FLOat data (big-endian, most significant byte first)."""

DEFAULT_MAX_RESPONSE_LENGTH = 65536
"""Default bound on a numeric response, in bytes."""

BYTE_ORDERS = frozenset("<>!=")
"""Accepted ``struct`` byte order characters for FLOat data."""
_TRAILING = b" \t\r\n"


class NumericFormat(Enum):
    """On-wire representation of numeric data.

    Values are the wire tokens sent with ``:NUMeric:FORMat``.
    """

    ASCII = "ASCii"
    FLOAT = "FLOat"


def parse_numeric_format(text: str) -> NumericFormat:
    """Parse a numeric format name.

    Accepts the long form (``ASCii``, ``FLOat``), the short form (``ASC``,
    ``FLO``) or the enum name (``ASCII``, ``FLOAT``), case-insensitive.

    Raises:
        ValueError: If *text* names no numeric format.
    """
    token = text.strip()
    for fmt in NumericFormat:
        if token.upper() == fmt.name or matches_mnemonic(token, fmt.value):
            return fmt
    raise ValueError(f"Invalid numeric format: {text!r}")


def decode_numeric(
    raw: RawResponse | bytes,
    fmt: NumericFormat | None,
    *,
    byte_order: str = DEFAULT_BYTE_ORDER,
) -> tuple[float, ...]:
    """Decode a numeric response into measurement values.

    Args:
        raw: The response, as a :class:`RawResponse` or plain bytes.
        fmt: The numeric format the instrument is configured for.
        byte_order: ``struct`` byte order character for FLOat data.

    Returns:
        The values in the order the instrument reported them.

    Raises:
        DecodeError: If the format is not configured or the payload does
            not decode under it. No partial result is returned.
        ValueError: If *byte_order* is not a ``struct`` byte order.
    """
    data = raw.data if isinstance(raw, RawResponse) else bytes(raw)
    if fmt is NumericFormat.ASCII:
        return _decode_ascii(data)
    if fmt is NumericFormat.FLOAT:
        return _decode_float(data, byte_order)
    raise DecodeError("format not configured")


def _decode_ascii(data: bytes) -> tuple[float, ...]:
    try:
        text = data.decode("ascii").strip()
    except UnicodeDecodeError as exc:
        raise DecodeError("non-ASCII payload") from exc
    if not text:
        return ()
    values: list[float] = []
    for position, token in enumerate(text.split(","), start=1):
        try:
            values.append(parse_number(token))
        except ValueError:
            raise DecodeError("malformed token", position=position, token=token) from None
    return tuple(values)


def _decode_float(data: bytes, byte_order: str) -> tuple[float, ...]:
    if byte_order not in BYTE_ORDERS:
        raise ValueError(f"Invalid byte order: {byte_order!r}")
    if not data.startswith(b"#"):
        raise DecodeError("missing block header", token=data[:8].decode("latin-1"))
    try:
        header = parse_block_header(data)
    except ValueError as exc:
        raise DecodeError("invalid block header", token=data[:11].decode("latin-1")) from exc
    if header is None:
        raise DecodeError("incomplete block header", token=data.decode("latin-1"))

    start = header.header_length
    if header.data_length is None:
        # Indefinite block: data runs to the final newline.
        payload = data[start:-1] if data.endswith(b"\n") else data[start:]
    else:
        end = start + header.data_length
        payload = data[start:end]
        if len(payload) < header.data_length:
            raise DecodeError(
                f"block shorter than declared ({len(payload)}/{header.data_length} bytes)"
            )
        trailing = data[end:]
        if trailing.strip(_TRAILING):
            raise DecodeError("unexpected bytes after block", token=trailing.decode("latin-1"))

    if len(payload) % FLOAT_SIZE:
        raise DecodeError(f"misaligned payload ({len(payload)} bytes)")
    count = len(payload) // FLOAT_SIZE
    return struct.unpack(f"{byte_order}{count}f", payload)
