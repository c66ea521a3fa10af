"""Number, boolean and block tokens of the SCPI wire format.

Covers NR1 (integer), NR2 (fixed-point) and NR3 (exponent) numbers, the
SCPI special values (NAN, INF, NINF), boolean tokens, and IEEE 488.2
arbitrary block headers (``#<n><length>``).
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

_SPECIAL_FLOAT_MAP: dict[str, float] = {
    "NAN": float("nan"),
    "INF": float("inf"),
    "NINF": float("-inf"),
    "-INF": float("-inf"),
}


def parse_number(text: str) -> float:
    """Convert one NR1/NR2/NR3 token, or a SCPI special value, to a float.

    Surrounding whitespace is ignored. ``NAN``, ``INF``, ``NINF`` and
    ``-INF`` map to the matching IEEE values.

    Raises:
        ValueError: If *text* is not a number in any SCPI numeric form.
    """
    token = text.strip().upper()
    special = _SPECIAL_FLOAT_MAP.get(token)
    if special is not None:
        return special
    # float() also takes "nan"/"infinity" spellings and digit underscores.
    if not token or "_" in token or token.lstrip("+-")[:1].isalpha():
        raise ValueError(f"Invalid SCPI number: {text!r}")
    try:
        return float(token)
    except ValueError:
        raise ValueError(f"Invalid SCPI number: {text!r}") from None


def parse_bool(text: str) -> bool:
    """Read a boolean parameter: ``1``/``ON`` or ``0``/``OFF``, any case."""
    flag = text.strip().upper()
    if flag in ("1", "ON"):
        return True
    if flag in ("0", "OFF"):
        return False
    raise ValueError(f"Invalid SCPI boolean: {text!r}")


def format_number(value: float) -> str:
    """Render *value* the way the instrument prints ASCII data.

    Finite values use ``%E`` (``1.250000E+02``); NaN and the infinities
    become ``NAN``, ``INF`` and ``NINF``.
    """
    if math.isnan(value):
        return "NAN"
    if math.isinf(value):
        return "INF" if value > 0 else "NINF"
    return f"{value:E}"


def format_numbers(values: Iterable[float]) -> str:
    """Join values into a comma-separated list of :func:`format_number` tokens."""
    return ",".join(format_number(v) for v in values)


def format_bool(value: bool) -> str:
    return "1" if value else "0"


# ---------------------------------------------------------------------------
# IEEE 488.2 arbitrary blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockHeader:
    """Parsed IEEE 488.2 arbitrary block header.

    Attributes:
        header_length: Number of bytes taken by the header itself
            (``#``, the digit count and the length digits).
        data_length: Declared payload length, or None for the indefinite
            ``#0`` form whose data runs until the final newline.
    """

    header_length: int
    data_length: int | None

    @property
    def is_definite(self) -> bool:
        return self.data_length is not None

    @property
    def total_length(self) -> int | None:
        """Header plus declared data length, or None for ``#0`` blocks."""
        if self.data_length is None:
            return None
        return self.header_length + self.data_length


def parse_block_header(data: bytes) -> BlockHeader | None:
    """Parse the block header at the start of *data*.

    Args:
        data: Bytes beginning with ``#``.

    Returns:
        The parsed header, or None when *data* does not yet hold a complete
        header (so the caller can keep reading).

    Raises:
        ValueError: If *data* does not start with ``#`` or the header digits
            are not decimal.
    """
    if not data.startswith(b"#"):
        raise ValueError(f"Block does not start with '#': {data[:8]!r}")
    if len(data) < 2:
        return None
    digit = data[1:2]
    if not digit.isdigit():
        raise ValueError(f"Invalid block digit count: {digit!r}")
    width = int(digit)
    if width == 0:
        return BlockHeader(header_length=2, data_length=None)
    if len(data) < 2 + width:
        return None
    length_digits = data[2 : 2 + width]
    if not length_digits.isdigit():
        raise ValueError(f"Invalid block length field: {length_digits!r}")
    return BlockHeader(header_length=2 + width, data_length=int(length_digits))


def format_block(payload: bytes, width: int | None = None) -> bytes:
    """Wrap *payload* in a definite-length IEEE 488.2 block header.

    Args:
        payload: Block data.
        width: Number of length digits, zero-padded (e.g. 4 gives ``#40016``).
            Defaults to the minimum needed.

    Raises:
        ValueError: If the length does not fit in *width* or nine digits.
    """
    length = str(len(payload))
    if width is not None:
        length = length.zfill(width)
    if len(length) > 9 or (width is not None and len(length) != width) or width == 0:
        raise ValueError(f"Block payload length {len(payload)} does not fit the header")
    return b"#" + str(len(length)).encode("ascii") + length.encode("ascii") + payload
