"""Yokogawa WT3000 emulator.

Provides an in-process emulator implementing the ``ByteChannel`` protocol,
so the :class:`~pwrtest_yokogawa.wt3000.Wt3000` driver can be exercised
without hardware. The emulator understands long and short mnemonic forms,
keeps the communication and status settings, and answers numeric queries in
the configured ASCii or FLOat format.
"""

from __future__ import annotations

import re
import struct
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from typing import Callable

from pwrtest_scpi.number import format_block, format_bool, format_numbers, parse_bool

from pwrtest_yokogawa import grammar
from pwrtest_yokogawa.grammar import Transition, short_form
from pwrtest_yokogawa.numeric import NumericFormat, parse_numeric_format

# ---------------------------------------------------------------------------
# Long-form -> short-form keyword map
# ---------------------------------------------------------------------------


def _build_short_map() -> dict[str, str]:
    mapping: dict[str, str] = {}
    for namespace in (grammar.COMMUNICATE, grammar.INPUT, grammar.NUMERIC, grammar.STATUS):
        for f in fields(namespace):
            mnemonic = getattr(namespace, f.name)
            mapping[mnemonic.upper()] = short_form(mnemonic)
            mapping[short_form(mnemonic)] = short_form(mnemonic)
    return mapping


_LONG_TO_SHORT = _build_short_map()
_SEGMENT_RE = re.compile(r"^([A-Z]+)(\d*)$")

_UNDEFINED_HEADER = (113, "Undefined header")
_ILLEGAL_PARAMETER = (224, "Illegal parameter value")


def _normalize_header(header: str) -> tuple[str, str] | None:
    """Normalize a header to canonical short form plus its numeric suffix.

    ``":STATus:FILTer3"`` becomes ``("STAT:FILT", "3")``. Returns None if a
    segment is not a known mnemonic or a non-final segment is numbered.
    """
    upper = header.upper().lstrip(":")
    segments = upper.split(":")
    short_segments: list[str] = []
    suffix = ""
    for index, segment in enumerate(segments):
        match = _SEGMENT_RE.match(segment)
        if match is None:
            return None
        name, number = match.groups()
        if number and index != len(segments) - 1:
            return None
        short = _LONG_TO_SHORT.get(name)
        if short is None:
            return None
        short_segments.append(short)
        suffix = number
    return ":".join(short_segments), suffix


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Wt3000EmulatorConfig:
    """Configuration for a WT3000 emulator instance.

    Args:
        identity: ``*IDN?`` response string.
        modules: Input element type per module number.
        chunk_size: Largest number of bytes returned by one ``read``.
    """

    identity: str
    modules: dict[str, str] = field(default_factory=dict)
    chunk_size: int = 512

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity must be non-empty")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")


# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class Wt3000Emulator:
    """In-process WT3000 emulator implementing ``ByteChannel``.

    Args:
        config: Emulator configuration specifying model characteristics.
    """

    def __init__(self, config: Wt3000EmulatorConfig) -> None:
        self._config = config
        self._output = bytearray()
        self._error_queue: list[tuple[int, str]] = []
        self._values: tuple[float, ...] = ()
        self.closed = False
        self.remote = False
        self.verbose = False
        self.header = False
        self.overlap = False
        self.extended_event_status_enable = False
        self.numeric_format = NumericFormat.ASCII
        self.status_filters: dict[str, Transition] = {}
        self.received: list[str] = []

        self._set_handlers: dict[str, Callable[[str, str], None]] = {
            "COMM:HEAD": self._flag_setter("header"),
            "COMM:VERB": self._flag_setter("verbose"),
            "COMM:OVER": self._flag_setter("overlap"),
            "COMM:REM": self._flag_setter("remote"),
            "STAT:EESE": self._flag_setter("extended_event_status_enable"),
            "STAT:FILT": self._set_filter,
            "NUM:FORM": self._set_format,
        }

        self._query_handlers: dict[str, Callable[[str], bytes]] = {
            "COMM:HEAD": lambda _: self._flag_response("header"),
            "COMM:VERB": lambda _: self._flag_response("verbose"),
            "COMM:OVER": lambda _: self._flag_response("overlap"),
            "COMM:REM": lambda _: self._flag_response("remote"),
            "STAT:EESE": lambda _: self._flag_response("extended_event_status_enable"),
            "STAT:ERR": lambda _: self._pop_error().encode("ascii") + b"\n",
            "INP:MODU": self._get_module,
            "NUM:FORM": lambda _: self.numeric_format.value.upper().encode("ascii") + b"\n",
            "NUM:VAL": lambda _: self._numeric_response(),
        }

    # -- Channel interface --------------------------------------------------

    def write(self, data: bytes) -> int:
        """Process one or more newline-terminated command lines."""
        for raw_line in data.decode("ascii").splitlines():
            line = raw_line.strip()
            if line:
                self.received.append(line)
                self._process(line)
        return len(data)

    def read(self, max_length: int, timeout: float) -> bytes:
        """Return up to *max_length* pending response bytes; empty when idle."""
        size = min(max_length, self._config.chunk_size)
        chunk = bytes(self._output[:size])
        del self._output[:size]
        return chunk

    def close(self) -> None:
        """Close the emulator (no-op for in-process transport)."""
        self.closed = True

    # -- Test helpers -------------------------------------------------------

    def set_numeric_values(self, values: Iterable[float]) -> None:
        """Set the values reported by ``:NUMeric:VALue?``."""
        self._values = tuple(values)

    @property
    def pending(self) -> bytes:
        """Response bytes not yet read."""
        return bytes(self._output)

    # -- Command processing -------------------------------------------------

    def _process(self, line: str) -> None:
        if line.startswith("*"):
            self._handle_common(line.upper())
            return

        is_query = "?" in line
        if is_query:
            header, _, _ = line.partition("?")
            args = ""
        else:
            header, _, args = line.partition(" ")
        normalized = _normalize_header(header)
        if normalized is None:
            self._error_queue.append(_UNDEFINED_HEADER)
            return
        key, suffix = normalized

        if is_query:
            query_handler = self._query_handlers.get(key)
            if query_handler is None:
                self._error_queue.append(_UNDEFINED_HEADER)
                return
            self._output += query_handler(suffix)
        else:
            set_handler = self._set_handlers.get(key)
            if set_handler is None:
                self._error_queue.append(_UNDEFINED_HEADER)
                return
            set_handler(args.strip(), suffix)

    def _handle_common(self, command: str) -> None:
        if command == grammar.IDENTIFY:
            self._output += self._config.identity.encode("ascii") + b"\n"
        elif command == grammar.CLEAR_STATUS:
            self._error_queue.clear()
        else:
            self._error_queue.append(_UNDEFINED_HEADER)

    def _pop_error(self) -> str:
        if self._error_queue:
            code, msg = self._error_queue.pop(0)
            return f'{code},"{msg}"'
        return '0,"No error"'

    # -- Set handlers -------------------------------------------------------

    def _flag_setter(self, attribute: str) -> Callable[[str, str], None]:
        def setter(args: str, suffix: str) -> None:
            try:
                value = parse_bool(args)
            except ValueError:
                self._error_queue.append(_ILLEGAL_PARAMETER)
                return
            setattr(self, attribute, value)

        return setter

    def _set_filter(self, args: str, suffix: str) -> None:
        if not suffix:
            self._error_queue.append(_UNDEFINED_HEADER)
            return
        try:
            self.status_filters[suffix] = Transition(args.upper())
        except ValueError:
            self._error_queue.append(_ILLEGAL_PARAMETER)

    def _set_format(self, args: str, suffix: str) -> None:
        try:
            self.numeric_format = parse_numeric_format(args)
        except ValueError:
            self._error_queue.append(_ILLEGAL_PARAMETER)

    # -- Query handlers -----------------------------------------------------

    def _flag_response(self, attribute: str) -> bytes:
        return format_bool(getattr(self, attribute)).encode("ascii") + b"\n"

    def _get_module(self, suffix: str) -> bytes:
        module = self._config.modules.get(suffix)
        if module is None:
            self._error_queue.append(_ILLEGAL_PARAMETER)
            return b""
        return module.encode("ascii") + b"\n"

    def _numeric_response(self) -> bytes:
        if self.numeric_format is NumericFormat.FLOAT:
            payload = struct.pack(f">{len(self._values)}f", *self._values)
            return format_block(payload, width=4) + b"\n"
        return format_numbers(self._values).encode("ascii") + b"\n"


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def make_wt3000_emulator(serial: str = "91234", *, chunk_size: int = 512) -> Wt3000Emulator:
    """Create an emulator for a WT3000 with four 30 A input elements.

    Args:
        serial: Serial number reported by ``*IDN?``.
        chunk_size: Largest number of bytes returned by one ``read``.
    """
    config = Wt3000EmulatorConfig(
        identity=f"YOKOGAWA,WT3000,{serial},F1.05",
        modules={str(n): "760902" for n in range(1, 5)},
        chunk_size=chunk_size,
    )
    return Wt3000Emulator(config)
