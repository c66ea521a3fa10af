"""Yokogawa WT3000 power analyzer instrument driver.

Wraps a :class:`BulkSession` with one typed method per instrument capability.
Each method encodes a command from the WT3000 grammar, performs a single
exchange, and, for setters, updates the mirrored device state once the send
has succeeded.

Transport failures propagate unchanged; nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pwrtest_core.types import InstrumentIdentity
from pwrtest_scpi.command import CommandMode, CommandPath, encode
from pwrtest_scpi.errors import InvalidCommand, ScpiCommandError, ScpiInstrumentError
from pwrtest_scpi.identity import parse_idn_response
from pwrtest_scpi.number import format_bool
from pwrtest_scpi.session import BulkSession, RawResponse
from pwrtest_scpi.usb_bulk import UsbBulkChannel
from pwrtest_scpi.visa import VisaChannel

from pwrtest_yokogawa import grammar
from pwrtest_yokogawa.config import Wt3000Config
from pwrtest_yokogawa.grammar import Transition, parse_transition
from pwrtest_yokogawa.numeric import (
    BYTE_ORDERS,
    DEFAULT_BYTE_ORDER,
    DEFAULT_MAX_RESPONSE_LENGTH,
    NumericFormat,
    decode_numeric,
    parse_numeric_format,
)

if TYPE_CHECKING:
    from pwrtest_scpi.channel import ByteChannel

logger = logging.getLogger(__name__)

# Bound for short text responses (identity, module type, error queue).
_TEXT_RESPONSE_LENGTH = 1024


@dataclass(frozen=True)
class StatusFilterSpec:
    """Transition filter for one status register bit.

    Attributes:
        register_id: Register number as the instrument numbers it (e.g. ``"3"``).
        condition: Which transition produces an event.
    """

    register_id: str
    condition: Transition

    def __post_init__(self) -> None:
        if not self.register_id:
            raise InvalidCommand("Status filter register id must be non-empty")


@dataclass
class Wt3000State:
    """Driver-side mirror of the instrument configuration.

    Attributes:
        remote: Remote mode.
        verbose: Full-spelling responses.
        header: Headers on query responses.
        overlap: Overlap command enable.
        extended_event_status_enable: Extended event status enable.
        numeric_format: Format of numeric data, None until configured.
        status_filters: Last condition set for each status filter register.
    """

    remote: bool = False
    verbose: bool = False
    header: bool = False
    overlap: bool = False
    extended_event_status_enable: bool = False
    numeric_format: NumericFormat | None = None
    status_filters: dict[str, Transition] = field(default_factory=dict)


class Wt3000:
    """High-level driver for the Yokogawa WT3000 power analyzer.

    Args:
        session: The session to communicate through. It may be unbound;
            every operation then raises :class:`NotConnected` until
            :meth:`bind` is called.
        max_response_length: Bound on numeric responses, in bytes.
        byte_order: ``struct`` byte order of FLOat numeric data.

    Example:
        >>> wt = Wt3000(BulkSession(channel))
        >>> wt.connect()
        >>> wt.set_numeric_format(NumericFormat.ASCII)
        >>> wt.get_numeric_values_as_floats()
        (125.0, -0.34)
    """

    def __init__(
        self,
        session: BulkSession | None = None,
        *,
        max_response_length: int = DEFAULT_MAX_RESPONSE_LENGTH,
        byte_order: str = DEFAULT_BYTE_ORDER,
    ) -> None:
        if max_response_length < 0:
            raise ValueError(f"max_response_length must be >= 0, got {max_response_length}")
        if byte_order not in BYTE_ORDERS:
            raise ValueError(f"Invalid byte order: {byte_order!r}")
        self._session = session if session is not None else BulkSession(name="wt3000")
        self._max_response_length = max_response_length
        self._byte_order = byte_order
        self._state = Wt3000State()

    # -- Session / lifecycle ------------------------------------------------

    @property
    def session(self) -> BulkSession:
        return self._session

    @property
    def state(self) -> Wt3000State:
        """The mirrored instrument configuration."""
        return self._state

    @property
    def numeric_format(self) -> NumericFormat | None:
        return self._state.numeric_format

    @property
    def log_level(self) -> int:
        """Logging level of the underlying session."""
        return self._session.log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._session.log_level = level

    def bind(self, channel: ByteChannel, *, owns_channel: bool = False) -> None:
        """Bind the underlying session to *channel*."""
        self._session.bind(channel, owns_channel=owns_channel)

    def connect(self) -> None:
        """Prepare the instrument for remote communication.

        Clears the status registers, then enables remote mode. Calling it
        again re-sends both commands, which is harmless on the instrument.
        """
        self.clear_status()
        self.set_remote(True)
        logger.info("WT3000 connected")

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    # -- Identity / status --------------------------------------------------

    def identify(self) -> str:
        """Query the instrument identification string (``*IDN?``)."""
        line = encode(grammar.IDENTIFY, CommandMode.EVENT)
        return self._session.query(line, _TEXT_RESPONSE_LENGTH).text()

    def get_identity(self) -> InstrumentIdentity:
        """Query and parse the instrument identification (``*IDN?``).

        Returns:
            Parsed identity with manufacturer, model, serial, and firmware.
        """
        return parse_idn_response(self.identify())

    def clear_status(self) -> None:
        """Clear the standard event register, extended event register, and error queue."""
        self._session.send(encode(grammar.CLEAR_STATUS, CommandMode.EVENT))

    def get_error(self) -> ScpiInstrumentError | None:
        """Pop one entry from the error queue (``:STATus:ERRor?``).

        Returns:
            The error, or None when the queue is empty (code 0).

        Raises:
            ValueError: If the response is not ``<code>,"<message>"``.
        """
        line = encode(grammar.STATUS_ERROR_PATH, CommandMode.QUERY)
        return _parse_error_response(self._session.query(line, _TEXT_RESPONSE_LENGTH).text())

    def get_errors(self) -> tuple[ScpiInstrumentError, ...]:
        """Drain the error queue.

        Returns:
            Every queued error, oldest first. Empty if there are none.
        """
        errors: list[ScpiInstrumentError] = []
        while True:
            error = self.get_error()
            if error is None:
                break
            errors.append(error)
        return tuple(errors)

    def check_errors(self) -> None:
        """Drain the error queue and raise if it held errors.

        Raises:
            ScpiCommandError: If the instrument reported any error.
        """
        errors = self.get_errors()
        if errors:
            raise ScpiCommandError(errors)

    # -- Communication modes ------------------------------------------------

    def set_remote(self, enabled: bool) -> None:
        """Set remote (True) or local (False) mode."""
        self._set_flag(grammar.REMOTE_PATH, enabled)
        self._state.remote = enabled

    def set_verbose(self, enabled: bool) -> None:
        """Set whether query responses use full spelling."""
        self._set_flag(grammar.VERBOSE_PATH, enabled)
        self._state.verbose = enabled

    def set_header(self, enabled: bool) -> None:
        """Set whether query responses carry a header."""
        self._set_flag(grammar.HEADER_PATH, enabled)
        self._state.header = enabled

    def set_overlap(self, enabled: bool) -> None:
        """Set whether overlap commands are enabled."""
        self._set_flag(grammar.OVERLAP_PATH, enabled)
        self._state.overlap = enabled

    # -- Status -------------------------------------------------------------

    def set_extended_event_status_enable(self, enabled: bool) -> None:
        """Set the extended event status enable register (``:STATus:EESE``)."""
        self._set_flag(grammar.EESE_PATH, enabled)
        self._state.extended_event_status_enable = enabled

    def set_status_filter(self, register_id: str, condition: Transition | str) -> None:
        """Set which transition of a status bit produces an event.

        Args:
            register_id: Register number, inserted verbatim (e.g. ``"3"``).
            condition: A :class:`Transition` or its name.

        Raises:
            InvalidCommand: If *register_id* is empty or not a valid header
                suffix.
            ValueError: If *condition* names no transition.
        """
        if not isinstance(condition, Transition):
            condition = parse_transition(condition)
        spec = StatusFilterSpec(register_id, condition)
        path = grammar.STATUS_FILTER_PATH.with_suffix(spec.register_id)
        self._session.send(encode(path, CommandMode.SET, spec.condition.value))
        self._state.status_filters[spec.register_id] = spec.condition

    def set_status_filters(self, specs: Iterable[StatusFilterSpec]) -> None:
        """Apply several status filters in order."""
        for spec in specs:
            self.set_status_filter(spec.register_id, spec.condition)

    # -- Input --------------------------------------------------------------

    def get_input_module(self, number: str) -> str:
        """Query the input element type of module *number* (``:INPut:MODUle<n>?``)."""
        path = grammar.INPUT_MODULE_PATH.with_suffix(number)
        return self._session.query(encode(path, CommandMode.QUERY), _TEXT_RESPONSE_LENGTH).text()

    # -- Numeric data -------------------------------------------------------

    def set_numeric_format(self, fmt: NumericFormat | str) -> None:
        """Set the format of numeric data (``:NUMeric:FORMat``).

        This is the only place the mirrored format changes; call it before
        any numeric query that is decoded.

        Args:
            fmt: A :class:`NumericFormat` or its name (``"ASCii"``, ``"FLO"``, ...).

        Raises:
            ValueError: If *fmt* is a string naming no format.
        """
        if not isinstance(fmt, NumericFormat):
            fmt = parse_numeric_format(fmt)
        self._session.send(encode(grammar.NUMERIC_FORMAT_PATH, CommandMode.SET, fmt.value))
        self._state.numeric_format = fmt
        logger.info("Numeric format set to %s", fmt.name)

    def get_numeric_values(self, max_length: int | None = None) -> RawResponse:
        """Query numeric data and return the undecoded response.

        Args:
            max_length: Bound on the response in bytes. Defaults to the
                driver's ``max_response_length``.

        Raises:
            ResponseTruncated: If the response did not fit; the partial bytes
                are attached to the exception.
        """
        limit = self._max_response_length if max_length is None else max_length
        line = encode(grammar.NUMERIC_VALUE_PATH, CommandMode.QUERY)
        return self._session.query(line, limit)

    def get_numeric_values_as_floats(self) -> tuple[float, ...]:
        """Query numeric data and decode it with the current numeric format.

        Raises:
            DecodeError: If no format has been set or the payload is invalid.
        """
        raw = self.get_numeric_values()
        return decode_numeric(raw, self._state.numeric_format, byte_order=self._byte_order)

    # -- Private helpers ----------------------------------------------------

    def _set_flag(self, path: CommandPath, enabled: bool) -> None:
        self._session.send(encode(path, CommandMode.SET, format_bool(enabled)))


def _parse_error_response(raw: str) -> ScpiInstrumentError | None:
    """Parse a ``:STATus:ERRor?`` response; None when the code is 0."""
    if raw.startswith(":"):
        # Header mode prefixes the response with the command name.
        raw = raw.partition(" ")[2]
    code_text, sep, message = raw.partition(",")
    if not sep:
        raise ValueError(f"Invalid error queue response: {raw!r}")
    try:
        code = int(code_text.strip())
    except ValueError:
        raise ValueError(f"Invalid error queue response: {raw!r}") from None
    if code == 0:
        return None
    return ScpiInstrumentError(code=code, message=message.strip().strip('"'))


def create_instrument(config: Wt3000Config | None = None) -> Wt3000:
    """Create a connected WT3000 driver.

    Standard factory entry point for programmatic use. Opens a pyusb bulk
    channel (or a VISA resource when ``config.visa_address`` is set), binds
    it to a session that owns it, runs :meth:`Wt3000.connect`, and applies
    the configured numeric format.

    Args:
        config: Driver settings. Defaults to the WT3000 USB identification
            with default timeouts.

    Returns:
        Connected driver instance. Closing it closes the channel.
    """
    if config is None:
        config = Wt3000Config()

    channel: UsbBulkChannel | VisaChannel
    if config.visa_address is not None:
        channel = VisaChannel(config.visa_address)
    else:
        channel = UsbBulkChannel(
            config.vendor_id,
            config.product_id,
            endpoint_out=config.endpoint_out,
            endpoint_in=config.endpoint_in,
            serial_number=config.serial_number,
        )
    channel.open()

    session = BulkSession(
        channel,
        timeout=config.timeout,
        owns_channel=True,
        log_level=config.log_level,
        name="wt3000",
    )
    instrument = Wt3000(
        session,
        max_response_length=config.max_response_length,
        byte_order=config.byte_order,
    )
    try:
        instrument.connect()
        if config.numeric_format is not None:
            instrument.set_numeric_format(config.numeric_format)
    except Exception:
        instrument.close()
        raise
    return instrument
