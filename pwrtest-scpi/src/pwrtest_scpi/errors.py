"""SCPI protocol error types.

This module defines exception classes for the failures that may occur while
composing commands, moving bytes over a channel, and decoding responses. All
exceptions inherit from :class:`pwrtest_core.errors.PwrtestError`.

Exception hierarchy:
    ScpiError
    +-- InvalidCommand: Malformed local request, never reaches the wire
    +-- NotConnected: Session has no channel bound
    +-- TransportError
    |   +-- TransportWriteError: Channel write failed or was short
    |   +-- TransportReadError: Channel read failed
    +-- ResponseTruncated: Response incomplete, partial bytes attached
    +-- DecodeError: Payload present but unparseable
    +-- ScpiCommandError: Instrument reported queued errors
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pwrtest_core.errors import PwrtestError

if TYPE_CHECKING:
    from pwrtest_scpi.session import RawResponse


class ScpiError(PwrtestError):
    """Base exception for SCPI protocol errors.

    All SCPI-related exceptions inherit from this class, allowing callers
    to catch all SCPI errors with a single except clause.
    """


class InvalidCommand(ScpiError):
    """Raised when a command cannot be encoded.

    The request is rejected locally; nothing is written to the channel.
    """


class NotConnected(ScpiError):
    """Raised when an operation is issued on a session with no bound channel."""


class TransportError(ScpiError):
    """Base exception for channel failures."""


class TransportWriteError(TransportError):
    """Raised when the channel rejects a write or accepts fewer bytes than sent.

    Attributes:
        expected: Number of bytes that should have been written.
        written: Number of bytes the channel reported, or None if the write
            raised.
    """

    def __init__(self, message: str, *, expected: int = 0, written: int | None = None) -> None:
        self.expected = expected
        self.written = written
        super().__init__(message)


class TransportReadError(TransportError):
    """Raised when the channel fails during a read.

    Attributes:
        received: Bytes already received before the failure.
    """

    def __init__(self, message: str, *, received: bytes = b"") -> None:
        self.received = received
        super().__init__(message)


class ResponseTruncated(ScpiError):
    """Raised when a response ended before its terminator was seen.

    The bytes that did arrive are attached so the caller may still use them.

    Attributes:
        response: The partial response, flagged as truncated.
    """

    def __init__(self, response: RawResponse, max_length: int) -> None:
        self.response = response
        self.max_length = max_length
        super().__init__(
            f"Response truncated after {response.length} byte(s) "
            f"(limit {max_length}): {response.data[:32]!r}"
        )


class DecodeError(ScpiError):
    """Raised when a response payload cannot be decoded.

    Attributes:
        reason: Short description of the failure (e.g. ``"malformed token"``).
        position: 1-based position of the offending element, if any.
        token: The offending token text, if any.

    Example:
        >>> try:
        ...     decode_numeric(raw, NumericFormat.ASCII)
        ... except DecodeError as e:
        ...     print(f"Element {e.position} is bad: {e.token!r}")
    """

    def __init__(self, reason: str, *, position: int | None = None, token: str | None = None) -> None:
        self.reason = reason
        self.position = position
        self.token = token
        message = reason
        if position is not None:
            message += f" at position {position}"
        if token is not None:
            message += f": {token!r}"
        super().__init__(message)


@dataclass(frozen=True)
class ScpiInstrumentError:
    """Single error from an instrument's error queue.

    Attributes:
        code: Error code reported by the instrument.
        message: Human-readable error description from the instrument.
    """

    code: int
    message: str

    def __str__(self) -> str:
        """Return SCPI-format error string.

        Returns:
            Error formatted as ``code,"message"``.
        """
        return f'{self.code},"{self.message}"'


class ScpiCommandError(ScpiError):
    """Raised when an instrument reports queued errors.

    Attributes:
        errors: One or more errors drained from the instrument's error queue.
    """

    def __init__(self, errors: tuple[ScpiInstrumentError, ...]) -> None:
        """Initialize the command error with instrument errors.

        Args:
            errors: Tuple of instrument errors from the error queue.
        """
        self.errors = errors
        messages = "; ".join(str(e) for e in errors)
        super().__init__(f"SCPI instrument error(s): {messages}")
