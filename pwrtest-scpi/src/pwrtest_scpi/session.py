"""Transport session for command/response exchanges over a byte channel.

This module provides :class:`BulkSession`, which owns access to one
:class:`ByteChannel` and performs the framing of a single exchange: it writes
an encoded command line and, for queries, reads until the response is
complete, the caller's length bound is hit, or the channel runs dry.

Typical usage::

    from pwrtest_scpi import BulkSession, CommandMode, encode

    session = BulkSession(timeout=2.0)
    session.bind(channel)
    response = session.query(encode("*IDN?", CommandMode.EVENT), max_length=256)
    print(response.text())

The session performs no retries and no locking. Issuing two operations on
the same session from different threads must be serialized by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pwrtest_scpi.errors import (
    DecodeError,
    NotConnected,
    ResponseTruncated,
    TransportReadError,
    TransportWriteError,
)
from pwrtest_scpi.number import parse_block_header

if TYPE_CHECKING:
    from pwrtest_scpi.channel import ByteChannel

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0
"""Default per-read timeout in seconds."""


@dataclass(frozen=True)
class RawResponse:
    """Bytes captured from one response read.

    Attributes:
        data: The bytes received, including any terminator.
        truncated: True if the length bound was hit before the response
            was complete.
    """

    data: bytes
    truncated: bool = False

    @property
    def length(self) -> int:
        """Number of bytes actually received."""
        return len(self.data)

    def text(self) -> str:
        """Decode as ASCII with the trailing terminator and whitespace removed.

        Raises:
            DecodeError: If the payload is not ASCII.
        """
        try:
            return self.data.decode("ascii").strip()
        except UnicodeDecodeError as exc:
            raise DecodeError("non-ASCII payload") from exc


class BulkSession:
    """Command/response session over a :class:`ByteChannel`.

    The session is created unbound. Every operation on an unbound session
    raises :class:`NotConnected`.

    Attributes:
        timeout: Per-read timeout in seconds.
        terminator: Byte that ends a response.
        log_level: Logging level for this session's traffic log.

    Args:
        channel: Optional channel to bind immediately.
        timeout: Per-read timeout in seconds. Must be positive.
        terminator: Response terminator byte. Defaults to ``b"\\n"``.
        owns_channel: If True, :meth:`close` also closes the channel.
        log_level: Initial logging level. Defaults to ``logging.DEBUG``.
        name: Suffix for the session logger name.
    """

    def __init__(
        self,
        channel: ByteChannel | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        terminator: bytes = b"\n",
        owns_channel: bool = False,
        log_level: int = logging.DEBUG,
        name: str = "session",
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        if len(terminator) != 1:
            raise ValueError(f"terminator must be a single byte, got {terminator!r}")
        self._channel = channel
        self._timeout = timeout
        self._terminator = terminator
        self._owns_channel = owns_channel
        self._log = logger.getChild(name)
        self._log.setLevel(log_level)
        self._discard_terminator = False

    # -- Properties ----------------------------------------------------------

    @property
    def is_bound(self) -> bool:
        """Return True if a channel is bound."""
        return self._channel is not None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def terminator(self) -> bytes:
        return self._terminator

    @property
    def log_level(self) -> int:
        """The logging level of this session's logger."""
        return self._log.level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log.setLevel(level)

    # -- Lifecycle -----------------------------------------------------------

    def bind(self, channel: ByteChannel, *, owns_channel: bool = False) -> None:
        """Bind the session to *channel*.

        Rebinding replaces the previous channel without closing it.

        Args:
            channel: The channel to use for all subsequent operations.
            owns_channel: If True, :meth:`close` also closes the channel.
        """
        self._channel = channel
        self._owns_channel = owns_channel
        self._discard_terminator = False
        self._log.debug("Bound to channel %r", channel)

    def close(self) -> None:
        """Unbind the channel, closing it only if the session owns it."""
        channel = self._channel
        if channel is None:
            return
        self._channel = None
        if self._owns_channel:
            channel.close()

    # -- Exchange ------------------------------------------------------------

    def send(self, line: str) -> None:
        """Write an encoded command line to the channel.

        Args:
            line: A terminated command line from :func:`encode`.

        Raises:
            NotConnected: If no channel is bound.
            TransportWriteError: If the channel fails or accepts fewer bytes
                than were sent.
        """
        channel = self._require_channel()
        data = line.encode("ascii")
        self._log.debug("-> %r", data)
        try:
            written = channel.write(data)
        except Exception as exc:
            raise TransportWriteError(
                f"Channel write failed after 0/{len(data)} byte(s): {exc}", expected=len(data)
            ) from exc
        if written != len(data):
            raise TransportWriteError(
                f"Short write: {written}/{len(data)} byte(s) accepted",
                expected=len(data),
                written=written,
            )

    def query(self, line: str, max_length: int) -> RawResponse:
        """Send a query and read its response.

        Args:
            line: A terminated query line from :func:`encode`.
            max_length: Maximum number of response bytes to read.

        Returns:
            The response, or the bytes received before the channel ran dry.

        Raises:
            NotConnected: If no channel is bound.
            TransportWriteError: If sending fails.
            TransportReadError: If the channel fails while reading.
            ResponseTruncated: If the length bound was hit before the
                response was complete.
        """
        self.send(line)
        return self.read_response(max_length)

    def read_response(self, max_length: int) -> RawResponse:
        """Read one response of at most *max_length* bytes.

        Reading stops when the response is complete, when *max_length* bytes
        are held, or when the channel returns no data (end of data or
        timeout). In the last case the bytes received so far are returned.

        A response is complete once it ends with the terminator. An IEEE
        488.2 definite-length block is complete once all declared bytes are
        held; a terminator that trails such a block in a later read is
        discarded at the start of the next response.

        Raises:
            ValueError: If *max_length* is negative.
            NotConnected: If no channel is bound.
            TransportReadError: If the channel fails.
            ResponseTruncated: If *max_length* bytes were read without a
                complete response, or *max_length* is zero.
        """
        if max_length < 0:
            raise ValueError(f"max_length must be >= 0, got {max_length}")
        channel = self._require_channel()
        buffer = bytearray()
        while len(buffer) < max_length:
            try:
                chunk = channel.read(max_length - len(buffer), self._timeout)
            except Exception as exc:
                raise TransportReadError(
                    f"Channel read failed after {len(buffer)} byte(s): {exc}",
                    received=bytes(buffer),
                ) from exc
            if not chunk:
                response = RawResponse(bytes(buffer))
                self._log.debug("<- %r (end of data)", response.data)
                return response
            if self._discard_terminator:
                self._discard_terminator = False
                if chunk.startswith(self._terminator):
                    chunk = chunk[1:]
                    if not chunk:
                        continue
            buffer += chunk
            if self._is_complete(buffer):
                response = RawResponse(bytes(buffer))
                self._log.debug("<- %r", response.data)
                return response

        response = RawResponse(bytes(buffer), truncated=True)
        self._log.debug("<- %r (truncated)", response.data)
        raise ResponseTruncated(response, max_length)

    # -- Private helpers -----------------------------------------------------

    def _require_channel(self) -> ByteChannel:
        if self._channel is None:
            raise NotConnected("Session is not bound to a channel")
        return self._channel

    def _is_complete(self, buffer: bytearray) -> bool:
        if buffer.startswith(b"#"):
            try:
                header = parse_block_header(bytes(buffer[:11]))
            except ValueError:
                # Not a block after all; the terminator decides.
                return buffer.endswith(self._terminator)
            if header is None:
                return False
            total = header.total_length
            if total is not None:
                # Block data may itself contain the terminator byte.
                if len(buffer) == total:
                    self._discard_terminator = True
                    return True
                return len(buffer) > total and buffer.endswith(self._terminator)
        return buffer.endswith(self._terminator)
