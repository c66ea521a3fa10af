"""Byte channel protocol definition.

This module defines the :class:`ByteChannel` protocol, which specifies the
interface a transport must provide to carry SCPI traffic. Channels move raw
bytes; framing, terminators and decoding belong to
:class:`pwrtest_scpi.session.BulkSession`.

Implementations include:
- :class:`pwrtest_scpi.UsbBulkChannel`: pyusb bulk endpoints
- :class:`pwrtest_scpi.VisaChannel`: PyVISA raw I/O
- Emulator channels in instrument packages (e.g., pwrtest-yokogawa)
"""

from __future__ import annotations

from typing import Protocol


class ByteChannel(Protocol):
    """Protocol for a bidirectional byte channel.

    This is a structural subtyping protocol (duck typing). Any class that
    implements ``write()``, ``read()``, and ``close()`` with the correct
    signatures is a valid channel.

    Example:
        >>> class LoopbackChannel:
        ...     def __init__(self) -> None:
        ...         self.pending = b""
        ...     def write(self, data: bytes) -> int:
        ...         self.pending += data
        ...         return len(data)
        ...     def read(self, max_length: int, timeout: float) -> bytes:
        ...         chunk, self.pending = self.pending[:max_length], self.pending[max_length:]
        ...         return chunk
        ...     def close(self) -> None:
        ...         pass
        ...
        >>> channel: ByteChannel = LoopbackChannel()  # Type checks OK
    """

    def write(self, data: bytes) -> int:
        """Write *data* to the outbound channel.

        Args:
            data: Bytes to send.

        Returns:
            Number of bytes actually written.
        """
        ...

    def read(self, max_length: int, timeout: float) -> bytes:
        """Read up to *max_length* bytes from the inbound channel.

        Blocks until data is available or *timeout* seconds elapse.

        Args:
            max_length: Maximum number of bytes to return.
            timeout: Maximum time to wait, in seconds.

        Returns:
            The bytes received; empty on timeout or end of data.
        """
        ...

    def close(self) -> None:
        """Close the channel and release resources."""
        ...
