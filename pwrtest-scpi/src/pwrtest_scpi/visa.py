"""PyVISA byte channel.

This module provides a VISA-based :class:`ByteChannel` for instruments that
are reachable through a VISA library (USBTMC, GPIB, LAN). It wraps PyVISA's
raw I/O so terminators and framing stay under the control of the session.
PyVISA is lazily imported to allow the rest of pwrtest-scpi to work without
it installed.

Supported resource string formats include:
- USB: ``USB0::0x0B21::0x0025::91234::INSTR``
- GPIB: ``GPIB0::1::INSTR``
- TCPIP: ``TCPIP::192.168.1.100::INSTR``
"""

from __future__ import annotations

import logging
from typing import Any

from pwrtest_core.errors import PwrtestError

logger = logging.getLogger(__name__)


class VisaChannel:
    """Byte channel backed by PyVISA.

    Attributes:
        resource_string: The VISA resource address string.
        is_open: Whether the resource is currently open.

    Args:
        resource_string: VISA resource address.

    Example:
        >>> channel = VisaChannel("USB0::0x0B21::0x0025::91234::INSTR")
        >>> channel.open()
        >>> channel.write(b"*IDN?\\n")
        >>> channel.read(256, timeout=2.0)
        >>> channel.close()
    """

    def __init__(self, resource_string: str) -> None:
        self._resource_string = resource_string
        self._rm: Any = None
        self._resource: Any = None
        self._io_error: type[Exception] | None = None
        self._timeout_code: Any = None

    # -- Properties ----------------------------------------------------------

    @property
    def resource_string(self) -> str:
        """The VISA resource string."""
        return self._resource_string

    @property
    def is_open(self) -> bool:
        """Return True if the resource is currently open."""
        return self._resource is not None

    # -- Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Open the VISA resource.

        Lazily imports ``pyvisa`` and creates a :class:`ResourceManager`.

        Raises:
            PwrtestError: If ``pyvisa`` is not installed or the resource
                cannot be opened.
        """
        if self._resource is not None:
            return

        try:
            import pyvisa  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise PwrtestError(
                "pyvisa library is not installed. Install with: pip install pyvisa"
            ) from exc

        try:
            self._rm = pyvisa.ResourceManager()
            self._resource = self._rm.open_resource(self._resource_string)
        except Exception as exc:
            self.close()
            raise PwrtestError(
                f"Failed to open VISA resource {self._resource_string!r}: {exc}"
            ) from exc
        self._io_error = pyvisa.errors.VisaIOError
        self._timeout_code = pyvisa.constants.StatusCode.error_timeout
        logger.info("Opened VISA resource %s", self._resource_string)

    def close(self) -> None:
        """Release the resource, then its resource manager. Repeatable."""
        resource, manager = self._resource, self._rm
        self._resource = None
        self._rm = None
        for handle, what in ((resource, "resource"), (manager, "resource manager")):
            if handle is None:
                continue
            try:
                handle.close()
            except Exception:  # pylint: disable=broad-except
                logger.warning("Error closing VISA %s for %s", what, self._resource_string, exc_info=True)

    # -- Channel interface ---------------------------------------------------

    def write(self, data: bytes) -> int:
        """Send raw bytes to the instrument.

        Raises:
            PwrtestError: If the resource is not open.
        """
        if self._resource is None:
            raise PwrtestError("VISA resource is not open")
        count: int = self._resource.write_raw(data)
        return count

    def read(self, max_length: int, timeout: float) -> bytes:
        """Read up to *max_length* raw bytes.

        A VISA timeout is reported as an empty read; other VISA errors
        propagate.

        Raises:
            PwrtestError: If the resource is not open.
        """
        if self._resource is None:
            raise PwrtestError("VISA resource is not open")
        self._resource.timeout = int(timeout * 1000)
        try:
            data: bytes = self._resource.read_bytes(max_length, break_on_termchar=True)
        except Exception as exc:
            if self._is_timeout(exc):
                return b""
            raise
        return data

    def _is_timeout(self, exc: Exception) -> bool:
        if self._io_error is None or not isinstance(exc, self._io_error):
            return False
        return getattr(exc, "error_code", None) == self._timeout_code
