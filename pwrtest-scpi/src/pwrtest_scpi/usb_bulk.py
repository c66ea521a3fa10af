"""pyusb bulk-endpoint byte channel.

This module provides a :class:`ByteChannel` that talks directly to an
instrument's USB bulk endpoints through pyusb. pyusb is lazily imported on
:meth:`UsbBulkChannel.open` so the rest of pwrtest-scpi works without it.
"""

from __future__ import annotations

import logging
from typing import Any

from pwrtest_core.errors import PwrtestError

logger = logging.getLogger(__name__)

# libusb reports a timed-out transfer with errno ETIMEDOUT.
_ETIMEDOUT = 110


class UsbBulkChannel:
    """Byte channel over a pair of USB bulk endpoints.

    Attributes:
        vendor_id: USB vendor ID of the device.
        product_id: USB product ID of the device.
        is_open: Whether the device is currently claimed.

    Args:
        vendor_id: USB vendor ID.
        product_id: USB product ID.
        endpoint_out: Bulk OUT endpoint address (host to device).
        endpoint_in: Bulk IN endpoint address (device to host).
        serial_number: Optional serial number to select one of several
            identical devices.

    Example:
        >>> channel = UsbBulkChannel(0x0B21, 0x0025, endpoint_out=0x01, endpoint_in=0x83)
        >>> channel.open()
        >>> channel.write(b"*IDN?\\n")
        >>> channel.read(256, timeout=2.0)
        >>> channel.close()
    """

    def __init__(
        self,
        vendor_id: int,
        product_id: int,
        *,
        endpoint_out: int,
        endpoint_in: int,
        serial_number: str | None = None,
        write_timeout: float = 1.0,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._endpoint_out = endpoint_out
        self._endpoint_in = endpoint_in
        self._serial_number = serial_number
        self._write_timeout = write_timeout
        self._device: Any = None
        self._usb_core: Any = None
        self._usb_util: Any = None

    # -- Properties ----------------------------------------------------------

    @property
    def vendor_id(self) -> int:
        return self._vendor_id

    @property
    def product_id(self) -> int:
        return self._product_id

    @property
    def is_open(self) -> bool:
        """Return True if the device is currently claimed."""
        return self._device is not None

    # -- Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Find the device by vendor/product ID and claim its interface.

        Raises:
            PwrtestError: If pyusb is not installed or the device cannot be
                found or configured.
        """
        if self._device is not None:
            return

        try:
            import usb.core  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
            import usb.util  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise PwrtestError("pyusb library is not installed. Install with: pip install pyusb") from exc

        kwargs: dict[str, Any] = {"idVendor": self._vendor_id, "idProduct": self._product_id}
        if self._serial_number is not None:
            kwargs["serial_number"] = self._serial_number
        device = usb.core.find(**kwargs)
        if device is None:
            raise PwrtestError(
                f"USB device {self._vendor_id:04x}:{self._product_id:04x} not found"
            )

        try:
            try:
                device.get_active_configuration()
            except usb.core.USBError:
                device.set_configuration()
            interface = device.get_active_configuration()[(0, 0)]
            if device.is_kernel_driver_active(interface.bInterfaceNumber):
                device.detach_kernel_driver(interface.bInterfaceNumber)
            usb.util.claim_interface(device, interface.bInterfaceNumber)
        except usb.core.USBError as exc:
            usb.util.dispose_resources(device)
            raise PwrtestError(
                f"Failed to claim USB device {self._vendor_id:04x}:{self._product_id:04x}: {exc}"
            ) from exc

        self._device = device
        self._usb_core = usb.core
        self._usb_util = usb.util
        logger.info(
            "Opened USB device %04x:%04x (OUT 0x%02x, IN 0x%02x)",
            self._vendor_id,
            self._product_id,
            self._endpoint_out,
            self._endpoint_in,
        )

    def close(self) -> None:
        """Release the device. Safe to call multiple times."""
        if self._device is None:
            return
        try:
            self._usb_util.dispose_resources(self._device)
        except Exception:  # pylint: disable=broad-except
            logger.warning("Error releasing USB device", exc_info=True)
        self._device = None

    # -- Channel interface ---------------------------------------------------

    def write(self, data: bytes) -> int:
        """Write *data* to the bulk OUT endpoint.

        Raises:
            PwrtestError: If the device is not open.
        """
        if self._device is None:
            raise PwrtestError("USB device is not open")
        count: int = self._device.write(
            self._endpoint_out, data, timeout=int(self._write_timeout * 1000)
        )
        return count

    def read(self, max_length: int, timeout: float) -> bytes:
        """Read up to *max_length* bytes from the bulk IN endpoint.

        A transfer timeout is reported as an empty read; other USB errors
        propagate.

        Raises:
            PwrtestError: If the device is not open.
        """
        if self._device is None:
            raise PwrtestError("USB device is not open")
        try:
            data = self._device.read(self._endpoint_in, max_length, timeout=int(timeout * 1000))
        except self._usb_core.USBTimeoutError:
            return b""
        except self._usb_core.USBError as exc:
            if getattr(exc, "errno", None) == _ETIMEDOUT:
                return b""
            raise
        return bytes(data)
