import logging
import time
from typing import Optional, Tuple

import serial

from .TransportBase import TransportBase, TransportError

log = logging.getLogger(__name__)

_PARITIES = {
    "N": serial.PARITY_NONE,
    "E": serial.PARITY_EVEN,
    "O": serial.PARITY_ODD,
}
_STOP_BITS = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}


class SerialTransport(TransportBase):
    """
    RS-485 serial transport backed by pyserial.

    Each byte read uses the port timeout to wait no longer than the deadline
    of the caller, so a read never blocks past it.
    """

    def __init__(self) -> None:
        self._serial: Optional[serial.Serial] = None

    def open(self, port: str, baud: int, data_bits: int = TransportBase.DATA_BITS,
             stop_bits: int = TransportBase.STOP_BITS, parity: str = TransportBase.PARITY) -> bool:
        """
        Open and configure the serial port.

        Raises:
            TransportError: If the port cannot be opened or configured.
        """
        self.close()
        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baud,
                bytesize=data_bits,
                stopbits=_STOP_BITS[stop_bits],
                parity=_PARITIES[parity],
                timeout=0,
            )
        except (serial.SerialException, ValueError, KeyError) as e:
            self._serial = None
            raise TransportError(f"Could not open {port} at {baud} baud: {e}") from e
        log.debug(f"Opened {port} at {baud} baud ({data_bits}{parity}{stop_bits})")
        return self._serial.is_open

    def close(self) -> None:
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            log.warning(f"Error while closing serial port: {e}")
        finally:
            self._serial = None

    def write(self, data: bytes) -> None:
        if self._serial is None:
            raise TransportError("Serial port not open")
        try:
            self._serial.write(data)
            self._serial.flush()
        except serial.SerialException as e:
            raise TransportError(f"Failed to write {len(data)} bytes: {e}") from e

    def read_byte_with_deadline(self, deadline: float) -> Tuple[Optional[int], bool]:
        if self._serial is None:
            raise TransportError("Serial port not open")
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return None, False
        try:
            self._serial.timeout = remaining
            data = self._serial.read(1)
        except serial.SerialException as e:
            raise TransportError(f"Failed to read from serial port: {e}") from e
        if not data:
            return None, False
        return data[0], True

    def cancel_read(self) -> None:
        if self._serial is None:
            return
        try:
            self._serial.reset_input_buffer()
        except serial.SerialException as e:
            raise TransportError(f"Failed to discard pending input: {e}") from e

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open
