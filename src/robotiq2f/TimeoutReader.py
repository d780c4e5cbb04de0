import logging
import time
from typing import Optional, Tuple

from .TransportBase import TransportBase, TransportError

log = logging.getLogger(__name__)


class TimeoutReader:
    """
    Bounded reads on top of a byte-stream transport.

    Every byte request is raced against its own deadline of ``timeout_ms``.
    When the deadline wins, the outstanding read is cancelled on the
    transport before anything else is requested, so a late byte can never
    be delivered to a later read.

    Args:
        transport (TransportBase): Transport to read from.
        timeout_ms (int): Per-byte timeout in milliseconds.
    """

    def __init__(self, transport: TransportBase, timeout_ms: int) -> None:
        self.transport = transport
        self.timeout_ms = timeout_ms

    def read_byte(self) -> Tuple[Optional[int], bool]:
        """
        Read one byte, waiting at most ``timeout_ms``.

        Returns:
            Tuple[Optional[int], bool]: (byte, True) on arrival, (None, False)
            on timeout or transport error.
        """
        deadline = time.monotonic() + self.timeout_ms / 1000.0
        try:
            byte, arrived = self.transport.read_byte_with_deadline(deadline)
            if not arrived:
                self.transport.cancel_read()
                return None, False
        except TransportError as e:
            log.error(f"Read failed: {e}")
            return None, False
        return byte, True

    def read_line(self, terminator: bytes = b"\n", min_length: int = 0) -> Tuple[bool, bytes]:
        """
        Accumulate bytes until ``terminator`` is seen.

        Binary payloads may contain the terminator byte; it only ends the
        line once at least ``min_length`` bytes have been collected.

        Args:
            terminator (bytes): Single-byte line terminator.
            min_length (int): Length below which a terminator byte is data.

        Returns:
            Tuple[bool, bytes]: (True, line without terminator) if the
            terminator arrived, (False, b"") on timeout or transport error.
        """
        end = terminator[0]
        line = bytearray()
        while True:
            byte, ok = self.read_byte()
            if not ok:
                if line:
                    log.debug(f"Discarding {len(line)} bytes of an unterminated line")
                return False, b""
            if byte == end and len(line) >= min_length:
                return True, bytes(line)
            line.append(byte)

    def read_frame(self) -> bytes:
        """
        Accumulate bytes until the line stays quiet for ``timeout_ms``.

        MODBUS RTU marks the end of a frame by silence on the line; an empty
        result means the device did not answer.
        """
        frame = bytearray()
        while True:
            byte, ok = self.read_byte()
            if not ok:
                return bytes(frame)
            frame.append(byte)


def read_line(transport: TransportBase, timeout_ms: int, terminator: bytes = b"\n",
              min_length: int = 0) -> Tuple[bool, bytes]:
    """Read one terminated line from ``transport``, see TimeoutReader.read_line."""
    return TimeoutReader(transport, timeout_ms).read_line(terminator, min_length)
