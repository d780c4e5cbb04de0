from abc import ABC, abstractmethod
from typing import Optional, Tuple


class TransportError(RuntimeError):
    """Open, write or read failure at the byte-stream layer."""


class TransportBase(ABC):
    """
    Abstract base class for byte-stream transports.

    This class defines the interface the gripper session talks to, whether it
    is a real serial port, the simulator, or a test double.
    """

    DATA_BITS = 8
    STOP_BITS = 1
    PARITY = "N"

    @abstractmethod
    def open(self, port: str, baud: int, data_bits: int = DATA_BITS,
             stop_bits: int = STOP_BITS, parity: str = PARITY) -> bool:
        """Open the transport. Returns True if connected."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all bytes, blocking until they are handed to the line."""
        pass

    @abstractmethod
    def read_byte_with_deadline(self, deadline: float) -> Tuple[Optional[int], bool]:
        """
        Wait for one byte until ``deadline`` (a ``time.monotonic()`` value).

        Returns:
            Tuple[Optional[int], bool]: (byte, True) if a byte arrived,
            (None, False) if the deadline passed first.
        """
        pass

    def cancel_read(self) -> None:
        """
        Cancel the read that lost a race against its deadline.

        Bytes arriving after the deadline belong to the abandoned exchange and
        must not be returned by the next read.
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass
