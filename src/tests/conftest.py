import time
from typing import List, Optional, Tuple

import pytest

from robotiq2f import GripperConfig, RobotiqGripper, RobotiqSimulator
from robotiq2f.TransportBase import TransportBase, TransportError


class ScriptedTransport(TransportBase):
    """
    Transport replaying a fixed script of incoming bytes.

    ``stall(late)`` makes the next read time out; ``late`` bytes then show
    up as if they had arrived after the deadline, and only ``cancel_read``
    removes them.
    """

    STALL = object()

    def __init__(self) -> None:
        self._script: List[object] = []
        self._late = bytearray()
        self._open = False
        self.written: List[bytes] = []
        self.cancels = 0
        self.fail_open = False
        self.fail_write = False
        self.fail_read = False

    def feed(self, data: bytes) -> "ScriptedTransport":
        self._script.extend(data)
        return self

    def stall(self, late: bytes = b"") -> "ScriptedTransport":
        self._script.append((self.STALL, late))
        return self

    def open(self, port, baud, data_bits=8, stop_bits=1, parity="N") -> bool:
        if self.fail_open:
            raise TransportError(f"cannot open {port}")
        self._open = True
        return True

    def close(self) -> None:
        self._open = False

    def write(self, data: bytes) -> None:
        if self.fail_write:
            raise TransportError("write failed")
        self.written.append(bytes(data))

    def read_byte_with_deadline(self, deadline: float) -> Tuple[Optional[int], bool]:
        if self.fail_read:
            raise TransportError("read failed")
        if self._late:
            return self._late.pop(0), True
        if self._script and isinstance(self._script[0], int):
            return self._script.pop(0), True
        if self._script:
            _, late = self._script.pop(0)
            self._late += late
        remaining = deadline - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)
        return None, False

    def cancel_read(self) -> None:
        self.cancels += 1
        self._late.clear()

    @property
    def is_open(self) -> bool:
        return self._open


@pytest.fixture
def scripted():
    return ScriptedTransport()


@pytest.fixture
def simulator():
    return RobotiqSimulator()


@pytest.fixture
def config():
    """2F-85 stroke in metres, short timeouts, no settling delay."""
    return GripperConfig(
        receive_timeout_ms=20,
        scale_alpha=-0.086,
        scale_beta=0.086,
        activation_settle_s=0.0,
        max_polls=100,
    )


@pytest.fixture
def gripper(config, simulator):
    g = RobotiqGripper(config, transport=simulator)
    assert g.connect("/dev/ttySIM0")
    yield g
    g.close()
