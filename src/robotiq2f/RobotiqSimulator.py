import logging
import math
import random
import time
from typing import List, Optional, Tuple

from . import protocol
from .codec import byte_to_hex, bytes_to_hex, crc16_modbus, hex_to_bytes
from .status import FaultStatus, FingerStatus, ObjectStatus
from .TransportBase import TransportBase, TransportError

log = logging.getLogger(__name__)


class RobotiqSimulator(TransportBase):
    """
    Byte-level simulator of a Robotiq adaptive gripper.

    The simulator stands in for the serial transport: requests written to it
    are checked against their CRC and answered the way the gripper answers,
    so a session can be exercised without hardware. Time advances by one tick
    on every feedback request, which keeps runs deterministic.

    Args:
        stroke_ticks (int): Ticks needed for a full 0..255 stroke (default 5).
        activation_ticks (int): Ticks the activation sequence takes (default 3).
        obstacle_at (Optional[int]): Raw position where closing fingers meet an object.
        terminator (Optional[bytes]): Appended to every response, None for bare frames.
        enable_noise (bool): Whether to add noise to the current reading (default False).
    """

    CURRENT_MOVING = 0x20
    CURRENT_GRIPPING = 0x80

    def __init__(self, stroke_ticks: int = 5, activation_ticks: int = 3,
                 obstacle_at: Optional[int] = None,
                 terminator: Optional[bytes] = protocol.LINE_TERMINATOR,
                 enable_noise: bool = False) -> None:
        self._stroke_ticks = max(1, stroke_ticks)
        self._activation_ticks = activation_ticks
        self._obstacle_at = obstacle_at
        self._terminator = terminator or b""
        self._enable_noise = enable_noise

        self._is_open = False
        self._tx = bytearray()
        self.requests: List[str] = []
        self.port: Optional[str] = None
        self.baud: Optional[int] = None

        # Fault injection
        self.silent = False
        self.truncate_responses: Optional[int] = None

        self._initialize_state()

    def _initialize_state(self) -> None:
        """Power-on state: not activated, fingers open."""
        self._gact = 0
        self._ggto = 0
        self._gsta = FingerStatus.IN_RESET.value
        self._gobj = ObjectStatus.IN_MOTION.value
        self._fault = FaultStatus.NONE.value
        self._position = 0
        self._target = 0
        self._current = 0
        self._activation_remaining = 0
        self._delayed_target: Optional[int] = None

    def _calculate_status_byte(self) -> int:
        """Gripper status byte from the current state."""
        return (self._gobj << 6) | (self._gsta << 4) | (self._ggto << 3) | self._gact

    def _add_noise(self, value: int, noise: int = 2) -> int:
        if not self._enable_noise:
            return value
        return max(0, min(255, value + random.randint(-noise, noise)))

    # ------------------ Transport interface ------------------
    def open(self, port: str, baud: int, data_bits: int = TransportBase.DATA_BITS,
             stop_bits: int = TransportBase.STOP_BITS, parity: str = TransportBase.PARITY) -> bool:
        """Simulate opening the port - always succeeds."""
        self.port = port
        self.baud = baud
        self._is_open = True
        return True

    def close(self) -> None:
        self._is_open = False
        self._tx.clear()

    def write(self, data: bytes) -> None:
        if not self._is_open:
            raise TransportError("Simulator not open")
        self._handle_frame(bytes(data))

    def read_byte_with_deadline(self, deadline: float) -> Tuple[Optional[int], bool]:
        if not self._is_open:
            raise TransportError("Simulator not open")
        if self._tx:
            return self._tx.pop(0), True
        remaining = deadline - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)
        return None, False

    def cancel_read(self) -> None:
        self._tx.clear()

    @property
    def is_open(self) -> bool:
        return self._is_open

    # ------------------ Test helpers ------------------
    def inject_fault(self, fault: FaultStatus) -> None:
        """Report ``fault`` in the fault status byte until the next activation."""
        self._fault = fault.value

    @property
    def position(self) -> int:
        return self._position

    @property
    def activated(self) -> bool:
        return bool(self._gact)

    # ------------------ Device behaviour ------------------
    def _handle_frame(self, frame: bytes) -> None:
        text = bytes_to_hex(frame)
        self.requests.append(text)
        if len(text) < 8 or crc16_modbus(text[:-4]) != text[-4:]:
            log.debug(f"Ignoring frame with bad CRC: {text}")
            return
        response = self._respond(text)
        if response is None or self.silent:
            return
        data = hex_to_bytes(response)
        if self.truncate_responses is not None:
            data = data[:self.truncate_responses]
        self._tx += data + self._terminator

    def _respond(self, text: str) -> Optional[str]:
        if text == protocol.READ_FEEDBACK:
            self._tick()
            return self._feedback_frame()
        if text == protocol.PRESET_RESET:
            position = self._position
            self._initialize_state()
            self._position = self._target = position
            return protocol.PRESET_RESPONSE
        if text == protocol.PRESET_ACTIVATE:
            self._start_activation()
            return protocol.PRESET_RESPONSE
        if text.startswith(protocol.PRESET_POSITION_PREFIX) and len(text) == protocol.POSITION_REQUEST_LENGTH:
            offset = len(protocol.PRESET_POSITION_PREFIX)
            self._start_movement(hex_to_bytes(text[offset:offset + 2])[0])
            return protocol.PRESET_RESPONSE
        log.debug(f"Unsupported request: {text}")
        return None

    def _feedback_frame(self) -> str:
        body = (
            protocol.FEEDBACK_RESPONSE_PREFIX
            + byte_to_hex(self._calculate_status_byte())
            + "00"
            + byte_to_hex(self._fault)
            + byte_to_hex(self._target)
            + byte_to_hex(self._position)
            + byte_to_hex(self._add_noise(self._current))
        )
        return body + crc16_modbus(body)

    def _start_activation(self) -> None:
        if self._gact and self._gsta == FingerStatus.ACTIVATION_COMPLETE.value:
            return
        self._gact = 1
        self._ggto = 0
        self._fault = FaultStatus.NONE.value
        self._gobj = ObjectStatus.IN_MOTION.value
        if self._activation_ticks <= 0:
            self._finish_activation()
        else:
            self._gsta = FingerStatus.ACTIVATION_IN_PROGRESS.value
            self._activation_remaining = self._activation_ticks

    def _finish_activation(self) -> None:
        self._activation_remaining = 0
        self._gsta = FingerStatus.ACTIVATION_COMPLETE.value
        self._gobj = ObjectStatus.AT_REQUESTED_POSITION.value
        self._position = self._target = 0
        self._current = 0
        if self._delayed_target is not None:
            self._fault = FaultStatus.NONE.value
            target, self._delayed_target = self._delayed_target, None
            self._start_movement(target)

    def _start_movement(self, word: int) -> None:
        if not self._gact:
            self._fault = FaultStatus.ACTIVATION_NEEDED.value
            return
        if self._gsta != FingerStatus.ACTIVATION_COMPLETE.value:
            # Executed once activation completes
            self._delayed_target = word
            self._fault = FaultStatus.ACTION_DELAYED.value
            return
        self._target = word
        self._ggto = 1
        if self._target == self._position:
            self._gobj = ObjectStatus.AT_REQUESTED_POSITION.value
        else:
            self._gobj = ObjectStatus.IN_MOTION.value
            self._current = self.CURRENT_MOVING

    def _tick(self) -> None:
        """Advance the simulation by one step."""
        if self._activation_remaining > 0:
            self._activation_remaining -= 1
            if self._activation_remaining == 0:
                self._finish_activation()
            return
        if not self._ggto or self._gobj != ObjectStatus.IN_MOTION.value:
            return

        step = int(math.ceil(255 / self._stroke_ticks))
        if self._target > self._position:
            new_position = min(self._target, self._position + step)
            if (self._obstacle_at is not None
                    and self._position < self._obstacle_at < self._target
                    and new_position >= self._obstacle_at):
                self._position = self._obstacle_at
                self._gobj = ObjectStatus.STOPPED_WHILE_CLOSING.value
                self._current = self.CURRENT_GRIPPING
                return
        else:
            new_position = max(self._target, self._position - step)
        self._position = new_position
        if self._position == self._target:
            self._gobj = ObjectStatus.AT_REQUESTED_POSITION.value
            self._current = 0
