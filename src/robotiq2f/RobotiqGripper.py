import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from . import protocol
from .codec import bytes_to_hex, crc16_modbus, hex_to_bytes
from .config import FRAMING_LINE, GripperConfig
from .SerialTransport import SerialTransport
from .status import (
    ActivationStatus,
    BasicStatus,
    DetailedStatus,
    GripperFeedback,
    ObjectStatus,
)
from .TimeoutReader import TimeoutReader
from .TransportBase import TransportBase, TransportError

log = logging.getLogger(__name__)

RAW_MIN = 0
RAW_MAX = 255

# Absorbs float error so that position_to_word(word_to_position(w)) == w.
_WORD_EPSILON = 1e-9


@dataclass
class _SessionState:
    connected: bool
    timeout_ms: int
    scale_alpha: float
    scale_beta: float


class RobotiqGripper:
    """
    Session with a Robotiq adaptive gripper over ASCII-hex MODBUS RTU.

    Tested against a 2F-85 through an RS-485 to USB converter. Every
    operation blocks the calling thread; a session must not be used from
    several threads at once since requests and responses share one line.

    Operations on a session that is not connected do no I/O, log a warning
    and return False (or default feedback).

    Args:
        config (Optional[GripperConfig]): Session settings, defaults if None.
        transport (Optional[TransportBase]): Byte transport, a SerialTransport if None.
    """

    def __init__(self, config: Optional[GripperConfig] = None,
                 transport: Optional[TransportBase] = None) -> None:
        self.config = config if config is not None else GripperConfig()
        self._transport = transport if transport is not None else SerialTransport()
        self._state = _SessionState(
            connected=False,
            timeout_ms=self.config.receive_timeout_ms,
            scale_alpha=self.config.scale_alpha,
            scale_beta=self.config.scale_beta,
        )

    def __enter__(self) -> "RobotiqGripper":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_connected(self) -> bool:
        return self._state.connected

    # ------------------ Connection ------------------
    def connect(self, port: Optional[str] = None, baud: Optional[int] = None,
                scale_alpha: Optional[float] = None, scale_beta: Optional[float] = None) -> bool:
        """
        Open the serial link (8 data bits, 1 stop bit, no parity).

        Arguments left as None are taken from the session config. An open
        connection is closed first.

        Args:
            port (Optional[str]): Serial port.
            baud (Optional[int]): Baud rate.
            scale_alpha (Optional[float]): Linear slope factor for position scaling.
            scale_beta (Optional[float]): Zero crossing factor for position scaling.

        Returns:
            bool: True if connected.

        Raises:
            ValueError: If scale_alpha is zero.
        """
        port = port if port is not None else self.config.port
        baud = baud if baud is not None else self.config.baud
        alpha = scale_alpha if scale_alpha is not None else self.config.scale_alpha
        beta = scale_beta if scale_beta is not None else self.config.scale_beta
        if alpha == 0:
            raise ValueError("scale_alpha must not be zero")

        self._state.scale_alpha = alpha
        self._state.scale_beta = beta

        if self._state.connected:
            self.close()

        try:
            connected = self._transport.open(port, baud, data_bits=8, stop_bits=1, parity="N")
        except TransportError as e:
            log.error(f"connect() failed with error: {e}")
            return False

        self._state.connected = bool(connected)
        if self._state.connected:
            log.info(f"Connected to gripper on {port} at {baud} baud")
        else:
            log.error(f"connect() could not open {port}")
        return self._state.connected

    def close(self) -> None:
        """Close the transport and mark the session disconnected."""
        if self._state.connected:
            self._transport.close()
            log.info("Gripper connection closed")
        self._state.connected = False

    def set_timeout(self, timeout_ms: int) -> None:
        """Set the per-byte receive timeout in ms."""
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self._state.timeout_ms = timeout_ms

    def get_timeout(self) -> int:
        """Return the per-byte receive timeout in ms."""
        return self._state.timeout_ms

    # ------------------ Commands ------------------
    def reset(self, blocking: bool = True) -> bool:
        """
        Reset (deactivate) the gripper.

        Args:
            blocking (bool): Wait until the gripper reports it is not activated.

        Returns:
            bool: True if succeeded.
        """
        if not self._check_connected("reset"):
            return False
        if not self._command("reset", protocol.PRESET_RESET):
            return False
        if blocking:
            return self._wait_until(
                "reset", lambda fb: fb.status.gact is ActivationStatus.NOT_ACTIVATED)
        return True

    def activate(self, blocking: bool = True) -> bool:
        """
        Activate the gripper, which makes the fingers move.

        Args:
            blocking (bool): Wait until the gripper reports it is activated.

        Returns:
            bool: True if succeeded.
        """
        if not self._check_connected("activate"):
            return False
        if not self._command("activate", protocol.PRESET_ACTIVATE):
            return False
        if blocking:
            if not self._wait_until(
                    "activate", lambda fb: fb.status.gact is ActivationStatus.ACTIVATED):
                return False
            # gACT goes high before the fingers have settled
            time.sleep(self.config.activation_settle_s)
        return True

    def is_activated(self) -> bool:
        """Query feedback and report whether the gripper is activated."""
        if not self._check_connected("is_activated"):
            return False
        return self.get_feedback().status.gact is ActivationStatus.ACTIVATED

    def close_gripper(self, blocking: bool = True) -> bool:
        """Close until fully closed or an object is met."""
        return self._set_raw_gripper_position(RAW_MAX, blocking)

    def open_gripper(self, blocking: bool = True) -> bool:
        """Open until fully open or an object is met."""
        return self._set_raw_gripper_position(RAW_MIN, blocking)

    def set_gripper_position(self, position: float, blocking: bool = True) -> bool:
        """
        Move to a position given in scaled units.

        Args:
            position (float): Target position, scaled by alpha/beta.
            blocking (bool): Wait until the fingers stop moving.

        Returns:
            bool: True if succeeded.
        """
        return self._set_raw_gripper_position(self.position_to_word(position), blocking)

    def _set_raw_gripper_position(self, word: int, blocking: bool) -> bool:
        if not self._check_connected("set_raw_gripper_position"):
            return False
        word = max(RAW_MIN, min(RAW_MAX, int(word)))
        if not self._command("set_raw_gripper_position", protocol.build_position_request(word)):
            return False
        if blocking:
            return self._wait_until(
                "set_raw_gripper_position",
                lambda fb: fb.status.gobj is not ObjectStatus.IN_MOTION)
        return True

    # ------------------ Feedback ------------------
    def get_feedback(self) -> GripperFeedback:
        """
        Query the gripper status registers.

        Returns:
            GripperFeedback: Decoded feedback, or a default value with
            ``valid=False`` if the query failed.
        """
        if not self._check_connected("get_feedback"):
            return GripperFeedback()

        r = self._write_read(protocol.READ_FEEDBACK, protocol.FEEDBACK_RESPONSE_LENGTH)
        if len(r) != protocol.FEEDBACK_RESPONSE_LENGTH:
            log.warning(f"get_feedback() returned an unexpected number of bytes ({len(r) // 2}), "
                        "consider increasing the timeout setting")
            return GripperFeedback()
        if crc16_modbus(r[:-4]) != r[-4:]:
            log.warning(f"get_feedback() response {r} failed the CRC check")
            return GripperFeedback()

        raw_commanded = self._byte_at(r, protocol.OFFSET_POSITION_REQUEST)
        raw_position = self._byte_at(r, protocol.OFFSET_POSITION)
        return GripperFeedback(
            commanded_position=self.word_to_position(raw_commanded),
            position=self.word_to_position(raw_position),
            current=self._byte_at(r, protocol.OFFSET_CURRENT) / 255.0,
            raw_commanded_position=raw_commanded,
            raw_position=raw_position,
            status=DetailedStatus.from_bytes(
                self._byte_at(r, protocol.OFFSET_GRIPPER_STATUS),
                self._byte_at(r, protocol.OFFSET_FAULT_STATUS)),
            valid=True,
        )

    def get_basic_status(self) -> BasicStatus:
        """Summarised status, NOT_CONNECTED if there is no usable feedback."""
        if not self._state.connected:
            return BasicStatus.NOT_CONNECTED
        feedback = self.get_feedback()
        if not feedback.valid:
            return BasicStatus.NOT_CONNECTED
        return feedback.basic_status

    # ------------------ Scaling ------------------
    def word_to_position(self, word: int) -> float:
        """Scale a raw word (0..255) to a position."""
        return (self._state.scale_alpha / 255.0) * float(word) + self._state.scale_beta

    def position_to_word(self, position: float) -> int:
        """Scale a position to a raw word, saturating to 0..255."""
        raw = 255.0 / self._state.scale_alpha * (position - self._state.scale_beta)
        raw = max(raw, float(RAW_MIN))
        raw = min(raw, float(RAW_MAX))
        return int(math.floor(raw + _WORD_EPSILON))

    # ------------------ Internals ------------------
    def _check_connected(self, operation: str) -> bool:
        if not self._state.connected:
            log.warning(f"{operation}() ignored since the gripper is not connected")
        return self._state.connected

    @staticmethod
    def _byte_at(response: str, offset: int) -> int:
        return hex_to_bytes(response[offset:offset + 2])[0]

    def _command(self, operation: str, message: str) -> bool:
        r = self._write_read(message, len(protocol.PRESET_RESPONSE))
        if r != protocol.PRESET_RESPONSE:
            log.warning(f"{operation}() got response {r!r}, expected {protocol.PRESET_RESPONSE!r}")
            return False
        return True

    def _write_read(self, message: str, response_length: int) -> str:
        """Send an ASCII-hex request and return the response as ASCII-hex, '' on failure."""
        log.debug(f"TX {message}")
        try:
            self._transport.write(hex_to_bytes(message))
        except TransportError as e:
            log.error(f"Write failed: {e}")
            return ""

        reader = TimeoutReader(self._transport, self._state.timeout_ms)
        if self.config.framing == FRAMING_LINE:
            ok, payload = reader.read_line(protocol.LINE_TERMINATOR, min_length=response_length // 2)
            if not ok:
                log.warning(f"No response within {self._state.timeout_ms} ms")
                return ""
        else:
            payload = reader.read_frame()
        response = bytes_to_hex(payload)
        log.debug(f"RX {response}")
        return response

    def _wait_until(self, operation: str, done: Callable[[GripperFeedback], bool]) -> bool:
        polls = 0
        while True:
            if self.config.max_polls is not None and polls >= self.config.max_polls:
                log.warning(f"{operation}() gave up after {polls} feedback polls")
                return False
            if not self._state.connected:
                return False
            feedback = self.get_feedback()
            polls += 1
            if feedback.valid and done(feedback):
                return True
            if self.config.poll_interval_s > 0:
                time.sleep(self.config.poll_interval_s)
