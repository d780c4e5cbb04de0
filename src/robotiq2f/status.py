from dataclasses import dataclass, field
from enum import Enum


class BasicStatus(Enum):
    """Summary of gACT, gGTO, gSTA and gOBJ."""
    NOT_CONNECTED = 0
    RESET = 1
    ACTIVATING = 2
    READY = 3
    MOVING = 4


class ActivationStatus(Enum):
    """gACT, bit 0 of the gripper status byte."""
    NOT_ACTIVATED = 0
    ACTIVATED = 1


class ActionStatus(Enum):
    """gGTO, bit 3 of the gripper status byte."""
    STOPPED = 0
    GOTO_POSITION = 1


class FingerStatus(Enum):
    """gSTA, bits 5-4 of the gripper status byte."""
    IN_RESET = 0
    ACTIVATION_IN_PROGRESS = 1
    ACTIVATION_COMPLETE = 3


class ObjectStatus(Enum):
    """gOBJ, bits 7-6 of the gripper status byte."""
    IN_MOTION = 0
    STOPPED_WHILE_OPENING = 1
    STOPPED_WHILE_CLOSING = 2
    AT_REQUESTED_POSITION = 3


class FaultStatus(Enum):
    """gFLT, low nibble of the fault status byte."""
    NONE = 0
    ACTION_DELAYED = 5
    ACTIVATION_NEEDED = 7
    MAX_TEMP_EXCEEDED = 8
    COMM_TIMEOUT = 9
    UNDER_VOLTAGE = 10
    AUTOMATIC_RELEASE_IN_PROGRESS = 11
    INTERNAL_FAULT = 12
    ACTIVATION_FAULT = 13
    OVERCURRENT = 14
    AUTOMATIC_RELEASE_COMPLETED = 15
    UNKNOWN = -1

    @classmethod
    def from_code(cls, code: int) -> "FaultStatus":
        """Map a gFLT code to a FaultStatus, UNKNOWN for unmapped codes."""
        if code < 0:
            return cls.UNKNOWN
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class DetailedStatus:
    """
    Data class holding the decoded gACT, gGTO, gSTA, gOBJ and gFLT fields.
    """
    gact: ActivationStatus = ActivationStatus.NOT_ACTIVATED
    ggto: ActionStatus = ActionStatus.STOPPED
    gsta: FingerStatus = FingerStatus.IN_RESET
    gobj: ObjectStatus = ObjectStatus.IN_MOTION
    gflt: FaultStatus = FaultStatus.NONE

    @classmethod
    def from_bytes(cls, status_byte: int, fault_byte: int) -> "DetailedStatus":
        """
        Create a DetailedStatus from the gripper status and fault status bytes.

        Args:
            status_byte (int): Gripper status byte (gOBJ, gSTA, gGTO, gACT).
            fault_byte (int): Fault status byte, gFLT in the low nibble.

        Returns:
            DetailedStatus: Parsed status object.
        """
        gsta = (status_byte & 0x30) >> 4
        return cls(
            gact=ActivationStatus(status_byte & 0x01),
            ggto=ActionStatus((status_byte & 0x08) >> 3),
            # gSTA 2 is not used by the gripper; report it as still activating
            gsta=FingerStatus(gsta) if gsta != 2 else FingerStatus.ACTIVATION_IN_PROGRESS,
            gobj=ObjectStatus((status_byte & 0xC0) >> 6),
            gflt=FaultStatus.from_code(fault_byte & 0x0F),
        )


@dataclass(frozen=True)
class GripperFeedback:
    """
    One feedback reading of the gripper.

    Positions are scaled by the session's alpha/beta factors; the raw words
    range from 0 (open) to 255 (closed). ``valid`` is False for the default
    value returned when a feedback query fails.
    """
    commanded_position: float = 0.0
    position: float = 0.0
    current: float = 0.0
    raw_commanded_position: int = 0
    raw_position: int = 0
    status: DetailedStatus = field(default_factory=DetailedStatus)
    valid: bool = False

    @property
    def basic_status(self) -> BasicStatus:
        """Summarise the detailed status."""
        if self.status.gact is ActivationStatus.NOT_ACTIVATED:
            return BasicStatus.RESET
        if self.status.gsta is not FingerStatus.ACTIVATION_COMPLETE:
            return BasicStatus.ACTIVATING
        if (self.status.ggto is ActionStatus.GOTO_POSITION
                and self.status.gobj is ObjectStatus.IN_MOTION):
            return BasicStatus.MOVING
        return BasicStatus.READY
