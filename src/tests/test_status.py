import dataclasses

import pytest

from robotiq2f.status import (
    ActionStatus,
    ActivationStatus,
    BasicStatus,
    DetailedStatus,
    FaultStatus,
    FingerStatus,
    GripperFeedback,
    ObjectStatus,
)


# ---------- Status byte parsing tests ----------
def test_only_gact_bit_set():
    status = DetailedStatus.from_bytes(0x01, 0x00)
    assert status.gact == ActivationStatus.ACTIVATED
    assert status.ggto == ActionStatus.STOPPED
    assert status.gsta == FingerStatus.IN_RESET
    assert status.gobj == ObjectStatus.IN_MOTION
    assert status.gflt == FaultStatus.NONE


def test_all_status_bits_set():
    status = DetailedStatus.from_bytes(0xF9, 0x00)  # 11 11 1 00 1
    assert status.gact == ActivationStatus.ACTIVATED
    assert status.ggto == ActionStatus.GOTO_POSITION
    assert status.gsta == FingerStatus.ACTIVATION_COMPLETE
    assert status.gobj == ObjectStatus.AT_REQUESTED_POSITION


@pytest.mark.parametrize("status_byte, expected", [
    (0x40, ObjectStatus.STOPPED_WHILE_OPENING),
    (0x80, ObjectStatus.STOPPED_WHILE_CLOSING),
    (0xC0, ObjectStatus.AT_REQUESTED_POSITION),
])
def test_object_status_bits(status_byte, expected):
    assert DetailedStatus.from_bytes(status_byte, 0).gobj == expected


def test_finger_status_bits():
    assert DetailedStatus.from_bytes(0x10, 0).gsta == FingerStatus.ACTIVATION_IN_PROGRESS
    assert DetailedStatus.from_bytes(0x30, 0).gsta == FingerStatus.ACTIVATION_COMPLETE
    # gSTA 2 is unused by the gripper
    assert DetailedStatus.from_bytes(0x20, 0).gsta == FingerStatus.ACTIVATION_IN_PROGRESS


def test_unused_status_bits_are_ignored():
    assert DetailedStatus.from_bytes(0x06, 0) == DetailedStatus()


# ---------- Fault parsing tests ----------
@pytest.mark.parametrize("code, expected", [
    (0, FaultStatus.NONE),
    (5, FaultStatus.ACTION_DELAYED),
    (7, FaultStatus.ACTIVATION_NEEDED),
    (8, FaultStatus.MAX_TEMP_EXCEEDED),
    (9, FaultStatus.COMM_TIMEOUT),
    (10, FaultStatus.UNDER_VOLTAGE),
    (11, FaultStatus.AUTOMATIC_RELEASE_IN_PROGRESS),
    (12, FaultStatus.INTERNAL_FAULT),
    (13, FaultStatus.ACTIVATION_FAULT),
    (14, FaultStatus.OVERCURRENT),
    (15, FaultStatus.AUTOMATIC_RELEASE_COMPLETED),
    (1, FaultStatus.UNKNOWN),
    (6, FaultStatus.UNKNOWN),
])
def test_fault_codes(code, expected):
    assert DetailedStatus.from_bytes(0, code).gflt == expected


def test_fault_high_nibble_is_ignored():
    # kFLT lives in the high nibble
    assert DetailedStatus.from_bytes(0, 0x97).gflt == FaultStatus.ACTIVATION_NEEDED


def test_fault_from_negative_code():
    assert FaultStatus.from_code(-1) == FaultStatus.UNKNOWN


# ---------- Feedback tests ----------
def test_default_feedback_is_marked_invalid():
    feedback = GripperFeedback()
    assert feedback.valid is False
    assert feedback.position == 0.0
    assert feedback.raw_position == 0
    assert feedback.status == DetailedStatus()


def test_feedback_is_immutable():
    feedback = GripperFeedback(valid=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        feedback.position = 1.0


@pytest.mark.parametrize("status_byte, expected", [
    (0x00, BasicStatus.RESET),
    (0x11, BasicStatus.ACTIVATING),
    (0x39, BasicStatus.MOVING),
    (0xF9, BasicStatus.READY),
    (0x31, BasicStatus.READY),
])
def test_basic_status(status_byte, expected):
    feedback = GripperFeedback(status=DetailedStatus.from_bytes(status_byte, 0), valid=True)
    assert feedback.basic_status == expected
