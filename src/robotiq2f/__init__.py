"""
robotiq2f
---------

Python driver for Robotiq adaptive grippers (2F-85, 2F-140) using
ASCII-hex framed MODBUS RTU over RS-485.
"""

from .config import GripperConfig
from .RobotiqGripper import RobotiqGripper
from .RobotiqSimulator import RobotiqSimulator
from .SerialTransport import SerialTransport
from .status import (
    ActionStatus,
    ActivationStatus,
    BasicStatus,
    DetailedStatus,
    FaultStatus,
    FingerStatus,
    GripperFeedback,
    ObjectStatus,
)
from .TimeoutReader import TimeoutReader, read_line
from .TransportBase import TransportBase, TransportError

__all__ = [
    "GripperConfig",
    "RobotiqGripper",
    "RobotiqSimulator",
    "SerialTransport",
    "TransportBase",
    "TransportError",
    "TimeoutReader",
    "read_line",
    "ActionStatus",
    "ActivationStatus",
    "BasicStatus",
    "DetailedStatus",
    "FaultStatus",
    "FingerStatus",
    "GripperFeedback",
    "ObjectStatus",
]
