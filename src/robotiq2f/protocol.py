"""
Frame table for the Robotiq adaptive gripper over ASCII-hex MODBUS RTU.

Frames address slave 9, the factory default of the gripper. The register
layout follows section 4 of the Robotiq 2F-85/2F-140 instruction manual.
"""

from .codec import byte_to_hex, crc16_modbus

SLAVE_ID = 0x09

# Read holding registers (fc 03), 3 registers from 0x07D0 (gripper status).
READ_FEEDBACK = "090307D00003040E"

# Preset multiple registers (fc 16), 3 registers from 0x03E8 (action request).
PRESET_RESET = "091003E80003060000000000007330"
PRESET_ACTIVATE = "091003E800030601000000000072E1"
PRESET_POSITION_PREFIX = "091003E8000306090000"
PRESET_POSITION_POSTFIX = "FFFF"
POSITION_REQUEST_LENGTH = 30

PRESET_RESPONSE = "091003E800030130"

# Response to READ_FEEDBACK: id, fc, byte count, 6 data bytes, CRC.
FEEDBACK_RESPONSE_PREFIX = "090306"
FEEDBACK_RESPONSE_LENGTH = 22

# Hex character offsets of the fields inside the feedback response.
OFFSET_GRIPPER_STATUS = 6
OFFSET_FAULT_STATUS = 10
OFFSET_POSITION_REQUEST = 12
OFFSET_POSITION = 14
OFFSET_CURRENT = 16

LINE_TERMINATOR = b"\n"


def build_position_request(word: int) -> str:
    """
    Build the preset request moving the fingers to a raw position word.

    Speed and force are both set to maximum (FFFF).

    Args:
        word (int): Raw position, 0 (open) to 255 (closed).

    Returns:
        str: Complete ASCII-hex frame including CRC.
    """
    message = PRESET_POSITION_PREFIX + byte_to_hex(word) + PRESET_POSITION_POSTFIX
    return message + crc16_modbus(message)
