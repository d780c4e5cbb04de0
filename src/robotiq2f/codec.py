"""
Conversion between raw bytes, ASCII-hex text and the MODBUS RTU CRC field.

All functions are pure; none of them touch the transport.
"""

HEX_CODES = "0123456789ABCDEF"

# Reflected form of the 0x8005 polynomial.
CRC16_POLY_REFLECTED = 0xA001
CRC16_INIT = 0xFFFF


def bytes_to_hex(data: bytes) -> str:
    """
    Encode bytes as uppercase ASCII-hex, two characters per byte.

    Args:
        data (bytes): Raw bytes.

    Returns:
        str: Hex string, e.g. b"\\x09\\x03" -> "0903".
    """
    return "".join(HEX_CODES[(b >> 4) & 0x0F] + HEX_CODES[b & 0x0F] for b in data)


def hex_to_bytes(text: str, strict: bool = False) -> bytes:
    """
    Decode an ASCII-hex string into bytes.

    A trailing odd character is dropped unless ``strict`` is set.

    Args:
        text (str): Hex string (upper or lower case).
        strict (bool): Raise instead of dropping a trailing odd character.

    Returns:
        bytes: Decoded bytes.

    Raises:
        ValueError: On non-hex characters, or odd length in strict mode.
    """
    if len(text) % 2:
        if strict:
            raise ValueError(f"Odd-length hex string ({len(text)} characters): {text!r}")
        text = text[:-1]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"Invalid hex string {text!r}: {e}") from e


def byte_to_hex(value: int) -> str:
    """Two uppercase hex characters for a value in 0..255."""
    if not 0 <= value <= 255:
        raise ValueError(f"Byte value out of range: {value}")
    return f"{value:02X}"


def crc16(data: bytes) -> int:
    """CRC-16/MODBUS of ``data`` as an integer (reflected, no final XOR)."""
    crc = CRC16_INIT
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ CRC16_POLY_REFLECTED
            else:
                crc >>= 1
    return crc


def crc16_modbus(text: str) -> str:
    """
    Compute the MODBUS CRC field for an ASCII-hex frame.

    The checksum is emitted low byte first, the order in which MODBUS RTU
    appends it to a frame.

    Args:
        text (str): Frame without CRC, as ASCII-hex.

    Returns:
        str: Four uppercase hex characters, e.g. "7330".
    """
    crc = crc16(hex_to_bytes(text))
    return byte_to_hex(crc & 0xFF) + byte_to_hex((crc >> 8) & 0xFF)
