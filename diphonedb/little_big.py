"""Endianness-aware reading and writing of integers on binary streams.

Database files are little-endian; ``big_endian=True`` selects the other
byte order.
"""

from __future__ import annotations

import struct
from typing import BinaryIO


def swap16(value: int) -> int:
    """Swap the two bytes of a 16-bit value (result is unsigned)."""
    value &= 0xFFFF
    return ((value & 0xFF00) >> 8) | ((value & 0xFF) << 8)


def swap32(value: int) -> int:
    """Reverse the four bytes of a 32-bit value (result is unsigned)."""
    value &= 0xFFFFFFFF
    return (
        ((value & 0xFF) << 24)
        | ((value & 0xFF00) << 8)
        | ((value & 0xFF0000) >> 8)
        | ((value >> 24) & 0xFF)
    )


def _order(big_endian: bool) -> str:
    return ">" if big_endian else "<"


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def read_int16(stream: BinaryIO, big_endian: bool = False) -> int:
    """Read a signed 16-bit integer."""
    return struct.unpack(_order(big_endian) + "h", _read_exact(stream, 2))[0]


def read_uint16(stream: BinaryIO, big_endian: bool = False) -> int:
    """Read an unsigned 16-bit integer."""
    return struct.unpack(_order(big_endian) + "H", _read_exact(stream, 2))[0]


def read_int32(stream: BinaryIO, big_endian: bool = False) -> int:
    """Read a signed 32-bit integer."""
    return struct.unpack(_order(big_endian) + "i", _read_exact(stream, 4))[0]


def read_int16_buffer(stream: BinaryIO, count: int, big_endian: bool = False) -> list[int]:
    """Read up to ``count`` signed 16-bit samples.

    Fewer samples are returned when the stream ends early; a trailing odd
    byte is ignored.
    """
    if count <= 0:
        return []
    data = stream.read(2 * count)
    available = len(data) // 2
    return list(struct.unpack(f"{_order(big_endian)}{available}h", data[: 2 * available]))


def write_int16(stream: BinaryIO, value: int, big_endian: bool = False) -> None:
    """Write a 16-bit integer (signed or unsigned range)."""
    stream.write(struct.pack(_order(big_endian) + "H", value & 0xFFFF))


def write_int32(stream: BinaryIO, value: int, big_endian: bool = False) -> None:
    """Write a 32-bit integer (signed or unsigned range)."""
    stream.write(struct.pack(_order(big_endian) + "I", value & 0xFFFFFFFF))