"""Serialisation of database structures into flat ROM images and back.

Every multi-byte value is stored little-endian. Offsets are aligned on
2 or 4 bytes where the layout asks for it, so that an image can be
mapped in memory and read directly.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from .zstring_list import ZStringList

_ENCODING = "latin-1"

_UINT8 = struct.Struct("<B")
_INT16 = struct.Struct("<h")
_UINT16 = struct.Struct("<H")
_INT32 = struct.Struct("<i")


def _padding(position: int, boundary: int) -> int:
    return (boundary - position % boundary) % boundary


class RomWriter:
    """Write the pieces of a ROM image to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def write_uint8(self, value: int) -> None:
        """Write one unsigned byte."""
        self.stream.write(_UINT8.pack(value & 0xFF))

    def write_int16(self, value: int) -> None:
        """Write a 16-bit integer (signed or unsigned range)."""
        self.stream.write(_UINT16.pack(value & 0xFFFF))

    def write_int32(self, value: int) -> None:
        """Write a 32-bit integer (signed or unsigned range)."""
        self.stream.write(struct.pack("<I", value & 0xFFFFFFFF))

    def write_bytes(self, data: bytes) -> None:
        """Write a raw block of bytes."""
        self.stream.write(bytes(data))

    def write_zstring(self, text: str) -> None:
        """Write a zero-terminated string."""
        self.stream.write(text.encode(_ENCODING) + b"\x00")

    def write_zstring_list(self, zlist: ZStringList) -> None:
        """Write a string list: aligned 16-bit count then each string."""
        self.align16()
        self.stream.write(_UINT16.pack(len(zlist)))
        for item in zlist:
            self.write_zstring(item)

    def align16(self) -> None:
        """Pad with zeros up to an even offset."""
        self.stream.write(b"\x00" * _padding(self.stream.tell(), 2))

    def align32(self) -> None:
        """Pad with zeros up to a multiple of 4."""
        self.stream.write(b"\x00" * _padding(self.stream.tell(), 4))


class RomReader:
    """Read the pieces of a ROM image held in memory."""

    def __init__(self, data: bytes, position: int = 0) -> None:
        self.data = bytes(data)
        self.position = position

    def _take(self, size: int) -> bytes:
        if size < 0:
            raise ValueError(f"negative size {size}")
        end = self.position + size
        if end > len(self.data):
            raise ValueError(
                f"ROM image truncated: need {size} bytes at offset {self.position}"
            )
        chunk = self.data[self.position:end]
        self.position = end
        return chunk

    def read_uint8(self) -> int:
        """Read one unsigned byte."""
        return _UINT8.unpack(self._take(1))[0]

    def read_int16(self) -> int:
        """Read a signed 16-bit integer."""
        return _INT16.unpack(self._take(2))[0]

    def read_int32(self) -> int:
        """Read a signed 32-bit integer."""
        return _INT32.unpack(self._take(4))[0]

    def read_bytes(self, size: int) -> bytes:
        """Read a raw block of ``size`` bytes."""
        return self._take(size)

    def read_zstring(self) -> str:
        """Read a zero-terminated string."""
        end = self.data.find(b"\x00", self.position)
        if end < 0:
            raise ValueError(f"unterminated string at offset {self.position}")
        text = self.data[self.position:end].decode(_ENCODING)
        self.position = end + 1
        return text

    def read_zstring_list(self) -> ZStringList:
        """Read a string list written by RomWriter.write_zstring_list."""
        self.align16()
        count = _UINT16.unpack(self._take(2))[0]
        return ZStringList(self.read_zstring() for _ in range(count))

    def align16(self) -> None:
        """Skip to the next even offset."""
        self.position += _padding(self.position, 2)

    def align32(self) -> None:
        """Skip to the next multiple of 4."""
        self.position += _padding(self.position, 4)