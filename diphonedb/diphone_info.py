"""Diphone descriptor stored in the hash table, and its hashing function."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DiphoneInfo:
    """Location of one diphone in the database.

    ``left`` and ``right`` are codes in the phoneme table of the hash table.
    """

    left: int
    right: int
    pos_wave: int  # position in the wave data
    halfseg: int  # position of the centre of the diphone
    pos_pm: int  # index in the pitch mark data
    nb_frame: int  # number of pitch markers


def _signed_bytes(name: str | bytes) -> Iterator_int:
    data = name.encode("utf-8") if isinstance(name, str) else bytes(name)
    for byte in data:
        yield byte - 256 if byte > 127 else byte


Iterator_int = "Iterator[int]"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def hash_diphone(left: str | bytes, right: str | bytes) -> int:
    """Hash a diphone name into a signed 32-bit integer."""
    mult = 0
    shift = 0
    for name in (left, right):
        for char in _signed_bytes(name):
            mult = _to_int32(mult + _to_int32(char << shift))
            shift = (shift + 8) % 32
    return mult