"""Dump a diphone database into a flat ROM image and load it back.

Layout of an image: the database name, the magic header aligned on 4
bytes, the version, the coding tag with the ROM bit set, then a part that
depends on the coding. For raw databases that part is the common header,
the hash table, the information strings, the pitch marks, the longest
diphone length, the silence phoneme and finally the wave samples aligned
on 2 bytes.
"""

from __future__ import annotations

from typing import BinaryIO, Callable

from .database import DIPHONE_RAW, MAGIC, ROM_MASK, SYNTH_VERSION, Database
from .errors import (
    BinaryFormatError,
    DatabaseError,
    DatabaseNotFoundError,
    WrongArchitectureError,
    WrongVersionError,
)
from .hash_tab import HashTab
from .rom_handling import RomReader, RomWriter

_ENCODING = "latin-1"
_MAGIC_SIZE = 8  # two 32-bit words
_VERSION_SIZE = 6  # five characters and a terminating zero


def _round_size(size_mrk: int) -> int:
    """Number of bytes holding ``size_mrk`` pitch marks, four per byte."""
    return max((size_mrk + 3) // 4, 0)


def _c_string(data: bytes) -> bytes:
    return data.split(b"\x00", 1)[0]


def _version_bytes(version: str) -> bytes:
    raw = version.encode(_ENCODING)[: _VERSION_SIZE - 1]
    return raw.ljust(_VERSION_SIZE, b"\x00")


def write_rom_header(dba: Database, writer: RomWriter) -> None:
    """Write the part of the image shared by every coding."""
    if dba.diphone_table is None:
        raise DatabaseError(f"database {dba.dbaname} has no diphone table")

    writer.write_uint8(dba.mbr_period)
    writer.align32()
    writer.write_int16(dba.freq)
    writer.write_int16(dba.nb_diphone)
    writer.write_int32(dba.size_mrk)
    writer.write_int32(dba.size_raw)
    writer.write_int32(dba.raw_offset)

    dba.diphone_table.to_rom(writer)
    writer.write_zstring_list(dba.info)

    size = _round_size(dba.size_mrk)
    writer.write_bytes(bytes(dba.pmrk[:size]).ljust(size, b"\x00"))
    writer.write_uint8(dba.max_frame)
    writer.write_zstring(dba.sil_phon or "")


def write_rom_basic(dba: Database, writer: RomWriter) -> None:
    """Write the header then the whole wave chunk of a raw database."""
    write_rom_header(dba, writer)
    writer.align16()
    if dba.stream is None:
        raise DatabaseError(f"database {dba.dbaname} is not open")
    dba.stream.seek(dba.raw_offset)
    data = dba.stream.read(max(dba.size_raw, 0))
    writer.write_bytes(data[: len(data) // 2 * 2])


# Image writer for each coding tag (0 was the pre-2.05 format).
_ROM_WRITERS: tuple[Callable[[Database, RomWriter], None], ...] = (
    write_rom_basic,
    write_rom_basic,
    write_rom_basic,
    write_rom_basic,
)


def _write_image(dba: Database, stream: BinaryIO) -> None:
    writer = RomWriter(stream)
    writer.write_zstring(dba.dbaname)
    writer.align32()
    writer.write_bytes(bytes(dba.magic[:_MAGIC_SIZE]).ljust(_MAGIC_SIZE, b"\x00"))
    writer.write_bytes(_version_bytes(dba.version))
    writer.write_uint8(dba.coding | ROM_MASK)
    _ROM_WRITERS[dba.coding](dba, writer)


def write_rom(dba: Database, out_name: str) -> None:
    """Save ``dba`` as a ROM image in the file ``out_name``."""
    if not 0 <= dba.coding < len(_ROM_WRITERS):
        raise BinaryFormatError(
            f"This program can't store a database with coding {dba.coding}"
        )
    try:
        rom_file = open(out_name, "wb")
    except OSError as exc:
        raise DatabaseNotFoundError(
            f"FATAL ERROR : cannot save to file {out_name} !"
        ) from exc
    with rom_file:
        _write_image(dba, rom_file)


def read_rom_header(dba: Database, reader: RomReader) -> None:
    """Read the part of the image shared by every coding into ``dba``."""
    dba.mbr_period = reader.read_uint8()
    reader.align32()
    dba.freq = reader.read_int16()
    dba.nb_diphone = reader.read_int16()
    dba.size_mrk = reader.read_int32()
    dba.size_raw = reader.read_int32()
    dba.raw_offset = reader.read_int32()

    dba.diphone_table = HashTab.from_rom(reader)
    dba.info = reader.read_zstring_list()

    dba.pmrk = reader.read_bytes(_round_size(dba.size_mrk))
    dba.max_frame = reader.read_uint8()
    dba.sil_phon = reader.read_zstring()

    dba.rom_data = reader.data
    dba.rom_offset = reader.position
    dba.max_samples = dba.mbr_period * dba.max_frame


def init_rom_basic(dba: Database, reader: RomReader) -> Database:
    """Finish loading a raw database from its ROM image."""
    if dba.coding & (ROM_MASK - 1) != DIPHONE_RAW:
        dba.close()
        raise BinaryFormatError(
            f"PANIC: This program can't decode your database {dba.coding}"
        )
    read_rom_header(dba, reader)

    # Samples are read straight from the image: no buffer is needed
    dba.max_samples = 0
    reader.align16()
    dba.rom_data = reader.data
    dba.rom_offset = reader.position
    return dba


# Constructor for each coding tag once the ROM bit is removed.
_ROM_CONSTRUCTORS: tuple[Callable[[Database, RomReader], Database], ...] = (
    init_rom_basic,
    init_rom_basic,
    init_rom_basic,
    init_rom_basic,
)


def _load(reader: RomReader) -> Database:
    dba = Database(reader.read_zstring())

    reader.align32()
    magic = reader.read_bytes(_MAGIC_SIZE)
    if magic[: len(MAGIC)] != MAGIC:
        raise WrongVersionError(
            "PANIC: Binary number format error\n"
            f"You are probably using a version of {dba.dbaname} incompatible\n"
            "with your machine architecture."
        )
    dba.magic = magic[: len(MAGIC)]

    version = _c_string(reader.read_bytes(_VERSION_SIZE))
    dba.version = version.decode(_ENCODING)
    if version > SYNTH_VERSION.encode(_ENCODING):
        raise WrongArchitectureError(
            "PANIC: Can't cope with databases coming from the future"
        )

    dba.coding = reader.read_uint8()
    kind = dba.coding & (ROM_MASK - 1)
    if kind >= len(_ROM_CONSTRUCTORS):
        dba.close()
        raise BinaryFormatError(
            f"PANIC: This program can't decode your database code {dba.coding}"
        )
    dba.rom_data = reader.data
    return _ROM_CONSTRUCTORS[kind](dba, reader)


def load_rom(data: bytes) -> Database:
    """Build a database from a ROM image held in memory."""
    reader = RomReader(data)
    try:
        return _load(reader)
    except ValueError as exc:
        raise BinaryFormatError(f"invalid ROM image: {exc}") from exc