"""Loader for the database formats written before release 2.05.

Once loaded, such a database behaves exactly like a raw one: only the
index and the pitch marks are stored differently.
"""

from __future__ import annotations

import struct
import warnings
from typing import BinaryIO

from .database import Database
from .errors import BinaryFormatError, DatabaseError, DuplicateSegmentError
from .hash_tab import HashTab

_ENCODING = "latin-1"

# Index cell used before 2.02: names, wave position, half segment,
# pitch mark position, frame count and three bytes of padding.
_EVEN_OLDER_CELL = struct.Struct("<2s2sihHB3x")

# Index cell used from 2.02 to 2.05: names, half segment, frame count and
# number of wave frames.
_OLD_CELL = struct.Struct("<2s2shBB")

# Replacement diphone: new names, then the names of the diphone it copies.
_REPLACE_CELL = struct.Struct("<2s2s2s2s")

_MAX_FRAME = 0xFF


def _c_string(text: str) -> bytes:
    return text.encode(_ENCODING).split(b"\x00", 1)[0]


def _name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode(_ENCODING)


def _read_cell(stream: BinaryIO, layout: struct.Struct) -> tuple:
    data = stream.read(layout.size)
    if len(data) != layout.size:
        raise BinaryFormatError("truncated diphone index in an old database")
    return layout.unpack(data)


def init_database_old(dba: Database) -> Database:
    """Finish loading a database whose header announces a pre-2.05 format.

    The header must already have been read. On error the database is
    closed and the exception propagates.
    """
    warnings.warn("Think of upgrading your database!", UserWarning, stacklevel=2)
    if dba.stream is None:
        raise DatabaseError(f"database {dba.dbaname} is not open")
    try:
        _load(dba, dba.stream)
    except BaseException:
        dba.close()
        raise
    return dba


def _load(dba: Database, stream: BinaryIO) -> None:
    even_older = _c_string(dba.version) < b"2.02"
    if even_older:
        # The header stored the byte size of the index, not a count
        if dba.nb_diphone < 0:
            raise BinaryFormatError(f"invalid index size in {dba.dbaname}")
        dba.nb_diphone //= _EVEN_OLDER_CELL.size

    table = HashTab(max(dba.nb_diphone, 0))
    dba.diphone_table = table

    indice_pm = 0
    indice_wav = 0
    left = ""
    index = 0
    while indice_pm != dba.size_mrk and index < dba.nb_diphone:
        if even_older:
            raw_left, raw_right, pos_wave, halfseg, pos_pm, nb_frame = _read_cell(
                stream, _EVEN_OLDER_CELL
            )
        else:
            raw_left, raw_right, halfseg, nb_frame, nb_wframe = _read_cell(
                stream, _OLD_CELL
            )
            pos_pm = indice_pm
            indice_pm += nb_frame
            pos_wave = indice_wav
            indice_wav += nb_wframe * dba.mbr_period

        left = _name(raw_left)
        right = _name(raw_right)
        table.add(left, right, pos_wave, halfseg, pos_pm, nb_frame)

        # Keep a record of the longest diphone (oversized buffers)
        dba.max_frame = max(dba.max_frame, min(int(nb_frame * 1.5), _MAX_FRAME))
        index += 1

    # The last diphone of the database is the silence
    dba.sil_phon = left

    # The rest are replacement diphones duplicating existing ones
    for _ in range(index, dba.nb_diphone):
        raw_left, raw_right, raw_left_src, raw_right_src = _read_cell(
            stream, _REPLACE_CELL
        )
        src_left, src_right = _name(raw_left_src), _name(raw_right_src)
        position = table.search(src_left, src_right)
        if position is None:
            raise DuplicateSegmentError(
                f"Can't duplicate {src_left}-{src_right} segment"
            )
        new_left, new_right = _name(raw_left), _name(raw_right)
        if table.search(new_left, new_right) is not None:
            raise DuplicateSegmentError(
                f"duplicate {new_left}-{new_right} segment allready exist"
            )
        cell = table.content(position)
        table.add(
            new_left, new_right, cell.pos_wave, cell.halfseg, cell.pos_pm, cell.nb_frame
        )

    if even_older:
        # One uncompressed byte per pitch mark
        dba.pmrk = stream.read(max(dba.size_mrk, 0))
        dba.raw_offset = stream.tell()
    else:
        dba.read_pitch_marks()

    dba.read_info()
    dba.max_samples = dba.mbr_period * dba.max_frame