"""Diphone database stored in a file: header, index, pitch marks and info."""

from __future__ import annotations

import copy as _copy
import struct
from typing import BinaryIO

from .errors import (
    BinaryFormatError,
    DatabaseError,
    DatabaseNotFoundError,
    DuplicateSegmentError,
    PhoneReadError,
    WrongArchitectureError,
    WrongVersionError,
)
from .hash_tab import HashTab
from .little_big import read_int16, read_int16_buffer, read_int32, read_uint16
from .zstring_list import ZStringList

SYNTH_VERSION = "3.4-dev"

DIPHONE_RAW = 1  # the diphone wave database is raw
ROM_MASK = 128  # the coding tag of a database held in a ROM image
INFO_ESCAPE = 0xFF  # information strings starting with it are not displayed

# Frame types of the analysed database
VOICING_MASK = 2
TRANSIT_MASK = 1
NV_REG = 0
NV_TRA = TRANSIT_MASK
V_REG = VOICING_MASK
V_TRA = VOICING_MASK | TRANSIT_MASK

MAGIC = b"MBROLA"

_ENCODING = "latin-1"
_MAX_TABLE = 0x7FFF


def _read_zstring(stream: BinaryIO) -> tuple[str, bool]:
    """Read a zero-terminated string; also tell whether the end of file was hit."""
    chars = bytearray()
    while True:
        char = stream.read(1)
        if not char:
            return chars.decode(_ENCODING), True
        if char == b"\x00":
            return chars.decode(_ENCODING), False
        chars += char


def read_zstring(stream: BinaryIO) -> str:
    """Read a zero-terminated string; the end of file also ends the string."""
    return _read_zstring(stream)[0]


def _read_uint8(stream: BinaryIO) -> int:
    data = stream.read(1)
    if not data:
        raise EOFError("expected 1 byte, got 0")
    return data[0]


def _c_string(text: str) -> bytes:
    return text.encode(_ENCODING).split(b"\x00", 1)[0]


class Database:
    """A diphone database read from a file.

    The constructor only records the file name; ``read_header`` opens the
    file, and a constructor such as ``init_basic`` reads the rest.
    """

    def __init__(self, dbaname: str) -> None:
        self.dbaname = str(dbaname)
        self.stream: BinaryIO | None = None
        self.magic = b""
        self.version = ""
        self.coding = 0
        self.freq = 0
        self.mbr_period = 0
        self.nb_diphone = 0
        self.size_mrk = 0
        self.size_raw = 0
        self.raw_offset = 0
        self.pmrk = b""
        self.max_frame = 0
        self.max_samples = 0
        self.sil_phon: str | None = None
        self.diphone_table: HashTab | None = None
        self.info = ZStringList()
        self.rom_data: bytes | None = None
        self.rom_offset = 0
        self._is_copy = False

    def __repr__(self) -> str:
        return (
            f"Database({self.dbaname!r}, version={self.version!r}, "
            f"coding={self.coding}, nb_diphone={self.nb_diphone})"
        )

    def _require_stream(self) -> BinaryIO:
        if self.stream is None:
            raise DatabaseError(f"database {self.dbaname} is not open")
        return self.stream

    def read_header(self) -> None:
        """Open the file and read the database header."""
        try:
            stream = open(self.dbaname, "rb")
        except IsADirectoryError as exc:
            raise WrongVersionError(
                f"Database format error\n{self.dbaname} is an empty file "
                "(could be a directory)"
            ) from exc
        except OSError as exc:
            raise DatabaseNotFoundError(
                f"FATAL ERROR : cannot find file {self.dbaname} !"
            ) from exc
        self.stream = stream
        try:
            self._parse_header(stream)
        except BaseException:
            self.close()
            raise

    def _parse_header(self, stream: BinaryIO) -> None:
        magic = stream.read(6)
        if not magic:
            raise WrongVersionError(
                f"Database format error\n{self.dbaname} is an empty file "
                "(could be a directory)"
            )
        if magic != MAGIC:
            raise WrongVersionError(
                "Binary number format error\n"
                f"You are probably using a version of {self.dbaname} incompatible\n"
                "with your machine architecture."
            )
        self.magic = magic
        try:
            version = stream.read(5)
            if len(version) != 5:
                raise EOFError("truncated version")
            self.version = version.decode(_ENCODING)
            self.nb_diphone = read_int16(stream)
            old_size_mrk = read_uint16(stream)
            if old_size_mrk == 0:
                self.size_mrk = read_int32(stream)
            else:
                self.size_mrk = old_size_mrk
            self.size_raw = read_int32(stream)
            self.freq = read_int16(stream)
            self.mbr_period = _read_uint8(stream)
            self.coding = _read_uint8(stream)
        except EOFError as exc:
            raise BinaryFormatError(f"truncated database header in {self.dbaname}") from exc

        if _c_string(self.version) > _c_string(SYNTH_VERSION):
            raise WrongArchitectureError(
                "This program is not compatible with your database"
            )
        if b"2.05" > _c_string(self.version):
            # formats older than 2.05 go through the compatibility driver
            self.coding = 0

    def read_index(self) -> None:
        """Read the diphone index and fill the hash table."""
        stream = self._require_stream()
        size = min(max(self.nb_diphone + self.nb_diphone // 4, 0), _MAX_TABLE)
        table = HashTab(size)
        self.diphone_table = table

        indice_pm = 0
        indice_wav = 0
        index = 0
        try:
            while indice_pm != self.size_mrk and index < self.nb_diphone:
                left = read_zstring(stream)
                right = read_zstring(stream)
                halfseg = read_int16(stream)
                nb_frame = _read_uint8(stream)
                nb_wframe = _read_uint8(stream)

                pos_pm = indice_pm
                indice_pm += nb_frame
                if indice_pm == self.size_mrk:
                    # the last diphone of the database is _-_
                    self.sil_phon = left

                pos_wave = indice_wav
                indice_wav += nb_wframe * self.mbr_period
                table.add(left, right, pos_wave, halfseg, pos_pm, nb_frame)
                self.max_frame = max(self.max_frame, nb_wframe)
                index += 1
        except EOFError as exc:
            raise BinaryFormatError(f"truncated diphone index in {self.dbaname}") from exc

        # The rest are replacement diphones duplicating existing ones
        problems: list[str] = []
        for _ in range(index, self.nb_diphone):
            left = read_zstring(stream)
            right = read_zstring(stream)
            position = table.search(left, right)
            if position is None:
                problems.append(f"Can't duplicate {left}-{right} segment")
                continue
            cell = table.content(position)
            new_left = read_zstring(stream)
            new_right = read_zstring(stream)
            if table.search(new_left, new_right) is not None:
                problems.append(
                    f"duplicate {new_left}-{new_right} segment allready exist"
                )
            table.add(
                new_left, new_right, cell.pos_wave, cell.halfseg, cell.pos_pm, cell.nb_frame
            )

        if problems:
            raise DuplicateSegmentError("; ".join(problems))

        self.max_samples = self.mbr_period * self.max_frame

    def read_pitch_marks(self) -> None:
        """Load the compressed pitch marks (four per byte)."""
        stream = self._require_stream()
        round_size = (self.size_mrk + 3) // 4
        self.pmrk = stream.read(max(round_size, 0))
        self.raw_offset = stream.tell()

    def read_info(self) -> None:
        """Read the information strings stored after the wave data."""
        stream = self._require_stream()
        stream.seek(self.raw_offset + self.size_raw)
        while True:
            text, at_end = _read_zstring(stream)
            self.info.append(text)
            if at_end:
                break

    def init_basic(self) -> Database:
        """Finish loading a database holding raw waveforms."""
        if self.coding != DIPHONE_RAW:
            self.close()
            raise BinaryFormatError("This program can't decode your database")
        try:
            self.read_index()
            self.read_pitch_marks()
            self.read_info()
        except BaseException:
            self.close()
            raise
        return self

    def info_message(self, index: int) -> str:
        """Return information string ``index``; escaped entries read as ''."""
        if not 0 <= index < len(self.info):
            raise IndexError(f"no information message {index}")
        message = self.info.decode(index)
        if message and ord(message[0]) == INFO_ESCAPE:
            return ""
        return message

    def read_samples(self, pos_wave: int, count: int) -> list[int]:
        """Return ``count`` samples starting at sample position ``pos_wave``."""
        if self.coding & ROM_MASK:
            data = self.rom_data or b""
            start = self.rom_offset + 2 * pos_wave
            chunk = data[start:start + 2 * count]
            if pos_wave < 0 or len(chunk) != 2 * count:
                raise PhoneReadError(f"PANIC when reading samples at {pos_wave}")
            return list(struct.unpack(f"<{count}h", chunk))

        stream = self._require_stream()
        if count > self.max_frame * self.mbr_period:
            raise PhoneReadError(
                f"PANIC: {count} samples > Max={self.max_frame * self.mbr_period}"
            )
        stream.seek(pos_wave * 2 + self.raw_offset)
        samples = read_int16_buffer(stream, count)
        if len(samples) != count:
            raise PhoneReadError(f"PANIC when reading samples at {pos_wave}")
        return samples

    def copy(self) -> Database:
        """Return a database sharing this one's tables with its own file handle."""
        twin = _copy.copy(self)
        twin._is_copy = True
        twin.stream = None
        if not self.coding & ROM_MASK:
            try:
                twin.stream = open(self.dbaname, "rb")
            except OSError as exc:
                raise DatabaseNotFoundError(
                    f"FATAL ERROR : cannot find file {self.dbaname} !"
                ) from exc
        return twin

    def close(self) -> None:
        """Close the file; a copy leaves the shared tables untouched."""
        if self.stream is not None:
            self.stream.close()
            self.stream = None
        if not self._is_copy:
            self.diphone_table = None
            self.pmrk = b""

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()