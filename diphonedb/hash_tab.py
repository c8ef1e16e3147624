"""Coalescent hash table indexing the diphones of a database.

Phoneme names are not stored in the cells themselves: each cell holds
integer codes into an auxiliary phoneme table, so that the whole table is
flat and can be dumped into a ROM image.
"""

from __future__ import annotations

import math
from typing import Iterator

from .diphone_info import DiphoneInfo, hash_diphone
from .errors import DatabaseError
from .rom_handling import RomReader, RomWriter
from .zstring_list import ZStringList

EMPTY = 255  # hit value of an unoccupied cell
NONE = -1  # end of a collision chain

_GOLDEN = 0.6180339887  # (sqrt(5)-1)/2
_MAX_ITEMS = 0x7FFF


def mix(index: int, nb_item: int) -> int:
    """Spread a hash value over ``nb_item`` slots (multiplicative hashing)."""
    temp = index * _GOLDEN
    temp -= math.floor(temp)
    temp *= nb_item
    return int(temp)


class HashTab:
    """Fixed-size coalescent hash table of DiphoneInfo cells.

    ``nb_item`` is the capacity; ``len()`` gives the number of stored
    diphones.
    """

    def __init__(self, nb_item: int) -> None:
        if not 0 <= nb_item <= _MAX_ITEMS:
            raise ValueError(f"invalid hash table size {nb_item}")
        self.nb_item = nb_item
        self.first_free = nb_item - 1
        self.phonemes = ZStringList()
        self._hit = [EMPTY] * nb_item
        self._next = [NONE] * nb_item
        self._cells: list[DiphoneInfo | None] = [None] * nb_item

    def __len__(self) -> int:
        return sum(1 for hit in self._hit if hit != EMPTY)

    def __repr__(self) -> str:
        return f"HashTab(nb_item={self.nb_item}, used={len(self)})"

    def add(
        self,
        left: str,
        right: str,
        pos_wave: int,
        halfseg: int,
        pos_pm: int,
        nb_frame: int,
    ) -> int:
        """Insert a diphone and return the index of the cell it went to."""
        if self.nb_item == 0:
            raise DatabaseError("hash table is full")
        hash_value = mix(hash_diphone(left, right), self.nb_item)

        if self._hit[hash_value] == EMPTY:
            chosen = hash_value
            self._next[chosen] = NONE
        else:
            free = self.first_free
            while free >= 0 and self._hit[free] != EMPTY:
                free -= 1
            if free < 0:
                raise DatabaseError("hash table is full")
            chosen = free
            self._next[chosen] = self._next[hash_value]
            self._next[hash_value] = chosen
            self._hit[hash_value] = min(self._hit[hash_value] + 1, EMPTY - 1)
            self.first_free = free - 1

        self._hit[chosen] = 1
        self._cells[chosen] = DiphoneInfo(
            left=self.phonemes.encode(left),
            right=self.phonemes.encode(right),
            pos_wave=pos_wave,
            halfseg=halfseg,
            pos_pm=pos_pm,
            nb_frame=nb_frame,
        )
        return chosen

    def _equal_key(self, index: int, left: str, right: str) -> bool:
        cell = self._cells[index]
        return (
            cell is not None
            and self.phonemes.decode(cell.left) == left
            and self.phonemes.decode(cell.right) == right
        )

    def search(self, left: str, right: str) -> int | None:
        """Return the index of diphone ``left-right``, or None if absent."""
        if self.nb_item == 0:
            return None
        hash_value = mix(hash_diphone(left, right), self.nb_item)
        if self._hit[hash_value] == EMPTY:
            return None
        index = hash_value
        while index != NONE and not self._equal_key(index, left, right):
            index = self._next[index]
        return None if index == NONE else index

    def search_diphone(self, info: DiphoneInfo) -> int | None:
        """Search the diphone named by the codes of ``info``."""
        return self.search(self.phoneme(info.left), self.phoneme(info.right))

    def content(self, index: int) -> DiphoneInfo:
        """Return the descriptor held in cell ``index``."""
        cell = self._cells[index]
        if cell is None:
            raise IndexError(f"hash cell {index} is empty")
        return cell

    def phoneme(self, code: int) -> str:
        """Return the phoneme name encoded by ``code``."""
        return self.phonemes.decode(code)

    def entries(self) -> Iterator[tuple[str, str, DiphoneInfo]]:
        """Yield (left, right, descriptor) for each occupied cell in order."""
        for cell in self._cells:
            if cell is not None:
                yield self.phoneme(cell.left), self.phoneme(cell.right), cell

    def renamed(self, rename: ZStringList | None) -> HashTab:
        """Return a table where phonemes are renamed by the pairs of ``rename``.

        The result has the same size; cell indices change.
        """
        if not rename or len(rename) == 0:
            return self
        result = HashTab(self.nb_item)
        for left, right, cell in self.entries():
            new_left = rename.find_rename(left)
            new_right = rename.find_rename(right)
            result.add(
                new_left if new_left is not None else left,
                new_right if new_right is not None else right,
                cell.pos_wave,
                cell.halfseg,
                cell.pos_pm,
                cell.nb_frame,
            )
        return result

    def cloned_one(self, x_phone: str, y_phone: str) -> HashTab:
        """Return a larger table where every diphone with ``x_phone`` is
        duplicated with ``y_phone`` in its place (on either or both sides)."""
        nb_new = 0
        for left, right, _ in self.entries():
            sides = (left == x_phone) + (right == x_phone)
            nb_new += sides + (1 if sides == 2 else 0)

        result = HashTab(self.nb_item + nb_new)
        for left, right, cell in self.entries():
            values = (cell.pos_wave, cell.halfseg, cell.pos_pm, cell.nb_frame)
            result.add(left, right, *values)
            sides = 0
            if left == x_phone:
                result.add(y_phone, right, *values)
                sides += 1
            if right == x_phone:
                result.add(left, y_phone, *values)
                sides += 1
            if sides == 2:
                result.add(y_phone, y_phone, *values)
        return result

    def cloned(self, clone: ZStringList | None) -> HashTab:
        """Apply every (X, Y) cloning pair of ``clone`` in order."""
        if clone is None:
            return self
        table = self
        for x_phone, y_phone in clone.pairs():
            table = table.cloned_one(x_phone, y_phone)
        return table

    def to_rom(self, writer: RomWriter) -> None:
        """Dump the table into a ROM image."""
        writer.align16()
        writer.write_int16(self.nb_item)
        writer.write_int16(self.first_free)
        for cell, hit, next_one in zip(self._cells, self._hit, self._next):
            info = cell or DiphoneInfo(0, 0, 0, 0, 0, 0)
            writer.write_int32(info.left)
            writer.write_int32(info.right)
            writer.write_int32(info.pos_wave)
            writer.write_int16(info.halfseg)
            writer.write_int32(info.pos_pm)
            writer.write_uint8(info.nb_frame)
            writer.write_uint8(hit)
            writer.write_int16(next_one)
        writer.write_zstring_list(self.phonemes)

    @classmethod
    def from_rom(cls, reader: RomReader) -> HashTab:
        """Rebuild a table from a ROM image written by ``to_rom``."""
        reader.align16()
        nb_item = reader.read_int16()
        table = cls(nb_item)
        table.first_free = reader.read_int16()
        for index in range(nb_item):
            info = DiphoneInfo(
                left=reader.read_int32(),
                right=reader.read_int32(),
                pos_wave=reader.read_int32(),
                halfseg=reader.read_int16(),
                pos_pm=reader.read_int32(),
                nb_frame=reader.read_uint8(),
            )
            hit = reader.read_uint8()
            table._hit[index] = hit
            table._next[index] = reader.read_int16()
            table._cells[index] = None if hit == EMPTY else info
        table.phonemes = reader.read_zstring_list()
        return table