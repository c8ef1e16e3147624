"""Ordered list of strings used as phoneme table and renaming pair list."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from .errors import DatabaseError, RenamingError

# The element count is stored on 16 bits.
_MAX_ELEMENTS = 0xFFFF

_SEPARATORS = re.compile(r"[ \n]+")


class ZStringList:
    """A growable list of strings.

    Used either as a phoneme encoding table (string <-> integer code) or as
    a flat list of renaming pairs ``old0, new0, old1, new1, ...``.
    """

    def __init__(self, items: Iterable[str] | None = None) -> None:
        self._items: list[str] = []
        for item in items or ():
            self.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"ZStringList({self._items!r})"

    def find(self, name: str) -> int | None:
        """Return the code of ``name``, or None when absent."""
        try:
            return self._items.index(name)
        except ValueError:
            return None

    def append(self, name: str) -> int:
        """Add ``name`` at the end and return its code."""
        if len(self._items) >= _MAX_ELEMENTS:
            raise DatabaseError(f"Too many phonemes in the dba {len(self._items)}!")
        self._items.append(name)
        return len(self._items) - 1

    def encode(self, name: str) -> int:
        """Return the code of ``name``, adding it if not yet present."""
        code = self.find(name)
        if code is None:
            code = self.append(name)
        return code

    def decode(self, code: int) -> str:
        """Return the string stored under ``code``."""
        if code < 0:
            raise IndexError(f"invalid phoneme code {code}")
        return self._items[code]

    def append_rename(self, old_name: str, new_name: str, multi: bool = False) -> None:
        """Add a renaming pair.

        Unless ``multi`` is true, a key that is already mapped raises
        RenamingError.
        """
        if not multi:
            renamed = self.find_rename(old_name)
            if renamed is not None:
                raise RenamingError(
                    f"Can't map {old_name} to {new_name}. Already mapped to {renamed}"
                )
        self.append(old_name)
        self.append(new_name)

    def parse(self, text: str, multi: bool = False) -> None:
        """Read renaming pairs separated by spaces or newlines from ``text``."""
        tokens = [token for token in _SEPARATORS.split(text) if token]
        for old_name, new_name in zip(tokens[0::2], tokens[1::2]):
            self.append_rename(old_name, new_name, multi)
        if len(tokens) % 2:
            raise RenamingError(f"Wrong renaming list at {tokens[-1]}")

    def find_rename(self, name: str) -> str | None:
        """Return the translation of ``name`` in the pair list, or None."""
        for old_name, new_name in self.pairs():
            if old_name == name:
                return new_name
        return None

    def pairs(self) -> Iterator[tuple[str, str]]:
        """Yield the (old, new) renaming pairs in order."""
        return zip(self._items[0::2], self._items[1::2])