"""Open a diphone database file with the constructor its coding asks for."""

from __future__ import annotations

from typing import Callable

from .database import Database
from .database_old import init_database_old
from .errors import BinaryFormatError
from .zstring_list import ZStringList

# Constructor for each coding tag: 0 is the pre-2.05 format, 1 raw waves;
# the other codings are rejected by the raw constructor.
_CONSTRUCTORS: tuple[Callable[[Database], Database], ...] = (
    init_database_old,
    Database.init_basic,
    Database.init_basic,
    Database.init_basic,
)


def open_database(dbaname: str) -> Database:
    """Read the header of ``dbaname`` and load the rest according to its coding."""
    dba = Database(dbaname)
    dba.read_header()
    if dba.coding >= len(_CONSTRUCTORS):
        dba.close()
        raise BinaryFormatError("This program can't decode your database")
    return _CONSTRUCTORS[dba.coding](dba)


def _as_pairs(pairs: ZStringList | str | None) -> ZStringList | None:
    if pairs is None or isinstance(pairs, ZStringList):
        return pairs
    result = ZStringList()
    result.parse(pairs)
    return result


def open_renamed_database(
    dbaname: str,
    rename: ZStringList | str | None = None,
    clone: ZStringList | str | None = None,
) -> Database:
    """Open a database, renaming and cloning phonemes once at load time.

    ``rename`` and ``clone`` hold (old, new) pairs, either as a ZStringList
    or as a whitespace separated string; None means nothing to change.
    """
    rename_list = _as_pairs(rename)
    clone_list = _as_pairs(clone)
    dba = open_database(dbaname)

    if rename_list is not None and dba.sil_phon is not None:
        new_sil = rename_list.find_rename(dba.sil_phon)
        if new_sil is not None:
            dba.sil_phon = new_sil

    if rename_list is not None and dba.diphone_table is not None:
        dba.diphone_table = dba.diphone_table.renamed(rename_list)

    if clone_list is not None and dba.diphone_table is not None:
        dba.diphone_table = dba.diphone_table.cloned(clone_list)

    return dba