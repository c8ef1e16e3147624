"""Exceptions raised while loading and querying diphone databases."""


class DatabaseError(Exception):
    """Base class for every diphone database error."""


class DatabaseNotFoundError(DatabaseError):
    """The database file cannot be opened."""


class WrongVersionError(DatabaseError):
    """The file is empty or its magic header does not match."""


class WrongArchitectureError(DatabaseError):
    """The database comes from a newer synthesizer version."""


class BinaryFormatError(DatabaseError):
    """The database coding cannot be decoded by this program."""


class DuplicateSegmentError(DatabaseError):
    """A replacement diphone is missing its source or already exists."""


class RenamingError(DatabaseError):
    """A phoneme renaming or cloning list is malformed or conflicting."""


class PhoneReadError(DatabaseError):
    """The samples of a diphone cannot be read."""