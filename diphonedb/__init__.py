"""Diphone speech database loading, diphone lookup, renaming and ROM images."""

__version__ = "0.1.0"