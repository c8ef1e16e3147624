# diphonedb

`diphonedb` loads diphone speech databases. These are binary files that
hold pitch-synchronous waveform segments for diphone concatenation
synthesis. The package reads the header, the diphone index, the voicing
and transition marks and the trailing information strings. It looks
diphones up by their pair of phoneme names and reads their samples. It can
also save a loaded database as a ROM image, which is a single aligned byte
image, and load that image back.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Opening a database

```python
from diphonedb.loader import open_database

with open_database("fr1") as dba:
    print(dba.version, dba.freq, dba.mbr_period, dba.sil_phon)
    print(dba.info_message(0))
    index = dba.diphone_table.search("a", "b")
    if index is not None:
        info = dba.diphone_table.content(index)
        samples = dba.read_samples(info.pos_wave, dba.mbr_period)
```

`open_database` reads the header. It then finishes loading with the
decoder that matches the database's coding tag:

- Coding 1 (`DIPHONE_RAW`) covers raw waveforms. `Database.init_basic`
  handles this format.
- Coding 0 covers the layouts written before version 2.05.
  `diphonedb.database_old.init_database_old` handles this format and issues
  a `UserWarning`.

All other codings are rejected.

`HashTab.search` returns the index of a cell, or `None` when the diphone is
absent. `Database.info_message(index)` returns the information string at
that index. It returns `""` for entries that begin with the escape byte
0xFF. `Database.copy()` returns a second database that shares the loaded
tables but opens its own file handle.

Failures raise subclasses of `diphonedb.errors.DatabaseError`:

| Exception | Raised when |
| --- | --- |
| `DatabaseNotFoundError` | the file cannot be opened |
| `WrongVersionError` | the file is empty, or the `MBROLA` magic is missing |
| `WrongArchitectureError` | the database version is newer than this reader (`3.4-dev`) |
| `BinaryFormatError` | the coding is unknown, or the file is truncated |
| `DuplicateSegmentError` | a replacement diphone's source is missing, or its target already exists |
| `PhoneReadError` | the requested samples cannot be read |
| `RenamingError` | a renaming list is malformed or maps one key twice |

## Renaming and cloning phonemes

```python
from diphonedb.zstring_list import ZStringList
from diphonedb.loader import open_renamed_database

rename = ZStringList()
rename.parse("on o~ j Z")          # pairs: on -> o~, j -> Z

dba = open_renamed_database("fr1", rename=rename, clone="t t_h")
```

`rename` and `clone` can each be given as a `ZStringList` of pairs, as a
whitespace-separated string, or as `None`.

- Renaming replaces a phoneme name everywhere in the index, including the
  silence phoneme.
- Cloning copies every diphone that contains a phoneme under the new name.
  For example, cloning `t` as `t_h` turns `t-t` into four diphones: `t-t`,
  `t_h-t`, `t-t_h` and `t_h-t_h`.

## ROM images

```python
from diphonedb.rom_database import write_rom, load_rom

write_rom(dba, "fr1.rom")
with open("fr1.rom", "rb") as handle:
    rom_dba = load_rom(handle.read())
```

The image holds the following, with multi-byte values in little-endian
order:

- the database name, magic, version and coding (with the ROM bit set)
- the common header
- the hash table and the phoneme table
- the information strings
- the pitch marks
- the longest diphone length and the silence phoneme
- the samples

A database loaded from an image reads its samples directly from the image
bytes.

## Lower-level pieces

- `diphonedb.hash_tab.HashTab` is the fixed-size hash table with coalesced
  chaining that indexes the diphones. It provides `add`, `search`,
  `entries`, `renamed`, `cloned_one`, `cloned`, `to_rom` and `from_rom`.
  `mix` spreads hash values over the table.
- `diphonedb.diphone_info.DiphoneInfo` is the cell descriptor.
  `hash_diphone` is the 32-bit hash key of a diphone name.
- `diphonedb.zstring_list.ZStringList` is a list of strings. It serves both
  as the phoneme code table and as a list of renaming pairs.
- `diphonedb.little_big` provides endian-aware integer and sample I/O on
  binary streams, plus `swap16` and `swap32`.
- `diphonedb.rom_handling.RomReader` and `RomWriter` provide aligned
  primitive I/O for ROM images.

## What it does not do

This package only reads and stores databases. It does not synthesise
speech, write audio files, parse phoneme input, or provide a command-line
tool.