import io
import struct

import pytest

from diphonedb.database import (
    DIPHONE_RAW,
    SYNTH_VERSION,
    Database,
    read_zstring,
)
from diphonedb.errors import (
    BinaryFormatError,
    DatabaseError,
    DatabaseNotFoundError,
    DuplicateSegmentError,
    PhoneReadError,
    WrongArchitectureError,
    WrongVersionError,
)

PERIOD = 4
FREQ = 16000
DIPHONES = [
    # left, right, halfseg, nb_frame, nb_wframe
    ("a", "b", 10, 2, 2),
    ("_", "_", 5, 1, 1),
]
INFO = ["hello", "\xffparams"]


def _z(text):
    return text.encode("latin-1") + b"\x00"


def make_db(
    path,
    diphones=DIPHONES,
    replacements=(),
    info=INFO,
    version=b"2.060",
    coding=DIPHONE_RAW,
    new_format=True,
):
    size_mrk = sum(d[3] for d in diphones)
    nb_samples = sum(d[4] for d in diphones) * PERIOD
    samples = [i * 100 - 500 for i in range(nb_samples)]
    raw = struct.pack(f"<{nb_samples}h", *samples)
    nb_diphone = len(diphones) + len(replacements)

    header = MAGIC_AND(version) + struct.pack("<h", nb_diphone)
    if new_format:
        header += struct.pack("<Hi", 0, size_mrk)
    else:
        header += struct.pack("<H", size_mrk)
    header += struct.pack("<ihBB", len(raw), FREQ, PERIOD, coding)

    index = b"".join(
        _z(left) + _z(right) + struct.pack("<hBB", halfseg, nf, nw)
        for left, right, halfseg, nf, nw in diphones
    )
    repl = b"".join(b"".join(_z(name) for name in names) for names in replacements)
    pitch = b"\xaa" * ((size_mrk + 3) // 4)
    tail = b"".join(_z(text) for text in info)
    path.write_bytes(header + index + repl + pitch + raw + tail)
    return str(path), samples


def MAGIC_AND(version):
    return b"MBROLA" + version


def load(path):
    dba = Database(path)
    dba.read_header()
    return dba.init_basic()


def test_read_zstring_stops_at_zero_and_eof():
    stream = io.BytesIO(b"ab\x00cd")
    assert read_zstring(stream) == "ab"
    assert read_zstring(stream) == "cd"
    assert read_zstring(stream) == ""


def test_header_fields(tmp_path):
    path, _ = make_db(tmp_path / "x.dba")
    dba = Database(path)
    dba.read_header()
    try:
        assert dba.magic == b"MBROLA"
        assert dba.version == "2.060"
        assert dba.freq == FREQ
        assert dba.mbr_period == PERIOD
        assert dba.nb_diphone == len(DIPHONES)
        assert dba.coding == DIPHONE_RAW
        assert dba.size_mrk == sum(d[3] for d in DIPHONES)
    finally:
        dba.close()


def test_old_size_format(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", new_format=False)
    with load(path) as dba:
        assert dba.size_mrk == sum(d[3] for d in DIPHONES)
        assert dba.diphone_table.search("a", "b") is not None


def test_index_and_silence(tmp_path):
    path, _ = make_db(tmp_path / "x.dba")
    with load(path) as dba:
        assert dba.sil_phon == "_"
        table = dba.diphone_table
        first = table.content(table.search("a", "b"))
        assert (first.pos_wave, first.pos_pm, first.halfseg, first.nb_frame) == (0, 0, 10, 2)
        last = table.content(table.search("_", "_"))
        assert last.pos_wave == DIPHONES[0][4] * PERIOD
        assert last.pos_pm == DIPHONES[0][3]
        assert dba.max_frame == max(d[4] for d in DIPHONES)
        assert dba.max_samples == dba.max_frame * PERIOD
        assert table.search("b", "a") is None


def test_read_samples(tmp_path):
    path, samples = make_db(tmp_path / "x.dba")
    with load(path) as dba:
        cell = dba.diphone_table.content(dba.diphone_table.search("_", "_"))
        assert dba.read_samples(cell.pos_wave, PERIOD) == samples[cell.pos_wave:cell.pos_wave + PERIOD]
        assert dba.read_samples(0, 2 * PERIOD) == samples[: 2 * PERIOD]


def test_read_samples_too_many(tmp_path):
    path, _ = make_db(tmp_path / "x.dba")
    with load(path) as dba:
        with pytest.raises(PhoneReadError):
            dba.read_samples(0, dba.max_samples + 1)


def test_info_strings(tmp_path):
    path, _ = make_db(tmp_path / "x.dba")
    with load(path) as dba:
        assert list(dba.info) == INFO + [""]
        assert dba.info_message(0) == "hello"
        assert dba.info_message(1) == ""
        with pytest.raises(IndexError):
            dba.info_message(len(dba.info))
        with pytest.raises(IndexError):
            dba.info_message(-1)


def test_replacement_diphone(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", replacements=[("a", "b", "c", "d")])
    with load(path) as dba:
        table = dba.diphone_table
        original = table.content(table.search("a", "b"))
        clone = table.content(table.search("c", "d"))
        assert (clone.pos_wave, clone.halfseg, clone.pos_pm, clone.nb_frame) == (
            original.pos_wave,
            original.halfseg,
            original.pos_pm,
            original.nb_frame,
        )


def test_replacement_missing_source(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", replacements=[("x", "y", "c", "d")])
    with pytest.raises(DuplicateSegmentError):
        load(path)


def test_replacement_target_exists(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", replacements=[("a", "b", "_", "_")])
    with pytest.raises(DuplicateSegmentError):
        load(path)


def test_missing_file(tmp_path):
    dba = Database(str(tmp_path / "missing.dba"))
    with pytest.raises(DatabaseNotFoundError):
        dba.read_header()


def test_directory(tmp_path):
    dba = Database(str(tmp_path))
    with pytest.raises(WrongVersionError):
        dba.read_header()


def test_empty_file(tmp_path):
    path = tmp_path / "empty.dba"
    path.write_bytes(b"")
    with pytest.raises(WrongVersionError):
        Database(str(path)).read_header()


def test_bad_magic(tmp_path):
    path = tmp_path / "bad.dba"
    path.write_bytes(b"ORBLAM2.060" + b"\x00" * 20)
    dba = Database(str(path))
    with pytest.raises(WrongVersionError):
        dba.read_header()
    assert dba.stream is None


def test_future_version(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", version=b"9.999")
    with pytest.raises(WrongArchitectureError):
        Database(path).read_header()


def test_current_version_accepted(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", version=SYNTH_VERSION[:5].encode())
    dba = Database(path)
    dba.read_header()
    try:
        assert dba.version == SYNTH_VERSION[:5]
    finally:
        dba.close()


def test_old_version_forces_coding_zero(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", version=b"2.040")
    dba = Database(path)
    dba.read_header()
    try:
        assert dba.coding == 0
    finally:
        dba.close()


def test_unknown_coding_rejected(tmp_path):
    path, _ = make_db(tmp_path / "x.dba", coding=2)
    dba = Database(path)
    dba.read_header()
    with pytest.raises(BinaryFormatError):
        dba.init_basic()
    assert dba.stream is None


def test_copy_has_own_handle(tmp_path):
    path, samples = make_db(tmp_path / "x.dba")
    dba = load(path)
    twin = dba.copy()
    assert twin.stream is not dba.stream
    assert twin.diphone_table is dba.diphone_table
    twin.close()
    assert dba.diphone_table is not None
    assert dba.read_samples(0, PERIOD) == samples[:PERIOD]
    dba.close()


def test_closed_database_cannot_read(tmp_path):
    path, _ = make_db(tmp_path / "x.dba")
    with load(path) as dba:
        pass
    assert dba.stream is None
    with pytest.raises(DatabaseError):
        dba.read_samples(0, 1)