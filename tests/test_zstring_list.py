import pytest

from diphonedb.errors import DatabaseError, RenamingError
from diphonedb.zstring_list import ZStringList


def test_encode_is_stable_and_decodes_back():
    zl = ZStringList()
    code_a = zl.encode("a")
    code_b = zl.encode("b")
    assert zl.encode("a") == code_a
    assert code_a != code_b
    assert zl.decode(code_a) == "a"
    assert zl.decode(code_b) == "b"
    assert len(zl) == 2


def test_append_returns_sequential_codes():
    zl = ZStringList()
    assert zl.append("x") == 0
    assert zl.append("x") == 1
    assert list(zl) == ["x", "x"]


def test_find_missing_returns_none():
    zl = ZStringList(["p", "t"])
    assert zl.find("k") is None
    assert zl.find("t") == 1


def test_decode_invalid_code_raises():
    zl = ZStringList(["p"])
    with pytest.raises(IndexError):
        zl.decode(5)
    with pytest.raises(IndexError):
        zl.decode(-1)


def test_append_rename_and_find_rename():
    zl = ZStringList()
    zl.append_rename("on", "o~", False)
    zl.append_rename("j", "Z", False)
    assert zl.find_rename("on") == "o~"
    assert zl.find_rename("j") == "Z"
    assert zl.find_rename("o~") is None
    assert list(zl.pairs()) == [("on", "o~"), ("j", "Z")]


def test_append_rename_duplicate_key_raises():
    zl = ZStringList()
    zl.append_rename("a", "b", False)
    with pytest.raises(RenamingError):
        zl.append_rename("a", "c", False)
    assert len(zl) == 2


def test_append_rename_multiset_allows_duplicates():
    zl = ZStringList()
    zl.append_rename("a", "b", True)
    zl.append_rename("a", "c", True)
    assert list(zl.pairs()) == [("a", "b"), ("a", "c")]
    assert zl.find_rename("a") == "b"


def test_parse_pairs():
    zl = ZStringList()
    zl.parse("ou u r R", False)
    assert list(zl.pairs()) == [("ou", "u"), ("r", "R")]


def test_parse_handles_newlines_and_repeated_spaces():
    zl = ZStringList()
    zl.parse("  a   b\nc d\n", False)
    assert list(zl.pairs()) == [("a", "b"), ("c", "d")]


def test_parse_tab_is_not_a_separator():
    zl = ZStringList()
    zl.parse("a\tb c", False)
    assert list(zl.pairs()) == [("a\tb", "c")]


def test_parse_odd_number_raises():
    zl = ZStringList()
    with pytest.raises(RenamingError):
        zl.parse("a b c", False)
    assert zl.find_rename("a") == "b"


def test_parse_duplicate_key_raises_unless_multi():
    with pytest.raises(RenamingError):
        ZStringList().parse("a b a c", False)
    zl = ZStringList()
    zl.parse("a b a c", True)
    assert len(zl) == 4


def test_renaming_error_is_database_error():
    with pytest.raises(DatabaseError):
        ZStringList().parse("lonely", False)


def test_constructor_items_round_trip():
    items = ["_", "a", "e~"]
    zl = ZStringList(items)
    assert list(zl) == items
    assert [zl.decode(zl.encode(name)) for name in items] == items