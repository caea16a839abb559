import pytest

from ..utils import JSONPointer, english_enumerate


@pytest.mark.parametrize(
    "items,expected",
    [
        ([], ""),
        (["a"], "a"),
        (["a", "b"], "a, and b"),
        (["a", "b", "c"], "a, b, and c"),
        ([1, 2], "1, and 2"),
    ],
)
def test_english_enumerate(items, expected):
    assert english_enumerate(items) == expected


def test_english_enumerate_conj():
    assert english_enumerate(["a", "b"], conj=" or ") == "a or b"


class TestJSONPointer:
    def test_build(self):
        p = JSONPointer() / "data"
        assert str(p) == "/data"
        assert str(p[0]) == "/data/0"
        assert str(JSONPointer()) == "/"

    def test_escape(self):
        p = JSONPointer("a/b", "c~d")
        assert str(p) == "/a~1b/c~0d"
        assert JSONPointer.from_string(str(p)) == p

    def test_eq(self):
        assert JSONPointer("0") == "/0"
        assert JSONPointer() == "/"
        assert JSONPointer("0") != JSONPointer("1")
        assert len({JSONPointer("0"), JSONPointer("0")}) == 1

    def test_invalid(self):
        with pytest.raises(ValueError):
            JSONPointer.from_string("data")
