import pytest

from tinyshell.textutil import atoi, split_fields


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", 42),
        ("  -7abc", -7),
        ("\t\n 12", 12),
        ("+5", 5),
        ("abc", 0),
        ("", 0),
        ("-", 0),
        ("1 2", 1),
    ],
)
def test_atoi_parses_leading_integer(text, expected):
    assert atoi(text) == expected


def test_atoi_only_one_sign():
    assert atoi("--3") == 0
    assert atoi("+-3") == 0


def test_atoi_wraps_like_int32():
    assert atoi("2147483647") == 2147483647
    assert atoi("-2147483648") == -2147483648
    assert atoi("2147483648") == -2147483648


def test_atoi_negation_is_symmetric():
    for number in ("0", "1", "99", "123456"):
        assert atoi("-" + number) == -atoi(number)


def test_split_fields_drops_empty_fields():
    assert split_fields("a::b:", ":") == ["a", "b"]
    assert split_fields(":::", ":") == []
    assert split_fields("", ":") == []


def test_split_fields_single_field():
    assert split_fields("/usr/bin", ":") == ["/usr/bin"]


@pytest.mark.parametrize("text", ["a:b:c", "one", "x:yy:zzz:w"])
def test_split_fields_round_trip(text):
    assert ":".join(split_fields(text, ":")) == text


def test_split_fields_never_returns_separator():
    fields = split_fields("==a=b==c=", "=")
    assert all(field and "=" not in field for field in fields)
    assert "".join(fields) == "abc"