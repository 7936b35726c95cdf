import pytest

from termgopher.wrap import wrap_text


@pytest.mark.parametrize(
    "text, width, expected",
    [
        ("short", 80, ["short"]),
        ("hello world foo", 11, ["hello world", "foo"]),
        ("hello world foo", 8, ["hello", "world", "foo"]),
        ("abcdefghij", 4, ["abcd", "efgh", "ij"]),
        ("    abcdefgh", 6, ["    ab", "cdefgh"]),
        ("a\tb", 80, ["a       b"]),
        ("one\r\ntwo", 80, ["one", "two"]),
        ("", 80, [""]),
        ("a\n\nb", 80, ["a", "", "b"]),
    ],
)
def test_wrap_text(text, width, expected):
    assert wrap_text(text, width) == expected


def test_wrapped_lines_fit():
    text = "lorem ipsum dolor sit amet consectetur " * 20
    for width in (10, 33, 72):
        assert all(len(line) <= width for line in wrap_text(text, width))


def test_no_words_are_lost():
    text = "the quick brown fox jumps over the lazy dog " * 5
    assert " ".join(wrap_text(text, 17)).split() == text.split()
