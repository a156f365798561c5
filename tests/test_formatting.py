import pytest

from kbdfirmware.formatting import (
    c_string,
    format_bin,
    format_dec,
    format_hex,
    format_oct,
    hex_dump,
)


def test_format_hex_pads_with_zeros():
    assert format_hex(0x5AC, 4) == "0x05ac"


@pytest.mark.parametrize("value,width", [(0, 2), (0x24F, 4), (0xFF, 2), (0x1300, 4)])
def test_format_hex_round_trip(value, width):
    text = format_hex(value, width)
    assert text.startswith("0x")
    assert len(text) == width + 2
    assert int(text, 16) == value


def test_format_hex_negative_is_masked_to_width():
    assert int(format_hex(-1, 2), 16) == 0xFF


def test_format_dec_right_aligns():
    text = format_dec(7, 2)
    assert len(text) == 2
    assert text.strip() == "7"
    assert text.endswith("7")


def test_format_dec_without_width():
    assert format_dec(123) == "123"


@pytest.mark.parametrize("value", [0, 1, 8, 511])
def test_format_oct_round_trip(value):
    text = format_oct(value)
    assert text[0] == "0"
    assert int(text[1:], 8) == value


@pytest.mark.parametrize("value", [0, 1, 0x20, 0xA5, 0xFF])
def test_format_bin_round_trip(value):
    text = format_bin(value)
    assert text.startswith("0b")
    assert len(text) == 10
    assert int(text[2:], 2) == value


def test_format_bin_respects_width():
    assert len(format_bin(1, 16)) == 18


def test_hex_dump_empty():
    assert hex_dump(b"") == ""


def test_hex_dump_line_layout():
    data = bytes(range(40))
    lines = hex_dump(data).splitlines(keepends=True)
    assert len(lines) == 2
    assert all(line.endswith("\n") for line in lines)
    assert len(lines[0]) == len(lines[1])
    hex_part, text_part = lines[0].rstrip("\n").split(" |")
    assert [int(tok, 16) for tok in hex_part.split()] == list(range(32))
    assert text_part == "." * 32


def test_hex_dump_shows_printable_text():
    line = hex_dump(b"AB")
    assert line.rstrip().endswith("|AB")
    assert line.split(" |")[0].split() == ["41", "42"]


def test_c_string_escapes():
    assert c_string(b"a\nb\tc") == '"a\\nb\\tc"'


def test_c_string_octal_escape():
    text = c_string(b"\x01x")
    assert text.startswith('"\\1')
    assert text.endswith('x"')


def test_c_string_accepts_str():
    assert c_string("hi") == c_string(b"hi")