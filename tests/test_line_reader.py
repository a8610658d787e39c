"""Tests for the cursor-based line reader."""

import codecs

import pytest

from vttdoc.utils.line_reader import LineReader, detect_bom_charset, normalize_charset


def _read_all(reader: LineReader, charset: str = "utf-8") -> list[str]:
    lines: list[str] = []
    while (line := reader.read_line(charset)) is not None:
        lines.append(line)
    return lines


def test_read_line_handles_every_terminator() -> None:
    """CR, LF and CRLF should all end a line without being returned."""
    reader = LineReader(b"one\rtwo\nthree\r\nfour")

    assert _read_all(reader) == ["one", "two", "three", "four"]
    assert reader.bytes_left() == 0


def test_read_line_returns_empty_string_for_blank_lines() -> None:
    """Blank lines should be distinguishable from end of input."""
    reader = LineReader(b"a\n\nb\n")

    assert reader.read_line() == "a"
    assert reader.read_line() == ""
    assert reader.read_line() == "b"
    assert reader.read_line() is None


def test_read_line_skips_utf8_bom() -> None:
    """A UTF-8 byte order mark should not leak into the first line."""
    reader = LineReader(codecs.BOM_UTF8 + "WEBVTT\n".encode("utf-8"))

    assert reader.read_line("utf-8") == "WEBVTT"


def test_read_line_keeps_bom_bytes_for_ascii() -> None:
    """US-ASCII reads should not consume a byte order mark."""
    reader = LineReader(codecs.BOM_UTF8 + b"x")

    assert reader.read_line("ascii") != "x"


def test_read_line_decodes_utf16_with_bom_byte_order() -> None:
    """Plain utf-16 should follow the byte order announced by the BOM."""
    data = codecs.BOM_UTF16_LE + "WEBVTT\r\nhé\n".encode("utf-16-le")
    reader = LineReader(data)

    assert _read_all(reader, "utf-16") == ["WEBVTT", "hé"]


def test_read_line_defaults_utf16_to_big_endian() -> None:
    """Without a BOM, plain utf-16 input should be read big-endian."""
    reader = LineReader("a\nb".encode("utf-16-be"))

    assert _read_all(reader, "utf-16") == ["a", "b"]


def test_read_line_replaces_invalid_bytes() -> None:
    """Undecodable bytes should become replacement characters."""
    reader = LineReader(b"ok\xff\n")

    assert reader.read_line() == "ok\ufffd"


def test_limit_bounds_reading() -> None:
    """Bytes past the limit should never be read."""
    reader = LineReader(b"abc\ndef", limit=3)

    assert reader.read_line() == "abc"
    assert reader.read_line() is None


def test_set_position_rejects_out_of_range() -> None:
    """Cursor moves outside [0, limit] should fail."""
    reader = LineReader(b"abc")

    with pytest.raises(ValueError):
        reader.set_position(4)
    with pytest.raises(ValueError):
        reader.set_limit(10)


def test_read_utf_charset_from_bom_leaves_cursor_without_bom() -> None:
    """Probing for a BOM should not move the cursor when none is present."""
    reader = LineReader(b"WEBVTT")

    assert reader.read_utf_charset_from_bom() is None
    assert reader.position == 0


def test_detect_bom_charset_recognizes_utf16_orders() -> None:
    """Both UTF-16 byte orders should be recognized."""
    assert detect_bom_charset(codecs.BOM_UTF16_BE + b"\x00a") == "utf-16-be"
    assert detect_bom_charset(codecs.BOM_UTF16_LE + b"a\x00") == "utf-16-le"
    assert detect_bom_charset(b"plain") is None


def test_normalize_charset_maps_aliases_and_rejects_others() -> None:
    """Aliases should normalize and unsupported codecs should be refused."""
    assert normalize_charset("UTF8") == "utf-8"
    assert normalize_charset("us-ascii") == "ascii"
    with pytest.raises(ValueError):
        normalize_charset("latin-1")
    with pytest.raises(ValueError):
        normalize_charset("no-such-codec")
