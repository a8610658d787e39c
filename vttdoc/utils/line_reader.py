"""Cursor-based line reader over an in-memory byte buffer."""

from __future__ import annotations

import codecs

ASCII = "ascii"
UTF_8 = "utf-8"
UTF_16 = "utf-16"
UTF_16_BE = "utf-16-be"
UTF_16_LE = "utf-16-le"

SUPPORTED_CHARSETS: frozenset[str] = frozenset({ASCII, UTF_8, UTF_16, UTF_16_BE, UTF_16_LE})

_LINE_BREAKS = frozenset({ord("\n"), ord("\r")})
_CR_AND_LF = "\r\n"
_LF = "\n"


def normalize_charset(charset: str) -> str:
    """Maps a charset alias to its codec name and checks it is readable line-wise."""
    try:
        name = codecs.lookup(charset).name
    except LookupError as err:
        raise ValueError(f"Unsupported charset: {charset}") from err
    if name not in SUPPORTED_CHARSETS:
        raise ValueError(f"Unsupported charset: {charset}")
    return name


def detect_bom_charset(data: bytes) -> str | None:
    """Returns the codec announced by a leading byte order mark, if any."""
    if data.startswith(codecs.BOM_UTF8):
        return UTF_8
    if data.startswith(codecs.BOM_UTF16_BE):
        return UTF_16_BE
    if data.startswith(codecs.BOM_UTF16_LE):
        return UTF_16_LE
    return None


class LineReader:
    """Reads lines from a fixed byte buffer while tracking a read cursor.

    A line ends at ``\\r``, ``\\n`` or ``\\r\\n``; the terminator is consumed but
    not returned. One reader owns one cursor, so concurrent parses need
    separate instances.
    """

    def __init__(self, data: bytes = b"", limit: int | None = None) -> None:
        self._data: bytes = b""
        self._position = 0
        self._limit = 0
        self._utf16_codec: str | None = None
        self.reset(data, limit)

    @property
    def position(self) -> int:
        return self._position

    @property
    def limit(self) -> int:
        return self._limit

    def reset(self, data: bytes, limit: int | None = None) -> None:
        """Replaces the buffer and rewinds the cursor."""
        self._data = bytes(data)
        self._position = 0
        self._utf16_codec = None
        self.set_limit(len(self._data) if limit is None else limit)

    def set_limit(self, limit: int) -> None:
        if not 0 <= limit <= len(self._data):
            raise ValueError(f"Limit {limit} outside buffer of {len(self._data)} bytes")
        self._limit = limit
        self._position = min(self._position, limit)

    def set_position(self, position: int) -> None:
        if not 0 <= position <= self._limit:
            raise ValueError(f"Position {position} outside [0, {self._limit}]")
        self._position = position

    def bytes_left(self) -> int:
        return self._limit - self._position

    def read_utf_charset_from_bom(self) -> str | None:
        """Consumes a byte order mark at the cursor and returns its codec name.

        Returns ``None`` without moving the cursor when no BOM is present.
        """
        charset = detect_bom_charset(self._data[self._position:self._limit])
        if charset == UTF_8:
            self._position += len(codecs.BOM_UTF8)
        elif charset is not None:
            self._position += len(codecs.BOM_UTF16_BE)
        return charset

    def read_line(self, charset: str = UTF_8) -> str | None:
        """Reads the next line, or returns ``None`` at the end of the buffer.

        A leading BOM is skipped for every charset except US-ASCII. For plain
        ``utf-16`` the last BOM seen picks the byte order; big-endian is assumed
        otherwise.
        """
        codec = normalize_charset(charset)
        if self.bytes_left() == 0:
            return None
        if codec != ASCII:
            detected = self.read_utf_charset_from_bom()
            if codec == UTF_16:
                if detected in (UTF_16_BE, UTF_16_LE):
                    self._utf16_codec = detected
                codec = self._utf16_codec or UTF_16_BE
        line_limit = self._find_next_line_terminator(codec)
        line = self._data[self._position:line_limit].decode(codec, errors="replace")
        self._position = line_limit
        if self._position == self._limit:
            return line
        self._skip_line_terminator(codec)
        return line

    def _stride(self, codec: str) -> int:
        return 1 if codec in (ASCII, UTF_8) else 2

    def _find_next_line_terminator(self, codec: str) -> int:
        """Returns the offset of the next ``\\r``/``\\n`` code unit, or the limit."""
        stride = self._stride(codec)
        data = self._data
        index = self._position
        while index < self._limit - (stride - 1):
            if stride == 1:
                if data[index] in _LINE_BREAKS:
                    return index
            elif codec == UTF_16_LE:
                if data[index + 1] == 0 and data[index] in _LINE_BREAKS:
                    return index
            elif data[index] == 0 and data[index + 1] in _LINE_BREAKS:
                return index
            index += stride
        return self._limit

    def _skip_line_terminator(self, codec: str) -> None:
        if self._read_character_if_in(codec, _CR_AND_LF) == "\r":
            self._read_character_if_in(codec, _LF)

    def _peek_character(self, codec: str) -> tuple[str, int] | None:
        """Peeks one single-code-unit character at the cursor and its byte size."""
        stride = self._stride(codec)
        if self.bytes_left() < stride:
            return None
        unit = self._data[self._position:self._position + stride]
        if stride == 1:
            return chr(unit[0]), 1
        if codec == UTF_16_LE:
            return chr(unit[0] | (unit[1] << 8)), 2
        return chr((unit[0] << 8) | unit[1]), 2

    def _read_character_if_in(self, codec: str, chars: str) -> str | None:
        peeked = self._peek_character(codec)
        if peeked is None or peeked[0] not in chars:
            return None
        self._position += peeked[1]
        return peeked[0]
