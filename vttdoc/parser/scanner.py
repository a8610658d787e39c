"""Block scanner for WebVTT files: header, comments, style blocks, and cues."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from vttdoc.utils.line_reader import UTF_8, LineReader
from vttdoc.utils.logger import get_logger
from vttdoc.utils.timestamps import parse_timestamp_us

logger: logging.Logger = get_logger(__name__)

WEBVTT_HEADER = "WEBVTT"
STYLE_START = "STYLE"

CUE_HEADER_PATTERN = re.compile(r"^(\S+)\s+-->\s+(\S+)(.*)?$")
CUE_SETTING_PATTERN = re.compile(r"(\S+?):(\S+)")
COMMENT_PATTERN = re.compile(r"^NOTE([ \t].*)?$")


class WebVttFormatError(ValueError):
    """Raised when the input does not start with a WEBVTT signature line."""


class WebVttStructureError(ValueError):
    """Raised when blocks appear in an order the format forbids."""


@dataclass(frozen=True)
class CueBlock:
    """One cue as read from the file, before markup parsing."""

    start_time_us: int
    end_time_us: int
    text: str
    identifier: str | None = None
    settings: dict[str, str] = field(default_factory=dict)


@dataclass
class ScanResult:
    """Cue blocks and style sheets found in one file."""

    cues: list[CueBlock] = field(default_factory=list)
    style_sheets: list[str] = field(default_factory=list)
    dropped_cues: int = 0


def validate_header_line(reader: LineReader, charset: str = UTF_8) -> str:
    """Reads the signature line and returns it.

    Raises:
        WebVttFormatError: If the first line does not start with ``WEBVTT``.
    """
    start_position = reader.position
    line = reader.read_line(charset)
    if line is None or not line.startswith(WEBVTT_HEADER):
        reader.set_position(start_position)
        raise WebVttFormatError(f"Expected WEBVTT. Got {line!r}")
    return line


def parse_cue_settings(settings_list: str) -> dict[str, str]:
    """Collects ``name:value`` pairs from the tail of a cue header line."""
    return {
        match.group(1): match.group(2)
        for match in CUE_SETTING_PATTERN.finditer(settings_list)
    }


def _read_block(reader: LineReader, charset: str) -> list[str]:
    """Reads lines until a blank line or the end of input."""
    lines: list[str] = []
    while True:
        line = reader.read_line(charset)
        if not line:
            return lines
        lines.append(line)


class CueScanner:
    """Splits a WebVTT byte stream into cue blocks.

    The reader must be positioned at the start of the file (a BOM is allowed).
    """

    def __init__(self, reader: LineReader, charset: str = UTF_8) -> None:
        self.reader = reader
        self.charset = charset

    def scan(self) -> ScanResult:
        """Validates the header and reads every block to the end of input."""
        result = ScanResult()
        validate_header_line(self.reader, self.charset)
        _read_block(self.reader, self.charset)
        for block in self._iter_blocks(result):
            result.cues.append(block)
        logger.debug(
            "Scanned %d cues (%d dropped, %d style blocks)",
            len(result.cues),
            result.dropped_cues,
            len(result.style_sheets),
        )
        return result

    def _iter_blocks(self, result: ScanResult) -> Iterator[CueBlock]:
        pending_identifier: str | None = None
        while (line := self.reader.read_line(self.charset)) is not None:
            if not line:
                pending_identifier = None
                continue
            if COMMENT_PATTERN.match(line):
                _read_block(self.reader, self.charset)
                pending_identifier = None
                continue
            if line == STYLE_START:
                if result.cues or result.dropped_cues:
                    raise WebVttStructureError("A style block was found after the first cue.")
                result.style_sheets.append("\n".join(_read_block(self.reader, self.charset)))
                pending_identifier = None
                continue
            header = CUE_HEADER_PATTERN.match(line)
            if header is None:
                if pending_identifier is not None:
                    logger.debug("Skipping stray line %r", pending_identifier)
                pending_identifier = line.strip()
                continue
            block = self._parse_cue(pending_identifier, header)
            pending_identifier = None
            if block is None:
                result.dropped_cues += 1
                continue
            yield block

    def _parse_cue(self, identifier: str | None, header: re.Match[str]) -> CueBlock | None:
        text_lines = [line.strip() for line in _read_block(self.reader, self.charset)]
        try:
            start_time_us = parse_timestamp_us(header.group(1))
            end_time_us = parse_timestamp_us(header.group(2))
        except ValueError as err:
            logger.warning("Skipping cue with bad header %r: %s", header.group(0), err)
            return None
        if end_time_us < start_time_us:
            logger.warning("Skipping cue that ends before it starts: %r", header.group(0))
            return None
        return CueBlock(
            start_time_us=start_time_us,
            end_time_us=end_time_us,
            text="\n".join(text_lines),
            identifier=identifier,
            settings=parse_cue_settings(header.group(3) or ""),
        )


def scan_cues(reader: LineReader, charset: str = UTF_8) -> ScanResult:
    """Scans a whole WebVTT file from ``reader``."""
    return CueScanner(reader, charset).scan()
