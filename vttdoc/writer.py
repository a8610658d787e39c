"""WebVTT serialization of tag-indexed cues."""

import logging
from collections.abc import Iterable
from pathlib import Path

from vttdoc.domain import TEXT_TAG, Cue
from vttdoc.utils.logger import get_logger
from vttdoc.utils.timestamps import format_timestamp_us

logger: logging.Logger = get_logger(__name__)

WEBVTT_FILE_HEADER = "WEBVTT\n\n"
STYLE_BLOCK_START = "STYLE\n"

_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;"})


def escape_cue_text(text: str) -> str:
    """Escapes characters that the cue markup parser would treat as markup."""
    return text.translate(_ESCAPES)


def _payload_lines(entries: Iterable[str]) -> list[str]:
    """Flattens entries into the stripped, non-blank lines a reader will see."""
    return [line.strip() for entry in entries for line in entry.splitlines() if line.strip()]


def _text_lines(entries: Iterable[str]) -> list[str]:
    """Lines of the text bucket; continuation lines lose the dashes their " -" prefix hides."""
    lines = _payload_lines(entries)
    if not lines:
        return [""]
    continuation = (line.lstrip("- ") for line in lines[1:])
    return lines[:1] + [line for line in continuation if line]


class WebVttWriter:
    """Writer for tag-indexed cues in WebVTT format."""

    def format_time(self, time_us: int) -> str:
        """Convert time in microseconds to a WebVTT timestamp."""
        return format_timestamp_us(time_us)

    def generate_entry(self, cue: Cue) -> str:
        """Generate a single WebVTT cue block, including its trailing blank line."""
        start_time: str = self.format_time(cue.start_time_us)
        end_time: str = self.format_time(cue.end_time_us)
        parts: list[str] = [f"{start_time} --> {end_time}\n"]
        for tag, entries in cue.content.items():
            if tag == TEXT_TAG:
                continue
            content = "\n".join(escape_cue_text(line) for line in _payload_lines(entries))
            parts.append(f"<{tag}>{content}</{tag}>")
        if TEXT_TAG in cue.content:
            if len(parts) > 1:
                parts.append("\n")
            content = "\n -".join(escape_cue_text(line) for line in _text_lines(cue.content[TEXT_TAG]))
            parts.append(f"- {content}")
        parts.append("\n\n")
        logger.debug(
            "VTT Entry: Start %s, End %s, Tags %s",
            start_time,
            end_time,
            list(cue.content),
        )
        return "".join(parts)

    def generate_header(self, style_sheets: Iterable[str] = ()) -> str:
        """Generate the file header followed by any STYLE blocks."""
        blocks = "".join(f"{STYLE_BLOCK_START}{sheet}\n\n" for sheet in style_sheets)
        return WEBVTT_FILE_HEADER + blocks

    def generate_text(self, cues: Iterable[Cue], style_sheets: Iterable[str] = ()) -> str:
        """Generate the text of a whole WebVTT document."""
        return self.generate_header(style_sheets) + "".join(self.generate_entry(cue) for cue in cues)

    def generate_file(
        self,
        cues: Iterable[Cue],
        output_file: str | Path,
        encoding: str = "utf-8",
        style_sheets: Iterable[str] = (),
    ) -> None:
        """Generate a WebVTT file from a list of cues."""
        logger.info("Generating WebVTT file: %s", output_file)
        with open(output_file, "w", encoding=encoding, newline="\n") as f:
            f.write(self.generate_header(style_sheets))
            for cue in cues:
                f.write(self.generate_entry(cue))
        logger.info("WebVTT file generated successfully: %s", output_file)


def format_document(cues: Iterable[Cue]) -> str:
    """Renders ``cues`` as WebVTT text."""
    return WebVttWriter().generate_text(cues)


def write_document(cues: Iterable[Cue], output_file: str | Path, encoding: str = "utf-8") -> None:
    """Writes ``cues`` to ``output_file`` as WebVTT."""
    WebVttWriter().generate_file(cues, output_file, encoding=encoding)
