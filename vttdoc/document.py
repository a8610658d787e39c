"""Editable, tag-indexed WebVTT documents.

A :class:`Document` owns a timing-sorted list of cues. Content is exposed
through :class:`CueContentHandle` records that name a cue by its stable key,
a tag, and a slot in that tag's bucket. Handle mutators go back through the
document and report whether the change was applied.
"""

from __future__ import annotations

import bisect
import dataclasses
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

from vttdoc.config import get_settings
from vttdoc.domain import Cue
from vttdoc.parser.markup import MarkupParser
from vttdoc.parser.scanner import CueBlock, scan_cues
from vttdoc.timeline import CuesWithTimingSink, OutputOptions, Timeline, to_cues_with_timing
from vttdoc.utils.line_reader import LineReader, detect_bom_charset
from vttdoc.utils.logger import get_logger
from vttdoc.writer import WebVttWriter

logger: logging.Logger = get_logger(__name__)


def cue_sort_key(cue: Cue) -> tuple[int, int]:
    """Orders cues by start time, longer cues first on a shared start."""
    return (cue.start_time_us, -cue.end_time_us)


def content_for_tag(cue: Cue, tag: str) -> list[str]:
    """Returns a copy of the entries stored under ``tag`` (empty when absent)."""
    return list(cue.content.get(tag, ()))


def build_cue(block: CueBlock, parser: MarkupParser) -> Cue:
    """Folds the parsed markup of one cue block into a tag-indexed cue."""
    content: dict[str, list[str]] = {}
    for element in parser.parse(block.text):
        content.setdefault(element.tag_name, []).append(element.content)
    return Cue(
        start_time_us=block.start_time_us,
        end_time_us=block.end_time_us,
        content=content,
        identifier=block.identifier,
        settings=dict(block.settings),
        text=block.text,
    )


class CueContentHandle:
    """One entry of one tag bucket on one cue of a document."""

    def __init__(
        self,
        document: Document,
        cue_key: int,
        tag: str,
        slot: int,
        content: str,
    ) -> None:
        self._document = document
        self.cue_key = cue_key
        self._tag = tag
        self._slot = slot
        self._content = content

    def __repr__(self) -> str:
        return (
            f"CueContentHandle(cue_key={self.cue_key}, tag={self._tag!r}, "
            f"slot={self._slot}, content={self._content!r})"
        )

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def slot(self) -> int:
        return self._slot

    @property
    def content(self) -> str:
        return self._content

    @property
    def cue(self) -> Cue | None:
        """The current version of the owning cue, or ``None`` if it was removed."""
        return self._document.find_cue(self.cue_key)

    @property
    def start_time_us(self) -> int | None:
        cue = self.cue
        return None if cue is None else cue.start_time_us

    @property
    def end_time_us(self) -> int | None:
        cue = self.cue
        return None if cue is None else cue.end_time_us

    def set_content(self, value: str) -> bool:
        """Replaces this entry's text. Returns ``False`` if it cannot be located."""
        slot = self._document.replace_content(self.cue_key, self._tag, self._slot, self._content, value)
        if slot is None:
            return False
        self._slot = slot
        self._content = value
        return True

    def rename(self, new_tag: str) -> bool:
        """Moves this entry's whole bucket to ``new_tag``, overwriting any existing bucket."""
        if not self._document.rename_tag(self.cue_key, self._tag, new_tag, self._content):
            return False
        self._tag = new_tag
        return True

    def set_timing(
        self,
        start_time_us: int | None = None,
        end_time_us: int | None = None,
    ) -> bool:
        """Updates the owning cue's timing without re-sorting the document."""
        return self._document.set_cue_timing(self.cue_key, start_time_us, end_time_us)


class Document:
    """A mutable, timing-sorted list of tag-indexed cues.

    STYLE blocks read from the source are kept in ``style_sheets`` and written
    back ahead of the first cue.

    Not thread safe: callers must serialize access to one document.
    """

    def __init__(
        self,
        cues: Sequence[Cue] = (),
        *,
        source: Path | None = None,
        style_sheets: Sequence[str] = (),
        sort: bool = True,
    ) -> None:
        self._cues: list[Cue] = list(cues)
        if sort:
            self._cues.sort(key=cue_sort_key)
        self.source = source
        self.style_sheets: list[str] = list(style_sheets)

    def __len__(self) -> int:
        return len(self._cues)

    def __iter__(self) -> Iterator[Cue]:
        return iter(tuple(self._cues))

    @property
    def cues(self) -> tuple[Cue, ...]:
        return tuple(self._cues)

    def find_cue(self, cue_key: int) -> Cue | None:
        index = self._index_of(cue_key)
        return None if index is None else self._cues[index]

    def _index_of(self, cue_key: int) -> int | None:
        for index, cue in enumerate(self._cues):
            if cue.key == cue_key:
                return index
        return None

    def _replace_cue(self, index: int, **changes: object) -> Cue:
        updated = dataclasses.replace(self._cues[index], **changes)
        self._cues[index] = updated
        return updated

    def cue_contents_of_tag(self, tag: str) -> list[CueContentHandle]:
        """Returns a handle per entry stored under ``tag``, in cue order."""
        return [
            CueContentHandle(self, cue.key, tag, slot, entry)
            for cue in self._cues
            for slot, entry in enumerate(cue.content.get(tag, ()))
        ]

    def add_cue(self, start_time_us: int, end_time_us: int, tag: str, content: str) -> CueContentHandle:
        """Inserts a new single-entry cue at its sorted position.

        Raises:
            ValueError: If the cue would end before it starts.
        """
        if end_time_us < start_time_us:
            raise ValueError(
                f"Cue end {end_time_us} is before its start {start_time_us}"
            )
        cue = Cue(start_time_us=start_time_us, end_time_us=end_time_us, content={tag: [content]})
        bisect.insort(self._cues, cue, key=cue_sort_key)
        logger.debug("Added cue %d at [%d, %d) under <%s>", cue.key, start_time_us, end_time_us, tag)
        return CueContentHandle(self, cue.key, tag, 0, content)

    def remove_cue(self, cue: CueContentHandle | Cue | int) -> bool:
        """Removes a cue given a handle, a cue, or a cue key."""
        if isinstance(cue, CueContentHandle):
            cue_key = cue.cue_key
        elif isinstance(cue, Cue):
            cue_key = cue.key
        else:
            cue_key = cue
        index = self._index_of(cue_key)
        if index is None:
            return False
        del self._cues[index]
        return True

    def replace_content(
        self,
        cue_key: int,
        tag: str,
        slot: int,
        old_value: str,
        new_value: str,
    ) -> int | None:
        """Replaces one bucket entry and returns the slot it now occupies.

        The entry is found at ``slot`` when it still holds ``old_value``, else at
        the first entry equal to ``old_value``. A missing bucket is created with
        ``new_value`` alone. Returns ``None`` when nothing can be replaced.
        """
        index = self._index_of(cue_key)
        if index is None:
            return None
        content = {name: list(entries) for name, entries in self._cues[index].content.items()}
        bucket = content.get(tag)
        if bucket is None:
            content[tag] = [new_value]
            self._replace_cue(index, content=content)
            return 0
        if not (0 <= slot < len(bucket) and bucket[slot] == old_value):
            if old_value not in bucket:
                return None
            slot = bucket.index(old_value)
        bucket[slot] = new_value
        self._replace_cue(index, content=content)
        return slot

    def rename_tag(self, cue_key: int, old_tag: str, new_tag: str, fallback_content: str = "") -> bool:
        """Moves the ``old_tag`` bucket of a cue to ``new_tag``.

        An existing ``new_tag`` bucket is replaced, not merged. When ``old_tag``
        has no bucket, ``new_tag`` becomes ``[fallback_content]``.
        """
        index = self._index_of(cue_key)
        if index is None:
            return False
        if old_tag == new_tag:
            return True
        content = {name: list(entries) for name, entries in self._cues[index].content.items()}
        moved = content.pop(old_tag, None)
        if new_tag in content:
            logger.warning(
                "Renaming <%s> to <%s> on cue %d overwrites %d existing entries",
                old_tag,
                new_tag,
                cue_key,
                len(content[new_tag]),
            )
            del content[new_tag]
        content[new_tag] = moved if moved is not None else [fallback_content]
        self._replace_cue(index, content=content)
        return True

    def set_cue_timing(
        self,
        cue_key: int,
        start_time_us: int | None = None,
        end_time_us: int | None = None,
    ) -> bool:
        """Updates a cue's timing in place; the cue list is not re-sorted."""
        index = self._index_of(cue_key)
        if index is None:
            return False
        cue = self._cues[index]
        start = cue.start_time_us if start_time_us is None else start_time_us
        end = cue.end_time_us if end_time_us is None else end_time_us
        if end < start:
            logger.warning("Rejected timing [%d, %d) for cue %d", start, end, cue_key)
            return False
        self._replace_cue(index, start_time_us=start, end_time_us=end)
        return True

    def sort_cues(self) -> None:
        """Restores timing order after timing edits."""
        self._cues.sort(key=cue_sort_key)

    def timeline(self) -> Timeline:
        """Builds an event index over the current cues."""
        return Timeline(self._cues)

    def cues_with_timing(self, options: OutputOptions, sink: CuesWithTimingSink) -> None:
        to_cues_with_timing(self.timeline(), options, sink)

    def to_text(self) -> str:
        return WebVttWriter().generate_text(self._cues, self.style_sheets)

    def write(self, path: str | Path, encoding: str | None = None) -> None:
        """Writes the document to ``path``."""
        resolved_encoding = encoding or get_settings().writer.output_encoding
        WebVttWriter().generate_file(
            self._cues,
            path,
            encoding=resolved_encoding,
            style_sheets=self.style_sheets,
        )

    def save(self) -> None:
        """Writes the document back to the file it was loaded from.

        Raises:
            ValueError: If the document was not loaded from a file.
        """
        if self.source is None:
            raise ValueError("Document has no source file; use write(path).")
        self.write(self.source)


def parse_document(
    data: bytes,
    *,
    charset: str | None = None,
    source: Path | None = None,
    parser: MarkupParser | None = None,
) -> Document:
    """Parses WebVTT bytes into a document.

    The charset defaults to the one announced by a byte order mark, then to the
    configured input charset.

    Raises:
        WebVttFormatError: If the signature line is missing.
        WebVttStructureError: If a style block follows a cue.
    """
    settings = get_settings().parser
    resolved_charset = charset or detect_bom_charset(data) or settings.input_charset
    markup_parser = parser or MarkupParser(abort_on_unsupported=settings.abort_on_unsupported_tag)
    scan = scan_cues(LineReader(data), resolved_charset)
    if scan.dropped_cues:
        logger.warning("Dropped %d cues with invalid timing", scan.dropped_cues)
    cues = [build_cue(block, markup_parser) for block in scan.cues]
    return Document(
        cues,
        source=source,
        style_sheets=scan.style_sheets,
        sort=settings.sort_on_load,
    )


def load_document(path: str | Path, *, charset: str | None = None) -> Document:
    """Reads and parses a WebVTT file."""
    source = Path(path)
    logger.info("Loading WebVTT file: %s", source)
    document = parse_document(source.read_bytes(), charset=charset, source=source)
    logger.info("Loaded %d cues from %s", len(document), source)
    return document
