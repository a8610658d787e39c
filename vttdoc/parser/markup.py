"""Tag-stack parser for WebVTT cue payload markup.

The parser walks a cue payload once, keeping an explicit stack of open tags.
Every closed tag becomes an :class:`~vttdoc.domain.Element` whose content is
the entity-decoded text written while it was open. Mismatched closing tags pop
(and materialize) every frame above the matching one, so ``<b><i>hi</b>``
yields both ``i`` and ``b``.

Top-level lines that carry no recognized markup become ``"text"`` elements.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType

from vttdoc.domain import TEXT_TAG, Element
from vttdoc.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

SUPPORTED_TAGS: frozenset[str] = frozenset({"b", "c", "i", "lang", "ruby", "rt", "u", "v"})

ENTITIES: MappingProxyType[str, str] = MappingProxyType(
    {
        "lt": "<",
        "gt": ">",
        "amp": "&",
        "nbsp": " ",
    }
)

_TAG_NAME_SPLIT = re.compile(r"[ .]")


def trim_leading_dashes(line: str) -> str:
    """Strips a narration dash prefix (``- text``) and surrounding whitespace."""
    return line.strip().lstrip("-").strip()


@dataclass(frozen=True)
class _StartTag:
    """An open tag frame on the parse stack."""

    name: str
    position: int
    voice: str
    classes: frozenset[str]

    @classmethod
    def build(cls, expression: str, position: int) -> _StartTag:
        expression = expression.strip()
        voice = ""
        head, space, rest = expression.partition(" ")
        if space:
            voice = rest.strip()
        name, *classes = head.split(".")
        return cls(name=name, position=position, voice=voice, classes=frozenset(classes))


class _TextBuffer:
    """Accumulates decoded cue text and reports offsets into it."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.length = 0

    def append(self, text: str) -> None:
        self._parts.append(text)
        self.length += len(text)

    @property
    def text(self) -> str:
        joined = "".join(self._parts)
        self._parts = [joined]
        return joined


class MarkupParser:
    """Parses cue payloads into ordered markup elements.

    Arguments:
        abort_on_unsupported: When true (the default), an unsupported tag ends
            parsing of the remaining payload. When false, only that tag is
            skipped.
    """

    def __init__(self, abort_on_unsupported: bool = True) -> None:
        self.abort_on_unsupported = abort_on_unsupported

    def parse(self, markup: str) -> list[Element]:
        """Returns the elements of ``markup`` in materialization order."""
        elements, _ = self._scan(markup)
        return elements

    def plain_text(self, markup: str) -> str:
        """Returns the entity-decoded text of ``markup`` with tags removed."""
        _, text = self._scan(markup)
        return text

    def _scan(self, markup: str) -> tuple[list[Element], str]:
        buffer = _TextBuffer()
        stack: list[_StartTag] = []
        elements: list[Element] = []
        line_start = 0
        line_top_level = True
        line_has_markup = False
        aborted_at: str | None = None

        pos = 0
        length = len(markup)
        while pos < length:
            char = markup[pos]
            if char == "\n":
                if line_top_level and not line_has_markup:
                    self._append_text_element(elements, buffer, line_start)
                buffer.append(char)
                pos += 1
                line_start = buffer.length
                line_top_level = not stack
                line_has_markup = False
                continue

            if char == "<":
                line_end = markup.find("\n", pos)
                if line_end == -1:
                    line_end = length
                tag_end = markup.find(">", pos + 1, line_end)
                if tag_end == -1:
                    # No closing bracket on this line: keep the rest verbatim.
                    buffer.append(markup[pos:line_end])
                    pos = line_end
                    continue
                is_closing = markup[pos + 1] == "/"
                is_void = markup[tag_end - 1] == "/"
                expression = markup[pos + (2 if is_closing else 1):tag_end - 1 if is_void else tag_end]
                pos = tag_end + 1
                if not expression.strip():
                    continue
                tag_name = _TAG_NAME_SPLIT.split(expression.strip(), maxsplit=1)[0]
                if tag_name not in SUPPORTED_TAGS:
                    logger.debug("Dropping unsupported cue tag <%s>", expression)
                    if self.abort_on_unsupported:
                        aborted_at = expression
                        break
                    continue
                line_has_markup = True
                if is_closing:
                    while stack:
                        start_tag = stack.pop()
                        elements.append(self._materialize(start_tag, buffer))
                        if start_tag.name == tag_name:
                            break
                elif not is_void:
                    stack.append(_StartTag.build(expression, buffer.length))
                continue

            if char == "&":
                pos = self._consume_entity(markup, pos, buffer)
                continue

            buffer.append(char)
            pos += 1

        if line_top_level and not line_has_markup:
            self._append_text_element(elements, buffer, line_start)
        text = buffer.text
        if not elements:
            elements.append(
                Element(
                    tag_name=TEXT_TAG,
                    content=trim_leading_dashes(text),
                    start_offset=0,
                    end_offset=len(text),
                )
            )
        if aborted_at is not None and not any(element.content for element in elements):
            logger.warning("Unsupported tag <%s> left the cue without text: %r", aborted_at, markup)
        return elements, text

    @staticmethod
    def _materialize(start_tag: _StartTag, buffer: _TextBuffer) -> Element:
        return Element(
            tag_name=start_tag.name,
            content=buffer.text[start_tag.position:],
            start_offset=start_tag.position,
            end_offset=buffer.length,
            voice=start_tag.voice,
            classes=start_tag.classes,
        )

    @staticmethod
    def _append_text_element(
        elements: list[Element], buffer: _TextBuffer, line_start: int
    ) -> None:
        """Adds a ``"text"`` element for a plain top-level line, if it has content."""
        content = trim_leading_dashes(buffer.text[line_start:])
        if content:
            elements.append(
                Element(
                    tag_name=TEXT_TAG,
                    content=content,
                    start_offset=line_start,
                    end_offset=buffer.length,
                )
            )

    @staticmethod
    def _consume_entity(markup: str, pos: int, buffer: _TextBuffer) -> int:
        """Decodes the entity starting at ``pos`` and returns the next scan position.

        An entity ends at the nearest ``;`` or space on the same line. The
        space-terminated form keeps only the space.
        """
        line_end = markup.find("\n", pos)
        if line_end == -1:
            line_end = len(markup)
        semicolon = markup.find(";", pos + 1, line_end)
        space = markup.find(" ", pos + 1, line_end)
        terminators = [index for index in (semicolon, space) if index != -1]
        if not terminators:
            buffer.append("&")
            return pos + 1
        entity_end = min(terminators)
        if entity_end == space:
            buffer.append(" ")
        else:
            entity = markup[pos + 1:entity_end]
            decoded = ENTITIES.get(entity)
            if decoded is None:
                logger.debug("Dropping unknown entity &%s;", entity)
            else:
                buffer.append(decoded)
        return entity_end + 1


_DEFAULT_PARSER = MarkupParser()


def parse_markup(markup: str) -> list[Element]:
    """Parses ``markup`` with the default parser, which aborts at unsupported tags."""
    return _DEFAULT_PARSER.parse(markup)


def strip_markup(markup: str) -> str:
    """Returns the decoded plain text of ``markup``."""
    return _DEFAULT_PARSER.plain_text(markup)
