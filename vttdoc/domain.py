"""Domain data structures for cues, parsed markup elements, and timed cue windows."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

TEXT_TAG = "text"

_cue_keys = itertools.count(1)


def next_cue_key() -> int:
    """Returns a process-unique identity for a newly created cue."""
    return next(_cue_keys)


@dataclass(frozen=True)
class Cue:
    """A timed unit of subtitle content grouped by markup tag.

    ``content`` maps a tag name to its ordered text segments. Untagged
    top-level lines live under ``"text"``.
    """

    start_time_us: int
    end_time_us: int
    content: dict[str, list[str]] = field(default_factory=dict)
    identifier: str | None = None
    settings: dict[str, str] = field(default_factory=dict)
    text: str = ""
    key: int = field(default_factory=next_cue_key, compare=False)

    @property
    def duration_us(self) -> int:
        return self.end_time_us - self.start_time_us


@dataclass(frozen=True)
class Element:
    """One materialized markup element from a cue payload."""

    tag_name: str
    content: str
    start_offset: int
    end_offset: int
    voice: str = ""
    classes: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CuesWithTiming:
    """Cues shown together over one window of the timeline."""

    cues: tuple[Cue, ...]
    start_time_us: int
    duration_us: int

    @property
    def end_time_us(self) -> int:
        return self.start_time_us + self.duration_us
