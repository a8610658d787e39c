"""
Event-time index over a fixed list of cues.

This module turns cues into a sorted list of event times (every cue start and
end) and walks it to produce non-overlapping windows of simultaneously active
cues.

Functions:
    - to_cues_with_timing: Emits CuesWithTiming windows for an output policy.

Classes:
    - Timeline: Binary-searchable event times plus active-cue lookup.
    - OutputOptions: Selects which windows are emitted and in which order.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from vttdoc.domain import Cue, CuesWithTiming
from vttdoc.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

TIME_UNSET: int | None = None

CuesWithTimingSink = Callable[[CuesWithTiming], None]


class TimelineStateError(RuntimeError):
    """Raised when the last event of a timeline still has active cues."""


class Timeline:
    """Read-only event index built from a cue sequence.

    Event times are kept sorted with duplicates. The cue list is copied, so
    later changes to the caller's list require building a new timeline.
    """

    def __init__(self, cues: Sequence[Cue]) -> None:
        self._cues: tuple[Cue, ...] = tuple(cues)
        self._sorted_event_times_us: list[int] = sorted(
            time_us
            for cue in self._cues
            for time_us in (cue.start_time_us, cue.end_time_us)
        )

    @property
    def cues(self) -> tuple[Cue, ...]:
        return self._cues

    @property
    def sorted_event_times_us(self) -> tuple[int, ...]:
        return tuple(self._sorted_event_times_us)

    def event_time_count(self) -> int:
        return len(self._sorted_event_times_us)

    def event_time(self, index: int) -> int:
        """Returns the event time at ``index``.

        Raises:
            IndexError: If ``index`` is outside ``[0, event_time_count())``.
        """
        if not 0 <= index < len(self._sorted_event_times_us):
            raise IndexError(
                f"Event index {index} out of range [0, {len(self._sorted_event_times_us)})"
            )
        return self._sorted_event_times_us[index]

    def next_event_index_after(self, time_us: int) -> int | None:
        """Returns the first index whose event time is strictly after ``time_us``."""
        index = bisect.bisect_right(self._sorted_event_times_us, time_us)
        if index < len(self._sorted_event_times_us):
            return index
        return None

    def active_cues(self, time_us: int) -> list[Cue]:
        """Returns cues with ``start <= time_us < end`` in their original order."""
        return [
            cue
            for cue in self._cues
            if cue.start_time_us <= time_us < cue.end_time_us
        ]


@dataclass(frozen=True)
class OutputOptions:
    """Output policy for :func:`to_cues_with_timing`.

    ``start_time_us`` of ``None`` emits everything. ``output_all_cues`` replays
    the windows before ``start_time_us`` after the ones following it.
    ``group_cues_in_range`` set to false emits one window per cue instead of
    walking the timeline.
    """

    start_time_us: int | None = TIME_UNSET
    output_all_cues: bool = False
    group_cues_in_range: bool = True

    @classmethod
    def all_cues(cls) -> OutputOptions:
        return cls()

    @classmethod
    def all_cues_ungrouped(cls) -> OutputOptions:
        return cls(group_cues_in_range=False)

    @classmethod
    def only_cues_after(cls, start_time_us: int) -> OutputOptions:
        return cls(start_time_us=start_time_us)

    @classmethod
    def cues_after_then_remaining_cues_before(cls, start_time_us: int) -> OutputOptions:
        return cls(start_time_us=start_time_us, output_all_cues=True)


def _start_index(timeline: Timeline, options: OutputOptions) -> int:
    if options.start_time_us is None:
        return 0
    next_index = timeline.next_event_index_after(options.start_time_us)
    if next_index is None:
        return timeline.event_time_count()
    if next_index > 0 and timeline.event_time(next_index - 1) == options.start_time_us:
        next_index -= 1
    return next_index


def _output_event(timeline: Timeline, event_index: int, sink: CuesWithTimingSink) -> None:
    start_time_us = timeline.event_time(event_index)
    cues = timeline.active_cues(start_time_us)
    if not cues:
        # The gap is already encoded in the previous window's duration.
        return
    if event_index == timeline.event_time_count() - 1:
        raise TimelineStateError(
            f"Cues are still active at the final event time {start_time_us}"
        )
    duration_us = timeline.event_time(event_index + 1) - start_time_us
    sink(CuesWithTiming(tuple(cues), start_time_us, duration_us))


def to_cues_with_timing(
    timeline: Timeline,
    options: OutputOptions,
    sink: CuesWithTimingSink,
) -> None:
    """Emits the windows of ``timeline`` selected by ``options`` to ``sink``.

    Arguments:
        timeline (Timeline): The event index to walk.
        options (OutputOptions): Which windows to emit, and in which order.
        sink (Callable): Receives each CuesWithTiming window.

    Raises:
        TimelineStateError: If the final event still has active cues.
    """
    if not options.group_cues_in_range:
        for cue in timeline.cues:
            sink(CuesWithTiming((cue,), cue.start_time_us, cue.duration_us))
        return

    count = timeline.event_time_count()
    start_index = _start_index(timeline, options)
    started_in_middle_of_cue = False
    if options.start_time_us is not None and start_index < count:
        cues_at_start_time = timeline.active_cues(options.start_time_us)
        first_event_time_us = timeline.event_time(start_index)
        if cues_at_start_time and options.start_time_us < first_event_time_us:
            sink(
                CuesWithTiming(
                    tuple(cues_at_start_time),
                    options.start_time_us,
                    first_event_time_us - options.start_time_us,
                )
            )
            started_in_middle_of_cue = True

    for index in range(start_index, count):
        _output_event(timeline, index, sink)

    if options.start_time_us is not None and options.output_all_cues:
        end_index = start_index - 1 if started_in_middle_of_cue else start_index
        for index in range(end_index):
            _output_event(timeline, index, sink)
        if started_in_middle_of_cue:
            window_start_us = timeline.event_time(end_index)
            sink(
                CuesWithTiming(
                    tuple(timeline.active_cues(options.start_time_us)),
                    window_start_us,
                    options.start_time_us - window_start_us,
                )
            )
    logger.debug("Walked %d event times from index %d", count, start_index)
