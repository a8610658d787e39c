"""Tests for WebVTT serialization of tag-indexed cues."""

import logging
from pathlib import Path

import pytest

from vttdoc.domain import Cue
from vttdoc.writer import WebVttWriter, escape_cue_text, format_document, write_document


def _cue(content: dict[str, list[str]]) -> Cue:
    return Cue(start_time_us=1_000_000, end_time_us=2_500_000, content=content)


def test_escape_cue_text_escapes_markup_characters() -> None:
    """Characters the markup parser reacts to should be escaped."""
    assert escape_cue_text("a<b>&c") == "a&lt;b&gt;&amp;c"


def test_generate_entry_writes_text_bucket_as_dash_lines() -> None:
    """Plain text entries should follow the timing line directly."""
    entry = WebVttWriter().generate_entry(_cue({"text": ["First", "Second"]}))

    assert entry == "000:00:01.000 --> 000:00:02.500\n- First\n -Second\n\n"


def test_generate_entry_wraps_tag_buckets_before_text() -> None:
    """Tag buckets should be wrapped in their tag and precede the text bucket."""
    entry = WebVttWriter().generate_entry(
        _cue({"text": ["narration"], "b": ["x", "y"], "i": ["a<b"]})
    )

    assert entry == (
        "000:00:01.000 --> 000:00:02.500\n"
        "<b>x\ny</b><i>a&lt;b</i>\n"
        "- narration\n\n"
    )


def test_generate_text_starts_with_signature() -> None:
    """Whole documents should begin with the WEBVTT header block."""
    assert format_document([]) == "WEBVTT\n\n"
    assert format_document([_cue({"u": ["under"]})]).startswith(
        "WEBVTT\n\n000:00:01.000 --> 000:00:02.500\n<u>under</u>"
    )


def test_generate_file_writes_and_logs(tmp_path: Path, caplog_info: pytest.LogCaptureFixture) -> None:
    """Files should hold the same text as the in-memory rendering."""
    output = tmp_path / "out.vtt"
    cues = [_cue({"text": ["Hello"]})]

    write_document(cues, output)

    assert output.read_text(encoding="utf-8") == format_document(cues)
    assert "WebVTT file generated successfully" in caplog_info.text


def test_generate_file_propagates_os_errors(tmp_path: Path) -> None:
    """Write failures should surface to the caller."""
    with pytest.raises(OSError):
        write_document([], tmp_path / "missing" / "out.vtt")


def test_generate_entry_logs_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    """Entry generation should report the tags it wrote at DEBUG level."""
    with caplog.at_level(logging.DEBUG, logger="vttdoc.writer"):
        WebVttWriter().generate_entry(_cue({"v": ["hi"]}))

    assert "Tags ['v']" in caplog.text


def test_generate_header_writes_style_blocks_after_signature() -> None:
    """Style sheets should be written as STYLE blocks ahead of the cues."""
    text = WebVttWriter().generate_text([_cue({"text": ["Hi"]})], ["::cue { color: red }"])

    assert text.startswith("WEBVTT\n\nSTYLE\n::cue { color: red }\n\n000:00:01.000 --> ")


def test_multi_line_text_entries_become_dash_lines() -> None:
    """Line breaks inside text entries should start new dash lines, skipping blanks."""
    entry = WebVttWriter().generate_entry(_cue({"text": ["one\ntwo", "", "- -three"]}))

    assert entry == "000:00:01.000 --> 000:00:02.500\n- one\n -two\n -three\n\n"


def test_empty_text_bucket_keeps_a_dash_line() -> None:
    """A text bucket with nothing visible should still be written."""
    entry = WebVttWriter().generate_entry(_cue({"text": [""]}))

    assert entry == "000:00:01.000 --> 000:00:02.500\n- \n\n"
