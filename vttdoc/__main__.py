"""
vttdoc command line interface

Entry point for inspecting and rewriting WebVTT files from a shell.

Usage:
    vttdoc inspect subtitles.vtt
    vttdoc tags subtitles.vtt --tag v
    vttdoc timeline subtitles.vtt --start 00:01:00.000 --all
    vttdoc rewrite subtitles.vtt --output normalized.vtt
    vttdoc add subtitles.vtt --start 00:00:05.000 --end 00:00:07.000 --tag v --content "Hi"
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from colored import attr, bg, fg
from dotenv import load_dotenv
from halo import Halo

from vttdoc.config import AppConfig, reload_settings
from vttdoc.document import Document, load_document
from vttdoc.domain import CuesWithTiming
from vttdoc.parser.scanner import WebVttFormatError, WebVttStructureError
from vttdoc.timeline import OutputOptions, TimelineStateError
from vttdoc.utils.logger import configure_logging, get_logger
from vttdoc.utils.timestamps import format_timestamp_us, parse_timestamp_us

logger: logging.Logger = get_logger("vttdoc")


def color_txt(string: str, fg_color: str, bg_color: str, padding: int = 0) -> str:
    """Colorizes a string, optionally left-justified to ``padding`` columns."""
    if padding:
        string = string.ljust(padding)
    return f"{fg(fg_color)}{bg(bg_color)}{string}{attr('reset')}"


def _timestamp_arg(value: str) -> int:
    try:
        return parse_timestamp_us(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from err


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vttdoc",
        description="Inspect, query and rewrite WebVTT subtitle files",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Overrides LOG_LEVEL.",
    )
    parser.add_argument(
        "--charset",
        type=str,
        default=None,
        help="Input charset. Defaults to the BOM, then VTTDOC_INPUT_CHARSET.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    inspect = commands.add_parser("inspect", help="List cues with timing and tags")
    inspect.add_argument("file", type=Path)

    tags = commands.add_parser("tags", help="Print every entry stored under one tag")
    tags.add_argument("file", type=Path)
    tags.add_argument("--tag", required=True, help="Tag name, e.g. v, b or text")

    timeline = commands.add_parser("timeline", help="Print non-overlapping cue windows")
    timeline.add_argument("file", type=Path)
    timeline.add_argument("--start", type=_timestamp_arg, default=None, help="Only windows from this time")
    timeline.add_argument(
        "--all",
        action="store_true",
        help="With --start, also print the windows before it afterwards",
    )
    timeline.add_argument("--ungrouped", action="store_true", help="One window per cue")

    rewrite = commands.add_parser("rewrite", help="Parse and re-serialize a file")
    rewrite.add_argument("file", type=Path)
    rewrite.add_argument("--output", type=Path, default=None, help="Output path (default: overwrite)")

    add = commands.add_parser("add", help="Insert a cue and write the document")
    add.add_argument("file", type=Path)
    add.add_argument("--start", type=_timestamp_arg, required=True)
    add.add_argument("--end", type=_timestamp_arg, required=True)
    add.add_argument("--tag", default="text")
    add.add_argument("--content", required=True)
    add.add_argument("--output", type=Path, default=None, help="Output path (default: overwrite)")
    return parser


def _resolve_output(output: Path | None, document: Document, settings: AppConfig) -> Path:
    if output is None:
        if document.source is None:
            raise ValueError("No output path given and the document has no source file.")
        return document.source
    if output.parent == Path("."):
        return settings.writer.output_folder / output
    return output


def _write(document: Document, output: Path) -> None:
    with Halo(text=f"Writing {output}", spinner="dots", text_color="green"):
        document.write(output)


def print_cues(document: Document) -> None:
    """Prints one row per cue: start, end, and the tags it carries."""
    print(color_txt("Start", "black", "green", 14), end="")
    print(color_txt("End", "black", "yellow", 14), end="")
    print(color_txt("Content", "black", "blue", 40))
    for cue in document:
        start = format_timestamp_us(cue.start_time_us).ljust(14)
        end = format_timestamp_us(cue.end_time_us).ljust(14)
        content = "; ".join(
            f"{tag}: {' | '.join(entries)}" for tag, entries in cue.content.items()
        )
        print(f"{start}{end}{content}")


def print_window(window: CuesWithTiming) -> None:
    start = format_timestamp_us(window.start_time_us)
    end = format_timestamp_us(window.end_time_us)
    texts = [" | ".join(entry for entries in cue.content.values() for entry in entries) for cue in window.cues]
    print(f"{start} --> {end}  {' / '.join(texts)}")


def _timeline_options(args: argparse.Namespace) -> OutputOptions:
    if args.ungrouped:
        return OutputOptions.all_cues_ungrouped()
    if args.start is None:
        return OutputOptions.all_cues()
    if args.all:
        return OutputOptions.cues_after_then_remaining_cues_before(args.start)
    return OutputOptions.only_cues_after(args.start)


def run_command(args: argparse.Namespace, settings: AppConfig) -> None:
    with Halo(text=f"Reading {args.file}", spinner="dots", text_color="green"):
        document = load_document(args.file, charset=args.charset)

    if args.command == "inspect":
        print_cues(document)
    elif args.command == "tags":
        for handle in document.cue_contents_of_tag(args.tag):
            print(f"{format_timestamp_us(handle.start_time_us or 0)}  {handle.content}")
    elif args.command == "timeline":
        document.cues_with_timing(_timeline_options(args), print_window)
    elif args.command == "rewrite":
        _write(document, _resolve_output(args.output, document, settings))
    elif args.command == "add":
        document.add_cue(args.start, args.end, args.tag, args.content)
        _write(document, _resolve_output(args.output, document, settings))


def main() -> None:
    """
    Main function to handle the command line interface logic.
    """
    load_dotenv()
    args: argparse.Namespace = build_parser().parse_args()
    configure_logging(args.log_level)
    try:
        settings = reload_settings()
    except ValueError as err:
        logger.error("Invalid configuration: %s", err)
        sys.exit(1)

    try:
        run_command(args, settings)
    except (WebVttFormatError, WebVttStructureError) as err:
        logger.error("Cannot parse %s: %s", args.file, err)
        sys.exit(1)
    except TimelineStateError as err:
        logger.error("Inconsistent timeline in %s: %s", args.file, err)
        sys.exit(1)
    except (OSError, ValueError) as err:
        logger.error(msg=f"Failed to process {args.file}: {err}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
