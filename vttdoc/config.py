"""Typed application settings loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from vttdoc.utils.line_reader import normalize_charset

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ParserConfig:
    """Settings that shape how WebVTT input is read."""

    input_charset: str = "utf-8"
    abort_on_unsupported_tag: bool = True
    sort_on_load: bool = True


@dataclass(frozen=True)
class WriterConfig:
    """Settings that shape how documents are written."""

    output_encoding: str = "utf-8"
    output_folder: Path = Path(".")


@dataclass(frozen=True)
class AppConfig:
    """Top-level settings container."""

    parser: ParserConfig
    writer: WriterConfig


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw!r}")


def _read_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _load_settings() -> AppConfig:
    return AppConfig(
        parser=ParserConfig(
            input_charset=normalize_charset(_read_str("VTTDOC_INPUT_CHARSET", "utf-8")),
            abort_on_unsupported_tag=_read_bool("VTTDOC_ABORT_ON_UNSUPPORTED_TAG", True),
            sort_on_load=_read_bool("VTTDOC_SORT_ON_LOAD", True),
        ),
        writer=WriterConfig(
            output_encoding=_read_str("VTTDOC_OUTPUT_ENCODING", "utf-8"),
            output_folder=Path(_read_str("VTTDOC_OUTPUT_FOLDER", ".")),
        ),
    )


_SETTINGS: AppConfig | None = None


def get_settings() -> AppConfig:
    """Returns the cached settings, loading them on first access."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = _load_settings()
    return _SETTINGS


def reload_settings() -> AppConfig:
    """Re-reads the environment and replaces the cached settings."""
    global _SETTINGS
    _SETTINGS = _load_settings()
    return _SETTINGS
