import contextlib
import io
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import vttdoc.__main__ as vttdoc_main
import vttdoc.config as config


SAMPLE_VTT = (
    "WEBVTT\n"
    "\n"
    "NOTE sample file\n"
    "with two comment lines\n"
    "\n"
    "intro\n"
    "00:00:01.000 --> 00:00:04.000 align:start line:0\n"
    "<v Roger>Hello &amp; welcome</v>\n"
    "\n"
    "00:00:02.000 --> 00:00:03.000\n"
    "- Narration line\n"
    "- Second line\n"
    "\n"
)


@pytest.fixture
def sample_vtt_bytes() -> bytes:
    return SAMPLE_VTT.encode("utf-8")


@pytest.fixture
def sample_vtt_file(tmp_path: Path) -> Path:
    path = tmp_path / "sample.vtt"
    path.write_text(SAMPLE_VTT, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keeps global settings independent of the developer environment."""
    for name in (
        "VTTDOC_INPUT_CHARSET",
        "VTTDOC_OUTPUT_ENCODING",
        "VTTDOC_ABORT_ON_UNSUPPORTED_TAG",
        "VTTDOC_SORT_ON_LOAD",
        "VTTDOC_OUTPUT_FOLDER",
    ):
        monkeypatch.delenv(name, raising=False)
    config.reload_settings()


@pytest.fixture(autouse=True)
def _silence_halo(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Halo spinners with a no-op context manager for tests."""

    class _DummyHalo:
        def __init__(self, *args, **kwargs):
            self.text = kwargs.get("text")

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    monkeypatch.setattr("vttdoc.__main__.Halo", _DummyHalo, raising=False)


@pytest.fixture
def run_cli(monkeypatch: pytest.MonkeyPatch):
    """Run the vttdoc CLI with a custom argv list and capture its output."""

    def _run_cli(args: Sequence[str]) -> tuple[int, str]:
        monkeypatch.setattr(sys, "argv", ["vttdoc", *args])
        monkeypatch.setattr(vttdoc_main, "load_dotenv", lambda: None)
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stdout):
            try:
                vttdoc_main.main()
            except SystemExit as exc:
                return int(exc.code or 0), stdout.getvalue()
        return 0, stdout.getvalue()

    return _run_cli


@pytest.fixture
def caplog_info(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.INFO)
    return caplog
