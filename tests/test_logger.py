"""Unit tests for log-level resolution and logging configuration."""

import logging

import pytest

import vttdoc.utils.logger as logger_utils


def test_configure_logging_defaults_to_info(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Default configuration should resolve to INFO when LOG_LEVEL is unset."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    assert logger_utils.configure_logging() == logging.INFO


def test_configure_logging_reads_log_level_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Environment LOG_LEVEL should define the default when no explicit level exists."""
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    assert logger_utils.configure_logging() == logging.WARNING


def test_configure_logging_explicit_level_overrides_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Explicit runtime level should override LOG_LEVEL."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")

    assert logger_utils.configure_logging("DEBUG") == logging.DEBUG


def test_configure_logging_accepts_numeric_and_unknown_levels(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Numeric levels should pass through and unknown names fall back to INFO."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    assert logger_utils.configure_logging("30") == logging.WARNING
    assert logger_utils.configure_logging("chatty") == logging.INFO


def test_get_logger_does_not_reapply_env_after_explicit_configuration(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Once configured, later logger retrieval should not reset level from environment."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    logger_utils.configure_logging("INFO")

    logger_utils.get_logger("vttdoc.test")

    assert logging.getLogger().level == logging.INFO


def test_configure_logging_sets_handler_level_during_first_initialization() -> None:
    """First-time basicConfig path should align handler level with resolved level."""
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    original_configured = logger_utils._LOGGING_CONFIGURED

    for handler in original_handlers:
        root_logger.removeHandler(handler)
    logger_utils._LOGGING_CONFIGURED = False

    try:
        applied_level = logger_utils.configure_logging("INFO")

        assert applied_level == logging.INFO
        assert root_logger.handlers
        assert all(handler.level == logging.INFO for handler in root_logger.handlers)
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)
        logger_utils._LOGGING_CONFIGURED = original_configured


def test_first_initialization_uses_project_log_format() -> None:
    """Handlers created by the first configuration should use LOG_FORMAT."""
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    original_configured = logger_utils._LOGGING_CONFIGURED

    for handler in original_handlers:
        root_logger.removeHandler(handler)
    logger_utils._LOGGING_CONFIGURED = False

    try:
        logger_utils.configure_logging("WARNING")

        formats = [handler.formatter._fmt for handler in root_logger.handlers if handler.formatter]
        assert formats == [logger_utils.LOG_FORMAT]
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)
        logger_utils._LOGGING_CONFIGURED = original_configured


def test_package_modules_log_under_their_module_names() -> None:
    """Each vttdoc module should own a logger named after itself."""
    import vttdoc.document as document
    import vttdoc.parser.markup as markup
    import vttdoc.parser.scanner as scanner
    import vttdoc.timeline as timeline
    import vttdoc.writer as writer

    for module in (document, markup, scanner, timeline, writer):
        assert module.logger is logging.getLogger(module.__name__)
        assert module.logger.propagate is True


def test_scanner_warnings_respect_configured_level(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Dropped-cue warnings should appear at WARNING and vanish at ERROR."""
    from vttdoc.parser.scanner import scan_cues
    from vttdoc.utils.line_reader import LineReader

    monkeypatch.delenv("LOG_LEVEL", raising=False)
    data = b"WEBVTT\n\n00:05.000 --> 00:01.000\nBackwards\n"
    caplog.set_level(logging.NOTSET)

    logger_utils.configure_logging("WARNING")
    scan_cues(LineReader(data))
    warned = [record.name for record in caplog.records]
    caplog.clear()

    logger_utils.configure_logging("ERROR")
    scan_cues(LineReader(data))

    assert warned == ["vttdoc.parser.scanner"]
    assert caplog.records == []
