from __future__ import annotations

import io
import logging
from typing import Generator
from unittest.mock import patch

import pytest

from takopack.utils.logger import (
    ROOT_LOGGER_NAME,
    ColoredFormatter,
    get_logger,
    level_for_verbosity,
    setup_logging,
)


@pytest.fixture
def clean_logger_state() -> Generator[None, None, None]:
    """Reset the takopack logger before and after each test."""
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    def reset() -> None:
        root_logger.handlers.clear()
        root_logger.setLevel(logging.NOTSET)
        root_logger.propagate = True

    reset()
    yield
    reset()


@pytest.fixture
def captured_stream() -> io.StringIO:
    return io.StringIO()


def _record(level: int = logging.INFO, msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("takopack.test", level, __file__, 1, msg, None, None)


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_no_color_for_non_tty(self, captured_stream: io.StringIO) -> None:
        formatter = ColoredFormatter("%(levelname)s: %(message)s", stream=captured_stream)

        assert formatter.format(_record()) == "INFO: hello"

    def test_color_for_tty(
        self, captured_stream: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s", stream=captured_stream)

        with patch.object(captured_stream, "isatty", return_value=True):
            output = formatter.format(_record(logging.WARNING))

        assert output == "\033[33mWARNING\033[0m"

    def test_no_color_env_disables_color(
        self, captured_stream: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        formatter = ColoredFormatter("%(levelname)s", stream=captured_stream)

        with patch.object(captured_stream, "isatty", return_value=True):
            assert formatter.format(_record()) == "INFO"

    def test_original_record_untouched(
        self, captured_stream: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test colouring does not leak into other handlers."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s", stream=captured_stream)
        record = _record(logging.ERROR)

        with patch.object(captured_stream, "isatty", return_value=True):
            formatter.format(record)

        assert record.levelname == "ERROR"

    def test_use_color_false(self, captured_stream: io.StringIO) -> None:
        formatter = ColoredFormatter("%(levelname)s", use_color=False)

        with patch.object(captured_stream, "isatty", return_value=True):
            assert formatter.format(_record()) == "INFO"


@pytest.mark.unit
class TestLevelForVerbosity:
    """Tests for level_for_verbosity."""

    @pytest.mark.parametrize(
        "verbose,level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_mapping(self, verbose: int, level: int) -> None:
        assert level_for_verbosity(verbose) == level


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_to_stream(
        self, clean_logger_state: None, captured_stream: io.StringIO
    ) -> None:
        setup_logging(level=logging.INFO, stream=captured_stream)

        get_logger("lockfile").info("parsed %d packages", 3)

        assert captured_stream.getvalue() == "INFO: parsed 3 packages\n"

    def test_filters_below_level(
        self, clean_logger_state: None, captured_stream: io.StringIO
    ) -> None:
        setup_logging(level=logging.WARNING, stream=captured_stream)

        get_logger("x").info("hidden")

        assert captured_stream.getvalue() == ""

    def test_verbose_format_includes_logger_name(
        self, clean_logger_state: None, captured_stream: io.StringIO
    ) -> None:
        setup_logging(level=logging.DEBUG, verbose=True, stream=captured_stream)

        get_logger("recursive").debug("walk")

        assert "takopack.recursive - DEBUG - walk" in captured_stream.getvalue()

    def test_repeated_setup_replaces_handler(
        self, clean_logger_state: None, captured_stream: io.StringIO
    ) -> None:
        setup_logging(stream=captured_stream)
        setup_logging(stream=captured_stream)

        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger naming."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            (None, "takopack"),
            ("takopack", "takopack"),
            ("config", "takopack.config"),
            ("takopack.core.lockfile", "takopack.core.lockfile"),
        ],
    )
    def test_names(
        self, clean_logger_state: None, name: str, expected: str
    ) -> None:
        assert get_logger(name).name == expected
