from __future__ import annotations

from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from takopack.utils.console import (
    TAKOPACK_THEME,
    _get_console,
    _should_use_color,
    get_raw_console,
    print_error,
    print_lines,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton around each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def recording_console() -> Generator[Console, None, None]:
    """Swap the singleton for a recording, colourless console."""
    console = Console(theme=TAKOPACK_THEME, record=True, width=200, no_color=True)
    with patch("takopack.utils.console._get_console", return_value=console):
        yield console


@pytest.mark.unit
class TestConsoleLifecycle:
    """Tests for the console singleton."""

    def test_singleton(self) -> None:
        assert _get_console() is _get_console()
        assert get_raw_console() is _get_console()

    def test_reconfigure_creates_new_console(self) -> None:
        first = _get_console()

        reconfigure_console()

        assert _get_console() is not first

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_theme_styles(self) -> None:
        for name in ("success", "error", "warning", "info", "package"):
            assert name in TAKOPACK_THEME.styles


@pytest.mark.unit
class TestPrintHelpers:
    """Tests for status and line output."""

    def test_status_prefixes(self, recording_console: Console) -> None:
        print_success("saved")
        print_warning("careful")
        print_error("broken")

        output = recording_console.export_text()
        assert "[OK] saved" in output
        assert "[WARNING] careful" in output
        assert "[ERROR] broken" in output

    def test_print_lines_is_verbatim(self, recording_console: Console) -> None:
        """Test clauses with brackets are not read as markup."""
        print_lines(["rust-serde-1 (>= 1.0.5)", "[bold]literal[/bold]"])

        output = recording_console.export_text()
        assert output == "rust-serde-1 (>= 1.0.5)\n[bold]literal[/bold]\n"


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_renders_rows(self, recording_console: Console) -> None:
        print_table(
            [{"Crate": "serde", "Version": "1.0.210"}],
            title="Crates",
        )

        output = recording_console.export_text()
        assert "Crates" in output
        assert "serde" in output
        assert "1.0.210" in output

    def test_empty_data_prints_nothing(self, recording_console: Console) -> None:
        print_table([])

        assert recording_console.export_text() == ""

    def test_explicit_headers(self, recording_console: Console) -> None:
        print_table([{"a": 1, "b": 2}], headers=["b"])

        output = recording_console.export_text()
        assert "b" in output
        assert "2" in output
        assert "1" not in output
