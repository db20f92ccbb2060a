"""Tests for the Rich console manager."""

import io
import json
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from translation_preview.cache.translation_cache import CacheStats
from translation_preview.errors import ErrorKind, TranslationError
from translation_preview.models.translation import (
    HeadingInfo,
    RequestState,
    TranslationOutcome,
    TranslationUpdate,
)
from translation_preview.ui.console import ConsoleManager


def make_manager(json_output=False, terminal=False):
    status = Console(file=io.StringIO(), force_terminal=terminal, width=100)
    output = Console(file=io.StringIO(), force_terminal=terminal, width=100)
    return ConsoleManager(json_output=json_output, console=status, output=output)


def text_of(console: Console) -> str:
    return console.file.getvalue()


class TestRendering:
    def test_non_tty_prints_only_final_snapshot(self):
        manager = make_manager()
        manager.render_update(TranslationUpdate("你", is_streaming=True))
        manager.render_update(TranslationUpdate("你好", is_streaming=False))

        assert text_of(manager.output) == "你好\n"

    def test_tty_uses_live_view_until_final_snapshot(self):
        manager = make_manager(terminal=True)
        manager.render_update(TranslationUpdate("# 标题", is_streaming=True))
        assert manager._live is not None

        manager.render_update(TranslationUpdate("# 标题\n\n正文", is_streaming=False))
        assert manager._live is None
        assert "正文" in text_of(manager.output)

    def test_json_updates_go_to_stdout(self, capsys):
        manager = make_manager(json_output=True)
        manager.render_update(TranslationUpdate("He", is_streaming=True))

        line = json.loads(capsys.readouterr().out)
        assert line["type"] == "update"
        assert line["text"] == "He"
        assert line["isStreaming"] is True


class TestReporting:
    def test_error_panel_shows_kind_and_message(self):
        manager = make_manager()
        manager.report_error(TranslationError("Rate limit exceeded.", kind=ErrorKind.RATE_LIMIT))

        output = text_of(manager.console)
        assert "rate_limit" in output
        assert "Rate limit exceeded." in output

    def test_json_error_goes_to_stderr(self, capsys):
        manager = make_manager(json_output=True)
        manager.report_error(TranslationError("nope", kind=ErrorKind.AUTHENTICATION, code="401"))

        line = json.loads(capsys.readouterr().err)
        assert line["type"] == "error"
        assert line["kind"] == "authentication"
        assert line["code"] == "401"
        assert line["message"] == "nope"
        assert line["retriable"] is False

    def test_retriable_errors_get_a_retry_hint(self):
        manager = make_manager()
        manager.report_error(TranslationError("Request timed out.", kind=ErrorKind.TIMEOUT))
        assert "Retrying may succeed" in text_of(manager.console)

        manager = make_manager()
        manager.report_error(TranslationError("Bad key.", kind=ErrorKind.AUTHENTICATION))
        assert "Retrying may succeed" not in text_of(manager.console)

    def test_outcome_summary(self):
        manager = make_manager()
        manager.print_outcome(
            TranslationOutcome(RequestState.HIT_DELIVERED, "你好", "m", from_cache=True)
        )
        assert "from cache" in text_of(manager.console)

    def test_stats_table(self):
        manager = make_manager()
        manager.print_stats(CacheStats(entry_count=3, total_size=1234))
        output = text_of(manager.output)
        assert "Entries" in output
        assert "1,234" in output

    def test_headings_table_includes_whole_document(self):
        manager = make_manager()
        manager.print_headings([HeadingInfo(line=0, level=1, title="Guide")], "guide.md")
        output = text_of(manager.output)

        whole_row = next(row for row in output.splitlines() if "whole document" in row)
        assert "no --section" in whole_row
        # Line 0 belongs to the real heading, not the whole-document row
        assert " 0 " not in whole_row
        heading_row = next(row for row in output.splitlines() if "# Guide" in row)
        assert " 0 " in heading_row

    def test_settings_table(self):
        manager = make_manager()
        manager.print_settings({"api_key": "missing", "skip_ssl_verification": False})
        output = text_of(manager.output)
        assert "api_key" in output
        assert "missing" in output


class TestLoggingSetup:
    @pytest.fixture
    def logger(self):
        logger = logging.getLogger("translation_preview.console_test")
        yield logger
        logger.handlers.clear()

    def test_rich_handler_is_attached_once(self, logger):
        manager = make_manager()
        manager.setup_logging(logger)
        manager.setup_logging(logger)

        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
        assert logger.level == logging.INFO

    def test_json_mode_uses_plain_handler(self, logger):
        manager = make_manager(json_output=True)
        manager.verbose = True
        manager.setup_logging(logger)

        assert not any(isinstance(h, RichHandler) for h in logger.handlers)
        assert logger.level == logging.DEBUG

    def test_explicit_level_overrides_verbosity(self, logger):
        manager = make_manager()
        manager.setup_logging(logger, level=logging.WARNING)
        assert logger.level == logging.WARNING
