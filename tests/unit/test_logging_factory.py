"""Tests for translation_preview.utils.logging_factory module."""

import logging

import pytest

from translation_preview.utils.logging_factory import (
    LOG_FILE_NAME,
    NOISY_LOGGERS,
    PACKAGE_LOGGER,
    LoggingFactory,
)


@pytest.fixture(autouse=True)
def reset_factory():
    """Reset LoggingFactory state and logger levels around each test."""
    LoggingFactory.reset()
    root_level = logging.getLogger().level
    package_level = logging.getLogger(PACKAGE_LOGGER).level
    yield
    LoggingFactory.reset()
    logging.getLogger().setLevel(root_level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)


def installed_file_handlers(path):
    return [
        h
        for h in logging.getLogger().handlers
        if isinstance(h, logging.FileHandler) and h.baseFilename == str(path)
    ]


class TestInitialize:
    def test_writes_log_file_when_log_dir_given(self, tmp_path):
        log_dir = tmp_path / "logs"
        LoggingFactory.initialize(log_dir=log_dir, console=False)

        handlers = installed_file_handlers(log_dir / LOG_FILE_NAME)
        assert len(handlers) == 1

        logging.getLogger("translation_preview.test").warning("hello file")
        handlers[0].flush()

        assert LoggingFactory._initialized is True
        assert LoggingFactory._log_dir == log_dir
        assert "hello file" in (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")

    def test_console_only_by_default(self):
        LoggingFactory.initialize()

        assert LoggingFactory._log_dir is None
        assert len(LoggingFactory._handlers) == 1
        handler = LoggingFactory._handlers[0]
        assert type(handler) is logging.StreamHandler
        assert handler in logging.getLogger().handlers

    def test_without_outputs_root_gets_null_handler(self):
        LoggingFactory.initialize(console=False)

        assert [type(h) for h in LoggingFactory._handlers] == [logging.NullHandler]

    def test_second_call_is_ignored(self, tmp_path):
        LoggingFactory.initialize(console=True)
        handlers = list(logging.getLogger().handlers)

        LoggingFactory.initialize(log_dir=tmp_path / "ignored")

        assert logging.getLogger().handlers == handlers
        assert not (tmp_path / "ignored").exists()

    def test_sets_root_level(self):
        LoggingFactory.initialize(level=logging.WARNING, console=False)
        assert logging.getLogger().level == logging.WARNING

    def test_quiets_http_libraries(self):
        LoggingFactory.initialize(level=logging.DEBUG)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_reset_detaches_and_closes_handlers(self, tmp_path):
        log_dir = tmp_path / "logs"
        LoggingFactory.initialize(log_dir=log_dir, console=False)
        handler = installed_file_handlers(log_dir / LOG_FILE_NAME)[0]

        LoggingFactory.reset()

        assert handler not in logging.getLogger().handlers
        assert handler.stream is None
        assert LoggingFactory._initialized is False


class TestLevels:
    def test_set_level(self):
        LoggingFactory.set_level("translation_preview.some_module", logging.ERROR)
        assert logging.getLogger("translation_preview.some_module").level == logging.ERROR
        LoggingFactory.set_level("translation_preview.some_module", logging.NOTSET)

    def test_configure_level_applies_to_root_and_package(self):
        LoggingFactory.configure_level(logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

        LoggingFactory.configure_level(logging.WARNING)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING
