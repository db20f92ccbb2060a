"""Centralized logging factory for consistent logger configuration.

The factory configures the root logger once for the whole process:
- Console output unless the caller attaches its own handler
- An optional ``translation.log`` file when a log directory is configured
- Level switching for the ``translation_preview`` logger tree

Usage:
    LoggingFactory.initialize(log_dir=Path("logs"), level=logging.INFO)
    LoggingFactory.configure_level(logging.DEBUG)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

PACKAGE_LOGGER = "translation_preview"
LOG_FILE_NAME = "translation.log"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at DEBUG (request/response dumps)
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


class LoggingFactory:
    """Factory for configuring the process-wide logging setup consistently.

    Initialization happens at most once per process; later calls are ignored
    until ``reset()`` is called.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_dir: Directory for the log file, None for console-only logging
        _handlers: Handlers this factory attached to the root logger
    """

    _initialized = False
    _log_dir: Optional[Path] = None
    _handlers: List[logging.Handler] = []

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[Path] = None,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
        console: bool = True,
    ) -> None:
        """Initialize the logging system once for the entire application.

        Handlers are attached to the root logger directly rather than through
        ``logging.basicConfig``, which does nothing once any other component
        has configured the root logger.

        Args:
            log_dir: Directory for ``translation.log``. If None, no file is written.
            level: Level for the root logger
            format_string: Custom format string (defaults to DEFAULT_FORMAT)
            console: Whether to attach a plain StreamHandler. The CLI passes
                False and attaches a Rich handler instead.
        """
        if cls._initialized:
            return

        handlers: List[logging.Handler] = []
        if log_dir is not None:
            cls._log_dir = log_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(cls._log_dir / LOG_FILE_NAME, encoding="utf-8"))
        if console:
            handlers.append(logging.StreamHandler())
        if not handlers:
            handlers.append(logging.NullHandler())

        root = logging.getLogger()
        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
        root.setLevel(level)
        cls._handlers = handlers

        for name in NOISY_LOGGERS:
            cls.set_level(name, logging.WARNING)

        cls._initialized = True

    @classmethod
    def set_level(cls, name: str, level: int) -> None:
        """Set the logging level for a specific logger."""
        logging.getLogger(name).setLevel(level)

    @classmethod
    def configure_level(cls, level: int) -> None:
        """Apply ``level`` to the root and package loggers."""
        logging.getLogger().setLevel(level)
        cls.set_level(PACKAGE_LOGGER, level)

    @classmethod
    def reset(cls) -> None:
        """Detach the factory's handlers so the next call reconfigures logging."""
        root = logging.getLogger()
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._initialized = False
        cls._log_dir = None
