"""
Logging System - Centralized logging management.

Provides colored console logging, optional file logging with rotation and an
in-memory broker of recent records, so diagnostic traces (for instance the
reason a guard rejected a message) can be read back at runtime.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable

import colorlog

PACKAGE_LOGGER = "AetherRealtime"


@dataclass
class LogRecord:
    """Represents a log entry kept by the broker."""

    timestamp: datetime
    level: str
    logger_name: str
    message: str


class LogBroker:
    """
    Log message broker for recent diagnostic traces.

    Maintains a circular buffer of recent logs and forwards them to subscribers.
    """

    def __init__(self, max_buffer: int = 1000) -> None:
        self._buffer: deque[LogRecord] = deque(maxlen=max_buffer)
        self._subscribers: list[Callable[[LogRecord], None]] = []

    def publish(self, record: LogRecord) -> None:
        """Publish a log record to the buffer and all subscribers."""
        self._buffer.append(record)

        for subscriber in list(self._subscribers):
            try:
                subscriber(record)
            except Exception:
                # a broken subscriber must not recurse into logging
                self._subscribers.remove(subscriber)

    def subscribe(self, callback: Callable[[LogRecord], None]) -> Callable[[], None]:
        """
        Subscribe to log messages.

        Returns a function to unsubscribe.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def get_recent(self, count: int = 100) -> list[LogRecord]:
        """Get the most recent log records."""
        return list(self._buffer)[-count:]

    def clear(self) -> None:
        self._buffer.clear()


class BrokerHandler(logging.Handler):
    """Handler that forwards log records to a LogBroker."""

    def __init__(self, broker: LogBroker) -> None:
        super().__init__()
        self._broker = broker

    def emit(self, record: logging.LogRecord) -> None:
        log_record = LogRecord(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger_name=record.name,
            message=self.format(record),
        )
        self._broker.publish(log_record)


class LogManager:
    """
    Centralized logging configuration for the package logger.

    Handlers are attached to the ``AetherRealtime`` logger only, never to the
    root logger, so embedding applications keep control of their own output.
    """

    _instance: LogManager | None = None
    _initialized: bool = False

    def __new__(cls) -> LogManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if LogManager._initialized:
            return

        LogManager._initialized = True
        self._broker = LogBroker()
        self._console_handler: logging.Handler | None = None
        self._file_handler: logging.Handler | None = None
        self._log_level = logging.INFO
        self._setup_package_logger()

    def _setup_package_logger(self) -> None:
        """Attach the broker handler and set the default level."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(self._log_level)

        broker_handler = BrokerHandler(self._broker)
        broker_handler.setFormatter(logging.Formatter("%(message)s"))
        broker_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(broker_handler)

    def enable_console(self) -> None:
        """Attach a colored console handler (idempotent)."""
        if self._console_handler is not None:
            return

        console_formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s%(reset)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(console_formatter)
        logging.getLogger(PACKAGE_LOGGER).addHandler(console_handler)
        self._console_handler = console_handler

    def enable_file(self, log_file: str | Path) -> None:
        """Attach a rotating file handler (idempotent)."""
        if self._file_handler is not None:
            return

        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logging.getLogger(PACKAGE_LOGGER).addHandler(file_handler)
        self._file_handler = file_handler

    def set_level(self, level: int | str) -> None:
        """Set the level of the package logger."""
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.INFO)

        self._log_level = level
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    @property
    def level(self) -> int:
        return self._log_level

    @property
    def broker(self) -> LogBroker:
        """Get the log broker holding recent records."""
        return self._broker


# Global log manager instance
_log_manager: LogManager | None = None


def get_log_manager() -> LogManager:
    """Get the global log manager instance."""
    global _log_manager
    if _log_manager is None:
        _log_manager = LogManager()
    return _log_manager


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console: bool = True,
) -> LogManager:
    """Configure package logging for applications and the CLI."""
    manager = get_log_manager()
    manager.set_level(level)
    if console:
        manager.enable_console()
    if log_file:
        manager.enable_file(log_file)
    return manager
