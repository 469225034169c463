"""
Logging configuration for NetTraceX.

Provides structured logging with rotation, plus the narrow Logger capability
consumed by the diagnostic core.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Protocol

from nettracex.config import LoggingConfig


class StructuredFormatter(logging.Formatter):
    """Structured formatter for easier log parsing."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured data."""
        if not hasattr(record, 'module_name'):
            record.module_name = record.module
        if not hasattr(record, 'function_name'):
            record.function_name = record.funcName

        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_dir: str | None = None,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True,
    enable_file: bool = False,
    console_level: str | None = None,
) -> logging.Logger:
    """
    Set up logging for NetTraceX.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Custom log file path (overrides log_dir)
        log_dir: Directory for log files (defaults to ~/.nettracex/logs)
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        enable_console: Enable console logging
        enable_file: Enable file logging
        console_level: Console threshold (defaults to level)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("nettracex")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    console_fmt = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_fmt = StructuredFormatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(module_name)-15s | '
            '%(function_name)-20s | %(lineno)-4d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if enable_console:
        # stderr keeps stdout clean for --json output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, (console_level or level).upper()))
        console_handler.setFormatter(console_fmt)
        logger.addHandler(console_handler)

    if enable_file:
        if log_file:
            log_path = Path(log_file)
        else:
            if log_dir:
                log_path = Path(log_dir) / "nettracex.log"
            else:
                log_path = Path.home() / ".nettracex" / "logs" / "nettracex.log"

        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_fmt)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (e.g., 'nettracex.whois.core')

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(config: LoggingConfig | None = None, debug: bool = False, log_file: str | None = None) -> logging.Logger:
    """
    Configure logging from a LoggingConfig.

    The console stays at WARNING unless debug is set; the file handler, if
    any, follows the configured level.

    Args:
        config: LoggingConfig (defaults used when None)
        debug: Enable debug logging
        log_file: Explicit log file path, overriding the configured one
    """
    config = config or LoggingConfig()

    level = "DEBUG" if debug else config.level
    log_file = log_file or config.log_file
    return setup_logging(
        level=level,
        log_file=log_file,
        max_bytes=config.max_size_mb * 1024 * 1024,
        backup_count=config.max_backups,
        enable_console=True,
        enable_file=bool(log_file),
        console_level="DEBUG" if debug else "WARNING",
    )


class Logger(Protocol):
    """Leveled, fire-and-forget message sink used by the diagnostic core."""

    def debug(self, msg: str, **fields: Any) -> None: ...

    def info(self, msg: str, **fields: Any) -> None: ...

    def warn(self, msg: str, **fields: Any) -> None: ...

    def error(self, msg: str, **fields: Any) -> None: ...

    def fatal(self, msg: str, **fields: Any) -> None: ...


def _render_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


class StructuredLogger:
    """Logger capability backed by a stdlib logger; fields render as key=value."""

    def __init__(self, logger: logging.Logger | str = "nettracex"):
        if isinstance(logger, str):
            logger = logging.getLogger(logger)
        self.logger = logger

    def _log(self, level: int, msg: str, fields: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        rendered = _render_fields(fields)
        text = f"{msg} {rendered}" if rendered else msg
        self.logger.log(level, text, stacklevel=3)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, fields)

    def fatal(self, msg: str, **fields: Any) -> None:
        # Never exits; the caller owns process lifetime.
        self._log(logging.CRITICAL, msg, fields)


class NullLogger:
    """Logger capability that discards everything."""

    def debug(self, msg: str, **fields: Any) -> None:
        pass

    def info(self, msg: str, **fields: Any) -> None:
        pass

    def warn(self, msg: str, **fields: Any) -> None:
        pass

    def error(self, msg: str, **fields: Any) -> None:
        pass

    def fatal(self, msg: str, **fields: Any) -> None:
        pass
