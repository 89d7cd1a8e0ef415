"""
Logging configuration for Resty

Library modules log through ``resty.<module>`` loggers. The debug trace of
the request pipeline goes to a pluggable sink; without one it is written to
stderr by ``default_log_sink``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from pprint import pformat
from typing import Any

# RFC 822 style, as used for the debug trace lines
RFC822_FORMAT = "%a, %d %b %y %H:%M:%S %z"


class RestyLogger:
    """Centralized logger setup for the library"""

    def __init__(
        self,
        name: str = "resty",
        log_file: Path | None = None,
        console_output: bool = True,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level: int = logging.DEBUG,
    ):
        """
        Initialize logger

        Args:
            name: Logger name (usually "resty" for the library logger)
            log_file: Path to log file (optional)
            console_output: Whether to write to stderr
            fmt: Log record format
            level: Level for the logger and its handlers
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Clear existing handlers
        self.logger.handlers = []

        formatter = logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")

        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance"""
        return self.logger


def setup_logging(
    log_file: Path | None = None, verbose: bool = True, level: int = logging.DEBUG
) -> logging.Logger:
    """
    Attach handlers to the library logger

    Args:
        log_file: Optional file receiving all library log records
        verbose: Whether to also print to stderr
        level: Minimum level to emit

    Returns:
        Configured logger instance
    """
    return RestyLogger(
        name="resty", log_file=log_file, console_output=verbose, level=level
    ).get_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get logger for a specific module

    Args:
        module_name: Name of the module (e.g., 'client', 'transport')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"resty.{module_name}")


_debug_logger: logging.Logger | None = None


def _get_debug_logger() -> logging.Logger:
    global _debug_logger
    if _debug_logger is None:
        # Timestamp is part of the message, so the handler prints it verbatim
        _debug_logger = RestyLogger(name="resty.debug", fmt="%(message)s").get_logger()
        _debug_logger.propagate = False
    return _debug_logger


def format_log_line(msg: Any, now: datetime | None = None) -> str:
    """Render one debug trace line, pretty-printing anything that is not a string"""
    now = now or datetime.now().astimezone()
    text = msg if isinstance(msg, str) else pformat(msg)
    return f"{now.strftime(RFC822_FORMAT)} :: {text}"


def default_log_sink(msg: Any) -> None:
    """Write a timestamped debug line to stderr"""
    _get_debug_logger().debug(format_log_line(msg))
