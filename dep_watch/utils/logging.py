"""Logging utilities for DepWatch."""

import logging
import sys
from pathlib import Path
from typing import Optional, Any
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


class DepWatchLogger:
    """Thin wrapper around a stdlib logger with rich console output."""

    def __init__(self, name: str, level: Optional[int] = None) -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_configured_level if level is None else level)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Setup rich console handler with custom theme."""
        console = Console(stderr=True, theme=Theme({
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "critical": "red bold",
            "debug": "dim",
        }))

        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
        )

        formatter = logging.Formatter(
            fmt="%(name)s: %(message)s",
            datefmt="[%X]"
        )
        handler.setFormatter(formatter)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()
        self.logger.addHandler(handler)
        if _configured_log_file:
            self.logger.addHandler(logging.FileHandler(_configured_log_file))
        self.logger.propagate = False

    def setLevel(self, level: int) -> None:
        """Change the level of the wrapped logger."""
        self.logger.setLevel(level)

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log info message."""
        self.logger.info(msg, extra=kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log warning message."""
        self.logger.warning(msg, extra=kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log error message."""
        self.logger.error(msg, extra=kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log debug message."""
        self.logger.debug(msg, extra=kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        """Log critical message."""
        self.logger.critical(msg, extra=kwargs)


# Loggers created through get_logger, so setup_logging can retune them later
_LOGGER_NAMES = set()

# Level given to loggers created after setup_logging has run
_configured_level = logging.INFO
_configured_log_file: Optional[Path] = None


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Setup logging configuration for DepWatch.

    Args:
        level: Logging level
        log_file: Optional log file path
        verbose: Enable verbose logging
    """
    global _configured_level, _configured_log_file

    if verbose:
        level = logging.DEBUG
    _configured_level = level
    _configured_log_file = log_file

    # Configure root logger
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            *([logging.FileHandler(log_file)] if log_file else [])
        ]
    )

    for name in _LOGGER_NAMES:
        named = logging.getLogger(name)
        named.setLevel(level)
        if log_file:
            named.addHandler(logging.FileHandler(log_file))

    # Set specific logger levels
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> DepWatchLogger:
    """Get a DepWatch logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    _LOGGER_NAMES.add(name)
    return DepWatchLogger(name)
