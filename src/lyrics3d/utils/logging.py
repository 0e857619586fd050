"""Logging configuration for lyrics3d."""

import logging
import sys
from pathlib import Path
from typing import Optional, Set


def setup_logging(
    level: str = "INFO", log_file: Optional[Path] = None, verbose: bool = False
) -> logging.Logger:
    """Set up logging for the lyrics3d package.

    The per-frame pipeline logs clamps and cache misses at DEBUG, so INFO is
    the sensible level for a running renderer.
    """
    logger = logging.getLogger("lyrics3d")
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if verbose:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "lyrics3d") -> logging.Logger:
    """Get logger instance."""
    return logging.getLogger(name)


class OnceLogger:
    """Emit a message per key only until the key is re-armed.

    Used for conditions that persist across many frames (a missing anchor,
    an uninitialized camera) so the log is not flooded at frame rate.
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO):
        self.logger = logger
        self.level = level
        self._emitted: Set[str] = set()

    def log(self, key: str, message: str) -> bool:
        if key in self._emitted:
            return False
        self._emitted.add(key)
        self.logger.log(self.level, message)
        return True

    def rearm(self, key: str) -> None:
        self._emitted.discard(key)

    def has_logged(self, key: str) -> bool:
        return key in self._emitted
