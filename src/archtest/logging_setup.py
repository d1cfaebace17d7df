"""Verbosity levels and logging configuration for the CLI."""

from __future__ import annotations

import enum
import logging


class Verbosity(enum.IntEnum):
    """Output verbosity, ordered from quiet to most detailed."""

    NONE = 0
    VERBOSE = 1
    VERY_VERBOSE = 2
    DEBUG = 3

    @classmethod
    def from_count(cls, count: int) -> Verbosity:
        """Map a repeated ``-v`` flag count onto a level (capped at DEBUG)."""
        return cls(max(0, min(count, cls.DEBUG)))

    @property
    def log_level(self) -> int:
        if self is Verbosity.NONE:
            return logging.WARNING
        if self is Verbosity.VERBOSE:
            return logging.INFO
        return logging.DEBUG


def configure_logging(verbosity: Verbosity) -> None:
    """Route ``archtest`` log records to stderr through Rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbosity >= Verbosity.DEBUG,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("archtest")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(verbosity.log_level)
    package_logger.propagate = False
