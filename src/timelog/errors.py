"""
Exception types raised by timelog operations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class TimelogError(Exception):
    """Base exception for timelog errors."""


class LogFormatError(TimelogError):
    """
    Raised when a log file exists but cannot be parsed.

    Attributes
    ----------
    path : Optional[Path]
        Log file that failed to parse, when known.
    """

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class EmptyLogError(TimelogError):
    """Raised when the latest entry is requested from an empty log."""

    def __init__(self, message: str = "log has no entries") -> None:
        super().__init__(message)


class EntryAlreadyStoppedError(TimelogError):
    """Raised when stopping an entry that already has a stop time."""

    def __init__(self, message: str = "last entry was already completed") -> None:
        super().__init__(message)
