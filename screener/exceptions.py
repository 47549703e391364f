"""
Screener Exceptions.

Only DatasetWriteError is allowed to reach the process boundary.
"""

from pathlib import Path
from typing import Optional, Union


class ScreenerError(Exception):
    """Base exception for the screener pipeline."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.__class__.__name__}: {self.message} (caused by: {self.original_error})"
        return f"{self.__class__.__name__}: {self.message}"


class DatasetWriteError(ScreenerError):
    """The dataset artifact could not be persisted."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error)
        self.path = Path(path) if path is not None else None


class DatasetLoadError(ScreenerError):
    """The dataset artifact could not be read or contained no stocks."""
