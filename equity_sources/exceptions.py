"""
Equity Source Exceptions - Exception hierarchy for quote providers.

Per-symbol errors are raised inside an adapter and recovered there;
nothing in this hierarchy is expected to escape the aggregator.
"""

from typing import Any, Optional


class DataSourceError(Exception):
    """Base exception for all provider errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FetchError(DataSourceError):
    """Error while requesting data from a provider API."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "request_url": self.request_url,
            "response_body": self.response_body[:200] if self.response_body else None,
        })
        return data

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600


class RateLimitError(FetchError):
    """Provider quota exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            source_name,
            status_code=429,
            request_url=request_url,
            original_error=original_error,
        )
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data


class NormalizationError(DataSourceError):
    """Provider payload could not be mapped to a canonical record."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.raw_data = raw_data
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "field_name": self.field_name,
            "raw_data": str(self.raw_data)[:200] if self.raw_data is not None else None,
        })
        return data


class ConfigurationError(DataSourceError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.config_key = config_key
