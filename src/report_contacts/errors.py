"""Custom exceptions for the contact directory domain."""


class ReportContactsError(Exception):
    """Base exception for this project."""


class ConfigError(ReportContactsError):
    """Raised when loader configuration is invalid."""


class FetchError(ReportContactsError):
    """Raised when every fetch attempt for a directory failed."""

    def __init__(self, url: str, attempts: int, cause: Exception | None = None) -> None:
        super().__init__(f"Failed to fetch {url} after {attempts} attempt(s): {cause}")
        self.url = url
        self.attempts = attempts
        self.cause = cause


TransientFetchError = FetchError


class NoDataAvailable(ReportContactsError):
    """Raised when neither the remote source nor the fallback dataset has data."""


class UnrecognizedEntityShape(ReportContactsError):
    """Raised when a directory entry matches none of the known JSON shapes."""
