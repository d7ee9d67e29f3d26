"""
Exception types for Selectel Cloud Storage operations.

Every failure carries the HTTP status code and reason phrase when one was
available, so callers can decide on a retry policy.
"""

from typing import Optional


class CloudStorageError(Exception):
    """Base exception for cloud storage errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        if self.reason:
            return f"{self.message} ({self.status_code} {self.reason})"
        return f"{self.message} ({self.status_code})"


class ConfigurationError(CloudStorageError):
    """Raised when required credentials are not configured."""
    pass


class AuthError(CloudStorageError):
    """Raised when authentication fails or returns an unusable response."""
    pass


class UploadError(CloudStorageError):
    """Raised when the storage API rejects a PUT."""
    pass


class VerificationError(CloudStorageError):
    """Raised when the uploaded object cannot be confirmed by a HEAD request."""
    pass
