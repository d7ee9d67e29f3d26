"""
Selectel Cloud Storage client: session management and verified uploads.
"""

from .credentials import Credentials
from .errors import (
    AuthError,
    CloudStorageError,
    ConfigurationError,
    UploadError,
    VerificationError,
)
from .session_manager import (
    AUTH_URL,
    Session,
    SessionManager,
    UploadResult,
    content_digest,
    get_session_manager,
)
from .transport import create_session

__version__ = "0.1.0"

__all__ = [
    "AUTH_URL",
    "Credentials",
    "Session",
    "SessionManager",
    "UploadResult",
    "content_digest",
    "create_session",
    "get_session_manager",
    "CloudStorageError",
    "ConfigurationError",
    "AuthError",
    "UploadError",
    "VerificationError",
]
