"""
Session manager for Selectel Cloud Storage.

Owns the authentication state (token, expiry, storage URL) for one set of
credentials and exposes a verified upload:

- renew(): authenticate against auth.selcdn.ru and cache the session
- upload(): PUT the object, then HEAD it (optionally through the attached
  CDN domain) and compare ETag / Content-Length with what was sent
- try_upload(): same as upload() but returns an UploadResult instead of raising

A manager is not thread-safe; use one instance per thread or serialize access.
"""

from __future__ import annotations

import hashlib
import os
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from loguru import logger

from .credentials import Credentials
from .errors import AuthError, CloudStorageError, UploadError, VerificationError
from .transport import (
    DEFAULT_TIMEOUT,
    connect_retries_from_env,
    create_session,
    timeout_from_env,
)

AUTH_URL = "https://auth.selcdn.ru/"
ENV_AUTH_URL = "SELECTEL_AUTH_URL"

# Headers always set by the manager on a PUT, overriding caller values
_MANAGED_PUT_HEADERS = ("x-auth-token", "etag")

_DECIMAL_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Session:
    """Authenticated session: token, absolute expiry (epoch seconds), storage URL."""

    auth_token: str
    expires_at: float
    storage_url: str

    def __repr__(self) -> str:
        return f"Session(expires_at={self.expires_at!r}, storage_url={self.storage_url!r})"


@dataclass(frozen=True)
class UploadResult:
    """Outcome of try_upload(): exactly one of location / error is set."""

    location: Optional[str] = None
    error: Optional[CloudStorageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def content_digest(content: bytes) -> str:
    """Lowercase hex MD5 of content, as sent in the ETag header."""
    return hashlib.md5(content).hexdigest()


def _status_of(response: Any) -> Optional[int]:
    return getattr(response, "status_code", None)


def _parse_decimal(value: Any) -> Optional[int]:
    """Plain ASCII decimal digits only; None for anything else."""
    if value is None:
        return None
    text = str(value).strip()
    if not _DECIMAL_RE.fullmatch(text):
        return None
    return int(text)


def check_auth_response(response: Any, now: float) -> tuple[Optional[Session], Optional[AuthError]]:
    """
    Validate an authentication response.

    Args:
        response: Response of the auth GET
        now: Current epoch time used to make the expiry absolute

    Returns:
        (session, None) on success, (None, error) otherwise
    """
    status = _status_of(response)
    if status != 204:
        reason = getattr(response, "reason", None)
        return None, AuthError("authentication failed", status_code=status, reason=reason)

    headers = response.headers
    token = headers.get("X-Auth-Token")
    if not token:
        return None, AuthError("missing token", status_code=status)

    ttl = _parse_decimal(headers.get("X-Expire-Auth-Token"))
    if ttl is None:
        return None, AuthError("missing or non-numeric expiry", status_code=status)

    storage_url = headers.get("X-Storage-Url")
    if not storage_url:
        return None, AuthError("missing storage url", status_code=status)

    return Session(auth_token=token, expires_at=now + ttl, storage_url=storage_url), None


def check_put_response(response: Any) -> Optional[UploadError]:
    """Return an UploadError unless the PUT answered 201 Created."""
    status = _status_of(response)
    if status != 201:
        return UploadError("unexpected upload status", status_code=status, reason=getattr(response, "reason", None))
    return None


def check_head_response(response: Any, digest: str, size: int) -> Optional[VerificationError]:
    """
    Compare a HEAD response with the uploaded content.

    ETag and Content-Length are only checked when the server sends them.

    Returns:
        None if the object looks like what was uploaded, else VerificationError
    """
    status = _status_of(response)
    if not status or status < 200 or status > 299:
        return VerificationError("unexpected verification status", status_code=status)

    headers = response.headers
    etag = headers.get("ETag")
    if etag is not None and etag != digest:
        return VerificationError("etag mismatch", status_code=status)

    length = headers.get("Content-Length")
    if length is not None and _parse_decimal(length) != size:
        return VerificationError("length mismatch", status_code=status)

    return None


class SessionManager:
    """
    Authentication state and verified uploads for one storage account.

    The session is replaced as a whole: after renew() the token, expiry and
    storage URL are all set, after reset() none of them are.
    """

    def __init__(
        self,
        credentials: Credentials,
        http: Optional[Any] = None,
        auth_url: str = AUTH_URL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session manager.

        Args:
            credentials: Account credentials and target container
            http: Object with a requests.Session-compatible request() method
                (a fresh session from create_session() when omitted)
            auth_url: Authentication endpoint
            timeout: Per-request timeout passed to the HTTP client
            clock: Returns current epoch time in seconds
        """
        self._credentials = credentials
        self.http = http if http is not None else create_session()
        self.auth_url = auth_url
        self.timeout = timeout
        self._clock = clock
        self._session: Optional[Session] = None

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def auth_token(self) -> Optional[str]:
        return self._session.auth_token if self._session else None

    @property
    def expires_at(self) -> Optional[float]:
        return self._session.expires_at if self._session else None

    @property
    def storage_url(self) -> Optional[str]:
        return self._session.storage_url if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def token_expired(self) -> bool:
        """True when there is no session or its expiry is not in the future."""
        return self._session is None or self._session.expires_at <= self._clock()

    def reset(self) -> "SessionManager":
        """Forget the cached session."""
        self._session = None
        return self

    def _request(self, method: str, url: str, **kwargs) -> Any:
        logger.debug(f"HTTP {method} begin: {url}")
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} request failed for {url}: {e}")
            raise
        logger.debug(f"HTTP {method} status: {_status_of(response)} for {url}")
        return response

    def renew(self) -> "SessionManager":
        """
        Authenticate and replace the cached session.

        The previous session is left untouched if authentication fails.

        Returns:
            self, with a valid session

        Raises:
            AuthError: on a non-204 status or a missing/malformed header
        """
        response = self._request(
            "GET",
            self.auth_url,
            headers={
                "X-Auth-User": self._credentials.auth_user,
                "X-Auth-Key": self._credentials.auth_key,
            },
        )

        session, error = check_auth_response(response, now=self._clock())
        if error is not None:
            logger.error(f"Cloud storage authorization failed for {self._credentials.auth_user}: {error}")
            raise error

        self._session = session
        logger.info(f"Cloud storage session renewed for {self._credentials.auth_user} (storage: {session.storage_url})")
        return self

    def _ensure_session(self) -> Session:
        if self._session is None:
            self.renew()
        elif self.token_expired():
            logger.warning("Cloud storage token expired; renewing")
            self.renew()
        return self._session

    def object_url(self, relative_path: str, storage_url: Optional[str] = None) -> str:
        """Storage API URL of an object in the configured container."""
        base = (storage_url or self.storage_url or "").rstrip("/")
        if not base:
            raise AuthError("no storage url; call renew() first")
        return f"{base}/{self._credentials.container_name.strip('/')}/{relative_path.lstrip('/')}"

    def public_url(self, relative_path: str, storage_url: Optional[str] = None) -> str:
        """
        URL the uploaded object is served from.

        With an attached domain the object is addressed on that host (scheme
        from the domain if it has one, otherwise from the storage URL);
        without one this is the storage API URL.
        """
        domain = self._credentials.attached_domain
        if not domain:
            return self.object_url(relative_path, storage_url)

        storage = urlsplit(storage_url or self.storage_url or "")
        if "://" in domain:
            parsed = urlsplit(domain)
            scheme, netloc, prefix = parsed.scheme, parsed.netloc, parsed.path.rstrip("/")
        else:
            host, _, prefix = domain.strip("/").partition("/")
            scheme, netloc = storage.scheme or "https", host
            prefix = f"/{prefix}" if prefix else ""

        return urlunsplit((scheme, netloc, f"{prefix}/{relative_path.lstrip('/')}", "", ""))

    def upload(
        self,
        content: bytes,
        relative_path: str,
        request_headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Upload content to the container and verify it is readable.

        Args:
            content: Object body
            relative_path: Object path inside the container
            request_headers: Extra PUT headers (X-Auth-Token and ETag are
                always set by the manager)

        Returns:
            Public URL of the object (attached-domain URL when configured)

        Raises:
            AuthError: if the session had to be renewed and renewal failed
            UploadError: if the PUT did not return 201
            VerificationError: if the HEAD check failed
        """
        session = self._ensure_session()

        file_size = len(content)
        digest = content_digest(content)
        put_url = self.object_url(relative_path, session.storage_url)

        headers: Dict[str, str] = {
            name: value
            for name, value in (request_headers or {}).items()
            if name.lower() not in _MANAGED_PUT_HEADERS
        }
        headers["X-Auth-Token"] = session.auth_token
        headers["ETag"] = digest

        put_response = self._request("PUT", put_url, data=content, headers=headers)
        error = check_put_response(put_response)
        if error is not None:
            logger.error(f"Upload failed for {put_url}: {error}")
            raise error

        verify_url = self.public_url(relative_path, session.storage_url)
        head_response = self._request("HEAD", verify_url)
        error = check_head_response(head_response, digest, file_size)
        if error is not None:
            logger.error(f"Upload verification failed for {verify_url}: {error}")
            raise error

        logger.info(f"Uploaded {file_size} bytes to {verify_url} (ETag: {digest})")
        return verify_url

    def try_upload(
        self,
        content: bytes,
        relative_path: str,
        request_headers: Optional[Mapping[str, str]] = None,
    ) -> UploadResult:
        """upload() returning an UploadResult; storage errors become result values."""
        try:
            location = self.upload(content, relative_path, request_headers)
        except CloudStorageError as e:
            return UploadResult(error=e)
        return UploadResult(location=location)


def get_session_manager(
    credentials: Optional[Credentials] = None,
    http: Optional[Any] = None,
    dotenv: bool = True,
) -> SessionManager:
    """
    Factory function to create a session manager from environment.

    Every call returns a new, unauthenticated manager. Pass dotenv=False when
    the caller has already loaded .env.
    """
    return SessionManager(
        credentials=credentials or Credentials.from_env(dotenv=dotenv),
        http=http if http is not None else create_session(connect_retries_from_env()),
        auth_url=os.getenv(ENV_AUTH_URL) or AUTH_URL,
        timeout=timeout_from_env(),
    )
