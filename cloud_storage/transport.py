"""
HTTP transport for the storage API.

Builds the requests session every storage call goes through. Only connection
establishment is ever retried here: a PUT that reached the server is never
re-sent behind the caller's back.
"""

import os
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_TIMEOUT = 30.0

ENV_HTTP_TIMEOUT = "SELECTEL_HTTP_TIMEOUT"
ENV_CONNECT_RETRIES = "SELECTEL_CONNECT_RETRIES"


def create_session(connect_retries: int = 0) -> requests.Session:
    """
    Create requests session for storage calls.

    Args:
        connect_retries: Attempts to re-open a failed connection (0 disables)

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=connect_retries,
        connect=connect_retries,
        read=0,
        status=0,
        other=0,
        redirect=False,
        backoff_factor=0.5,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session


def timeout_from_env(default: float = DEFAULT_TIMEOUT) -> float:
    """Read SELECTEL_HTTP_TIMEOUT, falling back to default on absent/bad values."""
    value = os.getenv(ENV_HTTP_TIMEOUT)
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return timeout if timeout > 0 else default


def connect_retries_from_env(default: int = 0) -> int:
    value: Optional[str] = os.getenv(ENV_CONNECT_RETRIES)
    if not value:
        return default
    try:
        return max(0, int(value))
    except ValueError:
        return default
