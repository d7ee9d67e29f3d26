from __future__ import annotations

import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) in sys.path:
    sys.path.remove(str(_REPO_ROOT))
sys.path.insert(0, str(_REPO_ROOT))

import pytest

from cloud_storage import Credentials, SessionManager
from fakes import Clock, FakeHTTP


@pytest.fixture()
def credentials() -> Credentials:
    return Credentials(auth_user="12345_user", auth_key="secret-key", container_name="media")


@pytest.fixture()
def http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def manager(credentials, http, clock) -> SessionManager:
    """Unauthenticated manager wired to the fake HTTP client and a frozen clock."""
    return SessionManager(credentials, http=http, clock=clock)


@pytest.fixture()
def storage_env(monkeypatch):
    """
    SELECTEL_* variables for a complete account.

    .env loading is disabled so a developer's local file cannot leak in.
    """
    monkeypatch.setenv("SELECTEL_AUTH_USER", "12345_user")
    monkeypatch.setenv("SELECTEL_AUTH_KEY", "secret-key")
    monkeypatch.setenv("SELECTEL_CONTAINER", "media")
    for name in (
        "SELECTEL_ATTACHED_DOMAIN",
        "SELECTEL_AUTH_URL",
        "SELECTEL_HTTP_TIMEOUT",
        "SELECTEL_CONNECT_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("cloud_storage.credentials.load_dotenv", lambda *a, **k: False)
