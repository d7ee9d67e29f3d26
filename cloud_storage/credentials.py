"""
Credentials for Selectel Cloud Storage.

Credentials are read either from an explicit configuration mapping or from
the environment (optionally populated from a .env file).

Environment:
- SELECTEL_AUTH_USER (required)
- SELECTEL_AUTH_KEY (required)
- SELECTEL_CONTAINER (required)
- SELECTEL_ATTACHED_DOMAIN (optional CDN / custom domain)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

ENV_AUTH_USER = "SELECTEL_AUTH_USER"
ENV_AUTH_KEY = "SELECTEL_AUTH_KEY"
ENV_CONTAINER = "SELECTEL_CONTAINER"
ENV_ATTACHED_DOMAIN = "SELECTEL_ATTACHED_DOMAIN"

# Accepted spellings for each field in a configuration mapping
_FIELD_KEYS = {
    "auth_user": ("authUser", "auth_user"),
    "auth_key": ("authKey", "auth_key"),
    "container_name": ("containerName", "container_name"),
    "attached_domain": ("attachedDomain", "attached_domain"),
}


def _lookup(config: Mapping[str, Any], name: str) -> Optional[str]:
    for key in _FIELD_KEYS[name]:
        value = config.get(key)
        if value:
            return str(value)
    return None


@dataclass(frozen=True)
class Credentials:
    """Account credentials and target container for one storage session."""

    auth_user: str
    auth_key: str = field(repr=False)
    container_name: str
    attached_domain: Optional[str] = None

    def __post_init__(self):
        for name in ("auth_user", "auth_key", "container_name"):
            if not getattr(self, name):
                raise ConfigurationError(f"Missing required credential field: {name}")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "Credentials":
        """
        Build credentials from a configuration record.

        Args:
            config: Mapping with authUser, authKey, containerName and optional
                attachedDomain (snake_case keys are accepted too)

        Returns:
            Credentials instance

        Raises:
            ConfigurationError: if a required field is missing or empty
        """
        missing = [
            _FIELD_KEYS[name][0]
            for name in ("auth_user", "auth_key", "container_name")
            if not _lookup(config, name)
        ]
        if missing:
            raise ConfigurationError(f"Storage credentials incomplete, missing: {', '.join(missing)}")

        return cls(
            auth_user=_lookup(config, "auth_user"),
            auth_key=_lookup(config, "auth_key"),
            container_name=_lookup(config, "container_name"),
            attached_domain=_lookup(config, "attached_domain"),
        )

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Credentials":
        """
        Build credentials from SELECTEL_* environment variables.

        Args:
            dotenv: Load a .env file first (existing variables win)

        Raises:
            ConfigurationError: if a required variable is not set
        """
        if dotenv:
            load_dotenv()

        required = [ENV_AUTH_USER, ENV_AUTH_KEY, ENV_CONTAINER]
        missing = [name for name in required if not os.getenv(name)]
        if missing:
            raise ConfigurationError(
                f"Storage credentials not found. Set {', '.join(missing)} in .env"
            )

        return cls(
            auth_user=os.environ[ENV_AUTH_USER],
            auth_key=os.environ[ENV_AUTH_KEY],
            container_name=os.environ[ENV_CONTAINER],
            attached_domain=os.getenv(ENV_ATTACHED_DOMAIN) or None,
        )
