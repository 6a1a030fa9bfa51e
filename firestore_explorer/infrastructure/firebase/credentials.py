"""Bearer token providers for the Firestore REST client.

The explorer never stores credentials itself: either a service account
(google-auth) is configured through settings, or the embedding application
hands over a token it acquired through its own account flow.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from firestore_explorer.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


def _parse_key(text: str, source: str) -> dict:
    try:
        info = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"{source} is not valid JSON") from e
    if not isinstance(info, dict):
        raise ValueError(f"{source} must contain a JSON object")
    return info


def load_service_account_info(settings: Settings | None = None) -> dict | None:
    """Return the service account key, or None when none is configured.

    FIREBASE_SERVICE_ACCOUNT_KEY (the JSON itself) takes precedence over
    FIREBASE_SERVICE_ACCOUNT_PATH. A path that does not exist is logged and
    treated as unset.

    Raises:
        ValueError: If the configured key is not a JSON object.
    """
    settings = settings or get_settings()
    if settings.firebase_service_account_key:
        return _parse_key(
            settings.firebase_service_account_key.get_secret_value(),
            "FIREBASE_SERVICE_ACCOUNT_KEY",
        )
    if not settings.firebase_service_account_path:
        return None
    key_file = Path(settings.firebase_service_account_path).expanduser().resolve()
    if not key_file.is_file():
        logger.warning("Service account key file not found: %s", key_file)
        return None
    return _parse_key(key_file.read_text(encoding="utf-8"), str(key_file))


class ServiceAccountTokenProvider:
    """Token provider backed by google-auth service account credentials."""

    def __init__(self, credentials) -> None:
        self._credentials = credentials

    @classmethod
    def from_info(cls, key_dict: dict) -> "ServiceAccountTokenProvider":
        return cls(_get_credentials(key_dict))

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)


class StaticTokenProvider:
    """Token provider for a bearer token acquired by an external account flow.

    An optional async `refresh` callable is invoked for every request so the
    caller can hand out a fresh token when the previous one expired.
    """

    def __init__(
        self, token: str, refresh: Callable[[], Awaitable[str]] | None = None
    ) -> None:
        self._token = token
        self._refresh = refresh

    async def get_token(self) -> str:
        if self._refresh is not None:
            self._token = await self._refresh()
        return self._token
