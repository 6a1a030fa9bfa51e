"""Firestore client construction and the per-(account, project) registry.

The composition root owns a FirestoreClientRegistry and builds clients
explicitly; there is no module-level client cache.
"""

import logging
from collections.abc import Callable

from firestore_explorer.core.config import Settings, get_settings
from firestore_explorer.infrastructure.firebase._rest_client import FirestoreRESTClient
from firestore_explorer.infrastructure.firebase.credentials import (
    ServiceAccountTokenProvider,
    load_service_account_info,
)

logger = logging.getLogger(__name__)

ClientKey = tuple[str, str]


def create_client_from_settings(settings: Settings | None = None) -> FirestoreRESTClient | None:
    """Build a client from the configured service account.

    Uses FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) if set, otherwise
    FIREBASE_SERVICE_ACCOUNT_PATH (file path).

    Returns:
        A client, or None when no service account is configured.

    Raises:
        ValueError: If the key is not valid JSON or has no project_id.
    """
    settings = settings or get_settings()
    key_dict = load_service_account_info(settings)
    if not key_dict:
        return None
    project_id = key_dict.get("project_id")
    if not project_id:
        raise ValueError("Firebase service account JSON missing 'project_id'")
    return FirestoreRESTClient(
        project_id, ServiceAccountTokenProvider.from_info(key_dict), settings=settings
    )


class FirestoreClientRegistry:
    """One FirestoreRESTClient per (account, project), created explicitly."""

    def __init__(self) -> None:
        self._clients: dict[ClientKey, FirestoreRESTClient] = {}

    def register(self, account: str, project_id: str, client: FirestoreRESTClient) -> None:
        key = (account, project_id)
        if key in self._clients:
            raise ValueError(f"Client already registered for {account!r} / {project_id!r}")
        self._clients[key] = client

    def get(self, account: str, project_id: str) -> FirestoreRESTClient | None:
        return self._clients.get((account, project_id))

    def get_or_create(
        self,
        account: str,
        project_id: str,
        factory: Callable[[], FirestoreRESTClient],
    ) -> FirestoreRESTClient:
        """Return the registered client, building and registering it if missing."""
        client = self.get(account, project_id)
        if client is None:
            client = factory()
            self._clients[(account, project_id)] = client
        return client

    def __len__(self) -> int:
        return len(self._clients)

    async def aclose(self) -> None:
        """Close every registered client's HTTP connection pool."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()
        if clients:
            logger.info("Closed %d Firestore client(s)", len(clients))
