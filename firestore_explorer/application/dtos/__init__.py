"""DTOs exchanged between the remote store and the transfer services."""

from firestore_explorer.application.dtos.document import (
    CollectionIdsPage,
    Document,
    DocumentsPage,
)

__all__ = ["Document", "DocumentsPage", "CollectionIdsPage"]
