"""Service interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill.
All field payloads are wire-shaped (``{"stringValue": ...}``); paths are
relative to the database root.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from firestore_explorer.application.dtos.document import (
        CollectionIdsPage,
        Document,
        DocumentsPage,
    )

# Receives human-readable status strings; fire-and-forget.
ProgressSink = Callable[[str], None]


class TokenProvider(Protocol):
    """Supplies a bearer credential for the remote API, refreshed on demand."""

    async def get_token(self) -> str:
        """Return a valid access token."""


class DocumentStore(Protocol):
    """Remote document-store client used by exporter, importer and deleter."""

    async def list_collections(
        self, path: str = "", page_size: int = 300, page_token: str | None = None
    ) -> CollectionIdsPage:
        """List collection ids directly under path ('' for root)."""

    async def list_documents(
        self,
        path: str,
        page_size: int = 300,
        page_token: str | None = None,
        include_fields: bool = True,
    ) -> DocumentsPage:
        """List one page of documents in a collection."""

    async def get_document(self, path: str) -> Document | None:
        """Fetch a document; None if not found."""

    async def create_document(
        self, collection_path: str, document_id: str, fields: dict[str, Any]
    ) -> Document:
        """Create a document; DocumentExistsError if the id is taken."""

    async def update_document(self, path: str, fields: dict[str, Any]) -> Document:
        """Create or overwrite a document."""

    async def delete_document(self, path: str) -> None:
        """Delete a document (idempotent)."""

    async def batch_write(self, writes: list[dict[str, Any]]) -> None:
        """Apply update/delete writes in one call; BatchWriteFailure on failure."""

    def document_name(self, path: str) -> str:
        """Fully-qualified resource name for a relative document path."""
