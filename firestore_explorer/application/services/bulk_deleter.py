"""Bulk deletion of documents, collection by collection.

Only the documents of the listed collections are deleted; their
subcollections are left in place (orphaned) unless reached through their
own listing.
"""

from __future__ import annotations

import asyncio
import logging

from firestore_explorer.application.dtos.document import Document
from firestore_explorer.application.services.base import PendingWrite, TransferService
from firestore_explorer.application.services.transfer_primitives import (
    check_cancelled,
    paginate,
)
from firestore_explorer.domain.exceptions import FatalRemoteError, OperationCancelled
from firestore_explorer.domain.results import TransferResult
from firestore_explorer.infrastructure.firebase.paths import join_path
from firestore_explorer.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


class BulkDeleter(TransferService):
    """Deletes documents through batched `delete` writes with fallback."""

    @traced("firestore.clear")
    async def clear(
        self, root_scope: str = "", *, cancel_event: asyncio.Event | None = None
    ) -> TransferResult:
        """Delete the documents of every collection directly under root_scope."""
        result = TransferResult()
        try:
            page = await self._call(
                lambda: self.store.list_collections(root_scope, self.settings.list_page_size),
                f"listCollectionIds /{root_scope}",
            )
            for collection_id in page.collection_ids:
                check_cancelled(cancel_event)
                await self._delete_documents(
                    join_path(root_scope, collection_id), result, cancel_event
                )
        except (FatalRemoteError, OperationCancelled) as e:
            self._abort(result, e)
        add_span_attributes(documents=result.succeeded, failures=len(result.failures))
        logger.info("Clear of /%s: %s", root_scope, result.summary("deleted"))
        return result

    @traced("firestore.delete_collection")
    async def delete_collection(
        self, collection_path: str, *, cancel_event: asyncio.Event | None = None
    ) -> TransferResult:
        """Delete all documents of one collection (subcollections are not deleted)."""
        result = TransferResult()
        try:
            await self._delete_documents(collection_path, result, cancel_event)
        except (FatalRemoteError, OperationCancelled) as e:
            self._abort(result, e)
        logger.info("Delete of %s: %s", collection_path, result.summary("deleted"))
        return result

    async def _delete_documents(
        self,
        collection_path: str,
        result: TransferResult,
        cancel_event: asyncio.Event | None,
    ) -> None:
        # Collect the full listing first so deletes do not shift the cursor.
        paths: list[str] = []

        async def fetch(cursor: str | None) -> tuple[list[Document], str | None]:
            page = await self._call(
                lambda: self.store.list_documents(
                    collection_path, self.settings.export_page_size, cursor, include_fields=False
                ),
                f"listDocuments {collection_path}",
            )
            return page.documents, page.next_page_token

        async for documents in paginate(fetch, cancel_event=cancel_event):
            paths.extend(doc.path for doc in documents if not doc.missing)

        pending = [self._stage_delete(path) for path in paths]
        await self._commit_in_batches(pending, result, verb="deleted", cancel_event=cancel_event)

    def _stage_delete(self, path: str) -> PendingWrite:
        return PendingWrite(
            path=path,
            write={"delete": self.store.document_name(path)},
            single=lambda: self.store.delete_document(path),
        )
