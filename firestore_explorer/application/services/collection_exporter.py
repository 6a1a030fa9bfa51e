"""Export a collection (and its documents' subcollections) into a plain tree.

Tree shape, per collection::

    {doc_id: {"_fields": {...plain values...},
              "_subcollections": {collection_id: <tree>}}}

`_subcollections` is present only when the document has any. Documents that
exist only as parents of subcollections carry no `_fields` key.

Trees are filled in place as pages arrive, so an export stopped by a fatal
remote error or by cancellation raises ExportAborted carrying everything
exported up to that point.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from firestore_explorer.application.dtos.document import Document
from firestore_explorer.application.services.base import TransferService
from firestore_explorer.application.services.transfer_primitives import (
    bounded_concurrent_map,
    paginate,
)
from firestore_explorer.core.constants import FIELDS_KEY, SUBCOLLECTIONS_KEY
from firestore_explorer.domain.exceptions import (
    ExplorerException,
    ExportAborted,
    FatalRemoteError,
    OperationCancelled,
)
from firestore_explorer.infrastructure.firebase.paths import join_path
from firestore_explorer.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)

CollectionTree = dict[str, dict[str, Any]]


@dataclass
class _Tally:
    """Documents exported so far by one export operation, across all levels."""

    documents: int = 0


class CollectionExporter(TransferService):
    """Walks collections page by page into nested CollectionTree dicts."""

    @traced("firestore.export_collection")
    async def export(
        self, collection_path: str, *, cancel_event: asyncio.Event | None = None
    ) -> CollectionTree:
        """Export one collection with all nested subcollections.

        Raises:
            ExportAborted: On a fatal remote error or cancellation. Its
                `partial` attribute holds the tree exported so far.
        """
        tree: CollectionTree = {}
        tally = _Tally()
        try:
            await self._export_collection(collection_path, tree, tally, cancel_event)
        except (FatalRemoteError, OperationCancelled) as e:
            raise self._aborted(e, tree, tally) from e
        add_span_attributes(documents=tally.documents)
        logger.info("Exported %d document(s) from %s", tally.documents, collection_path)
        return tree

    @traced("firestore.export_database")
    async def export_database(
        self, *, cancel_event: asyncio.Event | None = None
    ) -> dict[str, CollectionTree]:
        """Export every root collection (the persisted export file shape).

        Raises:
            ExportAborted: On a fatal remote error or cancellation. Its
                `partial` attribute maps the root collections reached so far
                to their trees.
        """
        data: dict[str, CollectionTree] = {}
        tally = _Tally()

        async def fetch(cursor: str | None) -> tuple[list[str], str | None]:
            page = await self._call(
                lambda: self.store.list_collections("", self.settings.list_page_size, cursor),
                "listCollectionIds /",
            )
            return page.collection_ids, page.next_page_token

        try:
            async for collection_ids in paginate(fetch, cancel_event=cancel_event):
                for collection_id in collection_ids:
                    data[collection_id] = {}
                    await self._export_collection(
                        collection_id, data[collection_id], tally, cancel_event
                    )
        except (FatalRemoteError, OperationCancelled) as e:
            raise self._aborted(e, data, tally) from e
        add_span_attributes(documents=tally.documents)
        logger.info(
            "Exported %d document(s) from %d collection(s)", tally.documents, len(data)
        )
        return data

    @staticmethod
    def _aborted(
        error: ExplorerException, partial: dict[str, Any], tally: _Tally
    ) -> ExportAborted:
        if isinstance(error, OperationCancelled):
            logger.info("Export cancelled after %d document(s)", tally.documents)
        else:
            logger.error(
                "Export aborted after %d document(s): %s", tally.documents, error.message
            )
        return ExportAborted(error, partial, tally.documents)

    async def _export_collection(
        self,
        collection_path: str,
        tree: CollectionTree,
        tally: _Tally,
        cancel_event: asyncio.Event | None,
    ) -> None:
        async def fetch(cursor: str | None) -> tuple[list[Document], str | None]:
            page = await self._call(
                lambda: self.store.list_documents(
                    collection_path, self.settings.export_page_size, cursor, include_fields=True
                ),
                f"listDocuments {collection_path}",
            )
            return page.documents, page.next_page_token

        async for documents in paginate(fetch, cancel_event=cancel_event):
            await bounded_concurrent_map(
                documents,
                self.settings.export_concurrency,
                lambda doc: self._export_document(doc, tree, tally, cancel_event),
            )
            self._report(f"Exported {tally.documents} document(s) from {collection_path}")

    async def _export_document(
        self,
        doc: Document,
        tree: CollectionTree,
        tally: _Tally,
        cancel_event: asyncio.Event | None,
    ) -> None:
        # Inserted before any await so the tree keeps the page's order.
        entry: dict[str, Any] = {}
        tree[doc.id] = entry
        if not doc.missing:
            entry[FIELDS_KEY] = self.codec.decode_fields(doc.fields)
            tally.documents += 1

        # Subcollection counts are expected to be small: one unpaginated call.
        page = await self._call(
            lambda: self.store.list_collections(doc.path, self.settings.list_page_size),
            f"listCollectionIds {doc.path}",
        )
        if page.collection_ids:
            subtrees: dict[str, CollectionTree] = {cid: {} for cid in page.collection_ids}
            entry[SUBCOLLECTIONS_KEY] = subtrees
            await bounded_concurrent_map(
                page.collection_ids,
                self.settings.export_concurrency,
                lambda cid: self._export_collection(
                    join_path(doc.path, cid), subtrees[cid], tally, cancel_event
                ),
            )
