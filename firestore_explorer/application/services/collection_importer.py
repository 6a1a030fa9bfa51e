"""Import a CollectionTree (as produced by the exporter) into the remote store.

Each tree level is written first, in batches of up to 500 `update` writes
with up to 5 batches in flight; only then are the documents'
subcollections imported, one document after another. Entries whose fields
are in raw wire form (an editor round trip of the raw document) are
normalised back to plain values before being re-encoded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from firestore_explorer.application.services.base import PendingWrite, TransferService
from firestore_explorer.application.services.transfer_primitives import check_cancelled
from firestore_explorer.core.constants import FIELDS_KEY, SUBCOLLECTIONS_KEY
from firestore_explorer.domain.exceptions import (
    DocumentExistsError,
    ExplorerException,
    FatalRemoteError,
    OperationCancelled,
)
from firestore_explorer.domain.results import TransferResult, WriteFailure
from firestore_explorer.infrastructure.firebase._rest_encoding import contains_wire_format
from firestore_explorer.infrastructure.firebase.paths import join_path
from firestore_explorer.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


class CollectionImporter(TransferService):
    """Writes nested trees back top-down with batching and per-document fallback."""

    @traced("firestore.import_collection")
    async def import_collection(
        self,
        collection_path: str,
        tree: Mapping[str, Any],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> TransferResult:
        """Import one collection tree; result.succeeded is the documents written."""
        result = TransferResult()
        try:
            await self._import_level(collection_path, tree, result, cancel_event)
        except (FatalRemoteError, OperationCancelled) as e:
            self._abort(result, e)
        add_span_attributes(documents=result.succeeded, failures=len(result.failures))
        logger.info("Import into %s: %s", collection_path, result.summary())
        return result

    @traced("firestore.import_database")
    async def import_database(
        self,
        data: Mapping[str, Mapping[str, Any]],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> TransferResult:
        """Import an export file's content (root collection id -> tree)."""
        result = TransferResult()
        try:
            for collection_id, tree in data.items():
                check_cancelled(cancel_event)
                await self._import_level(collection_id, tree, result, cancel_event)
        except (FatalRemoteError, OperationCancelled) as e:
            self._abort(result, e)
        logger.info("Import of %d collection(s): %s", len(data), result.summary())
        return result

    def _prepare_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Plain (or raw wire) fields -> wire fields ready to stage."""
        if contains_wire_format(fields):
            fields = self.codec.normalize(fields)
        return self.codec.encode_fields(fields)

    @staticmethod
    def _split_entry(entry: Mapping[str, Any]) -> tuple[Mapping[str, Any] | None, Mapping]:
        """Return (fields, subcollections) for one document entry.

        An entry with neither `_fields` nor `_subcollections` is taken to be the
        document's fields itself. An entry with only `_subcollections` is a
        parent path with no document of its own.
        """
        if FIELDS_KEY not in entry and SUBCOLLECTIONS_KEY not in entry:
            return entry, {}
        return entry.get(FIELDS_KEY), entry.get(SUBCOLLECTIONS_KEY) or {}

    async def _import_level(
        self,
        collection_path: str,
        tree: Mapping[str, Any],
        result: TransferResult,
        cancel_event: asyncio.Event | None,
    ) -> None:
        pending: list[PendingWrite] = []
        children: list[tuple[str, Mapping]] = []
        for doc_id, entry in tree.items():
            doc_path = join_path(collection_path, doc_id)
            if not isinstance(entry, Mapping):
                result.failures.append(WriteFailure(doc_path, "entry is not an object"))
                continue
            fields, subcollections = self._split_entry(entry)
            if isinstance(subcollections, Mapping) and subcollections:
                children.append((doc_path, subcollections))
            if fields is None:
                continue
            if not isinstance(fields, Mapping):
                result.failures.append(WriteFailure(doc_path, f"{FIELDS_KEY} is not an object"))
                continue
            try:
                wire_fields = self._prepare_fields(fields)
            except ExplorerException as e:
                logger.warning("Cannot convert %s: %s", doc_path, e.message)
                result.failures.append(WriteFailure(doc_path, e.message))
                continue
            pending.append(self._stage_update(doc_path, doc_id, collection_path, wire_fields))

        await self._commit_in_batches(pending, result, verb="written", cancel_event=cancel_event)

        # A subcollection lives under its parent's path, so parents go first.
        for doc_path, subcollections in children:
            for sub_id, sub_tree in subcollections.items():
                check_cancelled(cancel_event)
                await self._import_level(join_path(doc_path, sub_id), sub_tree, result, cancel_event)

    def _stage_update(
        self, doc_path: str, doc_id: str, collection_path: str, fields: dict[str, Any]
    ) -> PendingWrite:
        async def single() -> None:
            try:
                await self.store.create_document(collection_path, doc_id, fields)
            except DocumentExistsError:
                await self.store.update_document(doc_path, fields)

        return PendingWrite(
            path=doc_path,
            write={"update": {"name": self.store.document_name(doc_path), "fields": fields}},
            single=single,
        )
