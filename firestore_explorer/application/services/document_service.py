"""Single-document flows: read as plain JSON, save edits, create, delete."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from firestore_explorer.application.dtos.document import Document
from firestore_explorer.application.services.base import TransferService
from firestore_explorer.domain.exceptions import ConversionError
from firestore_explorer.infrastructure.firebase._rest_encoding import contains_wire_format
from firestore_explorer.infrastructure.firebase.paths import (
    join_path,
    last_segment,
    split_document_path,
)
from firestore_explorer.shared.utils.generators import (
    generate_document_id,
    validate_identifier,
)

logger = logging.getLogger(__name__)


class DocumentService(TransferService):
    """Plain-JSON view of individual documents, for editing flows."""

    async def read(self, path: str) -> dict[str, Any] | None:
        """Return the document's fields as plain values, or None if missing."""
        doc = await self._call(lambda: self.store.get_document(path), f"getDocument {path}")
        if doc is None:
            return None
        return self.codec.decode_fields(doc.fields)

    def _encode(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ConversionError("Document content must be a JSON object")
        if contains_wire_format(data):
            data = self.codec.normalize(data)
        return self.codec.encode_fields(data)

    async def save(
        self, path: str, data: Mapping[str, Any], *, recreate: bool = False
    ) -> Document:
        """Overwrite the document with data.

        With recreate=True (the document was deleted while being edited) the
        document is created again under the same id.
        """
        fields = self._encode(data)
        if recreate:
            collection_path, doc_id = split_document_path(path)
            doc = await self._call(
                lambda: self.store.create_document(collection_path, doc_id, fields),
                f"createDocument {path}",
            )
            logger.info("Document recreated: %s", path)
            return doc
        doc = await self._call(
            lambda: self.store.update_document(path, fields), f"updateDocument {path}"
        )
        logger.info("Document updated: %s", path)
        return doc

    async def create(
        self,
        collection_path: str,
        data: Mapping[str, Any],
        document_id: str | None = None,
    ) -> Document:
        """Create a document; a 20-character id is generated when none is given.

        Raises:
            InvalidDocumentIdError: If the collection or document id is invalid.
            ConversionError: If data is empty or not an object.
        """
        validate_identifier(last_segment(collection_path), "collection")
        doc_id = validate_identifier(document_id) if document_id else generate_document_id()
        if not data:
            raise ConversionError("Cannot create empty document")
        fields = self._encode(data)
        doc = await self._call(
            lambda: self.store.create_document(collection_path, doc_id, fields),
            f"createDocument {join_path(collection_path, doc_id)}",
        )
        logger.info("Document created: %s", doc.path)
        return doc

    async def delete(self, path: str) -> None:
        await self._call(lambda: self.store.delete_document(path), f"deleteDocument {path}")
        logger.info("Document deleted: %s", path)