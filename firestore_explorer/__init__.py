"""Firestore explorer core: value codec and bulk export/import/delete engine."""

from firestore_explorer.application.services import (
    BulkDeleter,
    CollectionExporter,
    CollectionImporter,
    DocumentService,
    read_export_file,
    write_export_file,
)
from firestore_explorer.infrastructure.firebase._rest_encoding import (
    ValueCodec,
    decode_value,
    encode_value,
)

__version__ = "1.0.0"

__all__ = [
    "CollectionExporter",
    "CollectionImporter",
    "BulkDeleter",
    "DocumentService",
    "ValueCodec",
    "encode_value",
    "decode_value",
    "read_export_file",
    "write_export_file",
]
