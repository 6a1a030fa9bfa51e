"""Application services: bulk export/import/delete and single-document flows."""

from firestore_explorer.application.services.bulk_deleter import BulkDeleter
from firestore_explorer.application.services.collection_exporter import CollectionExporter
from firestore_explorer.application.services.collection_importer import CollectionImporter
from firestore_explorer.application.services.document_service import DocumentService
from firestore_explorer.application.services.export_file import (
    read_export_file,
    write_export_file,
)

__all__ = [
    "CollectionExporter",
    "CollectionImporter",
    "BulkDeleter",
    "DocumentService",
    "read_export_file",
    "write_export_file",
]
