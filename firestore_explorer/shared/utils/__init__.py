"""Shared utilities: datetime, generators, identifiers."""

from firestore_explorer.shared.utils.datetime import (
    format_timestamp,
    parse_timestamp,
)
from firestore_explorer.shared.utils.generators import (
    generate_document_id,
    validate_identifier,
)

__all__ = [
    "parse_timestamp",
    "format_timestamp",
    "generate_document_id",
    "validate_identifier",
]
