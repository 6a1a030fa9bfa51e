"""DTOs for documents and list pages (no dependency on the HTTP layer)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Document:
    """A remote document. `fields` holds wire values; `path` is relative."""

    path: str
    fields: dict[str, Any] = field(default_factory=dict)
    name: str = ""
    create_time: datetime | None = None
    update_time: datetime | None = None
    # Set for a path that only exists because it has subcollections.
    missing: bool = False

    @property
    def id(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class DocumentsPage:
    """One page of listDocuments. Empty/None next_page_token ends pagination."""

    documents: list[Document]
    next_page_token: str | None = None


@dataclass(frozen=True)
class CollectionIdsPage:
    """One page of listCollectionIds."""

    collection_ids: list[str]
    next_page_token: str | None = None
