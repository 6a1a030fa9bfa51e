"""Pytest configuration and fixtures for firestore_explorer.

Provides an in-memory document store implementing the DocumentStore
protocol (pagination, subcollections, batch writes, failure injection) and
settings that never read a local .env file.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from firestore_explorer.application.dtos.document import (
    CollectionIdsPage,
    Document,
    DocumentsPage,
)
from firestore_explorer.core.config import Settings
from firestore_explorer.domain.exceptions import (
    BatchWriteFailure,
    DocumentExistsError,
    ExplorerException,
)
from firestore_explorer.infrastructure.firebase.paths import (
    database_root,
    join_path,
    relative_path,
)

PROJECT_ID = "test-project"
_CREATED = datetime(2024, 1, 1, tzinfo=UTC)


class FakeDocumentStore:
    """In-memory DocumentStore. Paths are relative; fields are wire values.

    Failure injection:
        batch_errors: exceptions raised (in order) by the next batch_write calls.
        single_errors: path -> exception raised by create/update/delete of that path.
    """

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.root = database_root(PROJECT_ID)
        self.batch_calls: list[list[dict[str, Any]]] = []
        self.single_calls: list[tuple[str, str]] = []
        self.list_document_calls: list[tuple[str, int, str | None, bool]] = []
        self.list_collection_calls: list[str] = []
        self.batch_errors: list[Exception] = []
        self.single_errors: dict[str, Exception] = {}

    # Helpers for tests

    def seed(self, path: str, fields: dict[str, Any]) -> None:
        self.docs[path.strip("/")] = fields

    def seed_many(self, collection_path: str, count: int) -> None:
        for i in range(count):
            self.seed(join_path(collection_path, f"doc{i:05d}"), {"n": {"integerValue": str(i)}})

    def paths_under(self, collection_path: str) -> list[str]:
        return sorted(p for p in self.docs if p.rpartition("/")[0] == collection_path)

    # DocumentStore protocol

    def document_name(self, path: str) -> str:
        return join_path(self.root, path)

    def _known_paths(self) -> Iterable[str]:
        """Stored documents plus their ancestor document paths."""
        seen: set[str] = set()
        for path in self.docs:
            parts = path.split("/")
            for end in range(2, len(parts) + 1, 2):
                seen.add("/".join(parts[:end]))
        return seen

    async def list_collections(
        self, path: str = "", page_size: int = 300, page_token: str | None = None
    ) -> CollectionIdsPage:
        self.list_collection_calls.append(path)
        prefix = f"{path.strip('/')}/" if path.strip("/") else ""
        depth = prefix.count("/")
        ids = sorted({
            p.split("/")[depth]
            for p in self._known_paths()
            if p.startswith(prefix) and p.count("/") > depth
        })
        start = int(page_token or 0)
        end = start + page_size
        return CollectionIdsPage(ids[start:end], str(end) if end < len(ids) else None)

    async def list_documents(
        self,
        path: str,
        page_size: int = 300,
        page_token: str | None = None,
        include_fields: bool = True,
    ) -> DocumentsPage:
        self.list_document_calls.append((path, page_size, page_token, include_fields))
        collection = path.strip("/")
        paths = sorted(p for p in self._known_paths() if p.rpartition("/")[0] == collection)
        start = int(page_token or 0)
        end = start + page_size
        documents = []
        for p in paths[start:end]:
            if p in self.docs:
                fields = self.docs[p] if include_fields else {}
                documents.append(
                    Document(path=p, fields=dict(fields), name=self.document_name(p), create_time=_CREATED)
                )
            else:
                documents.append(Document(path=p, name=self.document_name(p), missing=True))
        return DocumentsPage(documents, str(end) if end < len(paths) else None)

    async def get_document(self, path: str) -> Document | None:
        path = path.strip("/")
        if path not in self.docs:
            return None
        return Document(path=path, fields=dict(self.docs[path]), name=self.document_name(path), create_time=_CREATED)

    def _single(self, op: str, path: str) -> None:
        self.single_calls.append((op, path))
        if path in self.single_errors:
            raise self.single_errors[path]

    async def create_document(
        self, collection_path: str, document_id: str, fields: dict[str, Any]
    ) -> Document:
        path = join_path(collection_path, document_id)
        self._single("create", path)
        if path in self.docs:
            raise DocumentExistsError(path)
        self.docs[path] = fields
        return Document(path=path, fields=fields, name=self.document_name(path), create_time=_CREATED)

    async def update_document(self, path: str, fields: dict[str, Any]) -> Document:
        path = path.strip("/")
        self._single("update", path)
        self.docs[path] = fields
        return Document(path=path, fields=fields, name=self.document_name(path), create_time=_CREATED)

    async def delete_document(self, path: str) -> None:
        path = path.strip("/")
        self._single("delete", path)
        self.docs.pop(path, None)

    async def batch_write(self, writes: list[dict[str, Any]]) -> None:
        self.batch_calls.append(writes)
        if self.batch_errors:
            raise self.batch_errors.pop(0)
        if len(writes) > 500:
            raise BatchWriteFailure("too many writes in one batch")
        for write in writes:
            if "update" in write:
                self.docs[relative_path(write["update"]["name"])] = write["update"]["fields"]
            elif "delete" in write:
                self.docs.pop(relative_path(write["delete"]), None)
            else:
                raise ExplorerException(f"unsupported write {write!r}")


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Replacement for asyncio.sleep so retry delays do not slow tests down."""
    return AsyncMock()


@pytest.fixture
def store_factory() -> type[FakeDocumentStore]:
    """Build additional independent stores (e.g. export source and import target)."""
    return FakeDocumentStore
