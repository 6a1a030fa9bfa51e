"""Thin Firestore REST API client (no firebase-admin).

Uses a token provider for bearer credentials and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Transport failures surface as TransientNetworkError so the retry policy can
recognise them; HTTP error statuses surface as RemoteRequestError subclasses.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from firestore_explorer.application.dtos.document import (
    CollectionIdsPage,
    Document,
    DocumentsPage,
)
from firestore_explorer.application.interfaces.services import TokenProvider
from firestore_explorer.core.config import Settings, get_settings
from firestore_explorer.domain.exceptions import (
    BatchWriteFailure,
    DocumentExistsError,
    FatalRemoteError,
    RemoteRequestError,
    TransientNetworkError,
)
from firestore_explorer.infrastructure.firebase.paths import (
    database_root,
    join_path,
    relative_path,
)
from firestore_explorer.shared.utils.datetime import parse_timestamp

logger = logging.getLogger(__name__)

# Auth, permission and quota statuses abort the whole operation. A 429 is
# retried by retry_with_backoff first and aborts only when retries run out.
_FATAL_STATUSES = frozenset({401, 403, 429})


def _error_message(resp: httpx.Response) -> str:
    """Extract the API error message from a JSON error body, if any."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        status = err.get("status")
        message = err.get("message") or resp.reason_phrase
        return f"{status}: {message}" if status else message
    return resp.reason_phrase


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    params: dict | None = None,
    access_token: str | None = None,
) -> dict | None:
    """Perform async HTTP request to Firestore REST API.

    404 returns None for GET and DELETE. 409 raises DocumentExistsError.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    try:
        resp = await client.request(method, url, headers=headers, json=body, params=params)
    except httpx.TransportError as e:
        raise TransientNetworkError(f"{type(e).__name__}: {e}", url) from e
    if resp.status_code == 404 and method in ("GET", "DELETE"):
        return None
    if resp.status_code == 409:
        raise DocumentExistsError(url)
    if resp.status_code in _FATAL_STATUSES:
        raise FatalRemoteError(_error_message(resp), resp.status_code, url)
    if resp.status_code >= 400:
        raise RemoteRequestError(_error_message(resp), resp.status_code, path=url)
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _parse_document(raw: dict) -> Document:
    name = raw.get("name", "")
    create_time = raw.get("createTime")
    update_time = raw.get("updateTime")
    return Document(
        path=relative_path(name),
        fields=raw.get("fields") or {},
        name=name,
        create_time=parse_timestamp(create_time) if create_time else None,
        update_time=parse_timestamp(update_time) if update_time else None,
        missing=bool(name) and not create_time and not raw.get("fields"),
    )


class FirestoreRESTClient:
    """Lightweight Firestore client using the REST API (no firebase-admin).

    Implements the DocumentStore protocol used by the transfer services.
    """

    def __init__(
        self,
        project_id: str,
        token_provider: TokenProvider,
        *,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.project_id = project_id
        self._token_provider = token_provider
        self._base = settings.firestore_base_url.rstrip("/")
        self._root = database_root(project_id, settings.database_id)
        self._http = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        )
        self._owns_http = http_client is None

    @property
    def database_root(self) -> str:
        return self._root

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    def document_name(self, path: str) -> str:
        """Fully-qualified resource name for a relative document path."""
        return join_path(self._root, path)

    def _url(self, path: str = "") -> str:
        return f"{self._base}/{join_path(self._root, path)}"

    async def _call(self, url: str, method: str = "GET", **kwargs: Any) -> dict | None:
        token = await self._token_provider.get_token()
        return await _request_async(self._http, url, method=method, access_token=token, **kwargs)

    async def list_collections(
        self, path: str = "", page_size: int = 300, page_token: str | None = None
    ) -> CollectionIdsPage:
        """List collection ids under the root ('' path) or under a document."""
        body: dict[str, Any] = {"pageSize": page_size}
        if page_token:
            body["pageToken"] = page_token
        out = await self._call(f"{self._url(path)}:listCollectionIds", "POST", body=body) or {}
        return CollectionIdsPage(
            collection_ids=list(out.get("collectionIds") or []),
            next_page_token=out.get("nextPageToken") or None,
        )

    async def list_documents(
        self,
        path: str,
        page_size: int = 300,
        page_token: str | None = None,
        include_fields: bool = True,
    ) -> DocumentsPage:
        """List one page of documents (including missing parents of subcollections)."""
        params: dict[str, Any] = {"pageSize": page_size, "showMissing": "true"}
        if page_token:
            params["pageToken"] = page_token
        if not include_fields:
            params["mask.fieldPaths"] = "_none_"
        out = await self._call(self._url(path), params=params) or {}
        return DocumentsPage(
            documents=[_parse_document(d) for d in out.get("documents") or []],
            next_page_token=out.get("nextPageToken") or None,
        )

    async def get_document(self, path: str) -> Document | None:
        """Fetch the document; returns None if not found."""
        out = await self._call(self._url(path))
        if not out:
            return None
        return _parse_document(out)

    async def create_document(
        self, collection_path: str, document_id: str, fields: dict[str, Any]
    ) -> Document:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        url = f"{self._url(collection_path)}?documentId={quote(document_id, safe='')}"
        out = await self._call(url, "POST", body={"fields": fields})
        path = join_path(collection_path, document_id)
        if not out:
            return Document(path=path, fields=fields, name=self.document_name(path))
        return _parse_document(out)

    async def update_document(self, path: str, fields: dict[str, Any]) -> Document:
        """Create or overwrite the document (PATCH with full replace)."""
        out = await self._call(self._url(path), "PATCH", body={"fields": fields})
        if not out:
            return Document(path=path, fields=fields, name=self.document_name(path))
        return _parse_document(out)

    async def delete_document(self, path: str) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await self._call(self._url(path), "DELETE")

    async def batch_write(self, writes: list[dict[str, Any]]) -> None:
        """Apply writes with one batchWrite call.

        Raises:
            BatchWriteFailure: If any write reports a non-OK status.
        """
        out = await self._call(f"{self._url()}:batchWrite", "POST", body={"writes": writes}) or {}
        failed = [i for i, s in enumerate(out.get("status") or []) if (s or {}).get("code", 0) != 0]
        if failed:
            logger.debug("batchWrite reported %d failed write(s)", len(failed))
            raise BatchWriteFailure(
                f"{len(failed)} of {len(writes)} write(s) failed", failed_indexes=failed
            )
