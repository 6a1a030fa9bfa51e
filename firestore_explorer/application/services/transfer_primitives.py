"""Generic helpers for the bulk transfer services.

- paginate: lazy cursor-driven page iteration (caller drives it).
- retry_with_backoff: retries transient network failures with deterministic
  doubling delays (no jitter).
- bounded_concurrent_map: fixed-size sequential chunks, each chunk run
  concurrently; results keep input order.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import TypeVar

from firestore_explorer.domain.exceptions import OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FetchPage = Callable[[str | None], Awaitable[tuple[list[T], str | None]]]

# Message fragments of network-layer failures worth retrying.
_TRANSIENT_RE = re.compile(
    r"ECONNRESET|ETIMEDOUT|ECONNREFUSED|EPIPE|EAI_AGAIN|ENOTFOUND|socket hang up"
    r"|connection (?:reset|refused|aborted|closed)|connecterror|readerror|writeerror"
    r"|remoteprotocolerror|timed? ?out|timeout|\bTLS\b|\bSSL\b|handshake",
    re.IGNORECASE,
)
_TRANSIENT_CODES = frozenset({"TRANSIENT_NETWORK_ERROR"})
# Quota exhaustion is retried; it is fatal only once the retries run out.
_RETRIED_FATAL_STATUSES = frozenset({429})


def is_transient_error(error: BaseException) -> bool:
    """Classify a failure as worth retrying by its kind (error_code) or message."""
    code = getattr(error, "error_code", None)
    if code in _TRANSIENT_CODES:
        return True
    if code == "FATAL_REMOTE_ERROR":
        return getattr(error, "status_code", None) in _RETRIED_FATAL_STATUSES
    if code == "OPERATION_CANCELLED":
        return False
    return bool(_TRANSIENT_RE.search(str(error)))


def check_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Raise OperationCancelled if the caller set the cancel event."""
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled()


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive lists of at most `size` elements."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def paginate(
    fetch_page: FetchPage,
    *,
    cancel_event: asyncio.Event | None = None,
) -> AsyncIterator[list[T]]:
    """Yield pages from fetch_page until it returns an empty next cursor.

    Each call starts a fresh pass from the first page. The cancel event is
    checked before every page fetch.
    """
    cursor: str | None = None
    while True:
        check_cancelled(cancel_event)
        items, cursor = await fetch_page(cursor)
        yield items
        if not cursor:
            return


async def retry_with_backoff(
    op: Callable[[], Awaitable[R]],
    max_retries: int = 3,
    base_delay_ms: int = 1000,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "request",
) -> R:
    """Run op, retrying transient failures up to max_retries times.

    The delay before retry n (1-based) is base_delay_ms * 2 ** (n - 1).
    Non-transient failures and the last transient failure propagate.
    """
    attempt = 0
    while True:
        try:
            return await op()
        except Exception as e:
            if attempt >= max_retries or not is_transient_error(e):
                raise
            attempt += 1
            delay_ms = base_delay_ms * 2 ** (attempt - 1)
            logger.info(
                "Transient failure on %s (%s); retry %d/%d in %d ms",
                description,
                e,
                attempt,
                max_retries,
                delay_ms,
            )
            await sleep(delay_ms / 1000)


async def bounded_concurrent_map(
    items: Sequence[T],
    limit: int,
    fn: Callable[[T], Awaitable[R]],
    *,
    on_chunk: Callable[[list[R]], None] | None = None,
) -> list[R]:
    """Map fn over items, at most `limit` calls in flight at once.

    Items are split into consecutive chunks of `limit`; chunks run one after
    another and the calls within a chunk run concurrently. A failure in any
    call fails the whole chunk (siblings already started are not cancelled).
    on_chunk, if given, receives each chunk's results once the chunk has
    settled; it may raise (e.g. OperationCancelled) to stop before the next
    chunk.
    """
    results: list[R] = []
    for chunk in chunked(items, limit):
        chunk_results = list(await asyncio.gather(*(fn(item) for item in chunk)))
        results.extend(chunk_results)
        if on_chunk is not None:
            on_chunk(chunk_results)
    return results
