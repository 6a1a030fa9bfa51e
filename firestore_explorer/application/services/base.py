"""Shared plumbing for the transfer services.

Every remote call goes through `_call` (retry with backoff). Batched writes
go through `_commit_in_batches`: up to `batch_write_limit` writes per
batchWrite call, `import_concurrency` batches in flight, and a per-document
fallback when a batch fails. Counts are merged into the TransferResult only
after each concurrent group has settled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from firestore_explorer.application.interfaces.services import DocumentStore, ProgressSink
from firestore_explorer.application.services.transfer_primitives import (
    bounded_concurrent_map,
    check_cancelled,
    chunked,
    retry_with_backoff,
)
from firestore_explorer.core.config import Settings, get_settings
from firestore_explorer.domain.exceptions import (
    ExplorerException,
    FatalRemoteError,
    OperationCancelled,
)
from firestore_explorer.domain.results import BatchOutcome, TransferResult, WriteFailure
from firestore_explorer.infrastructure.firebase._rest_encoding import ValueCodec

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class PendingWrite:
    """One staged write: the batchWrite entry and its single-call fallback."""

    path: str
    write: dict[str, Any]
    single: Callable[[], Awaitable[Any]]


class TransferService:
    """Base class for services that drive the remote document store."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        settings: Settings | None = None,
        progress: ProgressSink | None = None,
        codec: ValueCodec | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.codec = codec or ValueCodec(store.document_name(""))
        self._progress = progress
        self._sleep = sleep

    def _report(self, message: str) -> None:
        logger.debug(message)
        if self._progress is not None:
            self._progress(message)

    async def _call(self, op: Callable[[], Awaitable[R]], description: str) -> R:
        return await retry_with_backoff(
            op,
            self.settings.retry_max_retries,
            self.settings.retry_base_delay_ms,
            sleep=self._sleep,
            description=description,
        )

    @staticmethod
    def _abort(result: TransferResult, error: ExplorerException) -> None:
        """Record why an operation stopped early; counts so far are kept."""
        if isinstance(error, OperationCancelled):
            result.cancelled = True
            logger.info("Operation cancelled after %d document(s)", result.succeeded)
        else:
            result.error = error
            logger.error(
                "Operation aborted after %d document(s): %s", result.succeeded, error.message
            )

    async def _commit_in_batches(
        self,
        pending: Sequence[PendingWrite],
        result: TransferResult,
        *,
        verb: str,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        """Write pending items in batches with bounded concurrency and fallback."""

        def settle(outcomes: list[BatchOutcome]) -> None:
            for outcome in outcomes:
                result.merge(outcome)
            self._report(f"{result.succeeded} document(s) {verb}")
            check_cancelled(cancel_event)

        await bounded_concurrent_map(
            chunked(pending, self.settings.batch_write_limit),
            self.settings.import_concurrency,
            self._commit_batch,
            on_chunk=settle,
        )

    async def _commit_batch(self, batch: list[PendingWrite]) -> BatchOutcome:
        try:
            await self._call(
                lambda: self.store.batch_write([p.write for p in batch]),
                f"batchWrite ({len(batch)} writes)",
            )
        except FatalRemoteError:
            raise
        except ExplorerException as e:
            logger.warning(
                "Batch of %d write(s) failed (%s); falling back to single writes",
                len(batch),
                e.message,
            )
            return await self._fallback(batch)
        return BatchOutcome(len(batch))

    async def _fallback(self, batch: list[PendingWrite]) -> BatchOutcome:
        """Issue one call per item; count successes, log and record the rest."""

        async def run(item: PendingWrite) -> WriteFailure | None:
            try:
                await self._call(item.single, item.path)
            except FatalRemoteError:
                raise
            except ExplorerException as e:
                logger.warning("Write failed for %s: %s", item.path, e.message)
                return WriteFailure(item.path, e.message)
            return None

        outcomes = await bounded_concurrent_map(batch, self.settings.export_concurrency, run)
        failures = tuple(f for f in outcomes if f is not None)
        return BatchOutcome(len(batch) - len(failures), failures)
