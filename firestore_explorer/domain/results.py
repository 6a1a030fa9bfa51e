"""Result types for bulk operations (best-effort, partial-failure aware)."""

from __future__ import annotations

from dataclasses import dataclass, field

from firestore_explorer.domain.exceptions import ExplorerException


@dataclass(frozen=True)
class WriteFailure:
    """A single document write or delete that did not succeed."""

    path: str
    message: str


@dataclass(frozen=True)
class BatchOutcome:
    """What one batch (or its per-document fallback) achieved."""

    succeeded: int
    failures: tuple[WriteFailure, ...] = ()


@dataclass
class TransferResult:
    """Accumulated result of an import, clear or delete-collection operation.

    Counts are merged only after each concurrent group has settled. When a
    fatal error or a cancellation stops the operation, it is recorded in
    `error` / `cancelled` and the counts gathered so far are kept.
    """

    succeeded: int = 0
    failures: list[WriteFailure] = field(default_factory=list)
    error: ExplorerException | None = None
    cancelled: bool = False

    def merge(self, outcome: BatchOutcome | TransferResult) -> None:
        self.succeeded += outcome.succeeded
        self.failures.extend(outcome.failures)

    @property
    def ok(self) -> bool:
        """True when nothing failed and the operation ran to completion."""
        return not self.failures and self.error is None and not self.cancelled

    def summary(self, verb: str = "written") -> str:
        """Human-readable summary for the operator."""
        text = f"{self.succeeded} document(s) {verb}"
        if self.failures:
            text += f", {len(self.failures)} failed"
        if self.cancelled:
            text += " (cancelled)"
        elif self.error is not None:
            text += f" (aborted: {self.error.message})"
        return text
