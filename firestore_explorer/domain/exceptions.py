"""Domain exceptions for the Firestore explorer.

Defines the error taxonomy shared by the codec, the REST client and the
transfer engine. Transient network errors are retried; batch failures
trigger per-document fallback; fatal remote errors abort the current
operation with partial counts preserved.
"""

from typing import Any


class ExplorerException(Exception):
    """Base exception for all explorer errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. path, status_code).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class TransientNetworkError(ExplorerException):
    """Raised when a request fails at the network layer (reset, timeout, TLS)."""

    def __init__(self, message: str, path: str | None = None) -> None:
        details = {"path": path} if path else {}
        super().__init__(message, "TRANSIENT_NETWORK_ERROR", details)


class ConversionError(ExplorerException):
    """Raised when a value cannot be converted between wire and plain form."""

    def __init__(self, message: str, error_code: str = "CONVERSION_ERROR") -> None:
        super().__init__(message, error_code)


class UnknownFieldTypeError(ConversionError):
    """Raised when a wire value carries no recognised tag."""

    def __init__(self, value: Any) -> None:
        """Initialize with the offending wire value.

        Args:
            value: The value that carried no known wire tag.
        """
        super().__init__(f"Unknown field type: {value!r}", "UNKNOWN_FIELD_TYPE")
        self.details = {"value": repr(value)[:200]}


class RemoteRequestError(ExplorerException):
    """Raised when the remote API answers with a non-transient error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str = "REMOTE_REQUEST_ERROR",
        path: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if path:
            details["path"] = path
        super().__init__(message, error_code, details)
        self.status_code = status_code


class FatalRemoteError(RemoteRequestError):
    """Raised on auth, permission or exhausted-quota errors; aborts the current operation."""

    def __init__(
        self, message: str, status_code: int | None = None, path: str | None = None
    ) -> None:
        super().__init__(message, status_code, "FATAL_REMOTE_ERROR", path)


class DocumentExistsError(RemoteRequestError):
    """Raised when createDocument returns 409 (document ID already exists)."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__("Document already exists", 409, "DOCUMENT_EXISTS", path)


class BatchWriteFailure(ExplorerException):
    """Raised when a batch write fails as a whole or any of its writes fails.

    Triggers per-document fallback; never aborts the whole operation.
    """

    def __init__(
        self,
        message: str,
        failed_indexes: list[int] | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if failed_indexes:
            details["failed_indexes"] = failed_indexes
        super().__init__(message, "BATCH_WRITE_FAILURE", details)
        self.failed_indexes = failed_indexes or []


class OperationCancelled(ExplorerException):
    """Raised at a batch/page boundary when the caller requested cancellation."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, "OPERATION_CANCELLED")


class ExportAborted(ExplorerException):
    """Raised when an export stops early; carries what was exported so far.

    Attributes:
        cause: The FatalRemoteError or OperationCancelled that stopped the export.
        partial: The tree (or root collection id -> tree mapping) built so far.
        documents: Number of documents exported into `partial`.
    """

    def __init__(
        self, cause: ExplorerException, partial: dict[str, Any], documents: int
    ) -> None:
        super().__init__(
            f"Export aborted after {documents} document(s): {cause.message}",
            "EXPORT_ABORTED",
            {"documents": documents, "cause": cause.error_code},
        )
        self.cause = cause
        self.partial = partial
        self.documents = documents

    @property
    def cancelled(self) -> bool:
        return isinstance(self.cause, OperationCancelled)


class InvalidDocumentIdError(ExplorerException):
    """Raised when a collection or document id has invalid characters."""

    def __init__(self, value: str, kind: str = "document") -> None:
        super().__init__(
            f"Invalid {kind} id {value!r}: only letters, numbers, "
            "underscores and hyphens are allowed",
            "INVALID_ID",
            {"kind": kind, "value": value},
        )
