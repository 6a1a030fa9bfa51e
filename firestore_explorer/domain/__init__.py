"""Domain layer: exceptions and result types (no infrastructure imports)."""

from firestore_explorer.domain.exceptions import (
    BatchWriteFailure,
    ConversionError,
    DocumentExistsError,
    ExplorerException,
    ExportAborted,
    FatalRemoteError,
    InvalidDocumentIdError,
    OperationCancelled,
    RemoteRequestError,
    TransientNetworkError,
    UnknownFieldTypeError,
)
from firestore_explorer.domain.results import BatchOutcome, TransferResult, WriteFailure

__all__ = [
    "ExplorerException",
    "TransientNetworkError",
    "ConversionError",
    "UnknownFieldTypeError",
    "RemoteRequestError",
    "FatalRemoteError",
    "DocumentExistsError",
    "BatchWriteFailure",
    "OperationCancelled",
    "ExportAborted",
    "InvalidDocumentIdError",
    "BatchOutcome",
    "TransferResult",
    "WriteFailure",
]
