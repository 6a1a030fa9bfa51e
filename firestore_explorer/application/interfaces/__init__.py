"""Ports (protocols) the transfer services depend on."""

from firestore_explorer.application.interfaces.services import (
    DocumentStore,
    ProgressSink,
    TokenProvider,
)

__all__ = ["DocumentStore", "ProgressSink", "TokenProvider"]
