"""Firestore REST integration (httpx + google-auth, no firebase-admin)."""

from firestore_explorer.infrastructure.firebase._rest_client import FirestoreRESTClient
from firestore_explorer.infrastructure.firebase._rest_encoding import (
    ValueCodec,
    decode_value,
    encode_value,
)
from firestore_explorer.infrastructure.firebase.client import (
    FirestoreClientRegistry,
    create_client_from_settings,
)
from firestore_explorer.infrastructure.firebase.credentials import (
    ServiceAccountTokenProvider,
    StaticTokenProvider,
)

__all__ = [
    "FirestoreRESTClient",
    "FirestoreClientRegistry",
    "create_client_from_settings",
    "ServiceAccountTokenProvider",
    "StaticTokenProvider",
    "ValueCodec",
    "encode_value",
    "decode_value",
]
