"""
Document store facade over Firestore.

Collections are addressed by slash-separated paths, so a per-customer
subcollection is just "customers/BC0042/transactions". Two backends share
the same surface: Firestore through the Firebase Admin SDK, and an
in-memory dict store for local runs and tests.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from typing import Any, Protocol

from google.cloud.firestore_v1 import DocumentReference, GeoPoint

logger = logging.getLogger(__name__)

# Collection names (Firestore has no schema; these are the single source of truth)
BUSINESSES = "businesses"
USERS = "users"
CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
CUSTOMER_CLASSES = "customerClasses"
DEVICES = "devices"
ANONYMOUS_TOKENS = "anonymous_tokens"
REFERRALS = "referrals"
BUSINESS_REGISTRATIONS = "business_registrations"
USER_MAPPINGS = "user_mappings"


def subcollection(collection: str, doc_id: str, name: str) -> str:
    """Path of a subcollection below a document."""
    return f"{collection}/{doc_id}/{name}"


@dataclass
class Document:
    id: str
    data: dict[str, Any]


class DocumentStore(Protocol):
    def list_ids(self, path: str) -> list[str]: ...

    def list_documents(self, path: str) -> list[Document]: ...

    def get(self, path: str, doc_id: str) -> dict[str, Any] | None: ...

    def set(self, path: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None: ...

    def delete(self, path: str, doc_id: str) -> None: ...

    def list_collections(self) -> list[str]: ...


class MemoryDocumentStore:
    """
    Dict-backed document store.

    Mirrors the Firestore semantics the app relies on: `set(merge=True)`
    merges top-level fields, deleting a missing document is a no-op, and an
    empty collection simply has no documents.
    """

    def __init__(self, seed: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()
        for path, docs in (seed or {}).items():
            for doc_id, data in docs.items():
                self.set(path, doc_id, data)

    def list_ids(self, path: str) -> list[str]:
        with self._lock:
            return list(self._collections.get(path, {}))

    def list_documents(self, path: str) -> list[Document]:
        with self._lock:
            docs = self._collections.get(path, {})
            return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in docs.items()]

    def get(self, path: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            data = self._collections.get(path, {}).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def set(self, path: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
        with self._lock:
            docs = self._collections.setdefault(path, {})
            if merge and doc_id in docs:
                docs[doc_id].update(copy.deepcopy(data))
            else:
                docs[doc_id] = copy.deepcopy(data)

    def delete(self, path: str, doc_id: str) -> None:
        with self._lock:
            docs = self._collections.get(path)
            if docs is not None:
                docs.pop(doc_id, None)

    def list_collections(self) -> list[str]:
        with self._lock:
            return sorted(path for path, docs in self._collections.items() if "/" not in path and docs)


def _plain(value: Any) -> Any:
    """Turn Firestore-specific values into JSON friendly ones."""
    if isinstance(value, DocumentReference):
        return value.path
    if isinstance(value, GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class FirestoreDocumentStore:
    """Document store backed by the Firebase Admin Firestore client."""

    def __init__(self, client: Any | None = None) -> None:
        if client is None:
            from firebase_admin import firestore

            from cadeala.repository.firebase import get_firebase_app

            client = firestore.client(app=get_firebase_app())
        self._client = client

    def list_ids(self, path: str) -> list[str]:
        return [snap.id for snap in self._client.collection(path).stream()]

    def list_documents(self, path: str) -> list[Document]:
        return [
            Document(id=snap.id, data=_plain(snap.to_dict() or {}))
            for snap in self._client.collection(path).stream()
        ]

    def get(self, path: str, doc_id: str) -> dict[str, Any] | None:
        snap = self._client.collection(path).document(doc_id).get()
        if not snap.exists:
            return None
        return _plain(snap.to_dict() or {})

    def set(self, path: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
        self._client.collection(path).document(doc_id).set(data, merge=merge)

    def delete(self, path: str, doc_id: str) -> None:
        self._client.collection(path).document(doc_id).delete()

    def list_collections(self) -> list[str]:
        return sorted(ref.id for ref in self._client.collections())
