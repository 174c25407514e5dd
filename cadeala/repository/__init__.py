"""
Repository module for data persistence.
"""

from __future__ import annotations

from cadeala.repository.documents import (
    Document,
    DocumentStore,
    FirestoreDocumentStore,
    MemoryDocumentStore,
)
from cadeala.repository.users import (
    BulkDeleteResult,
    FirebaseIdentityProvider,
    IdentityProvider,
    MemoryIdentityProvider,
    UserPage,
    UserRecord,
)

__all__ = [
    "BulkDeleteResult",
    "Document",
    "DocumentStore",
    "FirebaseIdentityProvider",
    "FirestoreDocumentStore",
    "IdentityProvider",
    "MemoryDocumentStore",
    "MemoryIdentityProvider",
    "UserPage",
    "UserRecord",
]
