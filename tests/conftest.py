"""
Pytest configuration and shared fixtures for the Cadeala API tests.

Everything runs against the in-memory backends; no Firebase project is
touched.
"""

import os

# Settings are read at import time; keep tests off Firestore.
os.environ.setdefault("CADEALA_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from cadeala.api import create_app
from cadeala.notifications import MemoryPushSender
from cadeala.repository import MemoryDocumentStore, MemoryIdentityProvider, UserRecord


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore(
        {
            "businesses": {
                "BIZ0001": {"name": "Bean There", "pointsLabel": "Beans"},
                "BIZ0002": {"name": "acme Bakery"},
                "BIZ0003": {},
            },
        }
    )


@pytest.fixture
def identity() -> MemoryIdentityProvider:
    return MemoryIdentityProvider(
        [
            UserRecord(
                uid="uid-alice",
                email="alice@example.com",
                display_name="Alice",
                custom_claims={"role": "customer"},
                creation_time="2024-01-15T10:00:00+00:00",
                last_sign_in_time="2024-02-01T09:30:00+00:00",
            ),
            UserRecord(uid="uid-bob", email="bob@example.com", display_name="Bob"),
            UserRecord(uid="uid-carol", email="carol@example.com", disabled=True),
        ]
    )


@pytest.fixture
def push_sender() -> MemoryPushSender:
    return MemoryPushSender()


@pytest.fixture
def app(store, identity, push_sender):
    return create_app(store=store, identity=identity, push_sender=push_sender)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
