"""
Tests for the document store and identity provider wrappers.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from firebase_admin import auth
from google.cloud.firestore_v1 import GeoPoint

from cadeala.exceptions import UserNotFoundError
from cadeala.repository import FirebaseIdentityProvider, FirestoreDocumentStore, MemoryDocumentStore
from cadeala.repository.documents import subcollection


class TestMemoryDocumentStore:
    def test_set_get_and_isolation(self):
        store = MemoryDocumentStore()
        data = {"name": "Bean There", "tags": ["coffee"]}
        store.set("businesses", "BIZ0001", data)

        data["tags"].append("mutated")
        fetched = store.get("businesses", "BIZ0001")
        assert fetched == {"name": "Bean There", "tags": ["coffee"]}

        fetched["name"] = "changed"
        assert store.get("businesses", "BIZ0001")["name"] == "Bean There"

    def test_merge_is_shallow(self):
        store = MemoryDocumentStore({"businesses": {"BIZ0001": {"name": "A", "settings": {"x": 1, "y": 2}}}})
        store.set("businesses", "BIZ0001", {"settings": {"x": 5}}, merge=True)
        assert store.get("businesses", "BIZ0001") == {"name": "A", "settings": {"x": 5}}

    def test_merge_creates_missing_document(self):
        store = MemoryDocumentStore()
        store.set("businesses", "BIZ0001", {"pointsLabel": "Stars"}, merge=True)
        assert store.get("businesses", "BIZ0001") == {"pointsLabel": "Stars"}

    def test_set_without_merge_replaces(self):
        store = MemoryDocumentStore({"users": {"BC0001": {"a": 1}}})
        store.set("users", "BC0001", {"b": 2})
        assert store.get("users", "BC0001") == {"b": 2}

    def test_delete_missing_is_noop(self):
        store = MemoryDocumentStore()
        store.delete("users", "nobody")
        assert store.list_ids("users") == []

    def test_list_collections_only_roots_with_documents(self):
        store = MemoryDocumentStore(
            {
                "users": {"BC0001": {}},
                subcollection("customers", "BC0001", "transactions"): {"t1": {}},
                "anonymous_tokens": {"tok": {}},
            }
        )
        store.delete("anonymous_tokens", "tok")
        assert store.list_collections() == ["users"]


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return self._data


class FakeFirestore:
    """Just enough of the Firestore client surface for the store wrapper."""

    def __init__(self, collections):
        self.collections_data = collections
        self.writes = []
        self.deletes = []

    def collection(self, path):
        client = self
        docs = self.collections_data.get(path, {})

        class DocRef:
            def __init__(self, doc_id):
                self.doc_id = doc_id

            def get(self):
                return FakeSnapshot(self.doc_id, docs.get(self.doc_id))

            def set(self, data, merge=False):
                client.writes.append((path, self.doc_id, data, merge))

            def delete(self):
                client.deletes.append((path, self.doc_id))

        return SimpleNamespace(
            stream=lambda: [FakeSnapshot(doc_id, data) for doc_id, data in docs.items()],
            document=DocRef,
        )

    def collections(self):
        return [SimpleNamespace(id=name) for name in self.collections_data if "/" not in name]


class TestFirestoreDocumentStore:
    def test_reads_convert_firestore_values(self):
        client = FakeFirestore({"businesses": {"BIZ0001": {"name": "A", "location": GeoPoint(1.5, -2.0)}}})
        store = FirestoreDocumentStore(client=client)

        assert store.list_ids("businesses") == ["BIZ0001"]
        assert store.get("businesses", "BIZ0001")["location"] == {"latitude": 1.5, "longitude": -2.0}
        assert store.list_documents("businesses")[0].data["name"] == "A"
        assert store.get("businesses", "BIZ0002") is None

    def test_writes_and_collections(self):
        client = FakeFirestore({"users": {}, "businesses": {}, "customers/BC0001/transactions": {}})
        store = FirestoreDocumentStore(client=client)

        store.set("businesses", "BIZ0001", {"pointsLabel": "Stars"}, merge=True)
        store.delete("users", "BC0001")

        assert client.writes == [("businesses", "BIZ0001", {"pointsLabel": "Stars"}, True)]
        assert client.deletes == [("users", "BC0001")]
        assert store.list_collections() == ["businesses", "users"]


class TestFirebaseIdentityProvider:
    @pytest.fixture
    def provider(self):
        return FirebaseIdentityProvider(app=object())

    def test_get_user_maps_record(self, provider, monkeypatch):
        record = SimpleNamespace(
            uid="uid-1",
            email="a@example.com",
            display_name="A",
            photo_url=None,
            email_verified=True,
            disabled=False,
            custom_claims={"role": "business"},
            user_metadata=SimpleNamespace(
                creation_timestamp=1_704_067_200_000,
                last_sign_in_timestamp=None,
                last_refresh_timestamp=None,
            ),
            provider_data=[
                SimpleNamespace(
                    uid="a@example.com",
                    email="a@example.com",
                    display_name="A",
                    photo_url=None,
                    provider_id="password",
                )
            ],
        )
        monkeypatch.setattr(auth, "get_user", lambda uid, app=None: record)

        user = provider.get_user("uid-1")
        assert user.email_verified is True
        assert user.creation_time == "2024-01-01T00:00:00+00:00"
        assert user.last_sign_in_time is None
        assert user.provider_data[0]["providerId"] == "password"
        assert user.role == "business"

    def test_missing_user_maps_to_not_found(self, provider, monkeypatch):
        def missing(uid, app=None):
            raise auth.UserNotFoundError("No user record found")

        monkeypatch.setattr(auth, "delete_user", missing)
        with pytest.raises(UserNotFoundError):
            provider.delete_user("ghost")

    def test_delete_users_result(self, provider, monkeypatch):
        result = SimpleNamespace(
            success_count=1,
            failure_count=1,
            errors=[SimpleNamespace(index=1, reason="USER_DISABLED")],
        )
        monkeypatch.setattr(auth, "delete_users", lambda uids, app=None: result)

        summary = provider.delete_users(["a", "b"])
        assert summary.success_count == 1
        assert summary.errors == [{"index": 1, "reason": "USER_DISABLED"}]

    def test_list_users_page_token(self, provider, monkeypatch):
        page = SimpleNamespace(users=[], next_page_token="")
        monkeypatch.setattr(auth, "list_users", lambda page_token=None, max_results=1000, app=None: page)

        result = provider.list_users(max_results=10)
        assert result.page_token is None
        assert result.has_more is False
