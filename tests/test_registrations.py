"""
Tests for business registration requests.
"""

from __future__ import annotations

import random
import re

import pytest

from cadeala.exceptions import NotFoundError
from cadeala.registrations import BusinessCodeGenerator, get_registration_for_user, submit_registration
from cadeala.repository import MemoryDocumentStore

APPLICATION = {
    "businessName": "Bean There",
    "businessCategory": "Food & Drink",
    "businessType": "Cafe",
    "description": "Neighbourhood coffee bar",
    "address": "12 Main St",
    "phone": "+1 555 0100",
    "email": "owner@beanthere.example",
}


@pytest.fixture
def applicants() -> MemoryDocumentStore:
    return MemoryDocumentStore(
        {
            "user_mappings": {"uid-alice": {"customerId": "BC0001"}},
            "users": {"BC0001": {"name": "Alice", "role": "customer"}},
        }
    )


class TestBusinessCode:
    def test_uses_name_prefix_when_free(self):
        code = BusinessCodeGenerator(random.Random(1)).generate("Bean There", [])
        assert re.fullmatch(r"BE\d{4}", code)

    def test_non_letters_are_ignored(self):
        code = BusinessCodeGenerator(random.Random(1)).generate("  7-Eleven ", [])
        assert code.startswith("EL")

    def test_taken_prefix_gets_a_variation(self):
        code = BusinessCodeGenerator(random.Random(3)).generate("Bean There", ["BE1234", "be9999"])
        assert re.fullmatch(r"[A-Z]{2}\d{4}", code)
        assert not code.startswith("BE")

    def test_short_name_is_padded(self):
        code = BusinessCodeGenerator(random.Random(5)).generate("Q", [])
        assert re.fullmatch(r"[A-Z]{2}\d{4}", code)

    def test_other_prefixes_do_not_block_the_name_prefix(self):
        generator = BusinessCodeGenerator(random.Random(11))
        assert generator.choose_prefix("Bean There", {"BA", "EB", "XX"}) == "BE"


class TestSubmitRegistration:
    def test_stores_pending_request(self, applicants):
        registration = submit_registration(applicants, "uid-alice", dict(APPLICATION), rng=random.Random(2))

        stored = applicants.get("business_registrations", registration["id"])
        assert stored["status"] == "pending"
        assert stored["userId"] == "uid-alice"
        assert stored["businessName"] == "Bean There"
        assert stored["website"] == ""
        assert stored["logoUrl"] is None
        assert stored["submittedAt"] == stored["createdAt"]
        assert re.fullmatch(r"BE\d{4}", stored["businessCode"])
        assert len(registration["id"]) == 20

    def test_flags_applicant_as_pending_owner(self, applicants):
        registration = submit_registration(applicants, "uid-alice", dict(APPLICATION))

        user = applicants.get("users", "BC0001")
        assert user["role"] == "business-pending-approval"
        assert user["businessRegistrationId"] == registration["id"]
        assert user["name"] == "Alice"

    def test_unmapped_applicant_is_still_registered(self, applicants):
        registration = submit_registration(applicants, "uid-nobody", dict(APPLICATION))
        assert applicants.get("business_registrations", registration["id"]) is not None
        assert applicants.get("users", "BC0001")["role"] == "customer"

    def test_second_business_gets_a_different_prefix(self, applicants):
        first = submit_registration(applicants, "uid-alice", dict(APPLICATION))
        second = submit_registration(applicants, "uid-bob", {**APPLICATION, "businessName": "Beach Shack"})
        assert first["businessCode"][:2] == "BE"
        assert second["businessCode"][:2] != "BE"


class TestLookup:
    def test_latest_registration_wins(self):
        store = MemoryDocumentStore(
            {
                "business_registrations": {
                    "old": {"userId": "uid-alice", "submittedAt": "2024-01-01T00:00:00Z"},
                    "new": {"userId": "uid-alice", "submittedAt": "2024-05-01T00:00:00Z"},
                    "other": {"userId": "uid-bob", "submittedAt": "2024-06-01T00:00:00Z"},
                }
            }
        )
        assert get_registration_for_user(store, "uid-alice")["id"] == "new"

    def test_missing_registration(self):
        with pytest.raises(NotFoundError):
            get_registration_for_user(MemoryDocumentStore(), "uid-alice")


class TestRoutes:
    def test_submit_and_fetch(self, client, store):
        store.set("user_mappings", "uid-alice", {"customerId": "BC0001"})
        store.set("users", "BC0001", {"name": "Alice"})

        resp = client.post("/api/business-registration", json={**APPLICATION, "userId": "uid-alice"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Business registration submitted successfully"
        assert re.fullmatch(r"BE\d{4}", body["businessCode"])
        assert store.get("users", "BC0001")["role"] == "business-pending-approval"

        by_query = client.get("/api/business-registration", params={"userId": "uid-alice"})
        by_path = client.get("/api/business-registration/uid-alice")
        assert by_query.status_code == by_path.status_code == 200
        assert by_query.json() == by_path.json()
        data = by_query.json()["businessData"]
        assert data["id"] == body["businessId"]
        assert data["businessCode"] == body["businessCode"]

    def test_missing_field_is_400(self, client):
        application = {key: value for key, value in APPLICATION.items() if key != "phone"}
        resp = client.post("/api/business-registration", json={**application, "userId": "uid-alice"})
        assert resp.status_code == 400
        assert resp.json()["details"][0]["path"] == ["phone"]

    def test_blank_field_is_400(self, client):
        resp = client.post("/api/business-registration", json={**APPLICATION, "description": "  ", "userId": "uid-a"})
        assert resp.status_code == 400

    def test_lookup_requires_user_id(self, client):
        resp = client.get("/api/business-registration")
        assert resp.status_code == 400
        assert resp.json()["error"] == "User ID is required"

    def test_lookup_unknown_user_is_404(self, client):
        resp = client.get("/api/business-registration/uid-nobody")
        assert resp.status_code == 404
        assert resp.json() == {"error": "No business registration found"}
