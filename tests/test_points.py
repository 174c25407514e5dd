"""
Tests for memberships and the points ledger.
"""

from __future__ import annotations

import random
import re

import pytest

from cadeala import points
from cadeala.exceptions import NotFoundError, ValidationError
from cadeala.repository import MemoryDocumentStore


def _class(name: str, welcome: int, referrer: int = 0, referred: int = 0) -> dict:
    return {
        "name": name,
        "type": "permanent",
        "isActive": True,
        "points": {"welcomePoints": welcome, "referrerPoints": referrer, "referredPoints": referred},
    }


@pytest.fixture
def ledger() -> MemoryDocumentStore:
    return MemoryDocumentStore(
        {
            "businesses": {"BIZ0001": {"name": "Bean There", "pointsLabel": "Beans"}},
            "businesses/BIZ0001/customerClasses": {
                "CLASS000101": _class("General Customers", 100),
                "CLASS000102": _class("Referral Customers", 100, referrer=50, referred=25),
                "CLASS000103": _class("Staff", 0),
            },
            "users": {"BC0001": {"name": "Alice"}, "BC0002": {"name": "Bob"}},
        }
    )


def _analytics(store, class_id: str) -> dict:
    return store.get("businesses/BIZ0001/customerClasses", class_id)["analytics"]


def test_transaction_id_format():
    tx_id = points.generate_transaction_id(random.Random(7))
    assert re.fullmatch(r"TXN\d{13}[a-z0-9]{9}", tx_id)


class TestJoinBusiness:
    def test_creates_relationship_and_awards_welcome_points(self, ledger):
        result = points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")

        relationship = result["relationship"]
        assert relationship["status"] == "active"
        assert relationship["customerClassId"] == "CLASS000101"
        assert relationship["totalPoints"] == 100
        assert relationship["totalPointsEarned"] == 100
        assert relationship["totalPointsValue"] == 1.0
        assert relationship["classHistory"][0]["reason"] == "initial_signup"

        tx = result["transaction"]
        assert tx["type"] == "welcome"
        assert tx["amount"] == 100
        assert tx["description"] == "Welcome points for joining General Customers"
        assert ledger.get("customers/BC0001/transactions", tx["transactionId"]) == tx

    def test_updates_class_analytics(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")

        analytics = _analytics(ledger, "CLASS000101")
        assert analytics["totalCustomers"] == 1
        assert analytics["totalWelcomePointsGiven"] == 100
        assert analytics["totalPointsDistributed"] == 100

    def test_syncs_business_assignment(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")

        user = ledger.get("users", "BC0001")
        assert user["public"] is False
        [assignment] = user["businessAssignments"]
        assert assignment["businessId"] == "BIZ0001"
        assert assignment["customerClassId"] == "CLASS000101"
        assert assignment["offerPoints"] == 100
        assert assignment["purchasePoints"] == 0
        assert assignment["totalPoints"] == 100

    def test_referral_join_is_recorded(self, ledger):
        relationship = points.join_business(ledger, "BC0002", "BIZ0001", "CLASS000102", referrer_id="BC0001")[
            "relationship"
        ]
        assert relationship["referrerId"] == "BC0001"
        assert relationship["classHistory"][0]["reason"] == "referral"

    def test_zero_welcome_points_writes_no_transaction(self, ledger):
        result = points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000103")

        assert result["transaction"] is None
        assert result["relationship"]["totalPoints"] == 0
        assert ledger.list_documents("customers/BC0001/transactions") == []

    def test_joining_twice_is_rejected(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")
        with pytest.raises(ValidationError, match="already exists"):
            points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000102")

    def test_unknown_class_is_not_found(self, ledger):
        with pytest.raises(NotFoundError):
            points.join_business(ledger, "BC0001", "BIZ0001", "CLASS999999")
        assert points.get_relationship(ledger, "BC0001", "BIZ0001") is None

    def test_customer_without_user_document_still_joins(self, ledger):
        result = points.join_business(ledger, "BC0077", "BIZ0001", "CLASS000101")
        assert result["relationship"]["totalPoints"] == 100
        assert ledger.get("users", "BC0077") is None


class TestReferralPoints:
    def test_credits_both_sides(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000102")
        points.join_business(ledger, "BC0002", "BIZ0001", "CLASS000102", referrer_id="BC0001")

        result = points.distribute_referral_points(
            ledger, "REF1", "BIZ0001", "BC0001", "BC0002", "CLASS000102", "CLASS000102"
        )

        assert result["pointsDistributed"]["referrerReceived"] == 50
        assert result["pointsDistributed"]["referredReceived"] == 25
        assert result["transactions"]["referrer"]["relatedId"] == "REF1"
        assert result["transactions"]["referred"]["type"] == "referred"
        assert points.get_customer_points(ledger, "BC0001", "BIZ0001") == 150
        assert points.get_customer_points(ledger, "BC0002", "BIZ0001") == 125

        analytics = _analytics(ledger, "CLASS000102")
        assert analytics["totalReferrerPointsGiven"] == 50
        assert analytics["totalReferredPointsGiven"] == 25
        assert analytics["totalPointsDistributed"] == 275

        referral = ledger.get("businesses/BIZ0001/referrals", "REF1")
        assert referral["status"] == "completed"
        assert referral["pointsDistributed"]["referrerReceived"] == 50

    def test_zero_point_side_is_skipped(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")
        points.join_business(ledger, "BC0002", "BIZ0001", "CLASS000102")

        result = points.distribute_referral_points(
            ledger, "REF2", "BIZ0001", "BC0001", "BC0002", "CLASS000101", "CLASS000102"
        )
        assert set(result["transactions"]) == {"referred"}
        assert points.get_customer_points(ledger, "BC0001", "BIZ0001") == 100

    def test_referrer_must_be_a_member(self, ledger):
        points.join_business(ledger, "BC0002", "BIZ0001", "CLASS000102")

        with pytest.raises(NotFoundError):
            points.distribute_referral_points(
                ledger, "REF3", "BIZ0001", "BC0001", "BC0002", "CLASS000102", "CLASS000102"
            )
        assert ledger.list_documents("customers/BC0001/transactions") == []


class TestRedeemPoints:
    def test_redemption_reduces_balance(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")

        tx = points.redeem_points(ledger, "BC0001", "BIZ0001", 30, "Free espresso")

        assert tx["amount"] == -30
        assert tx["type"] == "redemption"
        relationship = points.get_relationship(ledger, "BC0001", "BIZ0001")
        assert relationship["totalPoints"] == 70
        assert relationship["totalPointsRedeemed"] == 30
        assert relationship["totalPointsEarned"] == 100
        assert relationship["totalPointsValue"] == 0.7

        # Redemptions do not reduce offer points, only the balance
        [assignment] = ledger.get("users", "BC0001")["businessAssignments"]
        assert assignment["offerPoints"] == 100
        assert assignment["totalPoints"] == 70

    def test_insufficient_balance(self, ledger):
        points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")
        with pytest.raises(ValidationError, match="Insufficient points"):
            points.redeem_points(ledger, "BC0001", "BIZ0001", 101, "Too much")

    @pytest.mark.parametrize("amount", [0, -5])
    def test_amount_must_be_positive(self, ledger, amount):
        with pytest.raises(ValidationError):
            points.redeem_points(ledger, "BC0001", "BIZ0001", amount, "Nothing")


def test_balance_of_non_member_is_zero(ledger):
    assert points.get_customer_points(ledger, "BC0001", "BIZ0001") == 0


def test_customer_transactions_are_scoped_to_business(ledger):
    points.join_business(ledger, "BC0001", "BIZ0001", "CLASS000101")
    ledger.set("customers/BC0001/transactions", "other", {"businessId": "BIZ0002", "amount": 5})

    rows = points.get_customer_transactions(ledger, "BC0001", "BIZ0001")
    assert [tx["type"] for tx in rows] == ["welcome"]


class TestRoutes:
    @pytest.fixture
    def seeded(self, store):
        store.set("businesses/BIZ0001/customerClasses", "CLASS000101", _class("General Customers", 100))
        store.set("users", "BC0001", {"name": "Alice"})
        return store

    def test_join_and_balance(self, client, seeded):
        resp = client.post(
            "/api/admin/customers/BC0001/businesses",
            json={"businessId": "BIZ0001", "classId": "CLASS000101"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["relationship"]["totalPoints"] == 100
        assert body["transaction"]["type"] == "welcome"

        resp = client.get("/api/admin/customers/BC0001/points", params={"businessId": "BIZ0001"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalPoints"] == 100
        assert body["totalPointsValue"] == 1.0
        assert len(body["transactions"]) == 1

    def test_join_unknown_business_is_404(self, client, seeded):
        resp = client.post(
            "/api/admin/customers/BC0001/businesses",
            json={"businessId": "BIZ9999", "classId": "CLASS000101"},
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Business not found"}

    def test_welcome_points_show_in_admin_transactions(self, client, seeded):
        client.post("/api/admin/customers/BC0001/businesses", json={"businessId": "BIZ0001", "classId": "CLASS000101"})

        body = client.get("/api/admin/transactions", params={"type": "welcome"}).json()
        assert body["total"] == 1
        assert body["transactions"][0]["customerId"] == "BC0001"

    def test_redeem(self, client, seeded):
        client.post("/api/admin/customers/BC0001/businesses", json={"businessId": "BIZ0001", "classId": "CLASS000101"})

        resp = client.post("/api/admin/customers/BC0001/redemptions", json={"businessId": "BIZ0001", "amount": 40})
        assert resp.status_code == 201
        assert resp.json()["totalPoints"] == 60
        assert resp.json()["transaction"]["description"] == "Points redeemed"

        resp = client.post("/api/admin/customers/BC0001/redemptions", json={"businessId": "BIZ0001", "amount": 61})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Insufficient points: balance is 60"

    def test_redeem_requires_positive_amount(self, client):
        resp = client.post("/api/admin/customers/BC0001/redemptions", json={"businessId": "BIZ0001", "amount": 0})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid input"

    def test_points_requires_business(self, client):
        assert client.get("/api/admin/customers/BC0001/points").status_code == 400

    def test_referral_with_unknown_class_is_404(self, client, seeded):
        resp = client.post(
            "/api/admin/points/referral",
            json={
                "referralId": "REF1",
                "businessId": "BIZ0001",
                "referrerId": "BC0001",
                "referredId": "BC0002",
                "referrerClassId": "CLASS000101",
                "referredClassId": "CLASS999999",
            },
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Customer class not found"}
