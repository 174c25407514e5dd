"""
Points ledger for customer-business relationships.

A customer joins a business through one of its customer classes, which
creates customers/{customerId}/businesses/{businessId}. Every points
movement is written as a transaction under customers/{customerId}/transactions,
applied to the relationship totals, counted in the class analytics and
mirrored into the `businessAssignments` array of the user document that
the admin customer listing reads.

Offer points are the positive welcome, referral and adjustment
transactions; purchase points are not tracked yet.
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Any

from cadeala.config import POINTS_TO_DOLLAR_RATE
from cadeala.customer_classes import get_customer_class, increment_class_analytics
from cadeala.datetime_utils import current_timestamp, timestamp_sort_key
from cadeala.exceptions import NotFoundError, ValidationError
from cadeala.repository.documents import (
    BUSINESSES,
    CUSTOMERS,
    REFERRALS,
    TRANSACTIONS,
    USERS,
    DocumentStore,
    subcollection,
)

logger = logging.getLogger(__name__)

WELCOME = "welcome"
REFERRER = "referrer"
REFERRED = "referred"
REDEMPTION = "redemption"
ADJUSTMENT = "adjustment"

OFFER_TYPES = frozenset({WELCOME, REFERRER, REFERRED, ADJUSTMENT})

_TXN_ALPHABET = string.ascii_lowercase + string.digits
_rng = random.Random()


def relationships_path(customer_id: str) -> str:
    return subcollection(CUSTOMERS, customer_id, BUSINESSES)


def transactions_path(customer_id: str) -> str:
    return subcollection(CUSTOMERS, customer_id, TRANSACTIONS)


def generate_transaction_id(rng: random.Random | None = None) -> str:
    """TXN + epoch milliseconds + 9 random base-36 characters."""
    suffix = "".join((rng or _rng).choices(_TXN_ALPHABET, k=9))
    return f"TXN{int(time.time() * 1000)}{suffix}"


def get_relationship(store: DocumentStore, customer_id: str, business_id: str) -> dict[str, Any] | None:
    return store.get(relationships_path(customer_id), business_id)


def _require_relationship(store: DocumentStore, customer_id: str, business_id: str) -> dict[str, Any]:
    relationship = get_relationship(store, customer_id, business_id)
    if relationship is None:
        raise NotFoundError(
            "Customer-business relationship not found",
            resource_type="Relationship",
            resource_id=f"{customer_id}/{business_id}",
        )
    return relationship


def _record_transaction(
    store: DocumentStore,
    customer_id: str,
    business_id: str,
    amount: int,
    type_: str,
    description: str,
    related_id: str | None = None,
) -> dict[str, Any]:
    transaction: dict[str, Any] = {
        "transactionId": generate_transaction_id(),
        "customerId": customer_id,
        "businessId": business_id,
        "amount": amount,
        "type": type_,
        "description": description,
        "createdAt": current_timestamp(),
    }
    if related_id:
        transaction["relatedId"] = related_id
    store.set(transactions_path(customer_id), transaction["transactionId"], transaction)
    return transaction


def update_customer_points(store: DocumentStore, customer_id: str, business_id: str, points: int) -> dict[str, Any]:
    """
    Apply `points` (negative for redemptions) to the relationship totals.

    Returns the updated relationship.
    """
    relationship = _require_relationship(store, customer_id, business_id)
    total = (relationship.get("totalPoints") or 0) + points
    update = {
        "totalPoints": total,
        "totalPointsValue": total / POINTS_TO_DOLLAR_RATE,
        "totalPointsEarned": (relationship.get("totalPointsEarned") or 0) + max(points, 0),
        "totalPointsRedeemed": (relationship.get("totalPointsRedeemed") or 0) + max(-points, 0),
        "lastActivityAt": current_timestamp(),
    }
    store.set(relationships_path(customer_id), business_id, update, merge=True)
    return {**relationship, **update}


def calculate_offer_points(store: DocumentStore, customer_id: str, business_id: str) -> int:
    return sum(
        doc.data.get("amount") or 0
        for doc in store.list_documents(transactions_path(customer_id))
        if doc.data.get("businessId") == business_id
        and doc.data.get("type") in OFFER_TYPES
        and (doc.data.get("amount") or 0) > 0
    )


def sync_business_assignment(store: DocumentStore, customer_id: str, business_id: str) -> dict[str, Any] | None:
    """
    Mirror the relationship into users/{customerId}.businessAssignments.

    Customers without a user document are left alone and None is returned.
    """
    user = store.get(USERS, customer_id)
    if user is None:
        logger.warning(
            "No user document to sync business assignment into",
            extra={"customer_id": customer_id, "business_id": business_id},
        )
        return None

    relationship = get_relationship(store, customer_id, business_id) or {}
    offer_points = calculate_offer_points(store, customer_id, business_id)
    assignment = {
        "businessId": business_id,
        "customerClassId": relationship.get("customerClassId"),
        "joinedAt": relationship.get("joinedAt") or current_timestamp(),
        "status": relationship.get("status", "active"),
        "offerPoints": offer_points,
        "purchasePoints": 0,
        "totalPoints": relationship.get("totalPoints", offer_points),
    }

    assignments = [
        a for a in user.get("businessAssignments") or [] if isinstance(a, dict) and a.get("businessId") != business_id
    ]
    assignments.append(assignment)
    store.set(USERS, customer_id, {"businessAssignments": assignments, "public": False}, merge=True)
    return assignment


def _credit(
    store: DocumentStore,
    customer_id: str,
    business_id: str,
    class_id: str,
    amount: int,
    type_: str,
    description: str,
    analytics_counter: str,
    related_id: str | None = None,
) -> dict[str, Any]:
    # Checked before the transaction is written so a missing membership leaves no orphan
    _require_relationship(store, customer_id, business_id)
    transaction = _record_transaction(store, customer_id, business_id, amount, type_, description, related_id)
    update_customer_points(store, customer_id, business_id, amount)
    counters = {analytics_counter: amount, "totalPointsDistributed": amount}
    increment_class_analytics(store, business_id, class_id, **counters)
    sync_business_assignment(store, customer_id, business_id)
    logger.info(
        "Points credited",
        extra={"customer_id": customer_id, "business_id": business_id, "points": amount, "points_type": type_},
    )
    return transaction


def join_business(
    store: DocumentStore,
    customer_id: str,
    business_id: str,
    class_id: str,
    referrer_id: str | None = None,
) -> dict[str, Any]:
    """
    Create the customer-business relationship and award the class's
    welcome points.

    Returns {"relationship": ..., "transaction": ...}; `transaction` is None
    when the class gives no welcome points.
    """
    customer_class = get_customer_class(store, business_id, class_id)
    if get_relationship(store, customer_id, business_id) is not None:
        raise ValidationError("Customer-business relationship already exists", field="businessId")

    now = current_timestamp()
    relationship: dict[str, Any] = {
        "customerId": customer_id,
        "businessId": business_id,
        "customerClassId": class_id,
        "joinedAt": now,
        "status": "active",
        "totalPoints": 0,
        "totalPointsEarned": 0,
        "totalPointsRedeemed": 0,
        "totalPointsValue": 0,
        "totalVisits": 0,
        "classHistory": [
            {"classId": class_id, "joinedAt": now, "reason": "referral" if referrer_id else "initial_signup"}
        ],
    }
    if referrer_id:
        relationship["referrerId"] = referrer_id
        relationship["referralDate"] = now

    store.set(relationships_path(customer_id), business_id, relationship)
    increment_class_analytics(store, business_id, class_id, totalCustomers=1)
    sync_business_assignment(store, customer_id, business_id)
    logger.info(
        "Customer joined business",
        extra={"customer_id": customer_id, "business_id": business_id, "class_id": class_id},
    )

    transaction = distribute_welcome_points(store, customer_id, business_id, class_id, customer_class)
    return {"relationship": _require_relationship(store, customer_id, business_id), "transaction": transaction}


def distribute_welcome_points(
    store: DocumentStore,
    customer_id: str,
    business_id: str,
    class_id: str,
    customer_class: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    customer_class = customer_class or get_customer_class(store, business_id, class_id)
    points = (customer_class.get("points") or {}).get("welcomePoints") or 0
    if points <= 0:
        return None
    return _credit(
        store,
        customer_id,
        business_id,
        class_id,
        points,
        WELCOME,
        f"Welcome points for joining {customer_class.get('name', class_id)}",
        "totalWelcomePointsGiven",
    )


def distribute_referral_points(
    store: DocumentStore,
    referral_id: str,
    business_id: str,
    referrer_id: str,
    referred_id: str,
    referrer_class_id: str,
    referred_class_id: str,
) -> dict[str, Any]:
    """
    Credit both sides of a completed referral and mark the referral done.

    The referrer earns its class's `referrerPoints`, the referred customer
    its class's `referredPoints`; a side worth zero points is skipped.
    """
    referrer_class = get_customer_class(store, business_id, referrer_class_id)
    referred_class = get_customer_class(store, business_id, referred_class_id)
    referrer_points = (referrer_class.get("points") or {}).get("referrerPoints") or 0
    referred_points = (referred_class.get("points") or {}).get("referredPoints") or 0

    transactions: dict[str, Any] = {}
    if referrer_points > 0:
        transactions["referrer"] = _credit(
            store,
            referrer_id,
            business_id,
            referrer_class_id,
            referrer_points,
            REFERRER,
            f"Referral bonus for referring {referred_id}",
            "totalReferrerPointsGiven",
            related_id=referral_id,
        )
    if referred_points > 0:
        transactions["referred"] = _credit(
            store,
            referred_id,
            business_id,
            referred_class_id,
            referred_points,
            REFERRED,
            f"Referral bonus for being referred by {referrer_id}",
            "totalReferredPointsGiven",
            related_id=referral_id,
        )

    distributed = {
        "referrerReceived": referrer_points,
        "referredReceived": referred_points,
        "distributedAt": current_timestamp(),
    }
    store.set(
        subcollection(BUSINESSES, business_id, REFERRALS),
        referral_id,
        {"status": "completed", "completedAt": distributed["distributedAt"], "pointsDistributed": distributed},
        merge=True,
    )
    return {"success": True, "pointsDistributed": distributed, "transactions": transactions}


def redeem_points(
    store: DocumentStore,
    customer_id: str,
    business_id: str,
    amount: int,
    description: str,
) -> dict[str, Any]:
    if amount <= 0:
        raise ValidationError("Redemption amount must be positive", field="amount")
    balance = get_customer_points(store, customer_id, business_id)
    if balance < amount:
        raise ValidationError(f"Insufficient points: balance is {balance}", field="amount")

    transaction = _record_transaction(store, customer_id, business_id, -amount, REDEMPTION, description)
    update_customer_points(store, customer_id, business_id, -amount)
    sync_business_assignment(store, customer_id, business_id)
    logger.info(
        "Points redeemed",
        extra={"customer_id": customer_id, "business_id": business_id, "points": amount},
    )
    return transaction


def get_customer_points(store: DocumentStore, customer_id: str, business_id: str) -> int:
    """Current balance at the business; 0 when the customer never joined."""
    relationship = get_relationship(store, customer_id, business_id)
    return (relationship or {}).get("totalPoints") or 0


def get_customer_transactions(store: DocumentStore, customer_id: str, business_id: str) -> list[dict[str, Any]]:
    rows = [
        {"id": doc.id, **doc.data}
        for doc in store.list_documents(transactions_path(customer_id))
        if doc.data.get("businessId") == business_id
    ]
    rows.sort(key=lambda tx: timestamp_sort_key(tx.get("createdAt")), reverse=True)
    return rows
