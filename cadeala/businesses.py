"""
Business documents: listing, lookup, points label and creation.
"""

from __future__ import annotations

import logging
from typing import Any

from cadeala.config import POINTS_TO_DOLLAR_RATE
from cadeala.customer_classes import create_permanent_classes
from cadeala.datetime_utils import current_timestamp
from cadeala.exceptions import BusinessNotFoundError
from cadeala.ids import generate_business_id
from cadeala.repository.documents import BUSINESSES, DocumentStore

logger = logging.getLogger(__name__)

POINTS_LABEL_MIN = 2
POINTS_LABEL_MAX = 48
POINTS_LABEL_SHORT_MAX = 12

DEFAULT_SETTINGS: dict[str, Any] = {
    "pointsToDollarRate": POINTS_TO_DOLLAR_RATE,
    "allowCustomClasses": True,
    "defaultReferralRouting": "referral_class",
}


def list_businesses(store: DocumentStore) -> list[dict[str, Any]]:
    """Business summaries sorted by name; a missing name falls back to the ID."""
    businesses = [
        {
            "businessId": doc.id,
            "name": doc.data.get("name") or doc.id,
            "pointsLabel": doc.data.get("pointsLabel"),
        }
        for doc in store.list_documents(BUSINESSES)
    ]
    businesses.sort(key=lambda b: (str(b["name"]).lower(), b["businessId"]))
    return businesses


def get_business(store: DocumentStore, business_id: str) -> dict[str, Any]:
    data = store.get(BUSINESSES, business_id)
    if data is None:
        raise BusinessNotFoundError(business_id)
    return {**data, "businessId": business_id}


def update_points_label(
    store: DocumentStore,
    business_id: str,
    points_label: str,
    points_label_short: str | None = None,
) -> dict[str, Any]:
    """
    Merge the points label into the business document.

    Lengths are validated by the request model. An empty short label is
    treated as absent and not written.
    """
    update: dict[str, Any] = {"pointsLabel": points_label}
    if points_label_short:
        update["pointsLabelShort"] = points_label_short

    store.set(BUSINESSES, business_id, update, merge=True)
    merged = store.get(BUSINESSES, business_id) or {}
    logger.info("Business points label updated", extra={"business_id": business_id, "points_label": points_label})

    return {
        "businessId": business_id,
        "name": merged.get("name") or business_id,
        "pointsLabel": merged.get("pointsLabel"),
        "pointsLabelShort": merged.get("pointsLabelShort"),
    }


def create_business(
    store: DocumentStore,
    name: str,
    owner_id: str,
    email: str,
    *,
    phone: str | None = None,
    address: str | None = None,
    business_type: str | None = None,
    website: str | None = None,
) -> dict[str, Any]:
    """Create a business with default settings and its two permanent classes."""
    business_id = generate_business_id(store)

    business: dict[str, Any] = {
        "businessId": business_id,
        "name": name,
        "ownerId": owner_id,
        "email": email,
        "isActive": True,
        "allowPublicCustomer": True,
        "createdAt": current_timestamp(),
        "settings": dict(DEFAULT_SETTINGS),
    }
    for key, value in (
        ("phone", phone),
        ("address", address),
        ("businessType", business_type),
        ("website", website),
    ):
        if value and value.strip():
            business[key] = value

    store.set(BUSINESSES, business_id, business)
    create_permanent_classes(store, business_id)
    logger.info("Business created", extra={"business_id": business_id, "owner_id": owner_id})
    return business
