"""
Customer classes: the signup tiers of a business.

Every business has two permanent classes ("General Customers" and
"Referral Customers") created alongside it; owners may add custom ones.
Each class carries its own signup QR code and points configuration.
"""

from __future__ import annotations

import logging
from typing import Any

from cadeala.datetime_utils import current_timestamp, timestamp_sort_key
from cadeala.exceptions import NotFoundError
from cadeala.ids import generate_class_id
from cadeala.qr_codes import QRCodeService, qr_codes
from cadeala.repository.documents import BUSINESSES, CUSTOMER_CLASSES, DocumentStore, subcollection

logger = logging.getLogger(__name__)

PERMANENT = "permanent"
CUSTOM = "custom"

DEFAULT_BENEFITS: dict[str, Any] = {
    "pointsMultiplier": 1.0,
    "discountPercentage": 0,
    "specialOffers": False,
    "freeShipping": False,
    "earlyAccess": False,
}

PERMANENT_CLASSES: tuple[dict[str, Any], ...] = (
    {
        "name": "General Customers",
        "description": "Regular customers who visit our store",
        "points": {"welcomePoints": 100, "referrerPoints": 0, "referredPoints": 0},
        "benefits": {"specialOffers": True},
    },
    {
        "name": "Referral Customers",
        "description": "Customers who joined through referrals",
        "points": {"welcomePoints": 100, "referrerPoints": 50, "referredPoints": 50},
        "benefits": {"specialOffers": True},
    },
)


def classes_path(business_id: str) -> str:
    return subcollection(BUSINESSES, business_id, CUSTOMER_CLASSES)


def _empty_analytics() -> dict[str, Any]:
    return {
        "totalCustomers": 0,
        "totalPointsDistributed": 0,
        "totalWelcomePointsGiven": 0,
        "totalReferrerPointsGiven": 0,
        "totalReferredPointsGiven": 0,
        "lastUpdated": current_timestamp(),
    }


def create_customer_class(
    store: DocumentStore,
    business_id: str,
    name: str,
    points: dict[str, Any],
    description: str | None = None,
    benefits: dict[str, Any] | None = None,
    class_type: str = CUSTOM,
    qr: QRCodeService = qr_codes,
) -> dict[str, Any]:
    """Create a class under the business and return the stored document."""
    class_id = generate_class_id(store, business_id)
    qr_code = qr.generate_class_qr_code(business_id, class_id)

    customer_class: dict[str, Any] = {
        "classId": class_id,
        "businessId": business_id,
        "name": name,
        "type": class_type,
        "isActive": True,
        "createdAt": current_timestamp(),
        "qrCode": qr_code.to_dict(),
        "signupLink": qr_code.data,
        "points": dict(points),
        "benefits": {**DEFAULT_BENEFITS, **(benefits or {})},
        "analytics": _empty_analytics(),
    }
    if description:
        customer_class["description"] = description

    store.set(classes_path(business_id), class_id, customer_class)
    logger.info(
        "Customer class created",
        extra={"business_id": business_id, "class_id": class_id, "class_type": class_type},
    )
    return customer_class


def create_permanent_classes(store: DocumentStore, business_id: str) -> list[dict[str, Any]]:
    return [
        create_customer_class(
            store,
            business_id,
            template["name"],
            template["points"],
            description=template["description"],
            benefits=template["benefits"],
            class_type=PERMANENT,
        )
        for template in PERMANENT_CLASSES
    ]


def list_customer_classes(
    store: DocumentStore,
    business_id: str,
    include_inactive: bool = False,
) -> list[dict[str, Any]]:
    """Permanent classes first, then the rest oldest first."""
    classes = [
        {"classId": doc.id, **doc.data}
        for doc in store.list_documents(classes_path(business_id))
        if include_inactive or doc.data.get("isActive", True)
    ]
    classes.sort(key=lambda c: (c.get("type") != PERMANENT, timestamp_sort_key(c.get("createdAt"))))
    return classes


def get_customer_class(store: DocumentStore, business_id: str, class_id: str) -> dict[str, Any]:
    data = store.get(classes_path(business_id), class_id)
    if data is None:
        raise NotFoundError("Customer class not found", resource_type="CustomerClass", resource_id=class_id)
    return {**data, "classId": class_id}


def increment_class_analytics(store: DocumentStore, business_id: str, class_id: str, **deltas: int) -> dict[str, Any]:
    """Add `deltas` to the class's analytics counters, e.g. totalCustomers=1."""
    data = store.get(classes_path(business_id), class_id) or {}
    analytics = {**_empty_analytics(), **(data.get("analytics") or {})}
    for counter, amount in deltas.items():
        analytics[counter] = (analytics.get(counter) or 0) + amount
    analytics["lastUpdated"] = current_timestamp()
    store.set(classes_path(business_id), class_id, {"analytics": analytics}, merge=True)
    return analytics
