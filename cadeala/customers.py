"""
Admin customer listing with per-business points breakdown.
"""

from __future__ import annotations

import math
from typing import Any

from cadeala.config import settings
from cadeala.datetime_utils import format_date, timestamp_sort_key
from cadeala.repository.documents import BUSINESSES, USERS, DocumentStore


def _assignments(user: dict[str, Any]) -> list[dict[str, Any]]:
    value = user.get("businessAssignments")
    if not isinstance(value, list):
        return []
    return [a for a in value if isinstance(a, dict)]


def _matches_search(user: dict[str, Any], search: str) -> bool:
    return any(search in str(user.get(key) or "").lower() for key in ("name", "email", "userId"))


def _business_meta(store: DocumentStore, business_ids: set[str]) -> dict[str, dict[str, Any]]:
    meta: dict[str, dict[str, Any]] = {}
    for business_id in business_ids:
        data = store.get(BUSINESSES, business_id) or {}
        meta[business_id] = {"name": data.get("name") or business_id, "pointsLabel": data.get("pointsLabel")}
    return meta


def _decorate(user: dict[str, Any], meta: dict[str, dict[str, Any]]) -> dict[str, Any]:
    assignments = _assignments(user)
    offer_points = purchase_points = total_points = 0
    breakdown = []
    for assignment in assignments:
        business_id = assignment.get("businessId")
        info = meta.get(business_id, {"name": business_id, "pointsLabel": None})
        offer = assignment.get("offerPoints") or 0
        purchase = assignment.get("purchasePoints") or 0
        total = assignment.get("totalPoints")
        if total is None:
            total = offer + purchase
        offer_points += offer
        purchase_points += purchase
        total_points += total
        breakdown.append(
            {
                "businessId": business_id,
                "name": info["name"],
                "pointsLabel": info["pointsLabel"] or f"{info['name']} Points",
                "offerPoints": offer,
                "purchasePoints": purchase,
                "totalPoints": total,
            }
        )

    if len(assignments) == 1:
        business_display_name = meta.get(assignments[0].get("businessId"), {}).get("name") or "Assigned"
    elif assignments:
        business_display_name = "Public"
    else:
        business_display_name = "Public" if user.get("public") else "Unassigned"

    return {
        **user,
        "businessDisplayName": business_display_name,
        "offerPoints": offer_points,
        "purchasePoints": purchase_points,
        "totalPoints": total_points,
        "businessBreakdown": breakdown,
        "joinedDisplay": format_date(user.get("createdAt")),
    }


def list_customers(
    store: DocumentStore,
    page: int = 1,
    search: str = "",
    business_id: str = "",
    page_size: int | None = None,
) -> dict[str, Any]:
    """
    One page of customers, newest first.

    Filters by business assignment, then by a case-insensitive substring
    search over name, email and user ID.
    """
    page_size = page_size or settings.customers_page_size
    search = search.strip().lower()
    business_id = business_id.strip()

    users = [{**doc.data, "userId": doc.id} for doc in store.list_documents(USERS)]
    if business_id:
        users = [u for u in users if any(a.get("businessId") == business_id for a in _assignments(u))]
    if search:
        users = [u for u in users if _matches_search(u, search)]

    business_ids = {a["businessId"] for u in users for a in _assignments(u) if a.get("businessId")}
    meta = _business_meta(store, business_ids)

    decorated = [_decorate(u, meta) for u in users]
    decorated.sort(key=lambda u: timestamp_sort_key(u.get("createdAt")), reverse=True)

    total = len(decorated)
    start = (page - 1) * page_size
    return {
        "users": decorated[start:start + page_size],
        "page": page,
        "total": total,
        "pageSize": page_size,
        "totalPages": math.ceil(total / page_size),
    }
