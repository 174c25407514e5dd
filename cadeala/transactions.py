"""
Cross-customer transaction listing for the admin console.

Transactions live in per-customer subcollections
(customers/{customerId}/transactions), so a global listing enumerates
every user ID and reads each subcollection in turn. This is a full scan
with sequential reads; there is no cursor and the whole filtered set is
held in memory before truncation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from cadeala.datetime_utils import (
    format_date,
    format_datetime,
    get_relative_time,
    is_today,
    is_yesterday,
    timestamp_sort_key,
)
from cadeala.logging_config import PerformanceTracker
from cadeala.repository.documents import CUSTOMERS, TRANSACTIONS, USERS, DocumentStore, subcollection

logger = logging.getLogger(__name__)


@dataclass
class TransactionPage:
    transactions: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0

    @property
    def returned(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "transactions": self.transactions,
            "total": self.total,
            "returned": self.returned,
        }


def _date_group(value: Any, now: datetime) -> str:
    if is_today(value, now):
        return "Today"
    if is_yesterday(value, now):
        return "Yesterday"
    return format_date(value)


def with_display_fields(tx: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Add the human-readable date fields the console shows next to `createdAt`."""
    now = now or datetime.now(timezone.utc)
    created = tx.get("createdAt")
    return {
        **tx,
        "createdAtDisplay": format_datetime(created),
        "relativeTime": get_relative_time(created, now),
        "dateGroup": _date_group(created, now),
    }


def aggregate_transactions(
    store: DocumentStore,
    customer_id: str | None = None,
    business_id: str | None = None,
    type_: str | None = None,
    limit: int = 100,
    now: datetime | None = None,
) -> TransactionPage:
    """
    Collect transactions across customers, newest first.

    Empty filter values mean "no filter". `total` counts every match before
    the limit is applied. A failed subcollection read aborts the listing.
    Returned rows carry `createdAtDisplay`, `relativeTime` and `dateGroup`
    ("Today", "Yesterday" or a short date) relative to `now`.
    """
    customer_ids = store.list_ids(USERS)
    if customer_id:
        customer_ids = [cid for cid in customer_ids if cid == customer_id]

    matches: list[dict[str, Any]] = []
    with PerformanceTracker("transactions_scan", customers=len(customer_ids)):
        for cid in customer_ids:
            # Read errors propagate: a listing with one customer silently
            # missing would report a wrong total.
            for doc in store.list_documents(subcollection(CUSTOMERS, cid, TRANSACTIONS)):
                if business_id and doc.data.get("businessId") != business_id:
                    continue
                if type_ and doc.data.get("type") != type_:
                    continue
                matches.append({"id": doc.id, **doc.data})

    matches.sort(key=lambda tx: timestamp_sort_key(tx.get("createdAt")), reverse=True)
    logger.debug("Transactions aggregated", extra={"total": len(matches), "limit": limit})
    now = now or datetime.now(timezone.utc)
    return TransactionPage(
        transactions=[with_display_fields(tx, now) for tx in matches[:limit]],
        total=len(matches),
    )
