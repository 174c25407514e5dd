"""
Business registration requests.

An owner applies through the web app; the request is stored in
`business_registrations` with status "pending" and a business code
(two letters and four digits, e.g. BE4821) until an admin reviews it.
The applicant's user document is flagged `business-pending-approval`.
"""

from __future__ import annotations

import logging
import random
import re
import string
import time
from collections.abc import Iterable
from typing import Any

from cadeala.datetime_utils import current_timestamp, timestamp_sort_key
from cadeala.exceptions import NotFoundError
from cadeala.repository.documents import BUSINESS_REGISTRATIONS, USER_MAPPINGS, USERS, DocumentStore

logger = logging.getLogger(__name__)

PENDING = "pending"
PENDING_ROLE = "business-pending-approval"

PREFIX_ATTEMPTS = 50
NUMBER_ATTEMPTS = 100

_NON_LETTERS = re.compile(r"[^A-Za-z]")
_AUTO_ID_ALPHABET = string.ascii_letters + string.digits


class BusinessCodeGenerator:
    """
    Two-letter prefix from the business name plus a four-digit number.

    The name's own prefix is used when no existing code starts with it;
    otherwise random one- or two-letter variations are tried.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def _letter(self) -> str:
        return self._rng.choice(string.ascii_uppercase)

    def choose_prefix(self, business_name: str, used_prefixes: set[str]) -> str:
        clean = _NON_LETTERS.sub("", business_name).upper()
        base = (clean + "XX")[:2]
        if len(clean) >= 2 and base not in used_prefixes:
            return base

        for _ in range(PREFIX_ATTEMPTS):
            for candidate in (base[0] + self._letter(), self._letter() + base[1], self._letter() + self._letter()):
                if candidate not in used_prefixes:
                    return candidate

        fallback = "B" + string.ascii_uppercase[int(time.time() * 1000) % 26]
        logger.warning("Business code prefixes exhausted, using fallback", extra={"prefix": fallback})
        return fallback

    def generate(self, business_name: str, existing_codes: Iterable[str]) -> str:
        codes = {code.upper() for code in existing_codes if code}
        prefix = self.choose_prefix(business_name, {code[:2] for code in codes if len(code) >= 2})

        for _ in range(NUMBER_ATTEMPTS):
            code = f"{prefix}{self._rng.randint(1000, 9999)}"
            if code not in codes:
                return code

        # Last four digits of the clock
        return f"{prefix}{int(time.time() * 1000) % 10000:04d}"


def _existing_codes(store: DocumentStore) -> list[str]:
    return [
        str(doc.data["businessCode"])
        for doc in store.list_documents(BUSINESS_REGISTRATIONS)
        if doc.data.get("businessCode")
    ]


def _auto_id(rng: random.Random) -> str:
    return "".join(rng.choices(_AUTO_ID_ALPHABET, k=20))


def _flag_pending_owner(store: DocumentStore, user_id: str, registration_id: str) -> str | None:
    """Set the pending role on the applicant's user document, if it can be found."""
    mapping = store.get(USER_MAPPINGS, user_id) or {}
    customer_id = mapping.get("customerId")
    if not customer_id or store.get(USERS, customer_id) is None:
        logger.warning("No user document for registration applicant", extra={"user_id": user_id})
        return None

    store.set(USERS, customer_id, {"role": PENDING_ROLE, "businessRegistrationId": registration_id}, merge=True)
    return customer_id


def submit_registration(
    store: DocumentStore,
    user_id: str,
    details: dict[str, Any],
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """
    Store a pending registration and return it with its document ID.

    `details` holds the applicant's business fields (businessName,
    businessCategory, businessType, description, address, phone, email,
    and optionally website and logoUrl); presence is checked by the
    request model.
    """
    rng = rng or random.Random()
    code = BusinessCodeGenerator(rng).generate(details["businessName"], _existing_codes(store))
    now = current_timestamp()

    registration: dict[str, Any] = {
        **details,
        "website": details.get("website") or "",
        "logoUrl": details.get("logoUrl") or None,
        "businessCode": code,
        "userId": user_id,
        "status": PENDING,
        "submittedAt": now,
        "createdAt": now,
    }
    registration_id = _auto_id(rng)
    store.set(BUSINESS_REGISTRATIONS, registration_id, registration)
    customer_id = _flag_pending_owner(store, user_id, registration_id)

    logger.info(
        "Business registration submitted",
        extra={"registration_id": registration_id, "business_code": code, "customer_id": customer_id},
    )
    return {"id": registration_id, **registration}


def get_registration_for_user(store: DocumentStore, user_id: str) -> dict[str, Any]:
    """The user's most recent registration."""
    matches = [
        {"id": doc.id, **doc.data}
        for doc in store.list_documents(BUSINESS_REGISTRATIONS)
        if doc.data.get("userId") == user_id
    ]
    if not matches:
        raise NotFoundError("No business registration found", resource_type="BusinessRegistration", resource_id=user_id)
    return max(matches, key=lambda r: timestamp_sort_key(r.get("submittedAt") or r.get("createdAt")))
