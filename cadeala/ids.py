"""
Human-readable unique identifiers.

IDs are a fixed prefix followed by a zero-padded random number:
BIZ0042 for businesses, BC0042 for customers, CLASS004211 for customer
classes. Uniqueness is checked against the IDs already present in the
owning collection just before the write; two concurrent creators can
still draw the same value, which is accepted at the current scale.
"""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable, Iterable

from cadeala.config import settings
from cadeala.exceptions import IdGenerationError
from cadeala.repository.documents import BUSINESSES, CUSTOMER_CLASSES, USERS, DocumentStore, subcollection

logger = logging.getLogger(__name__)


class IdGenerator:
    """
    Random prefix+number ID generator with a bounded number of collision retries.

    Args:
        prefix: Literal prefix, e.g. "BIZ".
        number_length: Number of zero-padded digits after the prefix.
        max_attempts: Candidates drawn before giving up.
        rng: Random source; pass a seeded `random.Random` for reproducible draws.
    """

    def __init__(
        self,
        prefix: str,
        number_length: int,
        max_attempts: int = 10,
        rng: random.Random | None = None,
    ) -> None:
        if number_length < 1:
            raise ValueError("number_length must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self.prefix = prefix
        self.number_length = number_length
        self.max_attempts = max_attempts
        self._rng = rng or random.Random()
        self._pattern = re.compile(rf"^{re.escape(prefix)}\d{{{number_length}}}$")

    def generate_id(self) -> str:
        number = self._rng.randrange(10**self.number_length)
        return f"{self.prefix}{number:0{self.number_length}d}"

    def generate_unique_id(
        self,
        existing_ids: Iterable[str] | None = None,
        fetch_existing: Callable[[], Iterable[str]] | None = None,
    ) -> str:
        """
        Draw IDs until one is not in the existing set.

        When `existing_ids` is None the set comes from `fetch_existing()`;
        errors raised by the fetch propagate to the caller untouched.
        """
        if existing_ids is None:
            existing_ids = fetch_existing() if fetch_existing is not None else ()
        taken = set(existing_ids)

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generate_id()
            if candidate not in taken:
                if attempt > 1:
                    logger.debug("ID collision resolved", extra={"prefix": self.prefix, "attempts": attempt})
                return candidate

        logger.warning(
            "ID generation exhausted",
            extra={"prefix": self.prefix, "attempts": self.max_attempts, "taken": len(taken)},
        )
        raise IdGenerationError(self.prefix, self.max_attempts)

    def is_valid_format(self, value: str) -> bool:
        return bool(self._pattern.match(value))

    def get_prefix(self, value: str) -> str:
        return value[: len(self.prefix)]

    def get_number_part(self, value: str) -> str:
        return value[len(self.prefix):]


BUSINESS_IDS = IdGenerator("BIZ", 4, max_attempts=settings.id_max_attempts)
CUSTOMER_IDS = IdGenerator("BC", 4, max_attempts=settings.id_max_attempts)
CLASS_IDS = IdGenerator("CLASS", 6, max_attempts=settings.id_max_attempts)


def generate_business_id(store: DocumentStore, generator: IdGenerator = BUSINESS_IDS) -> str:
    business_id = generator.generate_unique_id(fetch_existing=lambda: store.list_ids(BUSINESSES))
    logger.info("Business ID generated", extra={"business_id": business_id})
    return business_id


def generate_customer_id(store: DocumentStore, generator: IdGenerator = CUSTOMER_IDS) -> str:
    customer_id = generator.generate_unique_id(fetch_existing=lambda: store.list_ids(USERS))
    logger.info("Customer ID generated", extra={"customer_id": customer_id})
    return customer_id


def generate_class_id(store: DocumentStore, business_id: str, generator: IdGenerator = CLASS_IDS) -> str:
    """Class IDs only need to be unique within their business."""
    path = subcollection(BUSINESSES, business_id, CUSTOMER_CLASSES)
    class_id = generator.generate_unique_id(fetch_existing=lambda: store.list_ids(path))
    logger.info("Class ID generated", extra={"business_id": business_id, "class_id": class_id})
    return class_id
