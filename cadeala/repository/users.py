"""
Identity-provider user management.

Thin wrapper over Firebase Authentication user operations: get, paginated
list, single and bulk delete, disable/enable and custom claims. Side
effects belong to the identity provider; this layer only logs them and
normalizes the records into `UserRecord`.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from firebase_admin import auth

from cadeala.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class UserRecord:
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False
    disabled: bool = False
    custom_claims: dict[str, Any] | None = None
    creation_time: str | None = None
    last_sign_in_time: str | None = None
    last_refresh_time: str | None = None
    provider_data: list[dict[str, Any]] = field(default_factory=list)

    @property
    def role(self) -> str | None:
        """Role encoded in the custom claims, if any."""
        claims = self.custom_claims or {}
        role = claims.get("role")
        return str(role) if role is not None else None


@dataclass
class UserPage:
    users: list[UserRecord]
    page_token: str | None = None

    @property
    def has_more(self) -> bool:
        return bool(self.page_token)


@dataclass
class BulkDeleteResult:
    success_count: int
    failure_count: int
    errors: list[dict[str, Any]] = field(default_factory=list)


class IdentityProvider(Protocol):
    def get_user(self, uid: str) -> UserRecord: ...

    def list_users(self, max_results: int = 1000, page_token: str | None = None) -> UserPage: ...

    def delete_user(self, uid: str) -> None: ...

    def delete_users(self, uids: list[str]) -> BulkDeleteResult: ...

    def disable_user(self, uid: str) -> None: ...

    def enable_user(self, uid: str) -> None: ...

    def set_custom_user_claims(self, uid: str, claims: dict[str, Any]) -> None: ...


def _ms_to_iso(value: int | None) -> str | None:
    if not value:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


def _from_firebase(record: Any) -> UserRecord:
    meta = record.user_metadata
    return UserRecord(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url,
        email_verified=bool(record.email_verified),
        disabled=bool(record.disabled),
        custom_claims=record.custom_claims,
        creation_time=_ms_to_iso(meta.creation_timestamp) if meta else None,
        last_sign_in_time=_ms_to_iso(meta.last_sign_in_timestamp) if meta else None,
        last_refresh_time=_ms_to_iso(meta.last_refresh_timestamp) if meta else None,
        provider_data=[
            {
                "uid": info.uid,
                "email": info.email,
                "displayName": info.display_name,
                "photoURL": info.photo_url,
                "providerId": info.provider_id,
            }
            for info in (record.provider_data or [])
        ],
    )


class FirebaseIdentityProvider:
    """Identity provider backed by firebase_admin.auth."""

    def __init__(self, app: Any | None = None) -> None:
        if app is None:
            from cadeala.repository.firebase import get_firebase_app

            app = get_firebase_app()
        self._app = app

    def get_user(self, uid: str) -> UserRecord:
        try:
            return _from_firebase(auth.get_user(uid, app=self._app))
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(uid) from exc

    def list_users(self, max_results: int = 1000, page_token: str | None = None) -> UserPage:
        page = auth.list_users(page_token=page_token, max_results=max_results, app=self._app)
        return UserPage(
            users=[_from_firebase(user) for user in page.users],
            page_token=page.next_page_token or None,
        )

    def delete_user(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(uid) from exc
        logger.info("User deleted", extra={"uid": uid})

    def delete_users(self, uids: list[str]) -> BulkDeleteResult:
        result = auth.delete_users(uids, app=self._app)
        logger.info(
            "Bulk user delete finished",
            extra={"success_count": result.success_count, "failure_count": result.failure_count},
        )
        return BulkDeleteResult(
            success_count=result.success_count,
            failure_count=result.failure_count,
            errors=[{"index": err.index, "reason": err.reason} for err in result.errors],
        )

    def disable_user(self, uid: str) -> None:
        self._update_disabled(uid, True)

    def enable_user(self, uid: str) -> None:
        self._update_disabled(uid, False)

    def _update_disabled(self, uid: str, disabled: bool) -> None:
        try:
            auth.update_user(uid, disabled=disabled, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(uid) from exc
        logger.info("User %s", "disabled" if disabled else "enabled", extra={"uid": uid})

    def set_custom_user_claims(self, uid: str, claims: dict[str, Any]) -> None:
        try:
            auth.set_custom_user_claims(uid, claims, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(uid) from exc
        logger.info("Custom claims set", extra={"uid": uid, "claim_keys": sorted(claims)})


class MemoryIdentityProvider:
    """
    In-memory identity provider for local runs and tests.

    Page tokens are stringified offsets into the uid-ordered user list.
    Like Firebase, deleting an unknown uid in bulk counts as a success.
    """

    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.Lock()
        for user in users or []:
            self._users[user.uid] = user

    def add_user(self, user: UserRecord) -> None:
        with self._lock:
            self._users[user.uid] = user

    def get_user(self, uid: str) -> UserRecord:
        with self._lock:
            user = self._users.get(uid)
            if user is None:
                raise UserNotFoundError(uid)
            return copy.deepcopy(user)

    def list_users(self, max_results: int = 1000, page_token: str | None = None) -> UserPage:
        start = int(page_token) if page_token else 0
        with self._lock:
            ordered = [self._users[uid] for uid in sorted(self._users)]
        chunk = ordered[start:start + max_results]
        end = start + len(chunk)
        return UserPage(
            users=[copy.deepcopy(u) for u in chunk],
            page_token=str(end) if end < len(ordered) else None,
        )

    def delete_user(self, uid: str) -> None:
        with self._lock:
            if self._users.pop(uid, None) is None:
                raise UserNotFoundError(uid)
        logger.info("User deleted", extra={"uid": uid})

    def delete_users(self, uids: list[str]) -> BulkDeleteResult:
        with self._lock:
            for uid in uids:
                self._users.pop(uid, None)
        return BulkDeleteResult(success_count=len(uids), failure_count=0)

    def disable_user(self, uid: str) -> None:
        self._mutate(uid, disabled=True)

    def enable_user(self, uid: str) -> None:
        self._mutate(uid, disabled=False)

    def set_custom_user_claims(self, uid: str, claims: dict[str, Any]) -> None:
        self._mutate(uid, custom_claims=dict(claims))

    def _mutate(self, uid: str, **changes: Any) -> None:
        with self._lock:
            user = self._users.get(uid)
            if user is None:
                raise UserNotFoundError(uid)
            for key, value in changes.items():
                setattr(user, key, value)
