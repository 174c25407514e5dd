"""
Push notification tokens, display payloads and delivery.

Device tokens come from the web app's messaging client. Signed-in users
keep one document per device under users/{uid}/devices; tokens registered
before sign-in go to the anonymous_tokens collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from firebase_admin import messaging

from cadeala.repository.documents import ANONYMOUS_TOKENS, DEVICES, USERS, DocumentStore, subcollection

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Rewards App"
DEFAULT_BODY = "You have a new notification"
ICON = "/icons/icon-192.png"
TAG = "rewards-notification"


def devices_path(uid: str) -> str:
    return subcollection(USERS, uid, DEVICES)


def register_token(
    store: DocumentStore,
    token: str,
    uid: str | None = None,
    user_agent: str | None = None,
) -> str:
    """Store a device token and return the collection path it went to."""
    now = datetime.now(timezone.utc)
    record: dict[str, Any] = {"token": token, "createdAt": now, "lastUsed": now}
    if uid:
        path = devices_path(uid)
        record["userAgent"] = user_agent or "unknown"
    else:
        path = ANONYMOUS_TOKENS

    store.set(path, token, record)
    logger.info("FCM token stored", extra={"uid": uid, "anonymous": not uid})
    return path


def remove_token(store: DocumentStore, token: str, uid: str | None = None) -> str:
    path = devices_path(uid) if uid else ANONYMOUS_TOKENS
    store.delete(path, token)
    logger.info("FCM token removed", extra={"uid": uid, "anonymous": not uid})
    return path


def resolve_deep_link(data: dict[str, Any] | None) -> str:
    """App path a notification click navigates to."""
    data = data or {}
    kind = data.get("type")
    if kind == "reward" and data.get("rewardId"):
        return f"/rewards/{data['rewardId']}"
    if kind == "transaction":
        return "/wallet"
    if kind == "program" and data.get("programId"):
        return f"/programs/{data['programId']}"
    return "/"


def build_notification(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Display options for a background push message.

    `payload` has the messaging shape: an optional `notification` with
    title and body, and an optional `data` map.
    """
    notification = payload.get("notification") or {}
    data = payload.get("data") or {}
    return {
        "title": notification.get("title") or DEFAULT_TITLE,
        "body": notification.get("body") or DEFAULT_BODY,
        "icon": ICON,
        "badge": ICON,
        "tag": TAG,
        "data": data,
        "url": resolve_deep_link(data),
        "actions": [
            {"action": "open", "title": "Open App", "icon": ICON},
            {"action": "dismiss", "title": "Dismiss"},
        ],
    }


@dataclass
class SendResult:
    success_count: int = 0
    failure_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"successCount": self.success_count, "failureCount": self.failure_count}


class PushSender(Protocol):
    def send(self, tokens: list[str], title: str, body: str, data: dict[str, str] | None = None) -> SendResult: ...


class FirebasePushSender:
    """Multicast delivery through firebase_admin.messaging."""

    def __init__(self, app: Any | None = None) -> None:
        if app is None:
            from cadeala.repository.firebase import get_firebase_app

            app = get_firebase_app()
        self._app = app

    def send(self, tokens: list[str], title: str, body: str, data: dict[str, str] | None = None) -> SendResult:
        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data=data or None,
        )
        response = messaging.send_each_for_multicast(message, app=self._app)
        return SendResult(success_count=response.success_count, failure_count=response.failure_count)


@dataclass
class MemoryPushSender:
    """Records messages instead of delivering them."""

    sent: list[dict[str, Any]] = field(default_factory=list)

    def send(self, tokens: list[str], title: str, body: str, data: dict[str, str] | None = None) -> SendResult:
        self.sent.append({"tokens": list(tokens), "title": title, "body": body, "data": dict(data or {})})
        return SendResult(success_count=len(tokens))


def send_to_user(
    store: DocumentStore,
    sender: PushSender,
    uid: str,
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
) -> SendResult:
    """Send one notification to every registered device of a user."""
    tokens = store.list_ids(devices_path(uid))
    if not tokens:
        logger.info("No devices registered", extra={"uid": uid})
        return SendResult()

    # Message data values must be strings
    str_data = {key: str(value) for key, value in (data or {}).items()}
    result = sender.send(tokens, title, body, str_data)
    logger.info(
        "Push notification sent",
        extra={"uid": uid, "success_count": result.success_count, "failure_count": result.failure_count},
    )
    return result
