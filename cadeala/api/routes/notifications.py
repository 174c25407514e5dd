"""
Push notification routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from cadeala import notifications
from cadeala.api.dependencies import get_push_sender, get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import NotificationPreviewRequest, NotificationSendRequest

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/preview")
def preview(payload: NotificationPreviewRequest, response: Response) -> dict:
    """What the service worker shows for this message, and where a click goes."""
    response.headers["Cache-Control"] = "no-store"
    return notifications.build_notification(payload.model_dump(exclude_none=True))


@router.post("/send")
def send(payload: NotificationSendRequest, request: Request, response: Response) -> dict:
    store = get_store(request)
    with failure_message("Failed to send notification"):
        result = notifications.send_to_user(
            store,
            get_push_sender(request),
            payload.uid,
            payload.title,
            payload.body,
            payload.data,
        )

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "result": result.to_dict()}
