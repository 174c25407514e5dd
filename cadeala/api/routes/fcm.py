"""
Push notification device token routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala import notifications
from cadeala.api.dependencies import get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import FCMTokenRequest, MessageResponse
from cadeala.exceptions import ValidationError

router = APIRouter(prefix="/api/fcm-token", tags=["notifications"])


@router.post("", response_model=MessageResponse)
def store_token(payload: FCMTokenRequest, request: Request, response: Response) -> dict:
    """
    Store a device token, under the user when `uid` is given and in the
    anonymous pool otherwise.
    """
    store = get_store(request)
    with failure_message("Failed to store FCM token"):
        notifications.register_token(
            store,
            payload.token,
            uid=payload.uid or None,
            user_agent=request.headers.get("user-agent"),
        )

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "message": "FCM token stored successfully"}


@router.delete("", response_model=MessageResponse)
def remove_token(
    request: Request,
    response: Response,
    token: str | None = Query(default=None),
    uid: str | None = Query(default=None),
) -> dict:
    if not token:
        raise ValidationError("Token is required", field="token")

    store = get_store(request)
    with failure_message("Failed to remove FCM token"):
        notifications.remove_token(store, token, uid=uid or None)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "message": "FCM token removed successfully"}
