"""
Business registration routes used by the owner signup flow.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala import registrations
from cadeala.api.dependencies import get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import BusinessRegistrationRequest
from cadeala.exceptions import ValidationError

router = APIRouter(prefix="/api/business-registration", tags=["business-registration"])


@router.post("")
def submit_registration(payload: BusinessRegistrationRequest, request: Request, response: Response) -> dict:
    """
    File a pending registration and flag the applicant's user document
    as `business-pending-approval`.
    """
    store = get_store(request)
    with failure_message("Failed to submit business registration"):
        registration = registrations.submit_registration(store, payload.user_id, payload.details())

    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "message": "Business registration submitted successfully",
        "businessId": registration["id"],
        "businessCode": registration["businessCode"],
    }


def _lookup(request: Request, response: Response, user_id: str) -> dict:
    user_id = user_id.strip()
    if not user_id:
        raise ValidationError("User ID is required", field="userId")

    store = get_store(request)
    with failure_message("Failed to fetch business registration"):
        registration = registrations.get_registration_for_user(store, user_id)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "businessData": registration}


@router.get("")
def get_registration(request: Request, response: Response, user_id: str = Query(default="", alias="userId")) -> dict:
    return _lookup(request, response, user_id)


@router.get("/{user_id}")
def get_registration_by_path(user_id: str, request: Request, response: Response) -> dict:
    return _lookup(request, response, user_id)
