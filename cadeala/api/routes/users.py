"""
Identity-provider user management routes.

Thin passthrough to the identity provider: payload shapes are validated
here, the side effects belong to the provider.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala.api.dependencies import get_identity, get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import (
    AuthUsersDeleteRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    MessageResponse,
    UserListResponse,
    UserSummary,
    UserUpdateRequest,
)
from cadeala.config import settings
from cadeala.exceptions import UserNotFoundError
from cadeala.repository.documents import USERS
from cadeala.repository.users import UserRecord

router = APIRouter(prefix="/api", tags=["users"])


def _auth_user(record: UserRecord) -> dict:
    return {
        "uid": record.uid,
        "email": record.email,
        "displayName": record.display_name,
        "emailVerified": record.email_verified,
        "disabled": record.disabled,
        "metadata": {
            "creationTime": record.creation_time,
            "lastSignInTime": record.last_sign_in_time,
            "lastRefreshTime": record.last_refresh_time,
        },
        "customClaims": record.custom_claims,
        "role": record.role,
        "providerData": record.provider_data,
    }


@router.get("/users/{uid}")
def get_user(uid: str, request: Request, response: Response) -> dict:
    identity = get_identity(request)
    with failure_message("Failed to get user"):
        record = identity.get_user(uid)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "user": UserSummary.from_record(record).model_dump()}


@router.delete("/users/{uid}", response_model=MessageResponse)
def delete_user(uid: str, request: Request, response: Response) -> dict:
    identity = get_identity(request)
    with failure_message("Failed to delete user"):
        identity.delete_user(uid)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "message": f"User {uid} deleted successfully"}


@router.put("/users/{uid}", response_model=MessageResponse)
def update_user(uid: str, payload: UserUpdateRequest, request: Request, response: Response) -> dict:
    """
    Enable/disable the account and/or replace its custom claims.
    """
    identity = get_identity(request)
    with failure_message("Failed to update user"):
        if payload.disabled is not None:
            if payload.disabled:
                identity.disable_user(uid)
            else:
                identity.enable_user(uid)
        if payload.custom_claims is not None:
            identity.set_custom_user_claims(uid, payload.custom_claims)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "message": f"User {uid} updated successfully"}


@router.get("/users")
def list_users(
    request: Request,
    response: Response,
    customer_id: str = Query(default="", alias="customerId"),
    max_results: int = Query(default=settings.users_max_results, ge=1, le=1000, alias="maxResults"),
    page_token: str | None = Query(default=None, alias="pageToken"),
) -> dict:
    """
    With `customerId`, the user document stored under that ID. Otherwise a
    page of identity-provider accounts.
    """
    response.headers["Cache-Control"] = "no-store"

    if customer_id:
        store = get_store(request)
        with failure_message("Failed to process request"):
            user = store.get(USERS, customer_id)
        if user is None:
            raise UserNotFoundError(customer_id)
        return {"success": True, "user": user}

    identity = get_identity(request)
    with failure_message("Failed to process request"):
        page = identity.list_users(max_results=max_results, page_token=page_token or None)

    request.state.result_count = len(page.users)
    return UserListResponse(
        users=[UserSummary.from_record(u) for u in page.users],
        page_token=page.page_token,
        has_more=page.has_more,
    ).model_dump(by_alias=True)


@router.post("/users", response_model=BulkDeleteResponse)
def bulk_delete_users(payload: BulkDeleteRequest, request: Request, response: Response) -> dict:
    """
    Delete up to 100 accounts in one call. A larger list is rejected before
    anything is deleted.
    """
    identity = get_identity(request)
    with failure_message("Failed to bulk delete users"):
        result = identity.delete_users(payload.uids)

    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "message": "Bulk delete completed",
        "result": {
            "successCount": result.success_count,
            "failureCount": result.failure_count,
            "errors": result.errors,
        },
    }


@router.get("/auth-users")
def list_auth_users(request: Request, response: Response) -> dict:
    identity = get_identity(request)
    with failure_message("Failed to fetch auth users"):
        page = identity.list_users(max_results=settings.users_max_results)

    users = [_auth_user(record) for record in page.users]
    request.state.result_count = len(users)
    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "users": users, "totalUsers": len(users)}


@router.delete("/auth-users")
def delete_auth_users(payload: AuthUsersDeleteRequest, request: Request, response: Response) -> dict:
    identity = get_identity(request)
    with failure_message("Failed to delete auth users"):
        result = identity.delete_users(payload.uids)

    message = f"Deleted {result.success_count} users successfully"
    if result.failure_count > 0:
        message += f", {result.failure_count} failed"

    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "message": message,
        "successCount": result.success_count,
        "failureCount": result.failure_count,
        "errors": result.errors,
    }
