"""
Admin routes for customer memberships and points.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala import points
from cadeala.api.dependencies import get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import JoinBusinessRequest, RedeemPointsRequest, ReferralPointsRequest
from cadeala.businesses import get_business
from cadeala.config import POINTS_TO_DOLLAR_RATE

router = APIRouter(prefix="/api/admin", tags=["points"])


@router.post("/customers/{customer_id}/businesses", status_code=201)
def join_business(customer_id: str, payload: JoinBusinessRequest, request: Request, response: Response) -> dict:
    """Enroll the customer in a business class and award its welcome points."""
    store = get_store(request)
    with failure_message("Failed to create customer-business relationship"):
        get_business(store, payload.business_id)
        result = points.join_business(
            store,
            customer_id,
            payload.business_id,
            payload.class_id,
            referrer_id=payload.referrer_id,
        )

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, **result}


@router.get("/customers/{customer_id}/points")
def customer_points(
    customer_id: str,
    request: Request,
    response: Response,
    business_id: str = Query(min_length=1, alias="businessId"),
) -> dict:
    """Balance at one business plus that business's transactions, newest first."""
    store = get_store(request)
    with failure_message("Failed to fetch customer points"):
        balance = points.get_customer_points(store, customer_id, business_id)
        history = points.get_customer_transactions(store, customer_id, business_id)

    request.state.result_count = len(history)
    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "customerId": customer_id,
        "businessId": business_id,
        "totalPoints": balance,
        "totalPointsValue": balance / POINTS_TO_DOLLAR_RATE,
        "transactions": history,
    }


@router.post("/customers/{customer_id}/redemptions", status_code=201)
def redeem(customer_id: str, payload: RedeemPointsRequest, request: Request, response: Response) -> dict:
    store = get_store(request)
    with failure_message("Failed to redeem points"):
        transaction = points.redeem_points(store, customer_id, payload.business_id, payload.amount, payload.description)

    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "transaction": transaction,
        "totalPoints": points.get_customer_points(store, customer_id, payload.business_id),
    }


@router.post("/points/referral")
def distribute_referral(payload: ReferralPointsRequest, request: Request, response: Response) -> dict:
    """Credit both sides of a completed referral."""
    store = get_store(request)
    with failure_message("Failed to distribute referral points"):
        result = points.distribute_referral_points(
            store,
            payload.referral_id,
            payload.business_id,
            payload.referrer_id,
            payload.referred_id,
            payload.referrer_class_id,
            payload.referred_class_id,
        )

    response.headers["Cache-Control"] = "no-store"
    return result
