"""
QR code link routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala.api.dependencies import get_qr_service
from cadeala.api.models import QRCodeResponse

router = APIRouter(prefix="/api/qr-codes", tags=["qr-codes"])


@router.get("/class", response_model=QRCodeResponse)
def class_qr_code(
    request: Request,
    response: Response,
    business_id: str = Query(min_length=1, alias="businessId"),
    class_id: str = Query(min_length=1, alias="classId"),
) -> dict:
    qr = get_qr_service(request).generate_class_qr_code(business_id, class_id)
    response.headers["Cache-Control"] = "public, max-age=3600"
    return qr.to_dict()


@router.get("/referral", response_model=QRCodeResponse)
def referral_qr_code(
    request: Request,
    response: Response,
    customer_id: str = Query(min_length=1, alias="customerId"),
    business_id: str = Query(min_length=1, alias="businessId"),
) -> dict:
    qr = get_qr_service(request).generate_referral_qr_code(customer_id, business_id)
    response.headers["Cache-Control"] = "public, max-age=3600"
    return qr.to_dict()
