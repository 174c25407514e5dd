"""
Admin console routes: businesses, customer classes, transactions,
customers and the raw collection browser.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from cadeala import businesses, customer_classes, customers, transactions
from cadeala.api.dependencies import get_qr_service, get_store
from cadeala.api.errors import failure_message
from cadeala.api.models import (
    BusinessCreateRequest,
    BusinessListResponse,
    CustomerClassCreateRequest,
    CustomerListResponse,
    PointsLabelResponse,
    PointsLabelUpdateRequest,
    TransactionListResponse,
)
from cadeala.config import settings

router = APIRouter(prefix="/api", tags=["admin"])


# =============================================================================
# Businesses
# =============================================================================


@router.get("/admin/businesses", response_model=BusinessListResponse)
def list_businesses(request: Request, response: Response) -> dict:
    store = get_store(request)
    with failure_message("Failed to fetch businesses"):
        rows = businesses.list_businesses(store)

    request.state.result_count = len(rows)
    response.headers["Cache-Control"] = "no-store"
    return {"businesses": rows}


@router.post("/admin/businesses", status_code=201)
def create_business(payload: BusinessCreateRequest, request: Request, response: Response) -> dict:
    """
    Create a business with a fresh BIZ#### ID and its two permanent
    customer classes.
    """
    store = get_store(request)
    with failure_message("Failed to create business"):
        business = businesses.create_business(
            store,
            payload.name,
            payload.owner_id,
            payload.email,
            phone=payload.phone,
            address=payload.address,
            business_type=payload.business_type,
            website=payload.website,
        )

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "business": business}


@router.get("/admin/businesses/{business_id}")
def get_business(business_id: str, request: Request, response: Response) -> dict:
    store = get_store(request)
    with failure_message("Failed to get business"):
        business = businesses.get_business(store, business_id)

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "business": business}


@router.put("/admin/businesses/{business_id}", response_model=PointsLabelResponse)
def update_points_label(
    business_id: str,
    payload: PointsLabelUpdateRequest,
    request: Request,
    response: Response,
) -> dict:
    """
    Rename the business's points.

    `pointsLabel` is 2-48 characters and `pointsLabelShort` at most 12,
    both after trimming.
    """
    store = get_store(request)
    with failure_message("Failed to update points label"):
        businesses.get_business(store, business_id)
        summary = businesses.update_points_label(
            store,
            business_id,
            payload.points_label,
            payload.points_label_short,
        )

    response.headers["Cache-Control"] = "no-store"
    return summary


@router.get("/admin/businesses/{business_id}/classes")
def list_classes(
    business_id: str,
    request: Request,
    response: Response,
    include_inactive: bool = Query(default=False, alias="includeInactive"),
) -> dict:
    store = get_store(request)
    with failure_message("Failed to fetch customer classes"):
        businesses.get_business(store, business_id)
        classes = customer_classes.list_customer_classes(store, business_id, include_inactive=include_inactive)

    request.state.result_count = len(classes)
    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "classes": classes}


@router.post("/admin/businesses/{business_id}/classes", status_code=201)
def create_class(
    business_id: str,
    payload: CustomerClassCreateRequest,
    request: Request,
    response: Response,
) -> dict:
    store = get_store(request)
    with failure_message("Failed to create customer class"):
        businesses.get_business(store, business_id)
        created = customer_classes.create_customer_class(
            store,
            business_id,
            payload.name,
            payload.points(),
            description=payload.description,
            benefits=payload.benefits,
            qr=get_qr_service(request),
        )

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "customerClass": created}


# =============================================================================
# Transactions and customers
# =============================================================================


@router.get("/admin/transactions", response_model=TransactionListResponse)
def list_transactions(
    request: Request,
    response: Response,
    customer_id: str = Query(default="", alias="customerId"),
    business_id: str = Query(default="", alias="businessId"),
    type_: str = Query(default="", alias="type"),
    limit: int = Query(default=settings.transactions_default_limit, ge=1, le=settings.transactions_max_limit),
) -> dict:
    """
    Transactions across every customer, newest first.

    Scans each customer's transactions subcollection; `total` is the match
    count before `limit` is applied. `limit` defaults to 100 and is capped
    at 1000; values outside 1..1000 are rejected with a 400.
    """
    store = get_store(request)
    with failure_message("Failed to fetch transactions"):
        page = transactions.aggregate_transactions(
            store,
            customer_id=customer_id.strip() or None,
            business_id=business_id.strip() or None,
            type_=type_.strip() or None,
            limit=limit,
        )

    request.state.result_count = page.returned
    response.headers["Cache-Control"] = "no-store"
    return page.to_dict()


@router.get("/admin/customers", response_model=CustomerListResponse)
def list_customers(
    request: Request,
    response: Response,
    page: int = Query(default=1, ge=1),
    search: str = Query(default="", max_length=200),
    business_id: str = Query(default="", alias="businessId"),
) -> dict:
    store = get_store(request)
    with failure_message("Unable to fetch customers"):
        result = customers.list_customers(store, page=page, search=search, business_id=business_id)

    request.state.result_count = len(result["users"])
    response.headers["Cache-Control"] = "no-store"
    return result


# =============================================================================
# Collection browser
# =============================================================================


@router.get("/collections")
def list_collections(request: Request, response: Response) -> dict:
    """Every root collection with all of its documents."""
    store = get_store(request)
    with failure_message("Failed to fetch collections"):
        collections = []
        for name in store.list_collections():
            documents = [{"id": doc.id, "data": doc.data} for doc in store.list_documents(name)]
            collections.append({"name": name, "count": len(documents), "documents": documents})

    response.headers["Cache-Control"] = "no-store"
    return {"success": True, "collections": collections, "totalCollections": len(collections)}
