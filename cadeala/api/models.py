"""
Pydantic models for API requests and responses.

Wire names are camelCase to match the web client; Python attributes stay
snake_case through `alias_generator`.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from cadeala.businesses import POINTS_LABEL_MAX, POINTS_LABEL_MIN, POINTS_LABEL_SHORT_MAX
from cadeala.config import USER_ROLES, settings
from cadeala.repository.users import UserRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Models
# =============================================================================


PointsLabel = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=POINTS_LABEL_MIN, max_length=POINTS_LABEL_MAX)
]
PointsLabelShort = Annotated[str, StringConstraints(strip_whitespace=True, max_length=POINTS_LABEL_SHORT_MAX)]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PointsLabelUpdateRequest(CamelModel):
    """Request model for renaming a business's points."""

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"pointsLabel": "Bean Points", "pointsLabelShort": "Beans"}]}
    )

    points_label: PointsLabel
    points_label_short: PointsLabelShort | None = None


class BusinessCreateRequest(CamelModel):
    """Request model for creating a business."""

    name: NonEmpty = Field(max_length=120)
    owner_id: NonEmpty
    email: NonEmpty = Field(max_length=254)
    phone: str | None = None
    address: str | None = None
    business_type: str | None = None
    website: str | None = None


class CustomerClassCreateRequest(CamelModel):
    """Request model for a custom customer class."""

    name: NonEmpty = Field(max_length=80)
    description: str | None = Field(default=None, max_length=500)
    welcome_points: int = Field(default=0, ge=0)
    referrer_points: int = Field(default=0, ge=0)
    referred_points: int = Field(default=0, ge=0)
    benefits: dict[str, Any] | None = None

    def points(self) -> dict[str, int]:
        return {
            "welcomePoints": self.welcome_points,
            "referrerPoints": self.referrer_points,
            "referredPoints": self.referred_points,
        }


class UserUpdateRequest(CamelModel):
    disabled: bool | None = None
    custom_claims: dict[str, Any] | None = None

    @field_validator("custom_claims")
    @classmethod
    def _known_role(cls, claims: dict[str, Any] | None) -> dict[str, Any] | None:
        role = (claims or {}).get("role")
        if role is not None and (not isinstance(role, str) or role not in USER_ROLES):
            raise ValueError(f"role must be one of: {', '.join(sorted(USER_ROLES))}")
        return claims


class BulkDeleteRequest(CamelModel):
    """Request model for bulk user deletion."""

    model_config = ConfigDict(json_schema_extra={"examples": [{"uids": ["uid-1", "uid-2"]}]})

    uids: list[NonEmpty] = Field(min_length=1, max_length=settings.bulk_delete_max_uids)


class AuthUsersDeleteRequest(CamelModel):
    # Firebase caps a single deleteUsers call at 1000 UIDs
    uids: list[NonEmpty] = Field(min_length=1, max_length=1000)


class FCMTokenRequest(CamelModel):
    token: NonEmpty
    uid: str | None = None


class PushPayloadNotification(CamelModel):
    title: str | None = None
    body: str | None = None


class NotificationPreviewRequest(CamelModel):
    notification: PushPayloadNotification | None = None
    data: dict[str, Any] | None = None


class NotificationSendRequest(CamelModel):
    uid: NonEmpty
    title: NonEmpty = Field(max_length=200)
    body: str = Field(default="", max_length=2000)
    data: dict[str, Any] | None = None


class BusinessRegistrationRequest(CamelModel):
    """A business owner's application, reviewed later by an admin."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "businessName": "Bean There",
                    "businessCategory": "Food & Drink",
                    "businessType": "Cafe",
                    "description": "Neighbourhood coffee bar",
                    "address": "12 Main St",
                    "phone": "+1 555 0100",
                    "email": "owner@beanthere.example",
                    "userId": "uid-alice",
                }
            ]
        }
    )

    business_name: NonEmpty = Field(max_length=120)
    business_category: NonEmpty
    business_type: NonEmpty
    description: NonEmpty = Field(max_length=2000)
    address: NonEmpty
    phone: NonEmpty
    email: NonEmpty = Field(max_length=254)
    user_id: NonEmpty
    website: str | None = None
    logo_url: str | None = None

    def details(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"user_id"})


class JoinBusinessRequest(CamelModel):
    business_id: NonEmpty
    class_id: NonEmpty
    referrer_id: str | None = None


class ReferralPointsRequest(CamelModel):
    referral_id: NonEmpty
    business_id: NonEmpty
    referrer_id: NonEmpty
    referred_id: NonEmpty
    referrer_class_id: NonEmpty
    referred_class_id: NonEmpty


class RedeemPointsRequest(CamelModel):
    business_id: NonEmpty
    amount: int = Field(gt=0)
    description: str = Field(default="Points redeemed", max_length=200)


# =============================================================================
# Response Models
# =============================================================================


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class BusinessSummary(CamelModel):
    business_id: str
    name: str
    points_label: str | None = None


class BusinessListResponse(CamelModel):
    businesses: list[BusinessSummary]


class PointsLabelResponse(CamelModel):
    business_id: str
    name: str
    points_label: str | None = None
    points_label_short: str | None = None


class TransactionListResponse(CamelModel):
    model_config = ConfigDict(extra="allow")

    success: bool = True
    transactions: list[dict[str, Any]]
    total: int
    returned: int


class CustomerListResponse(CamelModel):
    users: list[dict[str, Any]]
    page: int
    total: int
    page_size: int
    total_pages: int


class QRCodeResponse(CamelModel):
    data: str
    image_url: str


class UserSummary(BaseModel):
    """Identity-provider user as shown in the admin user list."""

    uid: str
    email: str | None = None
    displayName: str | None = None
    photoURL: str | None = None
    disabled: bool = False
    customClaims: dict[str, Any] | None = None
    role: str | None = None
    createdAt: str | None = None
    lastSignIn: str | None = None

    @classmethod
    def from_record(cls, record: UserRecord) -> UserSummary:
        return cls(
            uid=record.uid,
            email=record.email,
            displayName=record.display_name,
            photoURL=record.photo_url,
            disabled=record.disabled,
            customClaims=record.custom_claims,
            role=record.role,
            createdAt=record.creation_time,
            lastSignIn=record.last_sign_in_time,
        )


class UserListResponse(CamelModel):
    success: bool = True
    users: list[UserSummary]
    page_token: str | None = None
    has_more: bool = False


class BulkDeleteSummary(CamelModel):
    success_count: int
    failure_count: int
    errors: list[dict[str, Any]] = Field(default_factory=list)


class BulkDeleteResponse(CamelModel):
    success: bool = True
    message: str
    result: BulkDeleteSummary
