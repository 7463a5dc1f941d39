"""
wiwebb_data.api.schemas

Declared shapes for every payload crossing the API boundary.

Responsibilities:
- Outbound request models (create/update/auth payloads).
- Inbound response models for each resource family.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

Role = Literal["superadmin", "admin", "tenant_owner", "subscriber"]


class Shape(BaseModel):
    # Backends add fields over time; unknown keys are ignored rather than rejected.
    model_config = ConfigDict(extra="ignore")


NOT_NULL_MESSAGE = "This field may not be null."


def not_null(value: Any) -> Any:
    # Partial updates may omit a field, but an explicit null on a required column is refused.
    if value is None:
        raise ValueError(NOT_NULL_MESSAGE)
    return value


# ============================================================================
# Auth
# ============================================================================


class SignInRequest(Shape):
    # DRF login accepts a username; an email is sent in its place when no username is given.
    email: str | None = Field(default=None, min_length=1)
    username: str | None = Field(default=None, min_length=1)
    password: str = Field(min_length=6)

    @model_validator(mode="after")
    def check_email_or_username(self) -> SignInRequest:
        if not self.email and not self.username:
            raise ValueError("Either email or username must be provided")
        return self

    @property
    def login_name(self) -> str:
        return self.username or self.email or ""


class SignUpRequest(Shape):
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: str | None = None


class LoginResponse(Shape):
    key: str


class PasswordResetRequest(Shape):
    email: EmailStr


class PasswordChangeRequest(Shape):
    old_password: str | None = None
    new_password: str = Field(min_length=6)


class UserTenant(Shape):
    id: int
    uuid: str
    name: str
    slug: str


class User(Shape):
    id: int
    pk: int | None = None
    username: str
    email: EmailStr
    first_name: str = ""
    last_name: str = ""
    role: Role = "subscriber"
    is_staff: bool = False
    is_superuser: bool = False
    is_active: bool = True
    tenant: UserTenant | None = None
    avatar: str | None = None
    phone_number: str | None = None
    bio: str | None = None
    company: str | None = None
    location: str | None = None
    url: str | None = None
    birth_date: str | None = None
    date_joined: datetime | None = None
    last_login: datetime | None = None
    password_updated: datetime | None = None
    deleted_at: datetime | None = None


class UpdateProfileRequest(Shape):
    username: str | None = None
    email: EmailStr | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    bio: str | None = None
    company: str | None = None
    location: str | None = None
    url: str | None = None
    birth_date: str | None = None

    @field_validator("username", mode="before")
    @classmethod
    def blank_username_means_unchanged(cls, value: Any) -> Any:
        # An emptied form field means "leave unchanged", not "clear".
        return None if value == "" else value

    @field_validator("email", "first_name", "last_name")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return not_null(value)


def profile_changes(payload: dict[str, Any]) -> dict[str, Any]:
    # A username that validated to None was blank on input; drop it instead of sending null.
    if "username" in payload and payload["username"] is None:
        payload = {k: v for k, v in payload.items() if k != "username"}
    return payload


# ============================================================================
# Users (admin)
# ============================================================================


class CreateUserRequest(Shape):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str | None = None
    last_name: str | None = None
    role: Role
    tenant: int | None = None
    is_active: bool | None = None


class UpdateUserRequest(UpdateProfileRequest):
    pass


class ActivateUserRequest(Shape):
    is_active: bool


class AssignRoleRequest(Shape):
    role: Role
    tenant: int | None = None


class SetPasswordRequest(Shape):
    password: str = Field(min_length=6)


class ListOptions(Shape):
    page: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1)
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "asc"

    def as_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.page:
            params["page"] = self.page
        if self.page_size:
            params["page_size"] = self.page_size
        if self.sort_by:
            params["ordering"] = f"-{self.sort_by}" if self.sort_order == "desc" else self.sort_by
        return params


class UserPage(Shape):
    data: list[User]
    total: int
    page: int
    page_size: int
    has_more: bool


# ============================================================================
# Tenants & dashboard
# ============================================================================


class Tenant(Shape):
    id: int
    name: str
    slug: str
    description: str | None = None
    email: EmailStr | None = None
    url: str | None = None
    uuid: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CreateTenantRequest(Shape):
    name: str = Field(min_length=1)
    description: str | None = None
    email: EmailStr | None = None


class UpdateTenantRequest(Shape):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    email: EmailStr | None = None

    @field_validator("name")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return not_null(value)


class DashboardStats(Shape):
    total_tenants: int = 0
    active_hotspots: int = 0
    total_users: int = 0
    monthly_revenue: float = 0


# ============================================================================
# Hotspots
# ============================================================================


class Hotspot(Shape):
    id: int
    name: str
    tenant_id: int
    tenant_name: str | None = None
    status: Literal["Online", "Offline"] = "Offline"
    clients: int = 0
    bandwidth: str | None = None
    uptime: str | None = None
    mac_address: str | None = None
    bandwidth_limit: int | None = None
    security_type: str = "Captive Portal"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateHotspotRequest(Shape):
    name: str = Field(min_length=1)
    tenant_id: int | None = None
    mac_address: str | None = None
    bandwidth_limit: int | None = None
    security_type: str | None = None


class UpdateHotspotRequest(Shape):
    name: str | None = Field(default=None, min_length=1)
    tenant_id: int | None = None
    mac_address: str | None = None
    bandwidth_limit: int | None = None
    security_type: str | None = None

    @field_validator("name", "tenant_id", "security_type")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return not_null(value)


class HotspotStats(Shape):
    model_config = ConfigDict(extra="allow")

    hotspot_id: int
    clients_connected: int = 0
    data_usage_mb: float = 0
    uptime_percent: float | None = None


# ============================================================================
# RADIUS
# ============================================================================


class RadiusUser(Shape):
    id: int
    username: str
    attribute: str | None = None
    op: str | None = None
    value: str | None = None
    groupname: str | None = None
    created_at: datetime | None = None


class CreateRadiusUserRequest(Shape):
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    groupname: str | None = None


class UpdateRadiusUserRequest(Shape):
    username: str | None = Field(default=None, min_length=1)
    password: str | None = Field(default=None, min_length=6)
    groupname: str | None = None

    @field_validator("username", "password")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return not_null(value)


class RadiusGroup(Shape):
    id: int
    groupname: str
    attribute: str
    op: str
    value: str


class RadiusSession(Shape):
    radacctid: int
    acctsessionid: str
    username: str
    nasipaddress: str
    acctstarttime: datetime
    acctstoptime: datetime | None = None
    acctsessiontime: int | None = None
    acctinputoctets: int | None = None
    acctoutputoctets: int | None = None


class RadiusPostAuth(Shape):
    model_config = ConfigDict(extra="allow")

    id: int
    username: str
    reply: str
    authdate: datetime


# ============================================================================
# Subscriptions & billing
# ============================================================================


class Plan(Shape):
    id: int
    name: str
    description: str | None = None
    default: bool = False
    available: bool = True
    requires_payment: bool = False
    daily_time_minutes: int | None = None
    daily_data_mb: int | None = None
    stripe_product_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Subscription(Shape):
    id: int
    user: int
    plan: int
    status: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubscribeRequest(Shape):
    plan_id: int
    pricing_id: int | None = None


class UserLimits(Shape):
    daily_time_minutes: int | None = None
    daily_data_mb: int | None = None


class PaymentGateway(Shape):
    variant: str
    name: str
    description: str | None = None


class Payment(Shape):
    id: int
    user: int
    status: str
    variant: str
    currency: str
    total: float
    order_id: str | None = None
    payment_gateway: str | None = None
    created: datetime
    modified: datetime


class CreatePaymentRequest(Shape):
    amount: float = Field(gt=0)
    currency: str = "USD"
    payment_gateway: str
    description: str | None = None


class CreatePaymentResponse(Shape):
    payment: Payment
    redirect_url: str | None = None


class RefundRequest(Shape):
    amount: float | None = Field(default=None, gt=0)


class PaymentFilters(Shape):
    status: str | None = None
    variant: str | None = None


class PaymentLog(Shape):
    id: int
    payment_id: int
    action: str
    timestamp: datetime
    message: str | None = None


# --- Module Notes -----------------------------------------------------------
# Update* models have no defaults that could leak into a partial update; the gate dumps
# them with `exclude_unset` so only fields the caller provided reach the backend.
