"""
RevenueCat REST payloads - Pydantic models for API response validation.

Only the fields the client reads are declared; everything else is ignored.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class EntitlementPayload(_Payload):
    """subscriber.entitlements[<id>]"""

    product_identifier: str | None = None
    purchase_date: datetime | None = None
    expires_date: datetime | None = None  # None for lifetime entitlements
    grace_period_expires_date: datetime | None = None


class SubscriptionPayload(_Payload):
    """subscriber.subscriptions[<product_id>]"""

    purchase_date: datetime | None = None
    original_purchase_date: datetime | None = None
    expires_date: datetime | None = None
    period_type: str = "normal"
    store: str | None = None
    is_sandbox: bool = False
    store_transaction_id: str | None = None
    unsubscribe_detected_at: datetime | None = None
    billing_issues_detected_at: datetime | None = None
    grace_period_expires_date: datetime | None = None


class SubscriberPayload(_Payload):
    original_app_user_id: str
    management_url: str | None = None
    entitlements: dict[str, EntitlementPayload] = Field(default_factory=dict)
    subscriptions: dict[str, SubscriptionPayload] = Field(default_factory=dict)


class SubscriberResponse(_Payload):
    """GET /subscribers/{app_user_id}, POST /receipts, POST /subscribers/identify"""

    request_date: datetime | None = None
    subscriber: SubscriberPayload


class PackagePayload(_Payload):
    identifier: str
    platform_product_identifier: str


class OfferingPayload(_Payload):
    identifier: str
    description: str = ""
    packages: list[PackagePayload] = Field(default_factory=list)


class OfferingsResponse(_Payload):
    """GET /subscribers/{app_user_id}/offerings"""

    current_offering_id: str | None = None
    offerings: list[OfferingPayload] = Field(default_factory=list)


class ErrorResponse(_Payload):
    """Error body returned with 4xx/5xx responses."""

    code: int | None = None
    message: str = ""
