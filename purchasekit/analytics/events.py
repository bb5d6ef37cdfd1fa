"""
Purchase Events - closed set of analytics events emitted by the purchase flow.

Every event has a snake_case name for analytics backends and a product_id
that is None for events not tied to a single product.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class PurchaseEvent:
    """Base class for analytics events."""

    name: ClassVar[str]


@dataclass(frozen=True)
class ProductEvent(PurchaseEvent):
    """Event concerning a single product."""

    product_id: str


@dataclass(frozen=True)
class GlobalEvent(PurchaseEvent):
    """Event not tied to a single product."""

    @property
    def product_id(self) -> str | None:
        return None


# Product events


@dataclass(frozen=True)
class ProductViewed(ProductEvent):
    name: ClassVar[str] = "product_viewed"


@dataclass(frozen=True)
class PaywallViewed(GlobalEvent):
    name: ClassVar[str] = "paywall_viewed"

    paywall_id: str | None = None


# Purchase events


@dataclass(frozen=True)
class PurchaseStarted(ProductEvent):
    name: ClassVar[str] = "purchase_started"


@dataclass(frozen=True)
class PurchaseCompleted(ProductEvent):
    name: ClassVar[str] = "purchase_completed"

    price: Decimal
    currency: str
    transaction_id: str


@dataclass(frozen=True)
class PurchaseCancelledEvent(ProductEvent):
    name: ClassVar[str] = "purchase_cancelled"


@dataclass(frozen=True)
class PurchaseFailed(ProductEvent):
    name: ClassVar[str] = "purchase_failed"

    error: str


@dataclass(frozen=True)
class PurchasePendingEvent(ProductEvent):
    name: ClassVar[str] = "purchase_pending"


# Subscription events


@dataclass(frozen=True)
class SubscriptionRenewed(ProductEvent):
    name: ClassVar[str] = "subscription_renewed"


@dataclass(frozen=True)
class SubscriptionCancelled(ProductEvent):
    name: ClassVar[str] = "subscription_cancelled"


@dataclass(frozen=True)
class SubscriptionExpired(ProductEvent):
    name: ClassVar[str] = "subscription_expired"


# Restore events


@dataclass(frozen=True)
class RestoreStarted(GlobalEvent):
    name: ClassVar[str] = "restore_purchases_started"


@dataclass(frozen=True)
class RestoreCompleted(GlobalEvent):
    name: ClassVar[str] = "restore_purchases_completed"


@dataclass(frozen=True)
class RestoreFailed(GlobalEvent):
    name: ClassVar[str] = "restore_purchases_failed"

    error: str


TERMINAL_PURCHASE_EVENTS: tuple[type[ProductEvent], ...] = (
    PurchaseCompleted,
    PurchaseCancelledEvent,
    PurchasePendingEvent,
    PurchaseFailed,
)
