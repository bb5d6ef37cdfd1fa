"""
Domain Models - Provider-agnostic purchase value types.

All data structures are immutable dataclasses. Construction validates nothing
beyond types; validation belongs to the caller or the provider.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any


class ProductType(str, Enum):
    """The type of in-app purchase product."""

    CONSUMABLE = "consumable"
    NON_CONSUMABLE = "non_consumable"
    AUTO_RENEWABLE_SUBSCRIPTION = "auto_renewable_subscription"
    NON_RENEWABLE_SUBSCRIPTION = "non_renewable_subscription"


class PeriodUnit(str, Enum):
    """Time unit for subscription periods."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PaymentMode(str, Enum):
    """Payment mode for introductory offers."""

    FREE_TRIAL = "free_trial"
    PAY_AS_YOU_GO = "pay_as_you_go"
    PAY_UP_FRONT = "pay_up_front"


class EntitlementPeriodType(str, Enum):
    """The type of period an entitlement is currently in."""

    NORMAL = "normal"
    TRIAL = "trial"
    INTRO = "intro"
    PROMOTIONAL = "promotional"


@dataclass(frozen=True)
class SubscriptionPeriod:
    """Billing period for a subscription (e.g. 1 month)."""

    value: int
    unit: PeriodUnit


@dataclass(frozen=True)
class IntroductoryOffer:
    """Introductory offer for a subscription product."""

    price: Decimal
    display_price: str
    period: SubscriptionPeriod
    payment_mode: PaymentMode


@dataclass(frozen=True)
class Product:
    """
    Provider-agnostic product.

    Two products are equal when their identifiers match, whatever their other
    fields say, so a refetch with updated pricing still finds cached entries.

    underlying_product is an opaque token owned by the provider that created
    the product. Nothing outside that provider inspects it.
    """

    id: str
    display_name: str = field(compare=False)
    description: str = field(compare=False)
    price: Decimal = field(compare=False)
    display_price: str = field(compare=False)
    currency_code: str = field(compare=False)
    type: ProductType = field(compare=False)
    subscription_period: SubscriptionPeriod | None = field(default=None, compare=False)
    introductory_offer: IntroductoryOffer | None = field(default=None, compare=False)
    underlying_product: Any = field(default=None, compare=False, repr=False)

    @property
    def is_subscription(self) -> bool:
        """Check if this product is any kind of subscription."""
        return self.type in (
            ProductType.AUTO_RENEWABLE_SUBSCRIPTION,
            ProductType.NON_RENEWABLE_SUBSCRIPTION,
        )


@dataclass(frozen=True)
class Transaction:
    """A completed purchase transaction. Only produced by purchase or restore."""

    id: str
    product_id: str
    purchase_date: datetime
    original_transaction_id: str | None = None  # Links subscription renewals
    expires_date: datetime | None = None
    is_restored: bool = False
    price: Decimal | None = None  # Captured at purchase time
    currency_code: str | None = None


@dataclass(frozen=True)
class Entitlement:
    """
    An access right held by the user.

    Decoupled from the product that granted it; several products may grant the
    same entitlement. Equality is by identifier only.
    """

    id: str
    is_active: bool = field(compare=False)
    product_id: str | None = field(default=None, compare=False)
    expires_date: datetime | None = field(default=None, compare=False)
    will_renew: bool = field(default=False, compare=False)
    period_type: EntitlementPeriodType = field(
        default=EntitlementPeriodType.NORMAL, compare=False
    )

    @property
    def is_in_trial(self) -> bool:
        return self.period_type == EntitlementPeriodType.TRIAL

    @property
    def is_in_intro(self) -> bool:
        return self.period_type == EntitlementPeriodType.INTRO

    @property
    def is_expiring_soon(self) -> bool:
        """Check if the entitlement expires within 7 days."""
        if self.expires_date is None:
            return False
        return self.expires_date < datetime.now(UTC) + timedelta(days=7)


@dataclass(frozen=True)
class SubscriptionStatus:
    """
    Aggregate subscription view for the current user.

    Never persisted; recomputed from the provider on every refresh.
    """

    is_subscribed: bool
    active_product_id: str | None = None
    expires_date: datetime | None = None
    will_renew: bool = False
    is_in_billing_retry: bool = False
    is_in_grace_period: bool = False
    management_url: str | None = None

    @property
    def is_active_and_healthy(self) -> bool:
        """Subscribed with no billing problems."""
        return self.is_subscribed and not self.has_billing_issues

    @property
    def has_billing_issues(self) -> bool:
        return self.is_in_billing_retry or self.is_in_grace_period

    @property
    def is_expiring_soon(self) -> bool:
        """Check if a non-renewing subscription expires within 3 days."""
        if self.expires_date is None or self.will_renew:
            return False
        return self.expires_date < datetime.now(UTC) + timedelta(days=3)

    @property
    def days_until_expiration(self) -> int | None:
        """Whole days until expiration (truncated toward zero), None without a date."""
        if self.expires_date is None:
            return None
        remaining = self.expires_date - datetime.now(UTC)
        return int(remaining.total_seconds() / 86400)
