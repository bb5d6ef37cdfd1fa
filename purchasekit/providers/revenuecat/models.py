"""
RevenueCat native models - Immutable dataclasses for backend SDK types.

These mirror the types the RevenueCat SDK hands back (StoreProduct,
CustomerInfo, Offerings, ...). Enumerated values are kept as the raw backend
strings so that values unknown to this codebase survive until mapping, where
they degrade to the nearest domain case.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

_ISO8601_PERIOD = re.compile(r"^P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)W)?(?:(\d+)D)?$")


@dataclass(frozen=True)
class NativeSubscriptionPeriod:
    """Store subscription period (unit is "DAY", "WEEK", "MONTH" or "YEAR")."""

    value: int
    unit: str

    @classmethod
    def from_iso8601(cls, duration: str) -> "NativeSubscriptionPeriod":
        """
        Parse a store ISO 8601 duration such as "P1M" or "P7D".

        Only the first non-zero component is used; stores never combine units
        for subscription periods.

        Raises:
            ValueError: If the duration is not a supported ISO 8601 period
        """
        match = _ISO8601_PERIOD.match(duration.strip().upper())
        if not match or not any(match.groups()):
            raise ValueError(f"Invalid subscription period: {duration}")

        for raw, unit in zip(match.groups(), ("YEAR", "MONTH", "WEEK", "DAY"), strict=True):
            if raw and int(raw) > 0:
                return cls(value=int(raw), unit=unit)
        raise ValueError(f"Empty subscription period: {duration}")


@dataclass(frozen=True)
class StoreProductDiscount:
    """Introductory discount attached to a store product."""

    price: Decimal
    localized_price_string: str
    subscription_period: NativeSubscriptionPeriod
    payment_mode: str  # "FREE_TRIAL", "PAY_AS_YOU_GO", "PAY_UP_FRONT"


@dataclass(frozen=True)
class StoreProduct:
    """Product as reported by the platform store."""

    product_identifier: str
    localized_title: str
    localized_description: str
    price: Decimal
    localized_price_string: str
    product_type: str  # "CONSUMABLE", "NON_CONSUMABLE", "AUTO_RENEWABLE_SUBSCRIPTION", ...
    currency_code: str | None = None
    subscription_period: NativeSubscriptionPeriod | None = None
    introductory_discount: StoreProductDiscount | None = None


@dataclass(frozen=True)
class StoreTransaction:
    """Store transaction produced by a purchase."""

    transaction_identifier: str
    product_identifier: str
    purchase_date: datetime
    original_transaction_identifier: str | None = None
    expiration_date: datetime | None = None


@dataclass(frozen=True)
class StorePurchase:
    """Completed store payment, ready to be posted to RevenueCat."""

    fetch_token: str  # Receipt / purchase token for the backend
    transaction: StoreTransaction


@dataclass(frozen=True)
class StoreReceipt:
    """Receipt from the store's purchase history, used by restore and sync."""

    fetch_token: str
    product_identifier: str


@dataclass(frozen=True)
class EntitlementInfo:
    """Entitlement as computed by RevenueCat for the current customer."""

    identifier: str
    is_active: bool
    will_renew: bool
    period_type: str  # "NORMAL", "TRIAL", "INTRO", "PREPAID", ...
    product_identifier: str | None = None
    expiration_date: datetime | None = None
    billing_issue_detected_at: datetime | None = None
    is_in_grace_period: bool = False


@dataclass(frozen=True)
class CustomerInfo:
    """Snapshot of a customer's entitlements and subscriptions."""

    original_app_user_id: str
    entitlements: dict[str, EntitlementInfo] = field(default_factory=dict)
    active_subscriptions: frozenset[str] = field(default_factory=frozenset)
    management_url: str | None = None
    request_date: datetime | None = None

    @property
    def active_entitlements(self) -> dict[str, EntitlementInfo]:
        """Entitlements that are currently active."""
        return {key: info for key, info in self.entitlements.items() if info.is_active}


@dataclass(frozen=True)
class Package:
    """A product slot inside an offering (e.g. "$rc_monthly")."""

    identifier: str
    store_product: StoreProduct


@dataclass(frozen=True)
class Offering:
    """Named group of packages configured in the RevenueCat dashboard."""

    identifier: str
    server_description: str
    available_packages: list[Package] = field(default_factory=list)


@dataclass(frozen=True)
class Offerings:
    """All offerings for the current customer."""

    all: dict[str, Offering] = field(default_factory=dict)
    current_offering_id: str | None = None

    @property
    def current(self) -> Offering | None:
        if self.current_offering_id is None:
            return None
        return self.all.get(self.current_offering_id)


@dataclass(frozen=True)
class PurchaseOutcome:
    """Result of a backend purchase call."""

    user_cancelled: bool
    transaction: StoreTransaction | None = None
    customer_info: CustomerInfo | None = None
