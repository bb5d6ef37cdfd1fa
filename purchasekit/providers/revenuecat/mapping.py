"""
RevenueCat Mapping - native backend types to domain types.

Mapping never fails: any backend value unknown to this codebase degrades to
the nearest domain case and is logged at debug level.
"""

from decimal import Decimal
from typing import TypeVar

from structlog import get_logger

from purchasekit.models.domain import (
    Entitlement,
    EntitlementPeriodType,
    IntroductoryOffer,
    PaymentMode,
    PeriodUnit,
    Product,
    ProductType,
    SubscriptionPeriod,
    SubscriptionStatus,
    Transaction,
)
from purchasekit.providers.revenuecat.models import (
    CustomerInfo,
    EntitlementInfo,
    NativeSubscriptionPeriod,
    StoreProduct,
    StoreProductDiscount,
    StoreTransaction,
)

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_CURRENCY_CODE = "USD"

_PRODUCT_TYPES: dict[str, ProductType] = {
    "CONSUMABLE": ProductType.CONSUMABLE,
    "NON_CONSUMABLE": ProductType.NON_CONSUMABLE,
    "AUTO_RENEWABLE_SUBSCRIPTION": ProductType.AUTO_RENEWABLE_SUBSCRIPTION,
    "NON_RENEWABLE_SUBSCRIPTION": ProductType.NON_RENEWABLE_SUBSCRIPTION,
}

_PERIOD_UNITS: dict[str, PeriodUnit] = {
    "DAY": PeriodUnit.DAY,
    "WEEK": PeriodUnit.WEEK,
    "MONTH": PeriodUnit.MONTH,
    "YEAR": PeriodUnit.YEAR,
}

_PAYMENT_MODES: dict[str, PaymentMode] = {
    "FREE_TRIAL": PaymentMode.FREE_TRIAL,
    "PAY_AS_YOU_GO": PaymentMode.PAY_AS_YOU_GO,
    "PAY_UP_FRONT": PaymentMode.PAY_UP_FRONT,
}

# PREPAID has no domain counterpart and is billed like a normal period
_PERIOD_TYPES: dict[str, EntitlementPeriodType] = {
    "NORMAL": EntitlementPeriodType.NORMAL,
    "TRIAL": EntitlementPeriodType.TRIAL,
    "INTRO": EntitlementPeriodType.INTRO,
    "PROMOTIONAL": EntitlementPeriodType.PROMOTIONAL,
    "PREPAID": EntitlementPeriodType.NORMAL,
}


def _lookup(table: dict[str, T], raw: str, fallback: T, kind: str) -> T:
    value = table.get(raw.upper())
    if value is None:
        logger.debug("revenuecat_unknown_value", kind=kind, value=raw, fallback=str(fallback))
        return fallback
    return value


def to_product_type(raw: str) -> ProductType:
    return _lookup(_PRODUCT_TYPES, raw, ProductType.NON_CONSUMABLE, "product_type")


def to_period_unit(raw: str) -> PeriodUnit:
    return _lookup(_PERIOD_UNITS, raw, PeriodUnit.MONTH, "period_unit")


def to_payment_mode(raw: str) -> PaymentMode:
    return _lookup(_PAYMENT_MODES, raw, PaymentMode.PAY_UP_FRONT, "payment_mode")


def to_period_type(raw: str) -> EntitlementPeriodType:
    return _lookup(_PERIOD_TYPES, raw, EntitlementPeriodType.NORMAL, "period_type")


def to_subscription_period(period: NativeSubscriptionPeriod) -> SubscriptionPeriod:
    return SubscriptionPeriod(value=period.value, unit=to_period_unit(period.unit))


def to_introductory_offer(discount: StoreProductDiscount) -> IntroductoryOffer:
    return IntroductoryOffer(
        price=discount.price,
        display_price=discount.localized_price_string,
        period=to_subscription_period(discount.subscription_period),
        payment_mode=to_payment_mode(discount.payment_mode),
    )


def to_product(store_product: StoreProduct) -> Product:
    """Convert a store product, keeping it as the product's underlying token."""
    return Product(
        id=store_product.product_identifier,
        display_name=store_product.localized_title,
        description=store_product.localized_description,
        price=store_product.price,
        display_price=store_product.localized_price_string,
        currency_code=store_product.currency_code or DEFAULT_CURRENCY_CODE,
        type=to_product_type(store_product.product_type),
        subscription_period=(
            to_subscription_period(store_product.subscription_period)
            if store_product.subscription_period
            else None
        ),
        introductory_offer=(
            to_introductory_offer(store_product.introductory_discount)
            if store_product.introductory_discount
            else None
        ),
        underlying_product=store_product,
    )


def to_transaction(
    transaction: StoreTransaction,
    price: Decimal | None = None,
    currency_code: str | None = None,
    is_restored: bool = False,
) -> Transaction:
    return Transaction(
        id=transaction.transaction_identifier,
        product_id=transaction.product_identifier,
        purchase_date=transaction.purchase_date,
        original_transaction_id=transaction.original_transaction_identifier,
        expires_date=transaction.expiration_date,
        is_restored=is_restored,
        price=price,
        currency_code=currency_code,
    )


def to_entitlement(info: EntitlementInfo) -> Entitlement:
    return Entitlement(
        id=info.identifier,
        is_active=info.is_active,
        product_id=info.product_identifier,
        expires_date=info.expiration_date,
        will_renew=info.will_renew,
        period_type=to_period_type(info.period_type),
    )


def to_subscription_status(customer_info: CustomerInfo) -> SubscriptionStatus:
    """
    Derive the aggregate subscription status.

    The reported entitlement is the active one with the latest expiration;
    entitlements without an expiration (lifetime) rank above all dated ones.
    """
    active = list(customer_info.active_entitlements.values())
    primary = max(
        active,
        key=lambda info: (
            info.expiration_date is None,
            info.expiration_date.timestamp() if info.expiration_date else 0.0,
        ),
        default=None,
    )

    return SubscriptionStatus(
        is_subscribed=bool(customer_info.active_subscriptions),
        active_product_id=primary.product_identifier if primary else None,
        expires_date=primary.expiration_date if primary else None,
        will_renew=primary.will_renew if primary else False,
        is_in_billing_retry=primary is not None and primary.billing_issue_detected_at is not None,
        is_in_grace_period=primary.is_in_grace_period if primary else False,
        management_url=customer_info.management_url,
    )
