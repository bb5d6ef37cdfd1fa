"""
Purchase domain models.
"""

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
from purchasekit.models.result import (
    PurchaseCancelled,
    PurchasePending,
    PurchaseRequiresAction,
    PurchaseResult,
    PurchaseSuccess,
    PurchaseUnknown,
)

__all__ = [
    "Entitlement",
    "EntitlementPeriodType",
    "IntroductoryOffer",
    "PaymentMode",
    "PeriodUnit",
    "Product",
    "ProductType",
    "PurchaseCancelled",
    "PurchasePending",
    "PurchaseRequiresAction",
    "PurchaseResult",
    "PurchaseSuccess",
    "PurchaseUnknown",
    "SubscriptionPeriod",
    "SubscriptionStatus",
    "Transaction",
]
