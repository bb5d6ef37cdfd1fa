"""
purchasekit - provider-agnostic in-app purchase and subscription management.
"""

from purchasekit.analytics import (
    DefaultPurchaseAnalytics,
    PaywallViewed,
    ProductViewed,
    PurchaseAnalytics,
    PurchaseEvent,
)
from purchasekit.config import PurchaseConfiguration, Settings, StoreKitVersion, get_settings
from purchasekit.exceptions import NotConfiguredError, PurchaseError, PurchaseErrorKind
from purchasekit.manager import PurchaseManager
from purchasekit.models import (
    Entitlement,
    Product,
    PurchaseResult,
    SubscriptionStatus,
    Transaction,
)
from purchasekit.providers import PurchaseProvider

__version__ = "0.1.0"

__all__ = [
    "DefaultPurchaseAnalytics",
    "Entitlement",
    "NotConfiguredError",
    "PaywallViewed",
    "Product",
    "ProductViewed",
    "PurchaseAnalytics",
    "PurchaseConfiguration",
    "PurchaseError",
    "PurchaseErrorKind",
    "PurchaseEvent",
    "PurchaseManager",
    "PurchaseProvider",
    "PurchaseResult",
    "Settings",
    "StoreKitVersion",
    "SubscriptionStatus",
    "Transaction",
    "get_settings",
]
