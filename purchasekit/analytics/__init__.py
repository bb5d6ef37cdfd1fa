"""
Analytics module - purchase event taxonomy and sinks.
"""

from purchasekit.analytics.base import PurchaseAnalytics
from purchasekit.analytics.default import DefaultPurchaseAnalytics
from purchasekit.analytics.events import (
    PaywallViewed,
    ProductViewed,
    PurchaseCancelledEvent,
    PurchaseCompleted,
    PurchaseEvent,
    PurchaseFailed,
    PurchasePendingEvent,
    PurchaseStarted,
    RestoreCompleted,
    RestoreFailed,
    RestoreStarted,
    SubscriptionCancelled,
    SubscriptionExpired,
    SubscriptionRenewed,
)
from purchasekit.analytics.metrics import PrometheusPurchaseAnalytics

__all__ = [
    "DefaultPurchaseAnalytics",
    "PaywallViewed",
    "ProductViewed",
    "PrometheusPurchaseAnalytics",
    "PurchaseAnalytics",
    "PurchaseCancelledEvent",
    "PurchaseCompleted",
    "PurchaseEvent",
    "PurchaseFailed",
    "PurchasePendingEvent",
    "PurchaseStarted",
    "RestoreCompleted",
    "RestoreFailed",
    "RestoreStarted",
    "SubscriptionCancelled",
    "SubscriptionExpired",
    "SubscriptionRenewed",
]
