"""
Purchase providers - backend capability interface and adapters.
"""

from purchasekit.providers.base import (
    EntitlementProvider,
    ProductProvider,
    PurchaseProvider,
    TransactionProvider,
)

__all__ = [
    "EntitlementProvider",
    "ProductProvider",
    "PurchaseProvider",
    "TransactionProvider",
]
