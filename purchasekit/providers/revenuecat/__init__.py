"""
RevenueCat provider - adapter, backend SDK surface and REST client.
"""

from purchasekit.providers.revenuecat.client import RevenueCatClient
from purchasekit.providers.revenuecat.errors import ErrorCode, RevenueCatError
from purchasekit.providers.revenuecat.provider import RevenueCatProvider, translate_error
from purchasekit.providers.revenuecat.sdk import PurchasesSDK, StoreGateway

__all__ = [
    "ErrorCode",
    "PurchasesSDK",
    "RevenueCatClient",
    "RevenueCatError",
    "RevenueCatProvider",
    "StoreGateway",
    "translate_error",
]
