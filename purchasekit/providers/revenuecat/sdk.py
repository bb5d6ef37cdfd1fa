"""
RevenueCat SDK Protocol - the backend capability the adapter drives.

PurchasesSDK is the surface of the RevenueCat purchases SDK. RevenueCatClient
implements it over the REST API; tests substitute fakes. StoreGateway is the
platform store (App Store, Play Store) the SDK delegates payments to.

All methods raise RevenueCatError on failure.
"""

from collections.abc import Sequence
from typing import Protocol

from purchasekit.config import StoreKitVersion
from purchasekit.providers.revenuecat.models import (
    CustomerInfo,
    Offerings,
    PurchaseOutcome,
    StoreProduct,
    StorePurchase,
    StoreReceipt,
)


class StoreGateway(Protocol):
    """Platform store: product metadata, payment sheet and purchase history."""

    async def products(self, identifiers: Sequence[str]) -> list[StoreProduct]:
        """Look up products; unknown identifiers are omitted."""
        ...

    async def purchase(self, product: StoreProduct, app_user_id: str) -> StorePurchase:
        """
        Run the store payment flow.

        Raises:
            RevenueCatError: PURCHASE_CANCELLED, PAYMENT_PENDING,
                PURCHASE_NOT_ALLOWED or STORE_PROBLEM
        """
        ...

    async def receipts(self) -> list[StoreReceipt]:
        """Receipts from the store's purchase history."""
        ...


class PurchasesSDK(Protocol):
    """RevenueCat purchases SDK surface."""

    @property
    def is_configured(self) -> bool: ...

    @property
    def app_user_id(self) -> str: ...

    @property
    def is_anonymous(self) -> bool: ...

    def configure(
        self,
        api_key: str,
        app_user_id: str | None = None,
        store_kit_version: StoreKitVersion = StoreKitVersion.STORE_KIT_2,
        debug_logging: bool = False,
    ) -> None:
        """Initialize the SDK. Called once per process."""
        ...

    async def log_in(self, app_user_id: str) -> tuple[CustomerInfo, bool]:
        """Switch to a known app user. Returns customer info and whether it was created."""
        ...

    async def log_out(self) -> CustomerInfo:
        """Switch to a fresh anonymous user."""
        ...

    async def customer_info(self) -> CustomerInfo: ...

    async def products(self, identifiers: Sequence[str]) -> list[StoreProduct]: ...

    async def offerings(self) -> Offerings: ...

    async def purchase(self, product: StoreProduct) -> PurchaseOutcome: ...

    async def restore_purchases(self) -> CustomerInfo: ...

    async def sync_purchases(self) -> CustomerInfo: ...
