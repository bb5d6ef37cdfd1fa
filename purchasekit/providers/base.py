"""
Purchase Provider Protocol - Provider-agnostic backend interface.

Any purchase backend (RevenueCat, native StoreKit, Google Play Billing, etc.)
must implement this interface. This keeps PurchaseManager backend-agnostic.
"""

from collections.abc import Iterable
from typing import Protocol

from purchasekit.config import PurchaseConfiguration
from purchasekit.models.domain import Entitlement, Product, SubscriptionStatus
from purchasekit.models.result import PurchaseResult


class ProductProvider(Protocol):
    """Product discovery capability."""

    async def fetch_products(self, identifiers: Iterable[str]) -> list[Product]:
        """
        Fetch products by identifier.

        Args:
            identifiers: Product identifiers to resolve

        Returns:
            Products that resolved, in backend order

        Raises:
            FetchProductsFailedError: If none of the identifiers resolve
            NotConfiguredError: If called before configure()
        """
        ...

    async def fetch_offerings(self) -> dict[str, list[Product]]:
        """
        Fetch backend-organized product groups.

        Providers without an offerings concept return their products under a
        single default key.

        Returns:
            Mapping of offering identifier to its products
        """
        ...


class TransactionProvider(Protocol):
    """Purchase, restore and sync capability."""

    async def purchase(self, product: Product) -> PurchaseResult:
        """
        Purchase a product.

        Cancellation, pending approval and required user action come back as
        PurchaseResult values, never as exceptions.

        Args:
            product: Product previously returned by this provider

        Returns:
            Outcome of the purchase attempt

        Raises:
            PurchaseError: If the purchase cannot be attempted at all
        """
        ...

    async def restore_purchases(self) -> None:
        """
        Restore previous purchases from the store's purchase history.

        Raises:
            PurchaseError: If restoration fails
        """
        ...

    async def sync_purchases(self) -> None:
        """
        Sync local purchases with the backend without a restore prompt.

        Raises:
            PurchaseError: If synchronization fails
        """
        ...


class EntitlementProvider(Protocol):
    """
    Entitlement queries.

    None of these raise. Internal failures are logged and the safe default
    (False, empty list, None) is returned.
    """

    async def has_entitlement(self, identifier: str) -> bool: ...

    async def current_entitlements(self) -> list[Entitlement]: ...

    async def subscription_status(self) -> SubscriptionStatus | None: ...


class PurchaseProvider(ProductProvider, TransactionProvider, EntitlementProvider, Protocol):
    """
    Complete purchase provider interface.

    configure() must succeed before any other operation; every other
    operation raises NotConfiguredError (or returns its safe default) until
    then.
    """

    @property
    def is_configured(self) -> bool: ...

    async def configure(self, config: PurchaseConfiguration) -> None:
        """
        Configure the provider.

        Raises:
            InvalidAPIKeyError: If the API key is blank or rejected
            PurchaseError: On any other configuration failure
        """
        ...

    async def identify(self, user_id: str | None) -> None:
        """
        Identify the current user.

        Args:
            user_id: App user ID, or None to keep an anonymous identity
        """
        ...

    async def log_out(self) -> None:
        """Log out and revert to an anonymous identity."""
        ...
