"""
Purchase Manager - single entry point for the host application.

Owns the provider, the analytics sink and the cached entitlement state.
Every lifecycle transition of a purchase or restore emits exactly one
analytics event; analytics failures are logged and never reach the caller.
"""

import asyncio
from collections.abc import Callable, Iterable

from structlog import get_logger

from purchasekit.analytics.base import PurchaseAnalytics
from purchasekit.analytics.default import DefaultPurchaseAnalytics
from purchasekit.analytics.events import (
    PurchaseCancelledEvent,
    PurchaseCompleted,
    PurchaseEvent,
    PurchaseFailed,
    PurchasePendingEvent,
    PurchaseStarted,
    RestoreCompleted,
    RestoreFailed,
    RestoreStarted,
)
from purchasekit.config import PurchaseConfiguration
from purchasekit.exceptions import NotConfiguredError
from purchasekit.models.domain import Entitlement, Product, SubscriptionStatus
from purchasekit.models.result import (
    PurchaseCancelled,
    PurchasePending,
    PurchaseRequiresAction,
    PurchaseResult,
    PurchaseSuccess,
)
from purchasekit.observability.logging import log_context
from purchasekit.providers.base import PurchaseProvider

ProviderFactory = Callable[[], PurchaseProvider]


class PurchaseManager:
    """
    Facade over a purchase provider.

    Purchases and restores are single-flight: they share one lock, so an
    overlapping call waits for the running one to finish. Read-only queries
    never take the lock.
    """

    def __init__(self, provider_factory: ProviderFactory, logger=None) -> None:
        """
        Initialize purchase manager.

        Args:
            provider_factory: Zero-argument callable building the provider on
                configure(), e.g. ``lambda: RevenueCatProvider.from_settings(store)``
            logger: Optional structlog logger
        """
        self._provider_factory = provider_factory
        self.logger = logger or get_logger(__name__)

        self._provider: PurchaseProvider | None = None
        self._analytics: PurchaseAnalytics | None = None
        self._lock = asyncio.Lock()

        self._is_configured = False
        self._is_purchasing = False
        self._is_restoring = False
        self._current_entitlements: list[Entitlement] = []
        self._subscription_status: SubscriptionStatus | None = None
        self._refresh_generation = 0
        self._published_generation = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        return self._is_configured

    @property
    def is_purchasing(self) -> bool:
        return self._is_purchasing

    @property
    def is_restoring(self) -> bool:
        return self._is_restoring

    @property
    def current_entitlements(self) -> list[Entitlement]:
        return list(self._current_entitlements)

    @property
    def subscription_status(self) -> SubscriptionStatus | None:
        return self._subscription_status

    @property
    def is_subscribed(self) -> bool:
        return self._subscription_status is not None and self._subscription_status.is_subscribed

    @property
    def has_active_entitlements(self) -> bool:
        return any(entitlement.is_active for entitlement in self._current_entitlements)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def configure(
        self,
        config: PurchaseConfiguration,
        analytics: PurchaseAnalytics | None = None,
    ) -> None:
        """
        Configure the purchase system. Call once at app launch.

        Args:
            config: Purchase configuration
            analytics: Analytics sink; structured-log analytics when omitted

        Raises:
            InvalidAPIKeyError: If the API key is blank
            PurchaseError: If the provider fails to configure
        """
        config.validate()

        provider = self._provider_factory()
        await provider.configure(config)

        self._provider = provider
        self._analytics = analytics or DefaultPurchaseAnalytics()
        self._is_configured = True

        self.logger.info("purchase_manager_configured", identified=config.user_id is not None)

        await self.refresh_state()

    def reset(self) -> None:
        """Return to the unconfigured state, dropping provider and cached state."""
        self._provider = None
        self._analytics = None
        self._is_configured = False
        self._current_entitlements = []
        self._subscription_status = None
        self._published_generation = self._refresh_generation

        self.logger.info("purchase_manager_reset")

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def fetch_products(self, identifiers: Iterable[str]) -> list[Product]:
        provider = self._require_provider()
        return await provider.fetch_products(identifiers)

    async def fetch_offerings(self) -> dict[str, list[Product]]:
        provider = self._require_provider()
        return await provider.fetch_offerings()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def purchase(self, product: Product) -> PurchaseResult:
        """
        Purchase a product.

        Expected outcomes (cancelled, pending, requires action, unknown) are
        returned as results. Entitlement state is refreshed after a success.

        Raises:
            NotConfiguredError: If configure() has not succeeded
            PurchaseError: Propagated unchanged from the provider
        """
        self._require_provider()

        async with self._lock:
            provider = self._require_provider()
            self._is_purchasing = True
            try:
                with log_context(product_id=product.id):
                    self._track(PurchaseStarted(product.id))
                    self.logger.info("purchase_started")

                    try:
                        result = await provider.purchase(product)
                    except Exception as exc:
                        self._track(PurchaseFailed(product.id, error=str(exc)))
                        self.logger.warning("purchase_errored", error=str(exc))
                        raise

                    await self._handle_result(product, result)
                    return result
            finally:
                self._is_purchasing = False

    async def _handle_result(self, product: Product, result: PurchaseResult) -> None:
        if isinstance(result, PurchaseSuccess):
            transaction = result.completed_transaction
            price = transaction.price if transaction.price is not None else product.price
            currency = transaction.currency_code or product.currency_code

            self._track(
                PurchaseCompleted(
                    product.id,
                    price=price,
                    currency=currency,
                    transaction_id=transaction.id,
                )
            )
            self.logger.info("purchase_completed", transaction_id=transaction.id)
            await self.refresh_state()
        elif isinstance(result, PurchaseCancelled):
            self._track(PurchaseCancelledEvent(product.id))
            self.logger.info("purchase_cancelled")
        elif isinstance(result, PurchasePending):
            self._track(PurchasePendingEvent(product.id))
            self.logger.info("purchase_pending")
        elif isinstance(result, PurchaseRequiresAction):
            self._track(PurchaseFailed(product.id, error=result.message))
            self.logger.info("purchase_requires_action")
        else:
            self._track(PurchaseFailed(product.id, error="Unknown error"))
            self.logger.warning("purchase_unknown_result")

    async def restore_purchases(self) -> None:
        """
        Restore previous purchases and refresh entitlement state.

        Raises:
            NotConfiguredError: If configure() has not succeeded
            PurchaseError: Propagated unchanged from the provider
        """
        self._require_provider()

        async with self._lock:
            provider = self._require_provider()
            self._is_restoring = True
            try:
                self._track(RestoreStarted())
                try:
                    await provider.restore_purchases()
                    await self.refresh_state()
                except Exception as exc:
                    self._track(RestoreFailed(error=str(exc)))
                    self.logger.warning("restore_purchases_failed", error=str(exc))
                    raise

                self._track(RestoreCompleted())
                self.logger.info(
                    "restore_purchases_completed",
                    entitlements=len(self._current_entitlements),
                )
            finally:
                self._is_restoring = False

    async def sync_purchases(self) -> None:
        """Sync store purchases with the backend without prompting the user."""
        provider = self._require_provider()
        await provider.sync_purchases()
        await self.refresh_state()

    # ------------------------------------------------------------------
    # Entitlements
    # ------------------------------------------------------------------

    async def has_entitlement(self, identifier: str) -> bool:
        if not self._is_configured or self._provider is None:
            return False
        return await self._provider.has_entitlement(identifier)

    async def refresh_state(self) -> None:
        """
        Reload entitlements and subscription status from the provider.

        Overlapping refreshes may finish out of order; a snapshot is dropped
        when a refresh started later has already been published.
        """
        provider = self._provider
        if not self._is_configured or provider is None:
            return

        self._refresh_generation += 1
        generation = self._refresh_generation

        entitlements = await provider.current_entitlements()
        status = await provider.subscription_status()

        if generation <= self._published_generation:
            self.logger.debug("stale_purchase_state_dropped", generation=generation)
            return

        self._current_entitlements = list(entitlements)
        self._subscription_status = status
        self._published_generation = generation

        self.logger.debug(
            "purchase_state_refreshed",
            entitlements=len(entitlements),
            subscribed=status is not None and status.is_subscribed,
        )

    # ------------------------------------------------------------------
    # User identity
    # ------------------------------------------------------------------

    async def identify(self, user_id: str | None) -> None:
        provider = self._require_provider()
        await provider.identify(user_id)
        await self.refresh_state()

    async def log_out(self) -> None:
        provider = self._require_provider()
        await provider.log_out()
        await self.refresh_state()

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def track(self, event: PurchaseEvent) -> None:
        """Forward a host-originated event (product or paywall viewed)."""
        if not self._is_configured:
            return
        self._track(event)

    def _track(self, event: PurchaseEvent) -> None:
        if self._analytics is None:
            return
        try:
            self._analytics.track(event)
        except Exception as exc:
            self.logger.warning("analytics_track_failed", analytics_event=event.name, error=str(exc))

    def _require_provider(self) -> PurchaseProvider:
        if not self._is_configured or self._provider is None:
            raise NotConfiguredError()
        return self._provider
