"""
RevenueCat Provider Implementation.

Binds the PurchaseProvider protocol to the RevenueCat SDK. This is the only
component that references RevenueCat types; it translates them to domain
types and RevenueCat errors to the PurchaseError taxonomy.
"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from structlog import get_logger

from purchasekit.config import PurchaseConfiguration, Settings, get_settings
from purchasekit.exceptions import (
    FetchProductsFailedError,
    InvalidAPIKeyError,
    NotConfiguredError,
    ProductNotFoundError,
    PurchaseError,
    PurchaseErrorKind,
    PurchaseTimeoutError,
    error_for_kind,
)
from purchasekit.models.domain import Entitlement, Product, SubscriptionStatus, Transaction
from purchasekit.models.result import (
    PurchaseCancelled,
    PurchasePending,
    PurchaseRequiresAction,
    PurchaseResult,
    PurchaseSuccess,
    PurchaseUnknown,
)
from purchasekit.providers.revenuecat import mapping
from purchasekit.providers.revenuecat.client import RevenueCatClient
from purchasekit.providers.revenuecat.errors import ErrorCode, RevenueCatError
from purchasekit.providers.revenuecat.models import StoreProduct
from purchasekit.providers.revenuecat.sdk import PurchasesSDK, StoreGateway

logger = get_logger(__name__)

_ERROR_KINDS: dict[ErrorCode, PurchaseErrorKind] = {
    ErrorCode.NETWORK: PurchaseErrorKind.NETWORK_ERROR,
    ErrorCode.INVALID_CREDENTIALS: PurchaseErrorKind.INVALID_API_KEY,
    ErrorCode.PRODUCT_NOT_AVAILABLE_FOR_PURCHASE: PurchaseErrorKind.PRODUCT_NOT_FOUND,
    ErrorCode.PURCHASE_CANCELLED: PurchaseErrorKind.USER_CANCELLED,
    ErrorCode.PAYMENT_PENDING: PurchaseErrorKind.PAYMENT_PENDING,
    ErrorCode.PURCHASE_NOT_ALLOWED: PurchaseErrorKind.PURCHASE_NOT_ALLOWED,
    ErrorCode.PURCHASE_INVALID: PurchaseErrorKind.PURCHASE_FAILED,
    ErrorCode.STORE_PROBLEM: PurchaseErrorKind.PURCHASE_FAILED,
    ErrorCode.INVALID_RECEIPT: PurchaseErrorKind.ENTITLEMENT_VERIFICATION_FAILED,
    ErrorCode.RECEIPT_ALREADY_IN_USE: PurchaseErrorKind.ENTITLEMENT_VERIFICATION_FAILED,
    ErrorCode.MISSING_RECEIPT_FILE: PurchaseErrorKind.ENTITLEMENT_VERIFICATION_FAILED,
}


def translate_error(exc: RevenueCatError) -> PurchaseError:
    """Map a RevenueCat error to the domain error taxonomy."""
    if exc.is_timeout:
        return PurchaseTimeoutError(exc.message)
    kind = _ERROR_KINDS.get(exc.code, PurchaseErrorKind.UNKNOWN)
    return error_for_kind(kind, exc.message)


class RevenueCatProvider:
    """
    RevenueCat purchase provider.

    Implements the PurchaseProvider protocol. Meant to be driven through
    PurchaseManager rather than used directly.
    """

    def __init__(self, sdk: PurchasesSDK) -> None:
        """
        Initialize RevenueCat provider.

        Args:
            sdk: RevenueCat SDK instance (RevenueCatClient in production)
        """
        self.sdk = sdk
        self._configuration: PurchaseConfiguration | None = None

    @classmethod
    def from_settings(
        cls, store: StoreGateway, settings: Settings | None = None
    ) -> "RevenueCatProvider":
        """Build a provider backed by the REST client configured from settings."""
        settings = settings or get_settings()
        client = RevenueCatClient(
            store,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
        )
        return cls(client)

    @property
    def is_configured(self) -> bool:
        return self._configuration is not None

    # ------------------------------------------------------------------
    # Configuration and identity
    # ------------------------------------------------------------------

    async def configure(self, config: PurchaseConfiguration) -> None:
        """
        Configure the RevenueCat SDK.

        The SDK is initialized once. Calling configure() again on a configured
        provider logs a warning and keeps the first configuration.

        Raises:
            InvalidAPIKeyError: If the API key is blank or rejected
            PurchaseError: If identifying the configured user fails
        """
        logger.debug("configuring_revenuecat_provider")
        config.validate()

        if self.is_configured:
            logger.warning("revenuecat_provider_already_configured")
            return

        try:
            self.sdk.configure(
                api_key=config.api_key,
                store_kit_version=config.store_kit_version,
                debug_logging=config.debug_logging_enabled,
            )
            if config.user_id:
                await self.sdk.log_in(config.user_id)
        except RevenueCatError as exc:
            logger.error("revenuecat_configuration_failed", error=exc.message, code=exc.code.name)
            raise translate_error(exc) from exc

        self._configuration = config

        logger.info(
            "revenuecat_provider_configured",
            identified=config.user_id is not None,
            tracked_entitlements=sorted(config.entitlement_identifiers),
        )

    async def identify(self, user_id: str | None) -> None:
        self._ensure_configured()

        if user_id is None:
            logger.debug("revenuecat_using_anonymous_user")
            return

        logger.debug("identifying_revenuecat_user")
        try:
            await self.sdk.log_in(user_id)
        except RevenueCatError as exc:
            logger.error("revenuecat_identify_failed", error=exc.message)
            raise translate_error(exc) from exc

    async def log_out(self) -> None:
        self._ensure_configured()

        logger.debug("logging_out_revenuecat_user")
        try:
            await self.sdk.log_out()
        except RevenueCatError as exc:
            logger.error("revenuecat_log_out_failed", error=exc.message)
            raise translate_error(exc) from exc

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def fetch_products(self, identifiers: Iterable[str]) -> list[Product]:
        self._ensure_configured()

        requested = sorted(set(identifiers))
        logger.debug("fetching_revenuecat_products", identifiers=requested)

        try:
            store_products = await self.sdk.products(requested)
        except RevenueCatError as exc:
            logger.error("revenuecat_fetch_products_failed", error=exc.message)
            raise self._fetch_error(exc) from exc

        if not store_products:
            raise FetchProductsFailedError(f"No products found for identifiers: {requested}")

        return [mapping.to_product(store_product) for store_product in store_products]

    async def fetch_offerings(self) -> dict[str, list[Product]]:
        self._ensure_configured()

        logger.debug("fetching_revenuecat_offerings")
        try:
            offerings = await self.sdk.offerings()
        except RevenueCatError as exc:
            logger.error("revenuecat_fetch_offerings_failed", error=exc.message)
            raise self._fetch_error(exc) from exc

        return {
            key: [mapping.to_product(package.store_product) for package in offering.available_packages]
            for key, offering in offerings.all.items()
        }

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def purchase(self, product: Product) -> PurchaseResult:
        self._ensure_configured()

        store_product = product.underlying_product
        if not isinstance(store_product, StoreProduct):
            raise ProductNotFoundError(product.id)

        logger.debug("purchasing_revenuecat_product", product_id=product.id)

        try:
            outcome = await self.sdk.purchase(store_product)
        except RevenueCatError as exc:
            return self._result_for_error(exc, product.id)
        except Exception as exc:
            logger.error(
                "revenuecat_purchase_failed",
                product_id=product.id,
                error=str(exc),
                exc_info=True,
            )
            return PurchaseUnknown()

        if outcome.user_cancelled:
            logger.info("revenuecat_purchase_cancelled", product_id=product.id)
            return PurchaseCancelled()

        if outcome.transaction is not None:
            transaction = mapping.to_transaction(
                outcome.transaction,
                price=product.price,
                currency_code=product.currency_code,
            )
        else:
            # Consumables bought through some stores come back without a transaction
            transaction = Transaction(
                id=str(uuid.uuid4()),
                product_id=product.id,
                purchase_date=datetime.now(UTC),
                price=product.price,
                currency_code=product.currency_code,
            )

        logger.info(
            "revenuecat_purchase_successful",
            product_id=product.id,
            transaction_id=transaction.id,
        )
        return PurchaseSuccess(transaction)

    async def restore_purchases(self) -> None:
        self._ensure_configured()

        logger.debug("restoring_revenuecat_purchases")
        try:
            await self.sdk.restore_purchases()
        except RevenueCatError as exc:
            logger.error("revenuecat_restore_failed", error=exc.message, code=exc.code.name)
            raise translate_error(exc) from exc

        logger.info("revenuecat_purchases_restored")

    async def sync_purchases(self) -> None:
        self._ensure_configured()

        logger.debug("syncing_revenuecat_purchases")
        try:
            await self.sdk.sync_purchases()
        except RevenueCatError as exc:
            logger.error("revenuecat_sync_failed", error=exc.message, code=exc.code.name)
            raise translate_error(exc) from exc

    # ------------------------------------------------------------------
    # Entitlements (never raise)
    # ------------------------------------------------------------------

    async def has_entitlement(self, identifier: str) -> bool:
        if not self.is_configured:
            return False

        try:
            customer_info = await self.sdk.customer_info()
        except RevenueCatError as exc:
            logger.error(
                "revenuecat_entitlement_check_failed",
                entitlement_id=identifier,
                error=exc.message,
            )
            return False
        except Exception as exc:
            logger.error(
                "revenuecat_entitlement_check_failed",
                entitlement_id=identifier,
                error=str(exc),
                exc_info=True,
            )
            return False

        info = customer_info.entitlements.get(identifier)
        return info is not None and info.is_active

    async def current_entitlements(self) -> list[Entitlement]:
        """
        Active entitlements, limited to the configured entitlement
        identifiers when any were given.
        """
        if self._configuration is None:
            return []

        try:
            customer_info = await self.sdk.customer_info()
        except RevenueCatError as exc:
            logger.error("revenuecat_entitlements_failed", error=exc.message)
            return []
        except Exception as exc:
            logger.error("revenuecat_entitlements_failed", error=str(exc), exc_info=True)
            return []

        tracked = self._configuration.entitlement_identifiers
        return [
            mapping.to_entitlement(info)
            for key, info in customer_info.active_entitlements.items()
            if not tracked or key in tracked
        ]

    async def subscription_status(self) -> SubscriptionStatus | None:
        if not self.is_configured:
            return None

        try:
            customer_info = await self.sdk.customer_info()
        except RevenueCatError as exc:
            logger.error("revenuecat_subscription_status_failed", error=exc.message)
            return None
        except Exception as exc:
            logger.error("revenuecat_subscription_status_failed", error=str(exc), exc_info=True)
            return None

        return mapping.to_subscription_status(customer_info)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise NotConfiguredError()

    def _fetch_error(self, exc: RevenueCatError) -> PurchaseError:
        if exc.code == ErrorCode.INVALID_CREDENTIALS:
            return InvalidAPIKeyError(exc.message)
        return FetchProductsFailedError(exc.message)

    def _result_for_error(self, exc: RevenueCatError, product_id: str) -> PurchaseResult:
        if exc.code == ErrorCode.PURCHASE_CANCELLED:
            logger.info("revenuecat_purchase_cancelled", product_id=product_id)
            return PurchaseCancelled()
        if exc.code == ErrorCode.PAYMENT_PENDING:
            logger.info("revenuecat_purchase_pending", product_id=product_id)
            return PurchasePending()
        if exc.code == ErrorCode.PURCHASE_NOT_ALLOWED:
            return PurchaseRequiresAction("Purchases not allowed on this device")

        logger.error(
            "revenuecat_purchase_failed",
            product_id=product_id,
            code=exc.code.name,
            error=exc.message,
        )
        return PurchaseUnknown()
