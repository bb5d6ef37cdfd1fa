"""
RevenueCat REST Client - PurchasesSDK implementation over the REST API v1.

Store payments are delegated to a StoreGateway; the resulting receipts are
posted to RevenueCat, which owns receipt validation and entitlement state.
https://www.revenuecat.com/docs/api-v1
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from structlog import get_logger

from purchasekit.config import StoreKitVersion
from purchasekit.providers.revenuecat.errors import ErrorCode, RevenueCatError
from purchasekit.providers.revenuecat.models import (
    CustomerInfo,
    EntitlementInfo,
    Offering,
    Offerings,
    Package,
    PurchaseOutcome,
    StoreProduct,
)
from purchasekit.providers.revenuecat.payloads import (
    ErrorResponse,
    OfferingsResponse,
    SubscriberResponse,
)
from purchasekit.providers.revenuecat.sdk import StoreGateway

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.revenuecat.com/v1"
ANONYMOUS_ID_PREFIX = "$RCAnonymousID:"


def generate_anonymous_id() -> str:
    """Generate a RevenueCat-style anonymous app user ID."""
    return f"{ANONYMOUS_ID_PREFIX}{uuid.uuid4().hex}"


class RevenueCatClient:
    """
    RevenueCat backend client.

    Implements the PurchasesSDK protocol. One instance per process; call
    configure() once before anything else.
    """

    def __init__(
        self,
        store: StoreGateway,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        platform: str = "ios",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize RevenueCat client.

        Args:
            store: Platform store used for product metadata and payments
            base_url: REST API base URL
            timeout: Per-request timeout in seconds
            platform: Value of the X-Platform header ("ios", "android", ...)
            http_client: Shared httpx client; a short-lived one is used per
                request when omitted
        """
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.platform = platform
        self._http_client = http_client

        self._api_key: str | None = None
        self._app_user_id: str | None = None
        self._store_kit_version = StoreKitVersion.STORE_KIT_2
        self._debug_logging = False

    # ------------------------------------------------------------------
    # Configuration and identity
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    @property
    def app_user_id(self) -> str:
        if self._app_user_id is None:
            raise RevenueCatError(ErrorCode.CONFIGURATION, "SDK is not configured")
        return self._app_user_id

    @property
    def is_anonymous(self) -> bool:
        return self.app_user_id.startswith(ANONYMOUS_ID_PREFIX)

    def configure(
        self,
        api_key: str,
        app_user_id: str | None = None,
        store_kit_version: StoreKitVersion = StoreKitVersion.STORE_KIT_2,
        debug_logging: bool = False,
    ) -> None:
        if not api_key.strip():
            raise RevenueCatError(ErrorCode.INVALID_CREDENTIALS, "API key is empty")
        if self.is_configured:
            logger.warning("revenuecat_already_configured", app_user_id=self._app_user_id)
            return

        self._api_key = api_key
        self._app_user_id = app_user_id or generate_anonymous_id()
        self._store_kit_version = store_kit_version
        self._debug_logging = debug_logging

        logger.info(
            "revenuecat_client_configured",
            platform=self.platform,
            store_kit_version=store_kit_version.value,
            anonymous=self.is_anonymous,
        )

    async def log_in(self, app_user_id: str) -> tuple[CustomerInfo, bool]:
        if not app_user_id.strip():
            raise RevenueCatError(ErrorCode.INVALID_APP_USER_ID, "App user ID is empty")

        current = self.app_user_id
        if current == app_user_id:
            return await self.customer_info(), False

        status, body = await self._request(
            "POST",
            "/subscribers/identify",
            json={"app_user_id": current, "new_app_user_id": app_user_id},
        )
        self._app_user_id = app_user_id

        logger.info("revenuecat_logged_in", created=status == 201)
        return self._parse_customer_info(body), status == 201

    async def log_out(self) -> CustomerInfo:
        if self.is_anonymous:
            raise RevenueCatError(
                ErrorCode.LOG_OUT_ANONYMOUS_USER,
                "Called log_out but the current user is anonymous",
            )

        self._app_user_id = generate_anonymous_id()
        logger.info("revenuecat_logged_out")
        return await self.customer_info()

    # ------------------------------------------------------------------
    # Customer info, products and offerings
    # ------------------------------------------------------------------

    async def customer_info(self) -> CustomerInfo:
        _, body = await self._request("GET", f"/subscribers/{self._quoted_user_id()}")
        return self._parse_customer_info(body)

    async def products(self, identifiers: Sequence[str]) -> list[StoreProduct]:
        self._ensure_configured()
        return await self.store.products(list(identifiers))

    async def offerings(self) -> Offerings:
        _, body = await self._request(
            "GET", f"/subscribers/{self._quoted_user_id()}/offerings"
        )
        try:
            response = OfferingsResponse.model_validate(body)
        except ValidationError as exc:
            raise RevenueCatError(
                ErrorCode.UNEXPECTED_BACKEND_RESPONSE, f"Invalid offerings payload: {exc}"
            ) from exc

        product_ids = {
            package.platform_product_identifier
            for offering in response.offerings
            for package in offering.packages
        }
        store_products = {
            product.product_identifier: product
            for product in await self.store.products(sorted(product_ids))
        }

        offerings: dict[str, Offering] = {}
        for offering in response.offerings:
            packages = [
                Package(
                    identifier=package.identifier,
                    store_product=store_products[package.platform_product_identifier],
                )
                for package in offering.packages
                if package.platform_product_identifier in store_products
            ]
            if not packages:
                # Offerings without any purchasable product are not surfaced
                logger.warning("revenuecat_offering_empty", offering_id=offering.identifier)
                continue
            offerings[offering.identifier] = Offering(
                identifier=offering.identifier,
                server_description=offering.description,
                available_packages=packages,
            )

        return Offerings(all=offerings, current_offering_id=response.current_offering_id)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    async def purchase(self, product: StoreProduct) -> PurchaseOutcome:
        app_user_id = self.app_user_id

        try:
            store_purchase = await self.store.purchase(product, app_user_id)
        except RevenueCatError as exc:
            if exc.code == ErrorCode.PURCHASE_CANCELLED:
                return PurchaseOutcome(user_cancelled=True)
            raise

        _, body = await self._request(
            "POST",
            "/receipts",
            json={
                "app_user_id": app_user_id,
                "fetch_token": store_purchase.fetch_token,
                "product_id": product.product_identifier,
                "price": str(product.price),
                "currency": product.currency_code,
                "is_restore": False,
            },
        )

        logger.info(
            "revenuecat_receipt_posted",
            product_id=product.product_identifier,
            transaction_id=store_purchase.transaction.transaction_identifier,
        )

        return PurchaseOutcome(
            user_cancelled=False,
            transaction=store_purchase.transaction,
            customer_info=self._parse_customer_info(body),
        )

    async def restore_purchases(self) -> CustomerInfo:
        return await self._post_receipts(is_restore=True)

    async def sync_purchases(self) -> CustomerInfo:
        return await self._post_receipts(is_restore=False)

    async def _post_receipts(self, is_restore: bool) -> CustomerInfo:
        app_user_id = self.app_user_id
        receipts = await self.store.receipts()

        if not receipts:
            logger.info("revenuecat_no_receipts", is_restore=is_restore)
            return await self.customer_info()

        body: dict[str, Any] = {}
        for receipt in receipts:
            _, body = await self._request(
                "POST",
                "/receipts",
                json={
                    "app_user_id": app_user_id,
                    "fetch_token": receipt.fetch_token,
                    "product_id": receipt.product_identifier,
                    "is_restore": is_restore,
                },
            )

        logger.info("revenuecat_receipts_posted", count=len(receipts), is_restore=is_restore)
        return self._parse_customer_info(body)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise RevenueCatError(ErrorCode.CONFIGURATION, "SDK is not configured")

    def _quoted_user_id(self) -> str:
        return quote(self.app_user_id, safe="")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Platform": self.platform,
            "X-StoreKit2-Enabled": str(
                self._store_kit_version == StoreKitVersion.STORE_KIT_2
            ).lower(),
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        """Make authenticated request to the RevenueCat API."""
        self._ensure_configured()
        url = f"{self.base_url}{path}"

        if self._debug_logging:
            logger.debug("revenuecat_request", method=method, path=path)

        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, headers=self._headers(), json=json, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(
                        method, url, headers=self._headers(), json=json, timeout=self.timeout
                    )
        except httpx.TimeoutException as exc:
            logger.error("revenuecat_request_timeout", method=method, path=path)
            raise RevenueCatError(ErrorCode.NETWORK, "Request timed out", is_timeout=True) from exc
        except httpx.HTTPError as exc:
            logger.error("revenuecat_request_failed", method=method, path=path, error=str(exc))
            raise RevenueCatError(ErrorCode.NETWORK, str(exc)) from exc

        if self._debug_logging:
            logger.debug("revenuecat_response", path=path, status=response.status_code)

        if response.status_code >= 400:
            raise self._error_from_response(response)

        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise RevenueCatError(
                ErrorCode.UNEXPECTED_BACKEND_RESPONSE, "Response body is not JSON"
            ) from exc

        return response.status_code, body

    def _error_from_response(self, response: httpx.Response) -> RevenueCatError:
        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            error = ErrorResponse(message=response.text[:200])

        logger.error(
            "revenuecat_api_error",
            status=response.status_code,
            backend_code=error.code,
            error=error.message,
        )

        if response.status_code in (401, 403):
            code = ErrorCode.INVALID_CREDENTIALS
        elif response.status_code >= 500:
            code = ErrorCode.UNKNOWN_BACKEND
        else:
            code = ErrorCode.UNEXPECTED_BACKEND_RESPONSE

        message = error.message or f"API error: {response.status_code}"
        return RevenueCatError(code, message, backend_code=error.code)

    def _parse_customer_info(self, body: dict[str, Any]) -> CustomerInfo:
        """Build CustomerInfo from a subscriber payload."""
        try:
            response = SubscriberResponse.model_validate(body)
        except ValidationError as exc:
            raise RevenueCatError(
                ErrorCode.UNEXPECTED_BACKEND_RESPONSE, f"Invalid subscriber payload: {exc}"
            ) from exc

        subscriber = response.subscriber
        now = response.request_date or datetime.now(UTC)

        entitlements: dict[str, EntitlementInfo] = {}
        for entitlement_id, entitlement in subscriber.entitlements.items():
            subscription = subscriber.subscriptions.get(entitlement.product_identifier or "")
            in_grace = (
                entitlement.grace_period_expires_date is not None
                and entitlement.grace_period_expires_date > now
            )
            is_active = (
                entitlement.expires_date is None or entitlement.expires_date > now or in_grace
            )
            period_type = subscription.period_type.upper() if subscription else "NORMAL"
            will_renew = (
                subscription is not None
                and entitlement.expires_date is not None
                and period_type != "PREPAID"
                and subscription.unsubscribe_detected_at is None
                and subscription.billing_issues_detected_at is None
            )

            entitlements[entitlement_id] = EntitlementInfo(
                identifier=entitlement_id,
                is_active=is_active,
                will_renew=will_renew,
                period_type=period_type,
                product_identifier=entitlement.product_identifier,
                expiration_date=entitlement.expires_date,
                billing_issue_detected_at=(
                    subscription.billing_issues_detected_at if subscription else None
                ),
                is_in_grace_period=in_grace,
            )

        active_subscriptions = frozenset(
            product_id
            for product_id, subscription in subscriber.subscriptions.items()
            if subscription.expires_date is not None and subscription.expires_date > now
        )

        return CustomerInfo(
            original_app_user_id=subscriber.original_app_user_id,
            entitlements=entitlements,
            active_subscriptions=active_subscriptions,
            management_url=subscriber.management_url,
            request_date=response.request_date,
        )

    async def aclose(self) -> None:
        """Close the shared httpx client, if one was provided."""
        if self._http_client is not None:
            await self._http_client.aclose()
