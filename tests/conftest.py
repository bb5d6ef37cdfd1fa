"""
Pytest Configuration and Centralized Fixtures.

Provides reusable mocks and fixtures for testing:
- Domain model factories (products, transactions, entitlements)
- Mock purchase provider with configurable outcomes
- Recording analytics sink
- Purchase manager wired to the mocks
"""

import os
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

# Keep developer environments from leaking into Settings
for _key in [key for key in os.environ if key.startswith("PURCHASES_")]:
    os.environ.pop(_key)

from purchasekit.analytics.events import PurchaseEvent
from purchasekit.config import PurchaseConfiguration
from purchasekit.exceptions import NotConfiguredError
from purchasekit.manager import PurchaseManager
from purchasekit.models.domain import (
    Entitlement,
    EntitlementPeriodType,
    PeriodUnit,
    Product,
    ProductType,
    SubscriptionPeriod,
    SubscriptionStatus,
    Transaction,
)
from purchasekit.models.result import PurchaseResult, PurchaseSuccess

# ============================================================================
# Domain Model Factories
# ============================================================================


def make_product(
    product_id: str = "com.app.premium.monthly",
    price: Decimal = Decimal("9.99"),
    currency_code: str = "USD",
    product_type: ProductType = ProductType.AUTO_RENEWABLE_SUBSCRIPTION,
    **overrides,
) -> Product:
    """Create a product with sensible defaults."""
    fields = {
        "display_name": "Premium Monthly",
        "description": "Unlock all premium features",
        "display_price": f"${price}",
        "subscription_period": (
            SubscriptionPeriod(1, PeriodUnit.MONTH)
            if product_type == ProductType.AUTO_RENEWABLE_SUBSCRIPTION
            else None
        ),
    }
    fields.update(overrides)
    return Product(
        id=product_id,
        price=price,
        currency_code=currency_code,
        type=product_type,
        **fields,
    )


def make_transaction(
    product_id: str = "com.app.premium.monthly",
    transaction_id: str = "txn_1000",
    price: Decimal | None = Decimal("9.99"),
    currency_code: str | None = "USD",
    **overrides,
) -> Transaction:
    """Create a transaction with sensible defaults."""
    return Transaction(
        id=transaction_id,
        product_id=product_id,
        purchase_date=overrides.pop("purchase_date", datetime.now(UTC)),
        price=price,
        currency_code=currency_code,
        **overrides,
    )


def make_entitlement(
    entitlement_id: str = "premium",
    is_active: bool = True,
    expires_in: timedelta | None = timedelta(days=30),
    **overrides,
) -> Entitlement:
    """Create an entitlement expiring relative to now (None for lifetime)."""
    return Entitlement(
        id=entitlement_id,
        is_active=is_active,
        product_id=overrides.pop("product_id", "com.app.premium.monthly"),
        expires_date=datetime.now(UTC) + expires_in if expires_in is not None else None,
        will_renew=overrides.pop("will_renew", True),
        period_type=overrides.pop("period_type", EntitlementPeriodType.NORMAL),
    )


def make_subscription_status(is_subscribed: bool = True, **overrides) -> SubscriptionStatus:
    """Create a subscription status with sensible defaults."""
    fields = {
        "active_product_id": "com.app.premium.monthly" if is_subscribed else None,
        "expires_date": datetime.now(UTC) + timedelta(days=30) if is_subscribed else None,
        "will_renew": is_subscribed,
    }
    fields.update(overrides)
    return SubscriptionStatus(is_subscribed=is_subscribed, **fields)


# ============================================================================
# Mock Provider
# ============================================================================


class MockPurchaseProvider:
    """
    In-memory PurchaseProvider.

    Set the *_result / *_error attributes to steer each operation; every call
    is recorded in the matching counter or list.
    """

    def __init__(self) -> None:
        self._is_configured = False

        self.products: list[Product] = [make_product()]
        self.offerings: dict[str, list[Product]] = {"default": [make_product()]}
        self.purchase_result: PurchaseResult = PurchaseSuccess(make_transaction())
        self.entitlements: list[Entitlement] = []
        self.status: SubscriptionStatus | None = None
        self.entitled_ids: set[str] = set()

        self.configure_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.purchase_error: Exception | None = None
        self.restore_error: Exception | None = None
        self.sync_error: Exception | None = None
        self.identify_error: Exception | None = None

        self.configured_with: PurchaseConfiguration | None = None
        self.fetched_identifiers: list[list[str]] = []
        self.purchased: list[Product] = []
        self.identified: list[str | None] = []
        self.configure_calls = 0
        self.restore_calls = 0
        self.sync_calls = 0
        self.log_out_calls = 0
        self.entitlement_reads = 0

    @property
    def is_configured(self) -> bool:
        return self._is_configured

    async def configure(self, config: PurchaseConfiguration) -> None:
        self.configure_calls += 1
        if self.configure_error:
            raise self.configure_error
        self.configured_with = config
        self._is_configured = True

    async def identify(self, user_id: str | None) -> None:
        self._ensure_configured()
        if self.identify_error:
            raise self.identify_error
        self.identified.append(user_id)

    async def log_out(self) -> None:
        self._ensure_configured()
        self.log_out_calls += 1

    async def fetch_products(self, identifiers: Iterable[str]) -> list[Product]:
        self._ensure_configured()
        requested = list(identifiers)
        self.fetched_identifiers.append(requested)
        if self.fetch_error:
            raise self.fetch_error
        return [product for product in self.products if product.id in requested]

    async def fetch_offerings(self) -> dict[str, list[Product]]:
        self._ensure_configured()
        if self.fetch_error:
            raise self.fetch_error
        return self.offerings

    async def purchase(self, product: Product) -> PurchaseResult:
        self._ensure_configured()
        self.purchased.append(product)
        if self.purchase_error:
            raise self.purchase_error
        return self.purchase_result

    async def restore_purchases(self) -> None:
        self._ensure_configured()
        self.restore_calls += 1
        if self.restore_error:
            raise self.restore_error

    async def sync_purchases(self) -> None:
        self._ensure_configured()
        self.sync_calls += 1
        if self.sync_error:
            raise self.sync_error

    async def has_entitlement(self, identifier: str) -> bool:
        return self._is_configured and identifier in self.entitled_ids

    async def current_entitlements(self) -> list[Entitlement]:
        self.entitlement_reads += 1
        return list(self.entitlements)

    async def subscription_status(self) -> SubscriptionStatus | None:
        return self.status

    def _ensure_configured(self) -> None:
        if not self._is_configured:
            raise NotConfiguredError()


# ============================================================================
# Mock Analytics
# ============================================================================


class MockAnalytics:
    """Analytics sink recording every tracked event."""

    def __init__(self) -> None:
        self.events: list[PurchaseEvent] = []

    def track(self, event: PurchaseEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def of_type(self, event_type: type) -> list:
        return [event for event in self.events if isinstance(event, event_type)]


class FailingAnalytics:
    """Analytics sink whose track() always raises."""

    def __init__(self) -> None:
        self.calls = 0

    def track(self, event: PurchaseEvent) -> None:
        self.calls += 1
        raise RuntimeError("analytics backend unavailable")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def config() -> PurchaseConfiguration:
    """Valid configuration with no identified user."""
    return PurchaseConfiguration(api_key="appl_test_key")


@pytest.fixture
def mock_provider() -> MockPurchaseProvider:
    return MockPurchaseProvider()


@pytest.fixture
def mock_analytics() -> MockAnalytics:
    return MockAnalytics()


@pytest.fixture
def manager(mock_provider: MockPurchaseProvider) -> PurchaseManager:
    """Unconfigured manager that builds the mock provider on configure()."""
    return PurchaseManager(provider_factory=lambda: mock_provider)


@pytest.fixture
def product() -> Product:
    return make_product()
