"""
Tests for the RevenueCat REST client.

Uses httpx.MockTransport to stand in for the RevenueCat API and an in-memory
store gateway for the platform store.
"""

import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import httpx
import pytest

from purchasekit.config import StoreKitVersion
from purchasekit.providers.revenuecat.client import (
    ANONYMOUS_ID_PREFIX,
    RevenueCatClient,
    generate_anonymous_id,
)
from purchasekit.providers.revenuecat.errors import ErrorCode, RevenueCatError
from purchasekit.providers.revenuecat.models import (
    StoreProduct,
    StorePurchase,
    StoreReceipt,
    StoreTransaction,
)

REQUEST_DATE = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def subscriber_body(entitlements: dict | None = None, subscriptions: dict | None = None) -> dict:
    return {
        "request_date": iso(REQUEST_DATE),
        "subscriber": {
            "original_app_user_id": "user_1",
            "management_url": "https://apps.apple.com/account/subscriptions",
            "entitlements": entitlements or {},
            "subscriptions": subscriptions or {},
        },
    }


def store_product(product_id: str = "com.app.premium.monthly") -> StoreProduct:
    return StoreProduct(
        product_identifier=product_id,
        localized_title="Premium",
        localized_description="All features",
        price=Decimal("9.99"),
        localized_price_string="$9.99",
        product_type="AUTO_RENEWABLE_SUBSCRIPTION",
        currency_code="USD",
    )


class FakeStore:
    """In-memory StoreGateway."""

    def __init__(self) -> None:
        self.catalog = {p.product_identifier: p for p in [store_product(), store_product("com.app.pro.yearly")]}
        self.purchase_error: RevenueCatError | None = None
        self.history: list[StoreReceipt] = []
        self.purchases: list[tuple[str, str]] = []

    async def products(self, identifiers):
        return [self.catalog[i] for i in identifiers if i in self.catalog]

    async def purchase(self, product, app_user_id):
        self.purchases.append((product.product_identifier, app_user_id))
        if self.purchase_error:
            raise self.purchase_error
        return StorePurchase(
            fetch_token="receipt-data",
            transaction=StoreTransaction(
                transaction_identifier="1000000001",
                product_identifier=product.product_identifier,
                purchase_date=REQUEST_DATE,
            ),
        )

    async def receipts(self):
        return list(self.history)


class Backend:
    """Records requests and answers them with canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], tuple[int, dict]] = {}
        self.fallback: dict | None = None

    def route(self, method: str, path: str, status: int = 200, body=None) -> None:
        self.routes[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.raw_path.decode().split("?")[0])
        if key in self.routes:
            status, body = self.routes[key]
            return httpx.Response(status, json=body)
        if self.fallback is not None:
            return httpx.Response(200, json=self.fallback)
        return httpx.Response(404, json={"code": 7259, "message": "Not found"})


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client(backend, store) -> RevenueCatClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
    client = RevenueCatClient(store, http_client=http_client)
    client.configure("appl_test_key", app_user_id="user_1")
    return client


class TestConfigure:
    """Tests for client configuration and identity."""

    def test_blank_key_rejected(self, store):
        client = RevenueCatClient(store)
        with pytest.raises(RevenueCatError) as exc_info:
            client.configure("  ")
        assert exc_info.value.code == ErrorCode.INVALID_CREDENTIALS
        assert client.is_configured is False

    def test_anonymous_user_generated(self, store):
        client = RevenueCatClient(store)
        client.configure("appl_test_key")
        assert client.app_user_id.startswith(ANONYMOUS_ID_PREFIX)
        assert client.is_anonymous is True

    def test_second_configure_ignored(self, store):
        client = RevenueCatClient(store)
        client.configure("appl_first", app_user_id="user_1")
        client.configure("appl_second", app_user_id="user_2")
        assert client.app_user_id == "user_1"

    def test_unconfigured_app_user_id_raises(self, store):
        with pytest.raises(RevenueCatError) as exc_info:
            RevenueCatClient(store).app_user_id
        assert exc_info.value.code == ErrorCode.CONFIGURATION

    def test_anonymous_ids_unique(self):
        assert generate_anonymous_id() != generate_anonymous_id()


class TestRequests:
    """Tests for request construction and error handling."""

    @pytest.mark.asyncio
    async def test_headers(self, client, backend):
        backend.route("GET", "/v1/subscribers/user_1", body=subscriber_body())

        await client.customer_info()

        request = backend.requests[0]
        assert request.headers["Authorization"] == "Bearer appl_test_key"
        assert request.headers["X-Platform"] == "ios"
        assert request.headers["X-StoreKit2-Enabled"] == "true"

    @pytest.mark.asyncio
    async def test_storekit1_header(self, backend, store):
        client = RevenueCatClient(
            store, http_client=httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
        )
        client.configure("appl_key", app_user_id="user_1", store_kit_version=StoreKitVersion.STORE_KIT_1)
        backend.route("GET", "/v1/subscribers/user_1", body=subscriber_body())

        await client.customer_info()

        assert backend.requests[0].headers["X-StoreKit2-Enabled"] == "false"

    @pytest.mark.asyncio
    async def test_user_id_is_quoted(self, store, backend):
        client = RevenueCatClient(
            store, http_client=httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
        )
        client.configure("appl_key", app_user_id="a/b c")
        backend.route("GET", "/v1/subscribers/a%2Fb%20c", body=subscriber_body())

        await client.customer_info()

        assert backend.requests[0].url.raw_path == b"/v1/subscribers/a%2Fb%20c"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, ErrorCode.INVALID_CREDENTIALS),
            (403, ErrorCode.INVALID_CREDENTIALS),
            (400, ErrorCode.UNEXPECTED_BACKEND_RESPONSE),
            (500, ErrorCode.UNKNOWN_BACKEND),
        ],
    )
    async def test_http_errors(self, client, backend, status, expected):
        backend.route("GET", "/v1/subscribers/user_1", status=status, body={"code": 7225, "message": "nope"})

        with pytest.raises(RevenueCatError) as exc_info:
            await client.customer_info()

        assert exc_info.value.code == expected
        assert exc_info.value.backend_code == 7225
        assert exc_info.value.message == "nope"

    @pytest.mark.asyncio
    async def test_timeout(self, store):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = RevenueCatClient(store, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        client.configure("appl_key", app_user_id="user_1")

        with pytest.raises(RevenueCatError) as exc_info:
            await client.customer_info()

        assert exc_info.value.code == ErrorCode.NETWORK
        assert exc_info.value.is_timeout is True

    @pytest.mark.asyncio
    async def test_transport_error(self, store):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = RevenueCatClient(store, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        client.configure("appl_key", app_user_id="user_1")

        with pytest.raises(RevenueCatError) as exc_info:
            await client.customer_info()

        assert exc_info.value.code == ErrorCode.NETWORK
        assert exc_info.value.is_timeout is False

    @pytest.mark.asyncio
    async def test_invalid_payload(self, client, backend):
        backend.route("GET", "/v1/subscribers/user_1", body={"unexpected": True})

        with pytest.raises(RevenueCatError) as exc_info:
            await client.customer_info()

        assert exc_info.value.code == ErrorCode.UNEXPECTED_BACKEND_RESPONSE


class TestCustomerInfo:
    """Tests for subscriber payload parsing."""

    @pytest.mark.asyncio
    async def test_active_and_expired_entitlements(self, client, backend):
        backend.route(
            "GET",
            "/v1/subscribers/user_1",
            body=subscriber_body(
                entitlements={
                    "premium": {
                        "product_identifier": "com.app.premium.monthly",
                        "expires_date": iso(REQUEST_DATE + timedelta(days=20)),
                    },
                    "old": {
                        "product_identifier": "com.app.old",
                        "expires_date": iso(REQUEST_DATE - timedelta(days=20)),
                    },
                    "lifetime": {"product_identifier": "com.app.lifetime", "expires_date": None},
                },
                subscriptions={
                    "com.app.premium.monthly": {
                        "expires_date": iso(REQUEST_DATE + timedelta(days=20)),
                        "period_type": "trial",
                    },
                    "com.app.old": {"expires_date": iso(REQUEST_DATE - timedelta(days=20))},
                },
            ),
        )

        info = await client.customer_info()

        assert set(info.active_entitlements) == {"premium", "lifetime"}
        assert info.entitlements["premium"].period_type == "TRIAL"
        assert info.entitlements["premium"].will_renew is True
        assert info.entitlements["lifetime"].will_renew is False
        assert info.active_subscriptions == frozenset({"com.app.premium.monthly"})
        assert info.management_url == "https://apps.apple.com/account/subscriptions"

    @pytest.mark.asyncio
    async def test_grace_period_keeps_entitlement_active(self, client, backend):
        backend.route(
            "GET",
            "/v1/subscribers/user_1",
            body=subscriber_body(
                entitlements={
                    "premium": {
                        "product_identifier": "com.app.premium.monthly",
                        "expires_date": iso(REQUEST_DATE - timedelta(days=1)),
                        "grace_period_expires_date": iso(REQUEST_DATE + timedelta(days=5)),
                    }
                },
                subscriptions={
                    "com.app.premium.monthly": {
                        "expires_date": iso(REQUEST_DATE - timedelta(days=1)),
                        "billing_issues_detected_at": iso(REQUEST_DATE - timedelta(days=2)),
                    }
                },
            ),
        )

        info = await client.customer_info()

        premium = info.entitlements["premium"]
        assert premium.is_active is True
        assert premium.is_in_grace_period is True
        assert premium.will_renew is False
        assert premium.billing_issue_detected_at is not None

    @pytest.mark.asyncio
    async def test_unsubscribed_does_not_renew(self, client, backend):
        backend.route(
            "GET",
            "/v1/subscribers/user_1",
            body=subscriber_body(
                entitlements={
                    "premium": {
                        "product_identifier": "com.app.premium.monthly",
                        "expires_date": iso(REQUEST_DATE + timedelta(days=3)),
                    }
                },
                subscriptions={
                    "com.app.premium.monthly": {
                        "expires_date": iso(REQUEST_DATE + timedelta(days=3)),
                        "unsubscribe_detected_at": iso(REQUEST_DATE - timedelta(days=1)),
                    }
                },
            ),
        )

        info = await client.customer_info()

        assert info.entitlements["premium"].will_renew is False
        assert info.entitlements["premium"].is_active is True


class TestIdentity:
    """Tests for log_in and log_out."""

    @pytest.mark.asyncio
    async def test_log_in_switches_user(self, client, backend):
        backend.route("POST", "/v1/subscribers/identify", status=201, body=subscriber_body())

        _, created = await client.log_in("user_2")

        assert created is True
        assert client.app_user_id == "user_2"
        assert json.loads(backend.requests[0].content) == {
            "app_user_id": "user_1",
            "new_app_user_id": "user_2",
        }

    @pytest.mark.asyncio
    async def test_log_in_same_user_fetches_info(self, client, backend):
        backend.route("GET", "/v1/subscribers/user_1", body=subscriber_body())

        _, created = await client.log_in("user_1")

        assert created is False
        assert backend.requests[0].method == "GET"

    @pytest.mark.asyncio
    async def test_log_in_blank_user_rejected(self, client):
        with pytest.raises(RevenueCatError) as exc_info:
            await client.log_in(" ")
        assert exc_info.value.code == ErrorCode.INVALID_APP_USER_ID

    @pytest.mark.asyncio
    async def test_log_out_switches_to_anonymous(self, client, backend):
        backend.fallback = subscriber_body()

        await client.log_out()

        assert client.is_anonymous is True
        assert backend.requests[0].url.raw_path.startswith(b"/v1/subscribers/%24RCAnonymousID%3A")

    @pytest.mark.asyncio
    async def test_log_out_anonymous_rejected(self, store):
        client = RevenueCatClient(store)
        client.configure("appl_key")

        with pytest.raises(RevenueCatError) as exc_info:
            await client.log_out()
        assert exc_info.value.code == ErrorCode.LOG_OUT_ANONYMOUS_USER


class TestOfferings:
    """Tests for offerings resolution."""

    @pytest.mark.asyncio
    async def test_resolves_packages_and_drops_empty(self, client, backend):
        backend.route(
            "GET",
            "/v1/subscribers/user_1/offerings",
            body={
                "current_offering_id": "default",
                "offerings": [
                    {
                        "identifier": "default",
                        "description": "Standard paywall",
                        "packages": [
                            {"identifier": "$rc_monthly", "platform_product_identifier": "com.app.premium.monthly"},
                            {"identifier": "$rc_annual", "platform_product_identifier": "com.app.missing"},
                        ],
                    },
                    {
                        "identifier": "empty",
                        "packages": [{"identifier": "$rc_weekly", "platform_product_identifier": "com.app.gone"}],
                    },
                ],
            },
        )

        offerings = await client.offerings()

        assert list(offerings.all) == ["default"]
        assert offerings.current.identifier == "default"
        packages = offerings.current.available_packages
        assert [p.store_product.product_identifier for p in packages] == ["com.app.premium.monthly"]


class TestPurchases:
    """Tests for purchase, restore and sync."""

    @pytest.mark.asyncio
    async def test_purchase_posts_receipt(self, client, backend, store):
        backend.route("POST", "/v1/receipts", body=subscriber_body())

        outcome = await client.purchase(store_product())

        assert outcome.user_cancelled is False
        assert outcome.transaction.transaction_identifier == "1000000001"
        assert outcome.customer_info is not None
        assert store.purchases == [("com.app.premium.monthly", "user_1")]
        payload = json.loads(backend.requests[0].content)
        assert payload["fetch_token"] == "receipt-data"
        assert payload["price"] == "9.99"
        assert payload["currency"] == "USD"
        assert payload["is_restore"] is False

    @pytest.mark.asyncio
    async def test_purchase_cancelled_by_store(self, client, backend, store):
        store.purchase_error = RevenueCatError(ErrorCode.PURCHASE_CANCELLED, "cancelled")

        outcome = await client.purchase(store_product())

        assert outcome.user_cancelled is True
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_purchase_store_error_propagates(self, client, store):
        store.purchase_error = RevenueCatError(ErrorCode.PAYMENT_PENDING, "ask to buy")

        with pytest.raises(RevenueCatError) as exc_info:
            await client.purchase(store_product())
        assert exc_info.value.code == ErrorCode.PAYMENT_PENDING

    @pytest.mark.asyncio
    async def test_restore_posts_every_receipt(self, client, backend, store):
        store.history = [
            StoreReceipt(fetch_token="r1", product_identifier="com.app.premium.monthly"),
            StoreReceipt(fetch_token="r2", product_identifier="com.app.pro.yearly"),
        ]
        backend.route("POST", "/v1/receipts", body=subscriber_body())

        await client.restore_purchases()

        payloads = [json.loads(r.content) for r in backend.requests]
        assert [p["fetch_token"] for p in payloads] == ["r1", "r2"]
        assert all(p["is_restore"] is True for p in payloads)

    @pytest.mark.asyncio
    async def test_sync_without_receipts_fetches_info(self, client, backend):
        backend.route("GET", "/v1/subscribers/user_1", body=subscriber_body())

        info = await client.sync_purchases()

        assert info.original_app_user_id == "user_1"
        assert [r.method for r in backend.requests] == ["GET"]
