"""
Exception Classes - Strongly typed purchase error taxonomy.

Every error belongs to exactly one PurchaseErrorKind. Retryability and the
recovery suggestion are derived from the kind alone so the host UI never has
to inspect message strings.
"""

from enum import Enum


class PurchaseErrorKind(str, Enum):
    """Closed set of purchase error kinds."""

    NOT_CONFIGURED = "not_configured"
    INVALID_API_KEY = "invalid_api_key"
    PRODUCT_NOT_FOUND = "product_not_found"
    FETCH_PRODUCTS_FAILED = "fetch_products_failed"
    PURCHASE_FAILED = "purchase_failed"
    USER_CANCELLED = "user_cancelled"
    PAYMENT_PENDING = "payment_pending"
    PURCHASE_NOT_ALLOWED = "purchase_not_allowed"
    ENTITLEMENT_VERIFICATION_FAILED = "entitlement_verification_failed"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @property
    def is_retryable(self) -> bool:
        """Whether the user can reasonably retry the failed operation."""
        return self not in _NON_RETRYABLE_KINDS

    @property
    def recovery_suggestion(self) -> str | None:
        """User-facing hint on how to recover, if there is one."""
        return _RECOVERY_SUGGESTIONS.get(self)


_NON_RETRYABLE_KINDS = frozenset(
    {
        PurchaseErrorKind.NOT_CONFIGURED,
        PurchaseErrorKind.INVALID_API_KEY,
        PurchaseErrorKind.PRODUCT_NOT_FOUND,
        PurchaseErrorKind.USER_CANCELLED,
        PurchaseErrorKind.PURCHASE_NOT_ALLOWED,
    }
)

_RECOVERY_SUGGESTIONS: dict[PurchaseErrorKind, str] = {
    PurchaseErrorKind.NOT_CONFIGURED: "Please restart the app and try again.",
    PurchaseErrorKind.INVALID_API_KEY: "Please contact support.",
    PurchaseErrorKind.NETWORK_ERROR: "Please check your internet connection and try again.",
    PurchaseErrorKind.TIMEOUT: "Please check your internet connection and try again.",
    PurchaseErrorKind.PURCHASE_NOT_ALLOWED: (
        "Please check your device settings to enable purchases."
    ),
    PurchaseErrorKind.PAYMENT_PENDING: (
        "Your purchase is awaiting approval. You'll be notified when it's complete."
    ),
}


class PurchaseError(Exception):
    """Base exception for all purchase errors."""

    kind: PurchaseErrorKind = PurchaseErrorKind.UNKNOWN

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.detail:
            return f"An error occurred: {self.detail}"
        return "An error occurred."

    @property
    def is_retryable(self) -> bool:
        return self.kind.is_retryable

    @property
    def recovery_suggestion(self) -> str | None:
        return self.kind.recovery_suggestion

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PurchaseError):
            return NotImplemented
        return self.kind == other.kind and self.detail == other.detail

    def __hash__(self) -> int:
        return hash((self.kind, self.detail))


class NotConfiguredError(PurchaseError):
    """Raised when an operation runs before configure() succeeded."""

    kind = PurchaseErrorKind.NOT_CONFIGURED

    def _format_message(self) -> str:
        return "Purchase provider is not configured. Call configure() first."


class InvalidAPIKeyError(PurchaseError):
    """Raised when the API key is blank or rejected by the backend."""

    kind = PurchaseErrorKind.INVALID_API_KEY

    def _format_message(self) -> str:
        if self.detail:
            return f"Invalid API key provided: {self.detail}"
        return "Invalid API key provided."


class ProductNotFoundError(PurchaseError):
    """Raised when a product identifier cannot be resolved."""

    kind = PurchaseErrorKind.PRODUCT_NOT_FOUND

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(product_id)

    def _format_message(self) -> str:
        return f"Product not found: {self.product_id}"


class FetchProductsFailedError(PurchaseError):
    """Raised when products or offerings cannot be fetched."""

    kind = PurchaseErrorKind.FETCH_PRODUCTS_FAILED

    def _format_message(self) -> str:
        return f"Failed to fetch products: {self.detail}"


class PurchaseFailedError(PurchaseError):
    """Raised when a purchase operation fails outright."""

    kind = PurchaseErrorKind.PURCHASE_FAILED

    def _format_message(self) -> str:
        return f"Purchase failed: {self.detail}"


class UserCancelledError(PurchaseError):
    """Raised when the user cancels an operation that has no result channel."""

    kind = PurchaseErrorKind.USER_CANCELLED

    def _format_message(self) -> str:
        return "Purchase was cancelled."


class PaymentPendingError(PurchaseError):
    """Raised when a payment awaits external approval."""

    kind = PurchaseErrorKind.PAYMENT_PENDING

    def _format_message(self) -> str:
        return "Payment is pending approval."


class PurchaseNotAllowedError(PurchaseError):
    """Raised when the device or account may not make purchases."""

    kind = PurchaseErrorKind.PURCHASE_NOT_ALLOWED

    def _format_message(self) -> str:
        return "Purchases are not allowed on this device."


class EntitlementVerificationFailedError(PurchaseError):
    """Raised when entitlements cannot be verified."""

    kind = PurchaseErrorKind.ENTITLEMENT_VERIFICATION_FAILED

    def _format_message(self) -> str:
        return f"Entitlement verification failed: {self.detail}"


class NetworkError(PurchaseError):
    """Raised when the backend cannot be reached."""

    kind = PurchaseErrorKind.NETWORK_ERROR

    def _format_message(self) -> str:
        return f"Network error: {self.detail}"


class PurchaseTimeoutError(PurchaseError):
    """Raised when a backend request times out."""

    kind = PurchaseErrorKind.TIMEOUT

    def _format_message(self) -> str:
        return "Request timed out."


class UnknownPurchaseError(PurchaseError):
    """Raised for backend failures with no more specific kind."""

    kind = PurchaseErrorKind.UNKNOWN


_ERROR_CLASSES: dict[PurchaseErrorKind, type[PurchaseError]] = {
    cls.kind: cls
    for cls in (
        NotConfiguredError,
        InvalidAPIKeyError,
        FetchProductsFailedError,
        PurchaseFailedError,
        UserCancelledError,
        PaymentPendingError,
        PurchaseNotAllowedError,
        EntitlementVerificationFailedError,
        NetworkError,
        PurchaseTimeoutError,
        UnknownPurchaseError,
    )
}


def error_for_kind(kind: PurchaseErrorKind, detail: str | None = None) -> PurchaseError:
    """
    Build the exception matching an error kind.

    Args:
        kind: Error kind
        detail: Optional diagnostic string (the product ID for PRODUCT_NOT_FOUND)

    Returns:
        PurchaseError subclass instance for the kind
    """
    if kind is PurchaseErrorKind.PRODUCT_NOT_FOUND:
        return ProductNotFoundError(detail or "")
    return _ERROR_CLASSES[kind](detail)
