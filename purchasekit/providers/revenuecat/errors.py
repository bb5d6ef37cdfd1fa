"""
RevenueCat backend errors.

ErrorCode mirrors the RevenueCat SDK error codes. Only the RevenueCat adapter
references these; everything else sees the PurchaseError taxonomy.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """RevenueCat SDK error codes."""

    UNKNOWN = 0
    PURCHASE_CANCELLED = 1
    STORE_PROBLEM = 2
    PURCHASE_NOT_ALLOWED = 3
    PURCHASE_INVALID = 4
    PRODUCT_NOT_AVAILABLE_FOR_PURCHASE = 5
    PRODUCT_ALREADY_PURCHASED = 6
    RECEIPT_ALREADY_IN_USE = 7
    INVALID_RECEIPT = 8
    MISSING_RECEIPT_FILE = 9
    NETWORK = 10
    INVALID_CREDENTIALS = 11
    UNEXPECTED_BACKEND_RESPONSE = 12
    INVALID_APP_USER_ID = 14
    OPERATION_ALREADY_IN_PROGRESS = 15
    UNKNOWN_BACKEND = 16
    INSUFFICIENT_PERMISSIONS = 19
    PAYMENT_PENDING = 20
    LOG_OUT_ANONYMOUS_USER = 22
    CONFIGURATION = 23


class RevenueCatError(Exception):
    """Raised by the RevenueCat backend SDK and its store gateway."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        backend_code: int | None = None,
        is_timeout: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.backend_code = backend_code  # REST API error code, when present
        self.is_timeout = is_timeout
        super().__init__(f"RevenueCat error {code.name}: {message}")
