"""
Purchase Result - closed set of purchase outcomes.

Expected, non-exceptional outcomes (cancelled, pending, requires action,
unknown) are returned as values, never raised. Only PurchaseSuccess carries a
transaction.
"""

from dataclasses import dataclass

from purchasekit.models.domain import Transaction


@dataclass(frozen=True)
class PurchaseResult:
    """Base class for purchase outcomes. Use one of the subclasses below."""

    @property
    def is_success(self) -> bool:
        return isinstance(self, PurchaseSuccess)

    @property
    def is_cancelled(self) -> bool:
        return isinstance(self, PurchaseCancelled)

    @property
    def is_pending(self) -> bool:
        return isinstance(self, PurchasePending)

    @property
    def transaction(self) -> Transaction | None:
        """The transaction for a successful purchase, None otherwise."""
        return None


@dataclass(frozen=True)
class PurchaseSuccess(PurchaseResult):
    """Purchase completed successfully."""

    completed_transaction: Transaction

    @property
    def transaction(self) -> Transaction | None:
        return self.completed_transaction


@dataclass(frozen=True)
class PurchaseCancelled(PurchaseResult):
    """User cancelled the purchase."""


@dataclass(frozen=True)
class PurchasePending(PurchaseResult):
    """Purchase awaits approval (e.g. Ask to Buy)."""


@dataclass(frozen=True)
class PurchaseRequiresAction(PurchaseResult):
    """Purchase needs user action, such as updating a payment method."""

    message: str


@dataclass(frozen=True)
class PurchaseUnknown(PurchaseResult):
    """Outcome could not be determined."""
