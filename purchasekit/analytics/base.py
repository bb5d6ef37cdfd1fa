"""
Purchase Analytics Protocol - pluggable sink for purchase events.
"""

from typing import Protocol

from purchasekit.analytics.events import PurchaseEvent


class PurchaseAnalytics(Protocol):
    """
    Analytics sink protocol.

    Implement this to forward purchase events to an analytics service.
    Delivery is best-effort: track() is called inline on the purchase path, so
    implementations must return quickly and hand slow I/O off to their own
    queue or task.

    Example:
        class SegmentAnalytics:
            def track(self, event: PurchaseEvent) -> None:
                analytics.track(user_id, event.name, {"product_id": event.product_id})
    """

    def track(self, event: PurchaseEvent) -> None:
        """
        Track a purchase event.

        Args:
            event: The event to record
        """
        ...
