"""
Default Purchase Analytics - logs every purchase event with structlog.
"""

import logging
from typing import Any

import structlog

from purchasekit.analytics.events import (
    PaywallViewed,
    PurchaseCompleted,
    PurchaseEvent,
    PurchaseFailed,
    RestoreFailed,
)
from purchasekit.observability.logging import get_logger


class DefaultPurchaseAnalytics:
    """
    Analytics sink that writes events to the structured log.

    Useful during development and as the fallback when the host installs no
    analytics of its own. Never raises.
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self.logger = logger or get_logger(__name__)

    def track(self, event: PurchaseEvent) -> None:
        fields: dict[str, Any] = {"analytics_event": event.name}
        if event.product_id is not None:
            fields["product_id"] = event.product_id

        if isinstance(event, PaywallViewed):
            fields["paywall_id"] = event.paywall_id or "default"
        elif isinstance(event, PurchaseCompleted):
            fields["price"] = str(event.price)
            fields["currency"] = event.currency
            fields["transaction_id"] = event.transaction_id

        try:
            if isinstance(event, (PurchaseFailed, RestoreFailed)):
                self.logger.warning("purchase_analytics_event", error=event.error, **fields)
            else:
                self.logger.info("purchase_analytics_event", **fields)
        except Exception:
            logging.getLogger(__name__).debug(
                "purchase analytics event %s dropped", event.name, exc_info=True
            )
