"""
Prometheus Purchase Analytics - purchase events as Prometheus metrics.

Exposes event counts and completed revenue for monitoring.
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter

from purchasekit.analytics.events import PurchaseCompleted, PurchaseEvent


class PrometheusPurchaseAnalytics:
    """
    Analytics sink that counts purchase events.

    Metrics:
    - purchase_events_total{event, product_id}
    - purchase_revenue_total{currency}

    Pass a dedicated CollectorRegistry when more than one instance lives in
    the same process (tests, multiple managers).
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.events_total = Counter(
            "purchase_events_total",
            "Total purchase analytics events",
            ["event", "product_id"],
            registry=registry,
        )
        self.revenue_total = Counter(
            "purchase_revenue_total",
            "Revenue of completed purchases in major currency units",
            ["currency"],
            registry=registry,
        )

    def track(self, event: PurchaseEvent) -> None:
        self.events_total.labels(
            event=event.name,
            product_id=event.product_id or "",
        ).inc()

        if isinstance(event, PurchaseCompleted) and event.price > 0:
            self.revenue_total.labels(currency=event.currency).inc(float(event.price))
