"""
Prometheus metrics endpoint.

Exposes application metrics in Prometheus format for scraping.

Metrics exposed:
- ledgerly_category_operations_total: Category operations by action and outcome
- ledgerly_category_batch_duration_seconds: Wall time of category batches
- ledgerly_categories: Number of categories per company (collected on scrape)
"""
import logging

from django.db import DatabaseError
from django.db.models import Count
from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)


_category_operations = Counter(
    "ledgerly_category_operations_total",
    "Category operations processed, by action and outcome",
    ["action", "outcome"],
)

_category_batch_duration = Histogram(
    "ledgerly_category_batch_duration_seconds",
    "Category batch processing time in seconds",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

_categories = Gauge(
    "ledgerly_categories",
    "Number of chart-of-accounts categories",
    ["company_slug"],
)


def record_category_operation(action: str, result) -> None:
    """
    Count one processed operation.

    `action` must be a BatchAction value or "unknown"; raw client input
    is never used as a label.

    Usage:
        record_category_operation("rename", result)
    """
    if result.success:
        outcome = "success"
    else:
        outcome = result.error_kind or "error"
    _category_operations.labels(action=action, outcome=outcome).inc()


def observe_category_batch(duration_seconds: float) -> None:
    _category_batch_duration.observe(duration_seconds)


def collect_metrics():
    """Collect current gauge values."""
    from categories.models import Category

    try:
        counts = (
            Category.objects
            .values("company__slug")
            .annotate(count=Count("id"))
        )
        for row in counts:
            _categories.labels(company_slug=row["company__slug"] or "unknown").set(row["count"])
    except DatabaseError as e:
        logger.error(f"Error collecting metrics: {e}")


def get_prometheus_response():
    """Generate Prometheus metrics response."""
    collect_metrics()
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Exposes metrics in Prometheus format at /_metrics.
    Should be protected in production (internal network only).
    """

    def get(self, request):
        return get_prometheus_response()
