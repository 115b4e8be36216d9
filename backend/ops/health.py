"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - liveness (is the process running?)
- /_health/ready   - readiness: the database answers and the
                     chart_of_accounts table is readable (migrations applied)
"""
import logging
import time

from django.db import DatabaseError
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


def check_category_table() -> dict:
    """
    Run the cheapest query the category store depends on.

    A missing table and an unreachable server both surface as
    DatabaseError, so one query covers connectivity and schema.
    """
    from categories.models import Category

    started = time.perf_counter()
    check = {"status": "healthy", "table": Category._meta.db_table}
    try:
        Category.objects.only("id").first()
    except DatabaseError as exc:
        logger.warning("Category table check failed", extra={"db_error": str(exc)})
        check.update(status="unhealthy", error=str(exc))
    check["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return check


class LivenessView(View):
    """Returns 200 while the process can serve requests at all."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """Returns 200 when categories can be read, 503 otherwise."""

    def get(self, request):
        check = check_category_table()
        ready = check["status"] == "healthy"
        return JsonResponse(
            {"status": "ready" if ready else "not_ready", "database": check},
            status=200 if ready else 503,
        )
