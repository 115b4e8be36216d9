from django.contrib import admin
from django.urls import include, path

from ops.urls import metrics_patterns

urlpatterns = [
    # Operations endpoints (no auth required)
    path("_health/", include("ops.urls")),
    path("_metrics/", include(metrics_patterns)),

    # Admin and API
    path("admin/", admin.site.urls),
    path("api/categories/", include("categories.urls")),
    path("api-auth/", include("rest_framework.urls")),
]
