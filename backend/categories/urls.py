# categories/urls.py
"""
URL configuration for the categories API.

Endpoints:
- / - list and create
- /<id>/ - combined edit and delete
- /batch/ - ordered batch of name-based operations
- /presets/ - seed the default chart of accounts
"""

from django.urls import path

from .views import (
    CategoryBatchView,
    CategoryDetailView,
    CategoryListCreateView,
    CategoryPresetView,
)

app_name = "categories"

urlpatterns = [
    path("", CategoryListCreateView.as_view(), name="category-list"),
    path("batch/", CategoryBatchView.as_view(), name="category-batch"),
    path("presets/", CategoryPresetView.as_view(), name="category-presets"),
    path("<int:category_id>/", CategoryDetailView.as_view(), name="category-detail"),
]
