# categories/admin.py
"""
Django admin configuration for chart-of-accounts models.

Categories are mutated through categories/commands.py so the parent,
delete and in-use checks always run. The admin is for browsing.
"""

from django.contrib import admin

from .models import Category, Transaction


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Base admin class for models that must not be edited directly."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Category)
class CategoryAdmin(ReadOnlyModelAdmin):
    list_display = ("name", "type", "parent", "company", "updated_at")
    list_filter = ("type", "company")
    search_fields = ("name",)
    ordering = ("company", "type", "name")


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "description", "amount", "selected_category", "corresponding_category", "company")
    list_filter = ("company",)
    search_fields = ("description",)
    date_hierarchy = "date"
