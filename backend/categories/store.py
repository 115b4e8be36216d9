# categories/store.py
"""
Category store adapter.

The only module that talks to the database for chart-of-accounts rows.
Every call is scoped by company_id and is async (Django's async ORM), so
a batch awaits each read/write before moving on to the next step.

No business rules live here. Database failures are re-raised as
CategoryStoreError carrying the driver's message unchanged.
"""

import functools
import logging

from django.db import DatabaseError
from django.db.models import F, Q
from django.utils import timezone

from .models import Category, Transaction

logger = logging.getLogger(__name__)

# parent_id ascending (roots first), then type, then name; id breaks ties.
CANONICAL_ORDER = (F("parent_id").asc(nulls_first=True), "type", "name", "id")

UPDATABLE_FIELDS = frozenset({"name", "type", "parent_id"})


class CategoryStoreError(Exception):
    """A persistence call failed."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _store_call(func):
    """Translate database errors raised by an async store method."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DatabaseError as exc:
            logger.error(
                "Category store call failed: %s",
                func.__name__,
                extra={"store_call": func.__name__, "db_error": str(exc)},
            )
            raise CategoryStoreError(str(exc)) from exc

    return wrapper


class CategoryStore:
    """
    Company-scoped reads and writes for the chart_of_accounts table.

    Usage:
        store = CategoryStore()
        categories = await store.list_categories(company_id)
    """

    @_store_call
    async def list_categories(self, company_id) -> list:
        """Full scan of one company's categories in canonical order."""
        qs = Category.objects.filter(company_id=company_id).order_by(*CANONICAL_ORDER)
        return [category async for category in qs]

    @_store_call
    async def get_category(self, category_id, company_id):
        """Return the category, or None if it does not exist in this company."""
        return await Category.objects.filter(
            id=category_id,
            company_id=company_id,
        ).afirst()

    @_store_call
    async def find_by_name(self, name: str, company_id) -> list:
        qs = Category.objects.filter(company_id=company_id, name=name).order_by("id")
        return [category async for category in qs]

    @_store_call
    async def insert_category(self, company_id, name: str, type: str, parent_id=None) -> Category:
        return await Category.objects.acreate(
            company_id=company_id,
            name=name,
            type=type,
            parent_id=parent_id,
        )

    @_store_call
    async def update_category(self, category_id, company_id, patch: dict) -> bool:
        """
        Apply a partial update.

        Returns:
            True if a row was updated, False if the id does not exist in
            this company.
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update category fields: {', '.join(sorted(unknown))}")

        updated = await Category.objects.filter(
            id=category_id,
            company_id=company_id,
        ).aupdate(updated_at=timezone.now(), **patch)
        return updated > 0

    @_store_call
    async def delete_category(self, category_id, company_id) -> bool:
        deleted, _ = await Category.objects.filter(
            id=category_id,
            company_id=company_id,
        ).adelete()
        return deleted > 0

    @_store_call
    async def list_children(self, parent_id, company_id) -> list:
        qs = Category.objects.filter(
            parent_id=parent_id,
            company_id=company_id,
        ).order_by("name", "id")
        return [category async for category in qs]

    @_store_call
    async def find_transactions_referencing(self, category_id, company_id, limit: int = 1) -> list:
        """Ids of transactions that use the category on either side."""
        qs = Transaction.objects.filter(
            Q(selected_category_id=category_id) | Q(corresponding_category_id=category_id),
            company_id=company_id,
        ).order_by("id").values_list("id", flat=True)[:limit]
        return [txn_id async for txn_id in qs]
