# categories/presets.py
"""
Default chart of accounts for a new company.

Seeding runs through the batch sequencer: one `create` per missing
category, then one `assign_parent` per child. The snapshot refresh after
each create is what lets the parent links resolve the freshly created
parents by name.
"""

import logging
from typing import NamedTuple, Optional

from .batch import BatchAction, BatchOperation, process_batch
from .models import Category
from .store import CategoryStore

logger = logging.getLogger(__name__)

T = Category.CategoryType


class PresetCategory(NamedTuple):
    name: str
    type: str
    parent_name: Optional[str] = None


PRESET_CATEGORIES = (
    # Revenue
    PresetCategory("Sales", T.REVENUE),
    PresetCategory("Discounts", T.REVENUE, "Sales"),

    # COGS
    PresetCategory("Merchandise", T.COGS),

    # Expense
    PresetCategory("Travel", T.EXPENSE),
    PresetCategory("Operating Expenses", T.EXPENSE),
    PresetCategory("Payroll Expenses", T.EXPENSE),
    PresetCategory("Airfare", T.EXPENSE, "Travel"),
    PresetCategory("Lodging", T.EXPENSE, "Travel"),
    PresetCategory("Meals & Entertainment", T.EXPENSE),
    PresetCategory("Software", T.EXPENSE, "Operating Expenses"),
    PresetCategory("Supplies", T.EXPENSE, "Operating Expenses"),
    PresetCategory("Bank Charges", T.EXPENSE, "Operating Expenses"),
    PresetCategory("Payroll Wages", T.EXPENSE, "Payroll Expenses"),
    PresetCategory("Payroll Taxes", T.EXPENSE, "Payroll Expenses"),

    # Asset
    PresetCategory("Current Assets", T.ASSET),
    PresetCategory("Fixed Assets", T.ASSET),
    PresetCategory("Equipment", T.ASSET, "Fixed Assets"),

    # Liability
    PresetCategory("Current Liabilities", T.LIABILITY),

    # Equity
    PresetCategory("Owner's Equity", T.EQUITY),
    PresetCategory("Owner's Investment", T.EQUITY, "Owner's Equity"),
    PresetCategory("Owner's Distribution", T.EQUITY, "Owner's Equity"),
)


def build_preset_operations(existing_names, presets=PRESET_CATEGORIES) -> list:
    """
    Batch operations that add every preset not already present by name.

    Creates come first so every parent exists before any child is linked.
    """
    existing_names = set(existing_names)
    missing = [p for p in presets if p.name not in existing_names]

    operations = [
        BatchOperation(action=BatchAction.CREATE.value, name=p.name, type=p.type.value)
        for p in missing
    ]
    operations += [
        BatchOperation(action=BatchAction.ASSIGN_PARENT.value, name=p.name, parent_name=p.parent_name)
        for p in missing
        if p.parent_name
    ]
    return operations


async def seed_preset_categories(company_id, *, store: CategoryStore = None) -> list:
    """
    Add the default chart of accounts to a company.

    Existing categories are left alone, so running this twice is harmless.

    Raises:
        CategoryStoreError: if the initial listing fails

    Returns:
        The batch step results (empty when nothing was missing)
    """
    store = store or CategoryStore()
    categories = await store.list_categories(company_id)
    operations = build_preset_operations(c.name for c in categories)
    if not operations:
        logger.info("Preset categories already present", extra={"company_id": company_id})
        return []

    return await process_batch(operations, categories, company_id, store=store)
