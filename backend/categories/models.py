# categories/models.py
"""
Chart-of-accounts models.

Models:
- Category: a node in a company's chart of accounts. The parent relation
  forms a forest per company (roots have parent=None).
- Transaction: the minimal slice of a bank/ledger transaction this service
  needs, i.e. the two category references that make a category "in use".

Mutations go through categories/commands.py, which validates against a
snapshot of the company's categories before touching these tables.
"""

from django.db import models

from accounts.models import Company


class Category(models.Model):
    """
    Chart of Accounts entry.

    Names are unique per company only by convention; lookups by name use a
    first-match-wins policy (see categories/snapshot.py).
    """

    class CategoryType(models.TextChoices):
        ASSET = "Asset", "Asset"
        LIABILITY = "Liability", "Liability"
        EQUITY = "Equity", "Equity"
        REVENUE = "Revenue", "Revenue"
        COGS = "COGS", "Cost of Goods Sold"
        EXPENSE = "Expense", "Expense"

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="categories",
    )
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=CategoryType.choices)

    # Hierarchy
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "chart_of_accounts"
        indexes = [
            models.Index(fields=["company", "name"], name="coa_company_name_idx"),
            models.Index(fields=["company", "parent"], name="coa_company_parent_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"


class Transaction(models.Model):
    """
    A categorized money movement.

    Both category references use PROTECT so the database backs up the
    in-use check done by the delete command.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    selected_category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="selected_transactions",
    )
    corresponding_category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="corresponding_transactions",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["company", "date"], name="txn_company_date_idx"),
        ]

    def __str__(self):
        return f"{self.date} {self.description} {self.amount}"
