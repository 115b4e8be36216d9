# tests/conftest.py
"""
Pytest fixtures for Ledgerly tests.

Commands are coroutines. Tests drive them through `run` (async_to_sync),
which keeps the async ORM on the test thread and therefore inside the
test transaction pytest-django opens for `db`.
"""

from datetime import date
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model

from accounts.authz import ActorContext
from accounts.models import Company, CompanyMembership
from categories.models import Category, Transaction
from categories.store import CategoryStore


User = get_user_model()

T = Category.CategoryType


# =============================================================================
# Async helpers
# =============================================================================

@pytest.fixture
def run():
    """Run a coroutine function to completion: run(fn, *args, **kwargs)."""
    def _run(fn, *args, **kwargs):
        return async_to_sync(fn)(*args, **kwargs)
    return _run


@pytest.fixture
def store():
    return CategoryStore()


# =============================================================================
# Company & User Fixtures
# =============================================================================

@pytest.fixture
def company(db):
    """Create a test company."""
    return Company.objects.create(
        name="Test Company",
        slug="test-company",
        is_active=True,
    )


@pytest.fixture
def second_company(db):
    """Create a second test company for multi-tenant tests."""
    return Company.objects.create(
        name="Second Company",
        slug="second-company",
        is_active=True,
    )


@pytest.fixture
def user(db, company):
    """Create a test user with owner membership."""
    user = User.objects.create_user(
        email="owner@test.com",
        password="testpass123",
        name="Test Owner",
    )
    user.active_company = company
    user.save()
    return user


@pytest.fixture
def member_user(db, company):
    """Create a user who will hold a Member (Accountant) membership."""
    user = User.objects.create_user(
        email="accountant@test.com",
        password="testpass123",
        name="Test Accountant",
    )
    user.active_company = company
    user.save()
    return user


@pytest.fixture
def owner_membership(db, company, user):
    """Create owner membership."""
    return CompanyMembership.objects.create(
        company=company,
        user=user,
        role=CompanyMembership.Role.OWNER,
        is_active=True,
    )


@pytest.fixture
def member_membership(db, company, member_user):
    """Create member membership."""
    return CompanyMembership.objects.create(
        company=company,
        user=member_user,
        role=CompanyMembership.Role.MEMBER,
        is_active=True,
    )


@pytest.fixture
def actor_context(user, company, owner_membership):
    """Create an ActorContext for the owner user."""
    return ActorContext(
        user=user,
        company=company,
        membership=owner_membership,
    )


# =============================================================================
# Category Fixtures
# =============================================================================

@pytest.fixture
def make_category(db, company):
    """Insert a category row directly, bypassing the command layer."""
    def _make(name, type=T.EXPENSE, parent=None, company=company):
        return Category.objects.create(
            company=company,
            name=name,
            type=type,
            parent=parent,
        )
    return _make


@pytest.fixture
def travel_tree(make_category):
    """
    Travel (Expense)
    ├── Airfare
    └── Lodging
        └── Hotels
    """
    travel = make_category("Travel")
    airfare = make_category("Airfare", parent=travel)
    lodging = make_category("Lodging", parent=travel)
    hotels = make_category("Hotels", parent=lodging)
    return {"travel": travel, "airfare": airfare, "lodging": lodging, "hotels": hotels}


@pytest.fixture
def make_transaction(db, company):
    """Insert a transaction that references categories."""
    def _make(selected=None, corresponding=None, company=company, amount="42.00"):
        return Transaction.objects.create(
            company=company,
            date=date(2024, 1, 15),
            description="Test transaction",
            amount=Decimal(amount),
            selected_category=selected,
            corresponding_category=corresponding,
        )
    return _make


@pytest.fixture
def categories(company):
    """Current categories of the test company, in store order."""
    def _load():
        return async_to_sync(CategoryStore().list_categories)(company.id)
    return _load


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Create a DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user, owner_membership):
    """Create an authenticated API client for the company owner."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def member_client(member_user, member_membership):
    """Create an authenticated API client for a non-owner member."""
    from rest_framework.test import APIClient
    client = APIClient()
    client.force_authenticate(user=member_user)
    return client
