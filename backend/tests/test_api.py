# tests/test_api.py
"""
API tests for the categories endpoints and the ops endpoints.

Tests cover:
- Company context resolution (header, active company, membership)
- Status mapping of command failures
- Batch responses (always 200, one result per operation)
- Owner-only preset seeding
"""

import pytest

from categories.models import Category


T = Category.CategoryType

LIST_URL = "/api/categories/"
BATCH_URL = "/api/categories/batch/"
PRESETS_URL = "/api/categories/presets/"


def detail_url(category_id):
    return f"/api/categories/{category_id}/"


# =============================================================================
# Company context
# =============================================================================

@pytest.mark.django_db
class TestCompanyContext:

    def test_requires_authentication(self, api_client):
        response = api_client.get(LIST_URL)
        assert response.status_code == 401

    def test_lists_active_company(self, authenticated_client, travel_tree, second_company, make_category):
        make_category("Foreign", company=second_company)

        response = authenticated_client.get(LIST_URL)

        assert response.status_code == 200
        assert [c["name"] for c in response.data] == ["Travel", "Airfare", "Lodging", "Hotels"]

    def test_header_for_company_without_membership(self, authenticated_client, second_company):
        response = authenticated_client.get(LIST_URL, HTTP_X_COMPANY_ID=str(second_company.id))
        assert response.status_code == 403

    def test_malformed_header(self, authenticated_client):
        response = authenticated_client.get(LIST_URL, HTTP_X_COMPANY_ID="abc")
        assert response.status_code == 400

    def test_no_company_context(self, api_client, user, owner_membership):
        user.active_company = None
        user.save()
        api_client.force_authenticate(user=user)

        response = api_client.get(LIST_URL)
        assert response.status_code == 403

    def test_inactive_membership(self, authenticated_client, owner_membership):
        owner_membership.is_active = False
        owner_membership.save()

        response = authenticated_client.get(LIST_URL)
        assert response.status_code == 403


# =============================================================================
# Single operations
# =============================================================================

@pytest.mark.django_db
class TestCategoryEndpoints:

    def test_create(self, authenticated_client, company):
        response = authenticated_client.post(LIST_URL, {"name": "Travel", "type": T.EXPENSE}, format="json")

        assert response.status_code == 201
        assert response.data["success"] is True
        assert response.data["category"]["name"] == "Travel"
        assert response.data["category"]["company_id"] == company.id
        assert [c["name"] for c in response.data["categories"]] == ["Travel"]

    def test_create_invalid_type(self, authenticated_client):
        response = authenticated_client.post(LIST_URL, {"name": "Widgets", "type": "Gadget"}, format="json")

        assert response.status_code == 400
        assert response.data["errorKind"] == "constraint"
        assert response.data["error"].startswith("Invalid category type.")

    def test_create_duplicate_name_conflicts(self, authenticated_client, travel_tree):
        response = authenticated_client.post(LIST_URL, {"name": "Travel", "type": T.EXPENSE}, format="json")
        assert response.status_code == 409

    def test_patch(self, authenticated_client, travel_tree):
        response = authenticated_client.patch(
            detail_url(travel_tree["airfare"].id),
            {"name": "Flights", "parent_id": None},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["category"]["name"] == "Flights"
        assert response.data["category"]["parent_id"] is None

    def test_patch_cycle(self, authenticated_client, travel_tree):
        response = authenticated_client.patch(
            detail_url(travel_tree["travel"].id),
            {"parent_id": travel_tree["hotels"].id},
            format="json",
        )
        assert response.status_code == 400
        assert "circular" in response.data["error"]

    def test_patch_empty_body(self, authenticated_client, travel_tree):
        response = authenticated_client.patch(detail_url(travel_tree["travel"].id), {}, format="json")
        assert response.status_code == 400

    def test_patch_other_company_is_not_found(self, authenticated_client, second_company, make_category):
        foreign = make_category("Theirs", company=second_company)
        response = authenticated_client.patch(detail_url(foreign.id), {"name": "Mine"}, format="json")

        assert response.status_code == 404
        foreign.refresh_from_db()
        assert foreign.name == "Theirs"

    def test_delete(self, authenticated_client, travel_tree):
        response = authenticated_client.delete(detail_url(travel_tree["hotels"].id))

        assert response.status_code == 200
        assert response.data["success"] is True
        assert [c["name"] for c in response.data["categories"]] == ["Travel", "Airfare", "Lodging"]

    def test_delete_with_children(self, authenticated_client, travel_tree):
        response = authenticated_client.delete(detail_url(travel_tree["travel"].id))

        assert response.status_code == 400
        assert "subcategories" in response.data["error"]

    def test_delete_missing(self, authenticated_client):
        response = authenticated_client.delete(detail_url(987654))
        assert response.status_code == 404


# =============================================================================
# Batch
# =============================================================================

@pytest.mark.django_db
class TestBatchEndpoint:

    def test_batch_reports_each_step(self, authenticated_client, travel_tree):
        response = authenticated_client.post(BATCH_URL, {"operations": [
            {"action": "create", "name": "Meals", "type": T.EXPENSE},
            {"action": "assign_parent", "name": "Meals", "parentName": "Travel"},
            {"action": "delete", "name": "Travel"},
            {"action": "fly"},
        ]}, format="json")

        assert response.status_code == 200
        results = response.data["results"]
        assert [r["action"] for r in results] == ["create", "assign_parent", "delete", "fly"]
        assert [r["result"]["success"] for r in results] == [True, True, False, False]
        assert "it has 3 subcategories" in results[2]["result"]["error"]
        assert results[3]["result"]["error"] == "Unknown action: fly"

    def test_batch_tie_warning(self, authenticated_client, make_category):
        make_category("Dup")
        make_category("Dup")

        response = authenticated_client.post(BATCH_URL, {"operations": [
            {"action": "rename", "name": "Dup", "newName": "Single"},
        ]}, format="json")

        result = response.data["results"][0]["result"]
        assert result["success"] is True
        assert len(result["warnings"]) == 1

    def test_batch_limit(self, authenticated_client, settings):
        settings.CATEGORY_BATCH_MAX_OPERATIONS = 2
        response = authenticated_client.post(BATCH_URL, {"operations": [
            {"action": "delete", "name": "A"},
            {"action": "delete", "name": "B"},
            {"action": "delete", "name": "C"},
        ]}, format="json")
        assert response.status_code == 400

    def test_batch_requires_operations(self, authenticated_client):
        response = authenticated_client.post(BATCH_URL, {}, format="json")
        assert response.status_code == 400


# =============================================================================
# Presets
# =============================================================================

@pytest.mark.django_db
class TestPresetEndpoint:

    def test_owner_can_seed(self, authenticated_client, company):
        response = authenticated_client.post(PRESETS_URL, format="json")

        assert response.status_code == 200
        assert all(r["result"]["success"] for r in response.data["results"])
        assert Category.objects.filter(company=company, name="Owner's Equity").exists()

    def test_member_cannot_seed(self, member_client, company):
        response = member_client.post(PRESETS_URL, format="json")

        assert response.status_code == 403
        assert not Category.objects.filter(company=company).exists()


# =============================================================================
# Ops endpoints
# =============================================================================

@pytest.mark.django_db
class TestOpsEndpoints:

    def test_liveness(self, client):
        response = client.get("/_health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/_health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_metrics(self, client, authenticated_client, travel_tree):
        authenticated_client.post(BATCH_URL, {"operations": [
            {"action": "rename", "name": "Airfare", "newName": "Flights"},
        ]}, format="json")

        response = client.get("/_metrics/")

        assert response.status_code == 200
        body = response.content.decode()
        assert "ledgerly_category_operations_total" in body
        assert 'ledgerly_categories{company_slug="test-company"}' in body
