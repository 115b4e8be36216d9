# tests/test_snapshot.py
"""
Tests for CategorySnapshot and the category policies.

These run on unsaved Category instances; nothing touches the database.
"""

from categories.models import Category
from categories.policies import (
    INVALID_TYPE_MESSAGE,
    can_assign_parent,
    can_delete_category,
    validate_category_name,
    validate_category_type,
)
from categories.snapshot import CategorySnapshot


def cat(id, name, type="Expense", parent_id=None, company_id=1):
    return Category(id=id, company_id=company_id, name=name, type=type, parent_id=parent_id)


def chain():
    """1 <- 2 <- 3 (3 is the deepest)."""
    return [cat(1, "Travel"), cat(2, "Lodging", parent_id=1), cat(3, "Hotels", parent_id=2)]


# =============================================================================
# Snapshot
# =============================================================================

class TestSnapshotScope:

    def test_other_company_records_are_dropped(self):
        snapshot = CategorySnapshot(1, [cat(1, "Travel"), cat(2, "Travel", company_id=2)])

        assert len(snapshot) == 1
        assert snapshot.get(2) is None
        assert snapshot.resolve("Travel").matches == 1

    def test_apply_ignores_other_company(self):
        snapshot = CategorySnapshot(1, [])
        snapshot.apply(cat(5, "Foreign", company_id=2))
        assert len(snapshot) == 0

    def test_ids_compare_across_int_and_str(self):
        snapshot = CategorySnapshot("1", [cat(7, "Meals")])
        assert snapshot.get("7").name == "Meals"


class TestSnapshotResolve:

    def test_missing_name(self):
        resolution = CategorySnapshot(1, chain()).resolve("Nope")
        assert not resolution.found
        assert resolution.tie_warning() is None

    def test_first_match_wins_and_tie_is_reported(self):
        snapshot = CategorySnapshot(1, [cat(4, "Dup"), cat(9, "Dup")])
        resolution = snapshot.resolve("Dup")

        assert resolution.category.id == 4
        assert resolution.ambiguous
        assert "2 categories" in resolution.tie_warning()
        assert "id 4" in resolution.tie_warning()

    def test_names_are_case_sensitive(self):
        assert not CategorySnapshot(1, chain()).resolve("travel").found


class TestSnapshotMutation:

    def test_update_replaces_with_copy(self):
        original = cat(1, "Travel")
        snapshot = CategorySnapshot(1, [original])

        updated = snapshot.update(1, name="Trips")

        assert updated.name == "Trips"
        assert snapshot.resolve("Trips").found
        assert original.name == "Travel"

    def test_update_unknown_id_returns_none(self):
        assert CategorySnapshot(1, []).update(3, name="x") is None

    def test_apply_upserts(self):
        snapshot = CategorySnapshot(1, [cat(1, "Travel")])
        snapshot.apply(cat(1, "Trips"))
        snapshot.apply(cat(2, "Meals"))

        assert [c.name for c in snapshot] == ["Trips", "Meals"]

    def test_discard(self):
        snapshot = CategorySnapshot(1, chain())
        snapshot.discard(3)
        assert snapshot.get(3) is None
        assert len(snapshot) == 2

    def test_sorted_is_canonical(self):
        snapshot = CategorySnapshot(1, [
            cat(5, "Zeta", parent_id=1),
            cat(4, "Sales", type="Revenue"),
            cat(1, "Travel"),
            cat(3, "Alpha", parent_id=1),
            cat(2, "Cash", type="Asset"),
        ])

        assert [c.id for c in snapshot.sorted()] == [2, 1, 4, 3, 5]


class TestCycleDetection:

    def test_parent_below_child_is_a_cycle(self):
        snapshot = CategorySnapshot(1, chain())
        assert snapshot.would_create_cycle(1, 3)
        assert snapshot.would_create_cycle(1, 2)

    def test_moving_deep_node_up_is_fine(self):
        snapshot = CategorySnapshot(1, chain())
        assert not snapshot.would_create_cycle(3, 1)

    def test_detach_never_cycles(self):
        assert not CategorySnapshot(1, chain()).would_create_cycle(1, None)

    def test_existing_loop_does_not_hang(self):
        # 10 <-> 11 already form a loop; asking about 12 must terminate.
        snapshot = CategorySnapshot(1, [
            cat(10, "A", parent_id=11),
            cat(11, "B", parent_id=10),
            cat(12, "C"),
        ])
        assert not snapshot.would_create_cycle(12, 10)


# =============================================================================
# Policies
# =============================================================================

class TestFieldPolicies:

    def test_blank_name_rejected(self):
        allowed, reason = validate_category_name("   ")
        assert not allowed
        assert reason == "Category name is required."

    def test_long_name_rejected(self):
        allowed, _ = validate_category_name("x" * 256)
        assert not allowed

    def test_valid_types(self):
        for value in ("Asset", "Liability", "Equity", "Revenue", "COGS", "Expense"):
            assert validate_category_type(value) == (True, "")

    def test_invalid_type_message(self):
        allowed, reason = validate_category_type("Gadget")
        assert not allowed
        assert reason == INVALID_TYPE_MESSAGE
        assert reason == "Invalid category type. Must be one of: Asset, Liability, Equity, Revenue, COGS, Expense"

    def test_type_is_case_sensitive(self):
        allowed, _ = validate_category_type("expense")
        assert not allowed


class TestHierarchyPolicies:

    def test_self_parent_rejected(self):
        snapshot = CategorySnapshot(1, chain())
        travel = snapshot.get(1)
        allowed, reason = can_assign_parent(snapshot, travel, travel)
        assert not allowed
        assert reason == "Category cannot be its own parent."

    def test_descendant_parent_rejected(self):
        snapshot = CategorySnapshot(1, chain())
        allowed, reason = can_assign_parent(snapshot, snapshot.get(1), snapshot.get(3))
        assert not allowed
        assert "circular" in reason

    def test_cross_company_rejected(self):
        snapshot = CategorySnapshot(1, chain())
        foreign = cat(99, "Foreign", company_id=2)
        allowed, reason = can_assign_parent(snapshot, snapshot.get(1), foreign)
        assert not allowed
        assert reason == "Cross-company action denied."

    def test_detach_allowed(self):
        snapshot = CategorySnapshot(1, chain())
        assert can_assign_parent(snapshot, snapshot.get(3), None) == (True, "")


class TestDeletePolicies:

    def test_children_reported_with_count(self):
        allowed, reason = can_delete_category(1, cat(1, "Travel"), 2, False)
        assert not allowed
        assert "it has 2 subcategories" in reason

    def test_in_use_rejected(self):
        allowed, reason = can_delete_category(1, cat(1, "Travel"), 0, True)
        assert not allowed
        assert "used in existing transactions" in reason

    def test_children_checked_before_usage(self):
        _, reason = can_delete_category(1, cat(1, "Travel"), 1, True)
        assert "subcategories" in reason

    def test_leaf_unused_allowed(self):
        assert can_delete_category(1, cat(1, "Travel"), 0, False) == (True, "")
