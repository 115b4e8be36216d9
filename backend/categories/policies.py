# categories/policies.py
"""
Business policy functions for chart-of-accounts operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Design Principles:
1. Policies are pure functions (no side effects, no queries)
2. Policies return (bool, str) tuples for clear error messages
3. Policies check ONE thing conceptually
4. Commands gather whatever state a policy needs and compose them

Usage:
    from categories.policies import can_delete_category

    allowed, reason = can_delete_category(company_id, category, child_count, in_use)
    if not allowed:
        return CommandResult.fail(reason, kind=ErrorKind.CONSTRAINT)
"""

from .models import Category


MAX_NAME_LENGTH = 255

VALID_CATEGORY_TYPES = tuple(Category.CategoryType.values)

INVALID_TYPE_MESSAGE = (
    f"Invalid category type. Must be one of: {', '.join(VALID_CATEGORY_TYPES)}"
)


# =============================================================================
# Tenant Boundary Policies
# =============================================================================

def check_tenant_boundary(company_id, entity) -> bool:
    """
    Verify entity belongs to the company the operation is scoped to.
    This is the fundamental multi-tenant security check.
    """
    entity_company_id = getattr(entity, "company_id", None)
    if entity_company_id is None or company_id is None:
        return False
    return str(entity_company_id) == str(company_id)


# =============================================================================
# Field Policies
# =============================================================================

def validate_category_name(name) -> tuple[bool, str]:
    """
    Rules:
    - Must be a non-blank string
    - At most 255 characters after trimming
    """
    if not isinstance(name, str) or not name.strip():
        return False, "Category name is required."
    if len(name.strip()) > MAX_NAME_LENGTH:
        return False, f"Category name is too long (maximum {MAX_NAME_LENGTH} characters)."
    return True, ""


def validate_category_type(value) -> tuple[bool, str]:
    """The type must be one of the six chart-of-accounts classes, exact case."""
    if value not in VALID_CATEGORY_TYPES:
        return False, INVALID_TYPE_MESSAGE
    return True, ""


# =============================================================================
# Hierarchy Policies
# =============================================================================

def can_assign_parent(snapshot, child, parent) -> tuple[bool, str]:
    """
    Check if `parent` may become the parent of `child`.

    Rules:
    - Both must belong to the snapshot's company
    - A category cannot be its own parent
    - The parent cannot be a descendant of the child (no cycles)

    A None parent (detach to root) is always allowed.
    """
    if not check_tenant_boundary(snapshot.company_id, child):
        return False, "Cross-company action denied."

    if parent is None:
        return True, ""

    if not check_tenant_boundary(snapshot.company_id, parent):
        return False, "Cross-company action denied."

    if str(parent.id) == str(child.id):
        return False, "Category cannot be its own parent."

    if snapshot.would_create_cycle(child.id, parent.id):
        return False, "Cannot move category: this would create a circular dependency."

    return True, ""


# =============================================================================
# Delete Policies
# =============================================================================

def can_delete_category(company_id, category, child_count: int, in_use: bool) -> tuple[bool, str]:
    """
    Check if a category can be deleted.

    Rules:
    - Must belong to the operation's company
    - Cannot have child categories
    - Cannot be referenced by any transaction
    """
    if not check_tenant_boundary(company_id, category):
        return False, "Cross-company action denied."

    if child_count > 0:
        return False, (
            f"Cannot delete category because it has {child_count} subcategories. "
            "Please delete or reassign them first."
        )

    if in_use:
        return False, (
            "Cannot delete category because it is used in existing transactions. "
            "Please reassign or delete the transactions first."
        )

    return True, ""
