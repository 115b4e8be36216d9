# categories/commands.py
"""
Command layer for chart-of-accounts operations.

Commands are the single point where category mutations happen.
Views and the batch sequencer call commands; commands enforce rules.

Pattern:
1. Validate required inputs
2. Resolve the target (by id, or by name through the snapshot)
3. Apply business policies (categories/policies.py)
4. Perform the write through the CategoryStore
5. Reflect the write in the snapshot, if one was handed in
6. Return CommandResult

Commands never raise for business failures. Every failure comes back as
CommandResult.fail(...) tagged with an ErrorKind; store errors keep the
database's message unchanged.

Two entry styles:
- Identifier based (create_category, rename_category, ...): the primary API.
- Name based (rename_category_by_name, assign_parent_category, ...): resolve
  the name in the snapshot first (first match wins, ties reported as a
  warning), then delegate to the identifier based command.
"""

import logging

from .policies import (
    can_assign_parent,
    can_delete_category,
    validate_category_name,
    validate_category_type,
)
from .snapshot import CategorySnapshot, same_id
from .store import CategoryStore, CategoryStoreError

logger = logging.getLogger(__name__)


class ErrorKind:
    """Failure categories carried by CommandResult.error_kind."""

    VALIDATION = "validation"   # missing/blank input, unknown action
    NOT_FOUND = "not_found"     # name or id does not resolve in scope
    CONSTRAINT = "constraint"   # cycle, has children, in use, invalid type
    CONFLICT = "conflict"       # duplicate name where uniqueness was requested
    STORE = "store"             # the persistence call itself failed


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = await rename_category(company_id, category_id, "Travel")
        if result.success:
            category = result.data
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None, error_kind: str = None, warnings=None):
        self.success = success
        self.data = data
        self.error = error
        self.error_kind = error_kind
        self.warnings = list(warnings or [])

    @classmethod
    def ok(cls, data=None, warnings=None):
        return cls(success=True, data=data, warnings=warnings)

    @classmethod
    def fail(cls, error: str, kind: str = ErrorKind.VALIDATION, warnings=None):
        return cls(success=False, error=error, error_kind=kind, warnings=warnings)

    def with_warnings(self, warnings):
        self.warnings = [w for w in warnings if w] + self.warnings
        return self

    def __repr__(self):
        if self.success:
            return f"<CommandResult ok data={self.data!r}>"
        return f"<CommandResult fail {self.error_kind}: {self.error}>"


# =============================================================================
# Helpers
# =============================================================================

def _store_failure(action: str, exc: CategoryStoreError, **context) -> CommandResult:
    logger.error(
        "Category %s failed: %s",
        action,
        exc.message,
        extra={"category_action": action, **context},
    )
    return CommandResult.fail(exc.message, kind=ErrorKind.STORE)


def _invalid(action: str, message: str, kind: str = ErrorKind.VALIDATION, **context) -> CommandResult:
    logger.warning(
        "Category %s rejected: %s",
        action,
        message,
        extra={"category_action": action, **context},
    )
    return CommandResult.fail(message, kind=kind)


def _not_found_by_name(action: str, name: str) -> CommandResult:
    return _invalid(
        action,
        f'Could not find a category named "{name}".',
        kind=ErrorKind.NOT_FOUND,
        category_name=name,
    )


def _as_snapshot(company_id, categories) -> CategorySnapshot:
    """Accept a snapshot for this company as is; wrap anything else."""
    if isinstance(categories, CategorySnapshot) and str(categories.company_id) == str(company_id):
        return categories
    return CategorySnapshot(company_id, list(categories or ()))


def _resolve(snapshot: CategorySnapshot, name: str):
    resolution = snapshot.resolve(name)
    if resolution.ambiguous:
        logger.warning(
            resolution.tie_warning(),
            extra={"category_name": name, "matches": resolution.matches},
        )
    return resolution


async def load_snapshot(company_id, store: CategoryStore = None) -> CategorySnapshot:
    """
    Fetch the company's categories into a fresh snapshot.

    Raises:
        CategoryStoreError: if the listing fails
    """
    store = store or CategoryStore()
    return CategorySnapshot(company_id, await store.list_categories(company_id))


async def _find_target(company_id, category_id, snapshot, store):
    if snapshot is not None:
        return snapshot.get(category_id)
    return await store.get_category(category_id, company_id)


async def _name_taken(store, company_id, name, exclude_id=None) -> bool:
    existing = await store.find_by_name(name, company_id)
    return any(str(c.id) != str(exclude_id) for c in existing)


async def _write_patch(action, company_id, category, patch, snapshot, store) -> CommandResult:
    """Persist a partial update and mirror it into the snapshot."""
    try:
        updated = await store.update_category(category.id, company_id, patch)
    except CategoryStoreError as exc:
        return _store_failure(action, exc, category_id=category.id)

    if not updated:
        if snapshot is not None:
            snapshot.discard(category.id)
        return _invalid(action, "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category.id)

    if snapshot is not None:
        record = snapshot.update(category.id, **patch)
    else:
        record = category
        for field, value in patch.items():
            setattr(record, field, value)

    logger.info(
        "Category %s applied",
        action,
        extra={"category_action": action, "category_id": category.id, "changes": sorted(patch)},
    )
    return CommandResult.ok(record)


# =============================================================================
# Identifier-based commands
# =============================================================================

async def create_category(
    company_id,
    name: str,
    type: str,
    parent_id=None,
    *,
    store: CategoryStore = None,
    reject_duplicate_name: bool = False,
) -> CommandResult:
    """
    Create a new category in the company's chart of accounts.

    Args:
        company_id: Company the category belongs to
        name: Display name (trimmed before saving)
        type: One of Category.CategoryType values
        parent_id: Optional parent category id (must exist in the company)
        reject_duplicate_name: Fail with ErrorKind.CONFLICT if the name is
            already used in the company. Off by default: name collisions
            are otherwise left to the store.

    Returns:
        CommandResult with the created Category or error
    """
    if not company_id:
        return _invalid("create", "companyId is required.")
    if not type:
        return _invalid("create", "Category name and type are required.", category_name=name)

    allowed, reason = validate_category_name(name)
    if not allowed:
        return _invalid("create", reason, category_name=name)

    allowed, reason = validate_category_type(type)
    if not allowed:
        return _invalid("create", reason, kind=ErrorKind.CONSTRAINT, category_type=type)

    name = name.strip()
    store = store or CategoryStore()

    try:
        if parent_id is not None:
            parent = await store.get_category(parent_id, company_id)
            if parent is None:
                return _invalid("create", "Parent category not found.", kind=ErrorKind.NOT_FOUND, parent_id=parent_id)

        if reject_duplicate_name and await _name_taken(store, company_id, name):
            return _invalid(
                "create",
                "A category with this name already exists.",
                kind=ErrorKind.CONFLICT,
                category_name=name,
            )

        category = await store.insert_category(company_id, name, type, parent_id)
    except CategoryStoreError as exc:
        return _store_failure("create", exc, category_name=name)

    logger.info(
        "Category created",
        extra={"company_id": company_id, "category_id": category.id, "category_type": type},
    )
    return CommandResult.ok(category)


async def rename_category(
    company_id,
    category_id,
    new_name: str,
    *,
    snapshot: CategorySnapshot = None,
    store: CategoryStore = None,
    reject_duplicate_name: bool = False,
) -> CommandResult:
    """
    Change a category's name.

    Children and transactions point at the id, so nothing else changes.
    """
    allowed, reason = validate_category_name(new_name)
    if not allowed:
        return _invalid("rename", reason, category_id=category_id)

    new_name = new_name.strip()
    store = store or CategoryStore()

    try:
        category = await _find_target(company_id, category_id, snapshot, store)
        if category is None:
            return _invalid("rename", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category_id)

        if reject_duplicate_name and await _name_taken(store, company_id, new_name, exclude_id=category.id):
            return _invalid(
                "rename",
                "A category with this name already exists.",
                kind=ErrorKind.CONFLICT,
                category_name=new_name,
            )
    except CategoryStoreError as exc:
        return _store_failure("rename", exc, category_id=category_id)

    return await _write_patch("rename", company_id, category, {"name": new_name}, snapshot, store)


async def change_category_type(
    company_id,
    category_id,
    new_type: str,
    *,
    snapshot: CategorySnapshot = None,
    store: CategoryStore = None,
) -> CommandResult:
    """
    Change a category's accounting type.

    Only the category itself changes. Parents and descendants keep their
    own types even if that leaves the subtree mixed.
    """
    store = store or CategoryStore()

    try:
        category = await _find_target(company_id, category_id, snapshot, store)
    except CategoryStoreError as exc:
        return _store_failure("change_type", exc, category_id=category_id)

    if category is None:
        return _invalid("change_type", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category_id)

    allowed, reason = validate_category_type(new_type)
    if not allowed:
        return _invalid("change_type", reason, kind=ErrorKind.CONSTRAINT, category_type=new_type)

    return await _write_patch("change_type", company_id, category, {"type": new_type}, snapshot, store)


async def set_category_parent(
    company_id,
    category_id,
    parent_id,
    *,
    snapshot: CategorySnapshot = None,
    store: CategoryStore = None,
) -> CommandResult:
    """
    Point a category at a new parent, or detach it to a root (parent_id=None).

    The cycle check walks the snapshot; without one, the company's
    categories are loaded first.
    """
    store = store or CategoryStore()

    try:
        if snapshot is None:
            snapshot = await load_snapshot(company_id, store)
    except CategoryStoreError as exc:
        return _store_failure("set_parent", exc, category_id=category_id)

    child = snapshot.get(category_id)
    if child is None:
        return _invalid("set_parent", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category_id)

    parent = None
    if parent_id is not None:
        parent = snapshot.get(parent_id)
        if parent is None:
            return _invalid("set_parent", "Parent category not found.", kind=ErrorKind.NOT_FOUND, parent_id=parent_id)

    allowed, reason = can_assign_parent(snapshot, child, parent)
    if not allowed:
        return _invalid(
            "set_parent",
            reason,
            kind=ErrorKind.CONSTRAINT,
            category_id=child.id,
            parent_id=parent_id,
        )

    new_parent_id = parent.id if parent is not None else None
    return await _write_patch("set_parent", company_id, child, {"parent_id": new_parent_id}, snapshot, store)


async def delete_category(
    company_id,
    category_id,
    *,
    snapshot: CategorySnapshot = None,
    store: CategoryStore = None,
) -> CommandResult:
    """
    Permanently delete a category.

    Preconditions, checked in order against the live store:
    1. The category exists in the company
    2. It has no child categories
    3. No transaction references it (selected or corresponding side)

    Returns:
        CommandResult whose data is the company's re-sorted category list
    """
    if not company_id:
        return _invalid("delete", "companyId is required.")

    store = store or CategoryStore()

    try:
        category = await _find_target(company_id, category_id, snapshot, store)
        if category is None:
            return _invalid("delete", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category_id)

        children = await store.list_children(category.id, company_id)
        references = await store.find_transactions_referencing(category.id, company_id, limit=1)

        allowed, reason = can_delete_category(company_id, category, len(children), bool(references))
        if not allowed:
            return _invalid("delete", reason, kind=ErrorKind.CONSTRAINT, category_id=category.id)

        deleted = await store.delete_category(category.id, company_id)
    except CategoryStoreError as exc:
        return _store_failure("delete", exc, category_id=category_id)

    if not deleted:
        if snapshot is not None:
            snapshot.discard(category.id)
        return _invalid("delete", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category.id)

    logger.info(
        "Category deleted",
        extra={"company_id": company_id, "category_id": category.id},
    )

    try:
        categories = await store.list_categories(company_id)
    except CategoryStoreError as exc:
        # The delete itself committed; fall back to what we know locally.
        logger.error("Error fetching updated categories: %s", exc.message)
        if snapshot is None:
            return CommandResult.ok([])
        snapshot.discard(category.id)
        return CommandResult.ok(snapshot.sorted())

    if snapshot is not None:
        snapshot.replace(categories)
    return CommandResult.ok(categories)


async def update_category(
    company_id,
    category_id,
    *,
    store: CategoryStore = None,
    **updates,
) -> CommandResult:
    """
    Combined edit of name, type and parent in one write.

    Args:
        company_id: Company scope
        category_id: Category to update
        **updates: Any of name, type, parent_id

    Each field goes through the same checks as its single-purpose
    command. A new name must not already be used in the company.
    """
    allowed_fields = {"name", "type", "parent_id"}
    unknown = set(updates) - allowed_fields
    if unknown:
        return _invalid("update", f"Unsupported fields: {', '.join(sorted(unknown))}.")

    store = store or CategoryStore()

    try:
        snapshot = await load_snapshot(company_id, store)
    except CategoryStoreError as exc:
        return _store_failure("update", exc, category_id=category_id)

    category = snapshot.get(category_id)
    if category is None:
        return _invalid("update", "Category not found.", kind=ErrorKind.NOT_FOUND, category_id=category_id)

    patch = {}

    if "type" in updates and updates["type"] != category.type:
        allowed, reason = validate_category_type(updates["type"])
        if not allowed:
            return _invalid("update", reason, kind=ErrorKind.CONSTRAINT, category_type=updates["type"])
        patch["type"] = updates["type"]

    if "parent_id" in updates and not same_id(updates["parent_id"], category.parent_id):
        parent = None
        if updates["parent_id"] is not None:
            parent = snapshot.get(updates["parent_id"])
            if parent is None:
                return _invalid("update", "Parent category not found.", kind=ErrorKind.NOT_FOUND)
        allowed, reason = can_assign_parent(snapshot, category, parent)
        if not allowed:
            return _invalid("update", reason, kind=ErrorKind.CONSTRAINT, category_id=category.id)
        patch["parent_id"] = parent.id if parent is not None else None

    if "name" in updates:
        allowed, reason = validate_category_name(updates["name"])
        if not allowed:
            return _invalid("update", reason, category_id=category.id)
        new_name = updates["name"].strip()
        if new_name != category.name:
            try:
                if await _name_taken(store, company_id, new_name, exclude_id=category.id):
                    return _invalid(
                        "update",
                        "A category with this name already exists.",
                        kind=ErrorKind.CONFLICT,
                        category_name=new_name,
                    )
            except CategoryStoreError as exc:
                return _store_failure("update", exc, category_id=category.id)
            patch["name"] = new_name

    if not patch:
        return CommandResult.ok(category)  # No changes, no write

    return await _write_patch("update", company_id, category, patch, snapshot, store)


# =============================================================================
# Name-based commands
# =============================================================================

async def rename_category_by_name(company_id, old_name: str, new_name: str, categories, *, store=None) -> CommandResult:
    """Rename the first category called `old_name` in the snapshot."""
    if not old_name or not new_name or not company_id:
        return _invalid("rename", "Old name, new name, and companyId are required.")

    snapshot = _as_snapshot(company_id, categories)
    resolution = _resolve(snapshot, old_name)
    if not resolution.found:
        return _not_found_by_name("rename", old_name)

    result = await rename_category(
        company_id, resolution.category.id, new_name, snapshot=snapshot, store=store,
    )
    return result.with_warnings([resolution.tie_warning()])


async def change_category_type_by_name(company_id, name: str, new_type: str, categories, *, store=None) -> CommandResult:
    """Retype the first category called `name` in the snapshot."""
    if not name or not new_type or not company_id:
        return _invalid("change_type", "Category name, new type, and companyId are required.")

    snapshot = _as_snapshot(company_id, categories)
    resolution = _resolve(snapshot, name)
    if not resolution.found:
        return _not_found_by_name("change_type", name)

    result = await change_category_type(
        company_id, resolution.category.id, new_type, snapshot=snapshot, store=store,
    )
    return result.with_warnings([resolution.tie_warning()])


async def delete_category_by_name(company_id, name: str, categories, *, store=None) -> CommandResult:
    """Delete the first category called `name` in the snapshot."""
    if not name or not company_id:
        return _invalid("delete", "Category name and companyId are required.")

    snapshot = _as_snapshot(company_id, categories)
    resolution = _resolve(snapshot, name)
    if not resolution.found:
        return _not_found_by_name("delete", name)

    result = await delete_category(
        company_id, resolution.category.id, snapshot=snapshot, store=store,
    )
    return result.with_warnings([resolution.tie_warning()])


async def assign_parent_category(company_id, child_name: str, parent_name: str, categories, *, store=None) -> CommandResult:
    """
    Make `parent_name` the parent of `child_name`.

    Fails if either name is missing or unknown, if the names point at the
    same category, or if the parent currently sits below the child.
    """
    if not child_name or not parent_name or not company_id:
        return _invalid("assign_parent", "Child name, parent name, and companyId are required.")

    snapshot = _as_snapshot(company_id, categories)
    return await _set_parent_by_name("assign_parent", company_id, child_name, parent_name, snapshot, store)


async def reassign_parent_category(company_id, child_name: str, parent_name, categories, *, store=None) -> CommandResult:
    """
    Move `child_name` under `parent_name`, or make it a root when
    parent_name is None.
    """
    if not child_name or not company_id:
        return _invalid("reassign_parent", "Child name and companyId are required.")

    snapshot = _as_snapshot(company_id, categories)
    return await _set_parent_by_name("reassign_parent", company_id, child_name, parent_name or None, snapshot, store)


async def _set_parent_by_name(action, company_id, child_name, parent_name, snapshot, store) -> CommandResult:
    child = _resolve(snapshot, child_name)
    if not child.found:
        return _not_found_by_name(action, child_name)

    warnings = [child.tie_warning()]
    parent_id = None
    if parent_name is not None:
        parent = _resolve(snapshot, parent_name)
        if not parent.found:
            return _not_found_by_name(action, parent_name)
        warnings.append(parent.tie_warning())
        parent_id = parent.category.id

    result = await set_category_parent(
        company_id, child.category.id, parent_id, snapshot=snapshot, store=store,
    )
    return result.with_warnings(warnings)
