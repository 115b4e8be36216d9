# categories/batch.py
"""
Batch sequencer for category operations.

A batch is an ordered list of heterogeneous operations (create, rename,
delete, ...) applied one after another for a single company. The
sequencer owns one CategorySnapshot and threads it through every step:

- each command reflects its own successful write in the snapshot;
- after every `create` the snapshot is re-listed from the store, so the
  new category (and its store-assigned id) is visible to later steps.

Steps are independent. A failing step is recorded and the batch moves on;
nothing is rolled back. Operations run strictly in input order, each one
awaited to completion before the next starts.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from ops.metrics import observe_category_batch, record_category_operation

from .commands import (
    CommandResult,
    ErrorKind,
    assign_parent_category,
    change_category_type_by_name,
    create_category,
    delete_category_by_name,
    reassign_parent_category,
    rename_category_by_name,
)
from .snapshot import CategorySnapshot
from .store import CategoryStore, CategoryStoreError

logger = logging.getLogger(__name__)


class BatchAction(str, Enum):
    CREATE = "create"
    ASSIGN_PARENT = "assign_parent"
    RENAME = "rename"
    DELETE = "delete"
    CHANGE_TYPE = "change_type"
    REASSIGN_PARENT = "reassign_parent"


# Request keys are camelCase on the wire.
_WIRE_FIELDS = {
    "type": "type",
    "parent_name": "parentName",
    "new_name": "newName",
    "new_type": "newType",
    "company_id": "companyId",
}

# Fields that must be present before a handler is invoked at all.
REQUIRED_FIELDS = {
    BatchAction.CREATE: ("type",),
    BatchAction.ASSIGN_PARENT: ("parent_name",),
    BatchAction.RENAME: ("new_name",),
    BatchAction.CHANGE_TYPE: ("new_type",),
    BatchAction.DELETE: (),
    BatchAction.REASSIGN_PARENT: (),
}


@dataclass(frozen=True)
class BatchOperation:
    """One requested step. `action` is kept as given so unknown values can be reported."""

    action: str
    name: str = ""
    type: Optional[str] = None
    parent_name: Optional[str] = None
    new_name: Optional[str] = None
    new_type: Optional[str] = None
    company_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BatchOperation":
        """Build from a request record; accepts camelCase or snake_case keys."""
        values = {
            field: data.get(wire, data.get(field))
            for field, wire in _WIRE_FIELDS.items()
        }
        return cls(
            action=str(data.get("action") or ""),
            name=data.get("name") or "",
            **values,
        )


@dataclass
class BatchStepResult:
    action: str
    name: str
    result: CommandResult


def _parse_action(value) -> Optional[BatchAction]:
    try:
        return BatchAction(value)
    except ValueError:
        return None


def _missing_field(action: BatchAction, op: BatchOperation) -> Optional[str]:
    for field in REQUIRED_FIELDS[action]:
        if not getattr(op, field):
            return _WIRE_FIELDS[field]
    return None


# =============================================================================
# Step handlers (one per BatchAction)
# =============================================================================

async def _run_create(op, snapshot, company_id, store) -> CommandResult:
    result = await create_category(company_id, op.name, op.type, store=store)
    try:
        snapshot.replace(await store.list_categories(company_id))
    except CategoryStoreError as exc:
        logger.warning(
            "Category snapshot refresh failed after create; keeping previous snapshot: %s",
            exc.message,
            extra={"company_id": company_id},
        )
        if result.success:
            snapshot.apply(result.data)
    return result


async def _run_assign_parent(op, snapshot, company_id, store) -> CommandResult:
    return await assign_parent_category(company_id, op.name, op.parent_name, snapshot, store=store)


async def _run_rename(op, snapshot, company_id, store) -> CommandResult:
    return await rename_category_by_name(company_id, op.name, op.new_name, snapshot, store=store)


async def _run_delete(op, snapshot, company_id, store) -> CommandResult:
    return await delete_category_by_name(company_id, op.name, snapshot, store=store)


async def _run_change_type(op, snapshot, company_id, store) -> CommandResult:
    return await change_category_type_by_name(company_id, op.name, op.new_type, snapshot, store=store)


async def _run_reassign_parent(op, snapshot, company_id, store) -> CommandResult:
    return await reassign_parent_category(company_id, op.name, op.parent_name, snapshot, store=store)


_HANDLERS = {
    BatchAction.CREATE: _run_create,
    BatchAction.ASSIGN_PARENT: _run_assign_parent,
    BatchAction.RENAME: _run_rename,
    BatchAction.DELETE: _run_delete,
    BatchAction.CHANGE_TYPE: _run_change_type,
    BatchAction.REASSIGN_PARENT: _run_reassign_parent,
}


async def _run_step(action, op: BatchOperation, snapshot, company_id, store) -> CommandResult:
    if action is None:
        return CommandResult.fail(f"Unknown action: {op.action}", kind=ErrorKind.VALIDATION)

    missing = _missing_field(action, op)
    if missing:
        return CommandResult.fail(
            f"Missing {missing} for {action.value} action",
            kind=ErrorKind.VALIDATION,
        )

    if op.company_id and str(op.company_id) != str(company_id):
        return CommandResult.fail(
            "Operation companyId does not match the batch company.",
            kind=ErrorKind.VALIDATION,
        )

    return await _HANDLERS[action](op, snapshot, company_id, store)


async def process_batch(
    operations: Iterable,
    categories: Iterable,
    company_id,
    *,
    store: CategoryStore = None,
) -> List[BatchStepResult]:
    """
    Apply `operations` in order and return one result per operation.

    Args:
        operations: BatchOperation instances or request dicts
        categories: The company's categories as the caller last saw them
        company_id: Company every step is scoped to

    Returns:
        BatchStepResult list in input order. The batch itself never fails.
    """
    store = store or CategoryStore()
    snapshot = CategorySnapshot(company_id, categories)
    results = []
    started = time.monotonic()

    for raw in operations:
        op = raw if isinstance(raw, BatchOperation) else BatchOperation.from_dict(raw)
        action = _parse_action(op.action)
        result = await _run_step(action, op, snapshot, company_id, store)
        # Metric labels come from the closed action set only.
        record_category_operation(action.value if action else "unknown", result)
        results.append(BatchStepResult(action=op.action, name=op.name, result=result))

    duration = time.monotonic() - started
    observe_category_batch(duration)

    failed = sum(1 for step in results if not step.result.success)
    logger.info(
        "Category batch processed",
        extra={
            "company_id": company_id,
            "operations": len(results),
            "failed": failed,
            "duration_ms": round(duration * 1000, 2),
        },
    )
    return results
