# categories/snapshot.py
"""
In-memory view of one company's chart of accounts.

Commands validate against a snapshot instead of re-querying the store for
every check. The batch sequencer owns a single snapshot and hands it to
each step in turn; a step that writes successfully reflects its own write
here, so later steps in the same batch see it.
"""

import copy
from dataclasses import dataclass
from typing import Iterable, List, Optional


def same_id(a, b) -> bool:
    if a is None or b is None:
        return a is b
    return str(a) == str(b)


def canonical_sort_key(category):
    """Roots first, then by parent id, type, name and id."""
    return (
        category.parent_id is not None,
        category.parent_id or 0,
        category.type,
        category.name,
        category.id,
    )


@dataclass(frozen=True)
class NameResolution:
    """
    Outcome of looking a category up by name.

    category is the first match in snapshot order (None when nothing
    matched); matches counts every category carrying that name.
    """
    name: str
    category: Optional[object]
    matches: int

    @property
    def found(self) -> bool:
        return self.category is not None

    @property
    def ambiguous(self) -> bool:
        return self.matches > 1

    def tie_warning(self) -> Optional[str]:
        if not self.ambiguous:
            return None
        return (
            f'{self.matches} categories are named "{self.name}"; '
            f"using the first one (id {self.category.id})."
        )


class CategorySnapshot:
    """
    The categories of a single company at a point in time.

    Records belonging to any other company are dropped on construction
    and on replace(), so nothing outside the scope can ever be resolved.
    """

    def __init__(self, company_id, categories: Iterable = ()):
        self.company_id = company_id
        self._categories: List = []
        self.replace(categories)

    def __iter__(self):
        return iter(self._categories)

    def __len__(self):
        return len(self._categories)

    @property
    def categories(self) -> list:
        return list(self._categories)

    def sorted(self) -> list:
        return sorted(self._categories, key=canonical_sort_key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, category_id):
        for category in self._categories:
            if same_id(category.id, category_id):
                return category
        return None

    def resolve(self, name: str) -> NameResolution:
        """First match wins; the number of matches is reported alongside."""
        matches = [c for c in self._categories if c.name == name]
        return NameResolution(
            name=name,
            category=matches[0] if matches else None,
            matches=len(matches),
        )

    def would_create_cycle(self, child_id, parent_id) -> bool:
        """
        True if making parent_id the parent of child_id closes a loop.

        Walks parent pointers upward from the proposed parent; meeting the
        child on the way means the parent is one of its descendants.
        """
        if parent_id is None:
            return False
        current = parent_id
        visited = set()
        while current is not None and str(current) not in visited:
            if same_id(current, child_id):
                return True
            visited.add(str(current))
            node = self.get(current)
            current = node.parent_id if node is not None else None
        return False

    # ------------------------------------------------------------------
    # Mutation (used by commands after a successful store write)
    # ------------------------------------------------------------------

    def replace(self, categories: Iterable) -> None:
        self._categories = [
            c for c in categories if same_id(c.company_id, self.company_id)
        ]

    def apply(self, category) -> None:
        """Insert the category, or replace the entry with the same id."""
        if not same_id(category.company_id, self.company_id):
            return
        for index, existing in enumerate(self._categories):
            if same_id(existing.id, category.id):
                self._categories[index] = category
                return
        self._categories.append(category)

    def update(self, category_id, **changes):
        """
        Record field changes for one category and return the new record.

        The stored object is replaced by an updated copy; objects the
        caller passed in are never modified.
        """
        current = self.get(category_id)
        if current is None:
            return None
        updated = copy.copy(current)
        for field, value in changes.items():
            setattr(updated, field, value)
        self.apply(updated)
        return updated

    def discard(self, category_id) -> None:
        self._categories = [
            c for c in self._categories if not same_id(c.id, category_id)
        ]
