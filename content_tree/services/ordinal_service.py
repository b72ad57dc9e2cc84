"""
Ordinal sequencing: per-parent unique order positions at every level
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ConflictError, HierarchyValidationError, NotFoundError
from ..hierarchy import get_spec
from ..models.enums import Level
from ..records import TreeRecord, order_key
from ..store import EntityStore

logger = logging.getLogger(__name__)


def scope_filters(
    level: Level, parent_id: Optional[str] = None, exam_id: Optional[str] = None
) -> Dict[str, Any]:
    """Filters selecting the sibling group a record of ``level`` belongs to.

    Exams share one global scope. Every other level is scoped by its direct
    parent; ``exam_id`` narrows the scope further where callers supply it.
    """
    spec = get_spec(level)
    if spec.parent_field is None:
        return {}
    if not parent_id:
        raise HierarchyValidationError(f"{spec.parent_field} is required")
    filters = {spec.parent_field: parent_id}
    if exam_id and spec.parent_field != "exam_id":
        filters["exam_id"] = exam_id
    return filters


def scope_of(record: TreeRecord) -> Dict[str, Any]:
    return scope_filters(record.level, record.parent_id, record.refs.get("exam_id"))


class OrdinalSequencer:
    """Assigns and validates sibling order positions"""

    def __init__(self, store: EntityStore):
        self.store = store

    async def siblings(self, level: Level, scope: Dict[str, Any]) -> List[TreeRecord]:
        records = await self.store.find(level, scope)
        return sorted(records, key=order_key)

    async def next_order(self, level: Level, scope: Dict[str, Any]) -> int:
        """Return max(order_number) + 1 within the scope, 1 when it is empty"""
        siblings = await self.store.find(level, scope)
        if not siblings:
            return 1
        return max(record.order_number for record in siblings) + 1

    async def validate_reorder(
        self,
        level: Level,
        scope: Dict[str, Any],
        proposed_order: int,
        exclude_record_id: Optional[str] = None,
    ) -> None:
        """Raise unless ``proposed_order`` is free within the scope"""
        if not isinstance(proposed_order, int) or proposed_order < 1:
            raise HierarchyValidationError("order_number must be a positive integer")
        for sibling in await self.store.find(level, scope):
            if sibling.id == exclude_record_id:
                continue
            if sibling.order_number == proposed_order:
                raise ConflictError(
                    f"Order {proposed_order} is already used by "
                    f"{get_spec(level).label} '{sibling.name}'"
                )

    async def move(self, level: Level, record_id: str, new_index: int) -> List[TreeRecord]:
        """Drag-and-drop within one sibling group.

        Removes the record from its current position, inserts it at
        ``new_index`` (0-based) and renumbers the whole group 1..n.
        """
        record = await self.store.get(level, record_id)
        if not record:
            raise NotFoundError(f"{get_spec(level).label} not found")

        siblings = await self.siblings(level, scope_of(record))
        if not 0 <= new_index < len(siblings):
            raise HierarchyValidationError(
                f"new_index must be between 0 and {len(siblings) - 1}"
            )

        current = next(i for i, sibling in enumerate(siblings) if sibling.id == record.id)
        siblings.insert(new_index, siblings.pop(current))
        return await self._renumber(level, siblings)

    async def apply_orders(self, level: Level, assignments: Dict[str, int]) -> List[TreeRecord]:
        """Apply explicit order numbers to records of one sibling group.

        Every record must exist and share the same parent scope, and the
        resulting group must have no duplicate order numbers.
        """
        if not assignments:
            raise HierarchyValidationError("No order assignments provided")

        scope = None
        for record_id, order in assignments.items():
            if not isinstance(order, int) or order < 1:
                raise HierarchyValidationError("order_number must be a positive integer")
            record = await self.store.get(level, record_id)
            if not record:
                raise NotFoundError(f"{get_spec(level).label} {record_id} not found")
            if scope is None:
                scope = scope_of(record)
            elif scope_of(record) != scope:
                raise HierarchyValidationError(
                    "Reordering is only allowed within one parent"
                )

        siblings = await self.siblings(level, scope)
        final = {
            sibling.id: assignments.get(sibling.id, sibling.order_number)
            for sibling in siblings
        }
        seen: Dict[int, str] = {}
        for record_id, order in final.items():
            if order in seen:
                raise ConflictError(f"Duplicate order_number {order} in reorder")
            seen[order] = record_id

        updated = []
        for sibling in siblings:
            if final[sibling.id] != sibling.order_number:
                updated.append(
                    await self.store.update(
                        level, sibling.id, {"order_number": final[sibling.id]}
                    )
                )
        logger.info(
            f"Reordered {len(updated)} {get_spec(level).label} records in scope {scope}"
        )
        return await self.siblings(level, scope)

    async def _renumber(self, level: Level, ordered: List[TreeRecord]) -> List[TreeRecord]:
        result = []
        for index, sibling in enumerate(ordered, start=1):
            if sibling.order_number != index:
                sibling = await self.store.update(level, sibling.id, {"order_number": index})
            result.append(sibling)
        return result
