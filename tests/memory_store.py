"""
In-memory EntityStore used by the test suite.

Implements the same contract as BeanieEntityStore: sorted finds, flat
equality/membership filters, matched counts from bulk writes. ``fail_on``
injects an error for a given (operation, level) pair.
"""

import itertools
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from bson import ObjectId

from content_tree.exceptions import HierarchyValidationError
from content_tree.hierarchy import get_spec
from content_tree.models.admin_action import ActionType
from content_tree.models.enums import Level, Status
from content_tree.records import TreeRecord, order_key
from content_tree.store import CORE_FIELDS, EntityStore

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class InjectedFailure(RuntimeError):
    pass


class MemoryEntityStore(EntityStore):
    def __init__(self):
        self.records: Dict[Level, Dict[str, TreeRecord]] = {level: {} for level in Level}
        self.details: Dict[Level, Dict[str, Dict[str, Any]]] = {
            Level.TOPIC: {},
            Level.SUBTOPIC: {},
        }
        self.actions: List[Dict[str, Any]] = []
        self.fail_on: Set[Tuple[str, Level]] = set()
        self.calls: List[Tuple[str, Level]] = []
        self._clock = itertools.count()

    def _check(self, operation: str, level: Level) -> None:
        self.calls.append((operation, level))
        if (operation, level) in self.fail_on:
            raise InjectedFailure(f"{operation} failed on {level.value}")

    def _now(self) -> datetime:
        return EPOCH + timedelta(seconds=next(self._clock))

    @staticmethod
    def _value(record: TreeRecord, field: str) -> Any:
        if field in CORE_FIELDS:
            return _plain(getattr(record, field))
        if field in record.refs:
            return record.refs[field]
        return record.data.get(field)

    def _matches(self, record: TreeRecord, filters: Optional[Dict[str, Any]]) -> bool:
        for field, expected in (filters or {}).items():
            actual = self._value(record, field)
            if isinstance(expected, (list, tuple, set)):
                if actual not in {str(_plain(v)) if field == "id" else _plain(v) for v in expected}:
                    return False
            elif actual != _plain(expected):
                return False
        return True

    def _select(self, level: Level, filters: Optional[Dict[str, Any]]) -> List[TreeRecord]:
        return [r for r in self.records[level].values() if self._matches(r, filters)]

    # ------------------------------
    # EntityStore contract
    # ------------------------------
    async def get(self, level: Level, record_id: str) -> Optional[TreeRecord]:
        self._check("get", level)
        record = self.records[level].get(str(record_id))
        return record.model_copy(deep=True) if record else None

    async def find(self, level: Level, filters: Optional[Dict[str, Any]] = None) -> List[TreeRecord]:
        self._check("find", level)
        records = sorted(self._select(level, filters), key=order_key)
        return [record.model_copy(deep=True) for record in records]

    async def insert(self, level: Level, values: Dict[str, Any]) -> TreeRecord:
        self._check("insert", level)
        spec = get_spec(level)
        refs = {field: str(values[field]) for field in spec.ancestor_fields}
        data = {
            field: _plain(value)
            for field, value in values.items()
            if field not in CORE_FIELDS and field not in refs
        }
        now = values.get("created_at") or self._now()
        record = TreeRecord(
            id=str(values.get("id") or ObjectId()),
            level=level,
            name=values["name"],
            order_number=values["order_number"],
            status=values.get("status", Status.ACTIVE),
            created_at=now,
            updated_at=now,
            refs=refs,
            data=data,
        )
        self.records[level][record.id] = record
        return record.model_copy(deep=True)

    def _apply(self, record: TreeRecord, values: Dict[str, Any]) -> TreeRecord:
        core = {k: v for k, v in values.items() if k in CORE_FIELDS}
        data = dict(record.data)
        data.update({k: _plain(v) for k, v in values.items() if k not in CORE_FIELDS})
        core["data"] = data
        core["updated_at"] = self._now()
        return record.model_copy(update=core)

    async def update(self, level: Level, record_id: str, values: Dict[str, Any]) -> Optional[TreeRecord]:
        self._check("update", level)
        record = self.records[level].get(str(record_id))
        if not record:
            return None
        updated = self._apply(record, values)
        self.records[level][updated.id] = updated
        return updated.model_copy(deep=True)

    async def update_many(self, level: Level, filters: Dict[str, Any], values: Dict[str, Any]) -> int:
        self._check("update_many", level)
        matched = self._select(level, filters)
        for record in matched:
            self.records[level][record.id] = self._apply(record, values)
        return len(matched)

    async def delete_many(self, level: Level, filters: Dict[str, Any]) -> int:
        self._check("delete_many", level)
        doomed = self._select(level, filters)
        for record in doomed:
            del self.records[level][record.id]
        return len(doomed)

    async def save_details(self, level: Level, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        self._check("save_details", level)
        spec = get_spec(level)
        if spec.details_document is None:
            raise HierarchyValidationError(f"{spec.label} has no detail records")
        details = self.details[level].setdefault(str(record_id), {spec.details_key: str(record_id)})
        details.update(values)
        return dict(details)

    async def delete_details(self, level: Level, record_ids: List[str]) -> int:
        self._check("delete_details", level)
        if level not in self.details:
            return 0
        deleted = 0
        for record_id in record_ids:
            if self.details[level].pop(str(record_id), None) is not None:
                deleted += 1
        return deleted

    async def log_action(
        self,
        admin_id: str,
        action_type: ActionType,
        level: Level,
        target_id: str,
        changes: Dict[str, Any],
        counts: Optional[Dict[str, int]] = None,
    ) -> None:
        self.actions.append(
            {
                "admin_id": admin_id,
                "action_type": action_type,
                "target_level": level.value,
                "target_id": target_id,
                "changes": changes,
                "counts": counts or {},
            }
        )

    # ------------------------------
    # Test helpers
    # ------------------------------
    def all(self, level: Level) -> List[TreeRecord]:
        return sorted(self.records[level].values(), key=order_key)

    def by_name(self, level: Level, name: str) -> TreeRecord:
        for record in self.records[level].values():
            if record.name == name:
                return record
        raise KeyError(f"No {level.value} named {name}")
