"""
Entity store contract and its MongoDB (Beanie) implementation.

The engine only needs find-by-id, find-by-filter, single and bulk updates,
bulk deletes and removal of detail records. Filters are flat dictionaries:
``{field: value}`` for equality and ``{field: [values]}`` for membership,
where ``"id"`` addresses the record's own id.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId

from .exceptions import HierarchyValidationError
from .hierarchy import ANCESTOR_FIELDS, get_spec
from .models.admin_action import AdminAction, ActionType
from .models.enums import Level
from .records import TreeRecord, order_key
from .slug import is_canonical_id

logger = logging.getLogger(__name__)

CORE_FIELDS = {"id", "name", "order_number", "status", "created_at", "updated_at"}
ORDER_SORT = [("order_number", 1), ("created_at", 1), ("_id", 1)]


class EntityStore(ABC):
    """Persistence collaborator used by every content tree service"""

    @abstractmethod
    async def get(self, level: Level, record_id: str) -> Optional[TreeRecord]:
        ...

    @abstractmethod
    async def find(
        self, level: Level, filters: Optional[Dict[str, Any]] = None
    ) -> List[TreeRecord]:
        """Return matching records sorted by order_number, created_at, id"""

    @abstractmethod
    async def insert(self, level: Level, values: Dict[str, Any]) -> TreeRecord:
        ...

    @abstractmethod
    async def update(
        self, level: Level, record_id: str, values: Dict[str, Any]
    ) -> Optional[TreeRecord]:
        ...

    @abstractmethod
    async def update_many(
        self, level: Level, filters: Dict[str, Any], values: Dict[str, Any]
    ) -> int:
        """Apply ``values`` to every match; returns the matched count"""

    @abstractmethod
    async def delete_many(self, level: Level, filters: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    async def save_details(
        self, level: Level, record_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete_details(self, level: Level, record_ids: List[str]) -> int:
        """Delete detail records keyed by the given ids; 0 for levels without details"""

    @abstractmethod
    async def log_action(
        self,
        admin_id: str,
        action_type: ActionType,
        level: Level,
        target_id: str,
        changes: Dict[str, Any],
        counts: Optional[Dict[str, int]] = None,
    ) -> None:
        ...


def _object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not is_canonical_id(str(value)):
        raise HierarchyValidationError(f"Invalid ID format: {value}")
    return ObjectId(str(value))


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class BeanieEntityStore(EntityStore):
    """EntityStore over the Beanie documents registered in ``db.py``"""

    @staticmethod
    def _collection(level: Level):
        return get_spec(level).document.get_motor_collection()

    @staticmethod
    def to_record(level: Level, document) -> TreeRecord:
        spec = get_spec(level)
        refs = {
            field: str(getattr(document, field)) for field in spec.ancestor_fields
        }
        data = document.model_dump(
            exclude=CORE_FIELDS | set(spec.ancestor_fields) | {"revision_id"}
        )
        return TreeRecord(
            id=str(document.id),
            level=level,
            name=document.name,
            order_number=document.order_number,
            status=document.status,
            created_at=document.created_at,
            updated_at=document.updated_at,
            refs=refs,
            data=data,
        )

    @staticmethod
    def to_query(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        for field, value in (filters or {}).items():
            key = "_id" if field == "id" else field
            is_ref = field == "id" or field in ANCESTOR_FIELDS
            if isinstance(value, (list, tuple, set)):
                values = [_object_id(v) if is_ref else _plain(v) for v in value]
                query[key] = {"$in": values}
            else:
                query[key] = _object_id(value) if is_ref else _plain(value)
        return query

    @staticmethod
    def _to_document_values(values: Dict[str, Any]) -> Dict[str, Any]:
        converted = {}
        for field, value in values.items():
            if field in ANCESTOR_FIELDS:
                converted[field] = _object_id(value)
            else:
                converted[field] = _plain(value)
        return converted

    async def get(self, level: Level, record_id: str) -> Optional[TreeRecord]:
        document = await get_spec(level).document.get(_object_id(record_id))
        return self.to_record(level, document) if document else None

    async def find(
        self, level: Level, filters: Optional[Dict[str, Any]] = None
    ) -> List[TreeRecord]:
        document_cls = get_spec(level).document
        documents = (
            await document_cls.find(self.to_query(filters)).sort(ORDER_SORT).to_list()
        )
        records = [self.to_record(level, document) for document in documents]
        return sorted(records, key=order_key)

    async def insert(self, level: Level, values: Dict[str, Any]) -> TreeRecord:
        document = get_spec(level).document(**values)
        await document.insert()
        return self.to_record(level, document)

    async def update(
        self, level: Level, record_id: str, values: Dict[str, Any]
    ) -> Optional[TreeRecord]:
        document = await get_spec(level).document.get(_object_id(record_id))
        if not document:
            return None
        for field, value in values.items():
            setattr(document, field, value)
        document.update_timestamp()
        await document.save()
        return self.to_record(level, document)

    async def update_many(
        self, level: Level, filters: Dict[str, Any], values: Dict[str, Any]
    ) -> int:
        update = self._to_document_values(values)
        update["updated_at"] = datetime.now(timezone.utc)
        result = await self._collection(level).update_many(
            self.to_query(filters), {"$set": update}
        )
        return result.matched_count

    async def delete_many(self, level: Level, filters: Dict[str, Any]) -> int:
        result = await self._collection(level).delete_many(self.to_query(filters))
        return result.deleted_count

    async def save_details(
        self, level: Level, record_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        spec = get_spec(level)
        if spec.details_document is None:
            raise HierarchyValidationError(f"{spec.label} has no detail records")
        key = {spec.details_key: _object_id(record_id)}
        details = await spec.details_document.find_one(key)
        if details is None:
            details = spec.details_document(**key, **values)
            await details.insert()
        else:
            for field, value in values.items():
                setattr(details, field, value)
            details.updated_at = datetime.now(timezone.utc)
            await details.save()
        return details.model_dump(mode="json", exclude={"revision_id"})

    async def delete_details(self, level: Level, record_ids: List[str]) -> int:
        spec = get_spec(level)
        if spec.details_document is None or not record_ids:
            return 0
        result = await spec.details_document.get_motor_collection().delete_many(
            {spec.details_key: {"$in": [_object_id(rid) for rid in record_ids]}}
        )
        return result.deleted_count

    async def log_action(
        self,
        admin_id: str,
        action_type: ActionType,
        level: Level,
        target_id: str,
        changes: Dict[str, Any],
        counts: Optional[Dict[str, int]] = None,
    ) -> None:
        """
        Centralized admin action logging

        Args:
            admin_id: ID of the admin performing the action
            action_type: Type of action being performed
            level: Level of the target record
            target_id: ID of the target record
            changes: Dictionary of changes made
            counts: Records touched per level, for cascading writes
        """
        admin_action = AdminAction(
            admin_id=admin_id,
            action_type=action_type,
            target_level=level,
            target_id=target_id,
            changes=changes,
            counts=counts or {},
        )
        await admin_action.insert()
