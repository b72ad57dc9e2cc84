"""
Content service for create/read/update/delete across all six levels
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..cache import GLOBAL_SCOPE, TreeCache, cache_key
from ..exceptions import ConflictError, HierarchyValidationError, NotFoundError
from ..hierarchy import (
    LEVELS,
    coerce_level,
    coerce_status,
    get_spec,
    normalize_name,
    parent_level,
)
from ..input_sanitizer import sanitizer
from ..models.admin_action import ActionType
from ..models.enums import Level, Status
from ..records import TreeRecord
from ..store import EntityStore
from .cascade_service import CascadeEngine, CascadeResult
from .ordinal_service import OrdinalSequencer, scope_filters, scope_of
from .resolver_service import IdentityResolver

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    Level.EXAM: {"content", "title", "meta_description", "keywords"},
    Level.SUBJECT: {"content", "title", "meta_description", "keywords"},
    Level.UNIT: {"content", "title", "meta_description", "keywords"},
    Level.CHAPTER: {
        "content",
        "title",
        "meta_description",
        "keywords",
        "weightage",
        "time",
        "questions",
    },
    Level.TOPIC: {"content", "title", "meta_description", "keywords"},
    Level.SUBTOPIC: set(),
}


class ContentService:
    """Service class for content tree write and read paths"""

    def __init__(self, store: EntityStore, cache: Optional[TreeCache] = None):
        self.store = store
        self.cache = cache
        self.sequencer = OrdinalSequencer(store)
        self.cascade = CascadeEngine(store, cache)
        self.resolver = IdentityResolver(store)

    # ------------------------------
    # Helpers
    # ------------------------------
    def _invalidate(self, record: TreeRecord) -> None:
        if self.cache is not None:
            self.cache.invalidate_subtree(record.exam_id)

    async def _log(
        self,
        actor: Optional[str],
        action_type: ActionType,
        level: Level,
        target_id: str,
        changes: Dict[str, Any],
        counts: Optional[Dict[str, int]] = None,
    ) -> None:
        if actor:
            await self.store.log_action(
                actor, action_type, level, target_id, changes, counts=counts
            )

    async def _get_or_404(self, level: Level, record_id: str) -> TreeRecord:
        record = await self.store.get(level, record_id)
        if not record:
            raise NotFoundError(f"{get_spec(level).label} not found")
        return record

    async def _ensure_unique_name(
        self,
        level: Level,
        scope: Dict[str, Any],
        name: str,
        exclude_record_id: Optional[str] = None,
    ) -> None:
        for sibling in await self.store.find(level, scope):
            if sibling.id != exclude_record_id and sibling.name.lower() == name.lower():
                spec = get_spec(level)
                where = f" in this {get_spec(parent_level(level)).label.lower()}" if spec.parent_field else ""
                raise ConflictError(f"{spec.label} with this name already exists{where}")

    async def _derive_refs(self, level: Level, payload: Dict[str, Any]) -> Dict[str, str]:
        """Copy the ancestor chain from the direct parent.

        Ancestor refs sent by the client must agree with the parent's chain.
        """
        spec = get_spec(level)
        if spec.parent_field is None:
            return {}
        parent_id = payload.get(spec.parent_field)
        if not parent_id:
            raise HierarchyValidationError(f"{spec.parent_field} is required")
        parent = await self.store.get(parent_level(level), str(parent_id))
        if not parent:
            raise NotFoundError(f"{get_spec(parent_level(level)).label} not found")

        refs = parent.chain()
        for field in spec.ancestor_fields:
            supplied = payload.get(field)
            if supplied and str(supplied) != refs[field]:
                raise HierarchyValidationError(
                    f"{field} does not match the parent's {field}"
                )
        return refs

    # ------------------------------
    # Reads
    # ------------------------------
    async def list_records(
        self,
        level,
        parent_id: Optional[str] = None,
        exam_id: Optional[str] = None,
        status: str = Status.ACTIVE.value,
    ) -> List[TreeRecord]:
        """
        List records of one level, optionally scoped to a parent and/or exam

        Args:
            level: Level to list
            parent_id: Direct parent ID filter
            exam_id: Exam ID filter
            status: "active", "inactive" or "all"

        Returns:
            Records sorted by order_number
        """
        level = coerce_level(level)
        spec = get_spec(level)
        filters: Dict[str, Any] = {}
        if parent_id:
            if spec.parent_field is None:
                raise HierarchyValidationError("Exams have no parent")
            filters[spec.parent_field] = parent_id
        if exam_id and level != Level.EXAM:
            filters["exam_id"] = exam_id
        if status != "all":
            filters["status"] = coerce_status(status)

        if self.cache is None:
            return await self.store.find(level, filters)

        scope = exam_id or GLOBAL_SCOPE
        if scope == GLOBAL_SCOPE and parent_id:
            parent = await self.store.get(parent_level(level), parent_id)
            if parent:
                scope = parent.exam_id
        key = cache_key(scope, "list", level.value, parent_id, status)
        return await self.cache.get_or_load(key, lambda: self.store.find(level, filters))

    async def get(self, level, token: str) -> TreeRecord:
        return await self.resolver.resolve(level, token)

    async def resolve_path(self, path: Sequence[str]) -> List[TreeRecord]:
        """Resolve a slug path (exam first) to its chain of records"""
        tokens = [token for token in path if token]
        if not tokens or len(tokens) > len(LEVELS):
            raise HierarchyValidationError(
                f"Path must have between 1 and {len(LEVELS)} segments"
            )
        chain = [await self.resolver.resolve(Level.EXAM, tokens[0])]
        for level, token in zip(LEVELS[1:], tokens[1:]):
            chain.append(await self.resolver.resolve_child(level, chain[-1], token))
        return chain

    # ------------------------------
    # Writes
    # ------------------------------
    async def create(
        self, level, payload: Dict[str, Any], actor: Optional[str] = None
    ) -> TreeRecord:
        """
        Create a record under its parent

        Args:
            level: Level of the new record
            payload: Field values; must carry the direct parent ID
            actor: Admin ID for the audit log

        Returns:
            The created record
        """
        level = coerce_level(level)
        spec = get_spec(level)
        payload = sanitizer.sanitize_dict(payload)
        name = normalize_name(level, payload.get("name"))
        refs = await self._derive_refs(level, payload)

        scope = scope_filters(level, refs.get(spec.parent_field), refs.get("exam_id"))
        await self._ensure_unique_name(level, scope, name)

        order_number = payload.get("order_number")
        if order_number is not None:
            await self.sequencer.validate_reorder(level, scope, order_number)
        else:
            order_number = await self.sequencer.next_order(level, scope)

        values = {
            field: payload[field]
            for field in EDITABLE_FIELDS[level]
            if payload.get(field) is not None
        }
        values.update(refs)
        values["name"] = name
        values["order_number"] = order_number
        values["status"] = coerce_status(payload.get("status") or Status.ACTIVE)

        record = await self.store.insert(level, values)
        self._invalidate(record)
        logger.info(f"Created {level.value} {record.id} '{record.name}' at order {order_number}")
        await self._log(actor, ActionType.CREATE, level, record.id, {"name": record.name})
        return record

    async def update(
        self,
        level,
        record_id: str,
        payload: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> TreeRecord:
        """Edit name and content fields; never cascades"""
        level = coerce_level(level)
        payload = sanitizer.sanitize_dict(payload)
        record = await self._get_or_404(level, record_id)

        values = {
            field: payload[field]
            for field in EDITABLE_FIELDS[level]
            if field in payload and payload[field] is not None
        }
        if payload.get("name") is not None:
            name = normalize_name(level, payload["name"])
            await self._ensure_unique_name(level, scope_of(record), name, record.id)
            values["name"] = name
        if not values:
            raise HierarchyValidationError("No valid update fields provided")

        updated = await self.store.update(level, record.id, values)
        self._invalidate(updated)
        await self._log(actor, ActionType.UPDATE, level, record.id, values)
        return updated

    async def change_status_and_order(
        self,
        level,
        record_id: str,
        status: Optional[str] = None,
        order_number: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> Tuple[TreeRecord, Optional[CascadeResult]]:
        """
        PATCH path: order change and/or cascading status change

        Returns:
            Tuple of (updated record, cascade result or None)
        """
        level = coerce_level(level)
        if status is None and order_number is None:
            raise HierarchyValidationError("No valid update fields provided")
        new_status = coerce_status(status) if status is not None else None
        record = await self._get_or_404(level, record_id)

        if order_number is not None and order_number != record.order_number:
            await self.sequencer.validate_reorder(
                level, scope_of(record), order_number, exclude_record_id=record.id
            )
            await self.store.update(level, record.id, {"order_number": order_number})
            self._invalidate(record)
            await self._log(
                actor, ActionType.REORDER, level, record.id, {"order_number": order_number}
            )

        result = None
        if new_status is not None:
            result = await self.cascade.apply_status_cascade(level, record.id, new_status)
            await self._log(
                actor,
                ActionType.STATUS,
                level,
                record.id,
                {"status": new_status.value},
                counts=result.to_response()["counts"],
            )

        return await self._get_or_404(level, record.id), result

    async def delete(self, level, record_id: str, actor: Optional[str] = None) -> CascadeResult:
        level = coerce_level(level)
        result = await self.cascade.apply_delete_cascade(level, record_id)
        await self._log(
            actor,
            ActionType.DELETE,
            level,
            record_id,
            {"details_deleted": result.to_response()["details_deleted"]},
            counts=result.to_response()["counts"],
        )
        return result

    async def move(
        self, level, record_id: str, new_index: int, actor: Optional[str] = None
    ) -> List[TreeRecord]:
        level = coerce_level(level)
        ordered = await self.sequencer.move(level, record_id, new_index)
        if ordered:
            self._invalidate(ordered[0])
        await self._log(actor, ActionType.REORDER, level, record_id, {"new_index": new_index})
        return ordered

    async def reorder(
        self, level, assignments: Dict[str, int], actor: Optional[str] = None
    ) -> List[TreeRecord]:
        level = coerce_level(level)
        ordered = await self.sequencer.apply_orders(level, assignments)
        if ordered:
            self._invalidate(ordered[0])
        await self._log(
            actor, ActionType.REORDER, level, ",".join(assignments), {"orders": assignments}
        )
        return ordered

    async def save_details(
        self, level, record_id: str, values: Dict[str, Any], actor: Optional[str] = None
    ) -> Dict[str, Any]:
        level = coerce_level(level)
        record = await self._get_or_404(level, record_id)
        values = sanitizer.sanitize_dict(values)
        details = await self.store.save_details(level, record.id, values)
        await self._log(actor, ActionType.UPDATE, level, record.id, {"details": list(values)})
        return details
