"""
Cascade engine: keeps every descendant consistent with an ancestor's
status change or deletion.

Each descendant level is handled by one bulk operation and levels are
processed strictly one after another: top-down for status changes,
bottom-up for deletes. The cascade is not transactional; a failing level
raises PartialCascadeFailure and leaves earlier levels in their new state.
Both operations are idempotent, so the caller may simply retry.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..cache import TreeCache
from ..exceptions import NotFoundError, PartialCascadeFailure
from ..hierarchy import coerce_level, coerce_status, descendant_levels, get_spec
from ..models.enums import CascadeOperation, Level, Status
from ..records import TreeRecord
from ..store import EntityStore

logger = logging.getLogger(__name__)


class CascadeResult(BaseModel):
    level: Level
    record_id: str
    operation: CascadeOperation
    status: Optional[Status] = None
    counts: Dict[Level, int] = Field(default_factory=dict)
    details_deleted: Dict[Level, int] = Field(default_factory=dict)
    completed_levels: List[Level] = Field(default_factory=list)

    @property
    def total_descendants(self) -> int:
        return sum(count for level, count in self.counts.items() if level != self.level)

    def summary(self) -> str:
        label = get_spec(self.level).label
        children = self.total_descendants
        if self.operation == CascadeOperation.DELETE:
            verb = "deleted"
        elif self.status == Status.INACTIVE:
            verb = "deactivated"
        else:
            verb = "activated"
        if children:
            return f"{label} {verb} and all its {children} children were also {verb}"
        return f"{label} {verb} successfully"

    def to_response(self) -> Dict:
        response = self.model_dump(mode="json")
        response["total_descendants"] = self.total_descendants
        return response


class CascadeEngine:
    def __init__(self, store: EntityStore, cache: Optional[TreeCache] = None):
        self.store = store
        self.cache = cache

    async def _load_target(self, level: Level, record_id: str) -> TreeRecord:
        target = await self.store.get(level, record_id)
        if not target:
            raise NotFoundError(f"{get_spec(level).label} not found")
        return target

    def _invalidate(self, target: TreeRecord) -> None:
        if self.cache is not None:
            self.cache.invalidate_subtree(target.exam_id)

    def _failure(
        self, result: CascadeResult, failed_level: Level, exc: Exception
    ) -> PartialCascadeFailure:
        logger.error(
            f"Cascade {result.operation.value} on {result.level.value} "
            f"{result.record_id} failed at {failed_level.value}: {exc}"
        )
        return PartialCascadeFailure(
            f"Cascade stopped at {get_spec(failed_level).label}: {exc}",
            level=result.level.value,
            record_id=result.record_id,
            operation=result.operation.value,
            failed_level=failed_level.value,
            completed_levels=[level.value for level in result.completed_levels],
            counts={level.value: count for level, count in result.counts.items()},
            cause=exc,
        )

    async def apply_status_cascade(self, level, record_id: str, new_status) -> CascadeResult:
        """
        Set the status of a record and of every record beneath it

        Args:
            level: Level of the target record
            record_id: Target record ID
            new_status: "active" or "inactive"

        Returns:
            CascadeResult with the updated count per level
        """
        level = coerce_level(level)
        new_status = coerce_status(new_status)
        target = await self._load_target(level, record_id)

        result = CascadeResult(
            level=level,
            record_id=target.id,
            operation=CascadeOperation.STATUS,
            status=new_status,
        )

        await self.store.update(level, target.id, {"status": new_status})
        result.counts[level] = 1
        result.completed_levels.append(level)

        ref_field = get_spec(level).ref_field
        try:
            for child in descendant_levels(level):
                try:
                    count = await self.store.update_many(
                        child, {ref_field: target.id}, {"status": new_status}
                    )
                except Exception as exc:
                    raise self._failure(result, child, exc) from exc
                result.counts[child] = count
                result.completed_levels.append(child)
                logger.info(
                    f"Cascade status={new_status.value}: {count} "
                    f"{get_spec(child).label} records under {level.value} {target.id}"
                )
        finally:
            self._invalidate(target)

        return result

    async def apply_delete_cascade(self, level, record_id: str) -> CascadeResult:
        """
        Delete a record and every record beneath it, deepest level first

        Args:
            level: Level of the target record
            record_id: Target record ID

        Returns:
            CascadeResult with the deleted count per level
        """
        level = coerce_level(level)
        target = await self._load_target(level, record_id)

        result = CascadeResult(
            level=level, record_id=target.id, operation=CascadeOperation.DELETE
        )
        ref_field = get_spec(level).ref_field
        try:
            for child in reversed(descendant_levels(level)):
                try:
                    filters = {ref_field: target.id}
                    if get_spec(child).details_document is not None:
                        doomed = await self.store.find(child, filters)
                        result.details_deleted[child] = await self.store.delete_details(
                            child, [record.id for record in doomed]
                        )
                    count = await self.store.delete_many(child, filters)
                except Exception as exc:
                    raise self._failure(result, child, exc) from exc
                result.counts[child] = count
                result.completed_levels.append(child)
                logger.info(
                    f"Cascading delete: Deleted {count} {get_spec(child).label} "
                    f"records for {level.value} {target.id}"
                )

            try:
                if get_spec(level).details_document is not None:
                    result.details_deleted[level] = await self.store.delete_details(
                        level, [target.id]
                    )
                result.counts[level] = await self.store.delete_many(
                    level, {"id": target.id}
                )
            except Exception as exc:
                raise self._failure(result, level, exc) from exc
            result.completed_levels.append(level)
        finally:
            self._invalidate(target)

        logger.info(
            f"Deleted {level.value} {target.id} with {result.total_descendants} descendants"
        )
        return result
