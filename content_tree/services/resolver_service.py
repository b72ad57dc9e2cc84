"""
Identity resolution: turn an opaque token (ObjectId or slug) into a record
"""

import logging
from typing import List, Optional

from ..exceptions import NotFoundError
from ..hierarchy import coerce_level, get_spec
from ..models.enums import Level, Status
from ..records import TreeRecord
from ..slug import find_by_id_or_slug, is_canonical_id
from ..store import EntityStore

logger = logging.getLogger(__name__)


def first_match(records: List[TreeRecord], token: str, level: Level) -> Optional[TreeRecord]:
    matches = find_by_id_or_slug(records, token)
    if len(matches) > 1:
        logger.warning(
            f"Token '{token}' matches {len(matches)} {level.value} records, "
            f"using {matches[0].id}"
        )
    return matches[0] if matches else None


class IdentityResolver:
    def __init__(self, store: EntityStore):
        self.store = store

    async def resolve(self, level, token: str) -> TreeRecord:
        """
        Resolve a record by canonical ID, falling back to a slug/name scan

        Args:
            level: Level to look in
            token: 24-hex ID, slug or display name

        Returns:
            The matching record

        Raises:
            NotFoundError: if neither lookup finds a record
        """
        level = coerce_level(level)
        label = get_spec(level).label
        if not token or not token.strip():
            raise NotFoundError(f"{label} not found")

        if is_canonical_id(token):
            try:
                record = await self.store.get(level, token)
            except Exception as exc:
                logger.warning(f"{label} lookup by ID {token} failed, trying slug: {exc}")
                record = None
            if record:
                return record

        # The scan is sibling-agnostic; the first record in order wins
        record = first_match(await self.store.find(level), token, level)
        if not record:
            raise NotFoundError(f"{label} '{token}' not found")
        return record

    async def resolve_child(
        self,
        level,
        parent: Optional[TreeRecord],
        token: str,
        active_only: bool = False,
    ) -> TreeRecord:
        """Resolve a token among the children of ``parent`` only"""
        level = coerce_level(level)
        spec = get_spec(level)
        filters = {}
        if parent is not None and spec.parent_field:
            filters[spec.parent_field] = parent.id
        if active_only:
            filters["status"] = Status.ACTIVE
        record = first_match(await self.store.find(level, filters), token, level)
        if not record:
            raise NotFoundError(f"{spec.label} '{token}' not found")
        return record
