"""
Tree read projector: compact exam -> subject -> unit -> chapter -> topic tree
"""

import asyncio
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from ..cache import TreeCache, cache_key
from ..exceptions import NotFoundError
from ..hierarchy import coerce_level, depth_of, get_spec, levels_between
from ..models.enums import Level, Status
from ..records import TreeRecord
from ..slug import slugify
from ..store import EntityStore

logger = logging.getLogger(__name__)


class ProjectedNode(BaseModel):
    """Identity, name and order only; no content or SEO fields"""

    id: str
    level: Level
    name: str
    slug: str
    order_number: int
    children: List["ProjectedNode"] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: TreeRecord) -> "ProjectedNode":
        return cls(
            id=record.id,
            level=record.level,
            name=record.name,
            slug=slugify(record.name),
            order_number=record.order_number,
        )


ProjectedNode.model_rebuild()


class TreeProjector:
    def __init__(self, store: EntityStore, cache: Optional[TreeCache] = None):
        self.store = store
        self.cache = cache

    async def project(
        self,
        exam_id: str,
        depth: Level = Level.TOPIC,
        include_inactive: bool = False,
    ) -> ProjectedNode:
        """
        Build the nested tree under one exam

        Args:
            exam_id: ID of the exam at the root of the tree
            depth: Deepest level to include (default: topic)
            include_inactive: Include inactive records (default: active only)

        Returns:
            Root ProjectedNode for the exam
        """
        depth = coerce_level(depth)
        if self.cache is None:
            return await self._build(exam_id, depth, include_inactive)
        key = cache_key(exam_id, "tree", depth.value, include_inactive)
        return await self.cache.get_or_load(
            key, lambda: self._build(exam_id, depth, include_inactive)
        )

    async def _children(
        self, level: Level, parent_id: str, include_inactive: bool
    ) -> List[TreeRecord]:
        filters = {get_spec(level).parent_field: parent_id}
        if not include_inactive:
            filters["status"] = Status.ACTIVE
        return await self.store.find(level, filters)

    async def _build(
        self, exam_id: str, depth: Level, include_inactive: bool
    ) -> ProjectedNode:
        exam = await self.store.get(Level.EXAM, exam_id)
        if not exam:
            raise NotFoundError("Exam not found")

        root = ProjectedNode.from_record(exam)
        frontier = [root]
        for level in levels_between(Level.EXAM, depth):
            if not frontier:
                break
            # One round-trip per level: every parent's children fetched concurrently
            results = await asyncio.gather(
                *(self._children(level, node.id, include_inactive) for node in frontier)
            )
            next_frontier = []
            for parent, children in zip(frontier, results):
                parent.children = [ProjectedNode.from_record(child) for child in children]
                next_frontier.extend(parent.children)
            frontier = next_frontier
            logger.debug(f"Projected {len(frontier)} {level.value} nodes for exam {exam_id}")
        return root


def flatten(root: ProjectedNode, level: Level) -> List[List[ProjectedNode]]:
    """Every root-to-node chain ending at ``level``, in traversal order"""
    target = depth_of(level) - depth_of(root.level)
    chains: List[List[ProjectedNode]] = []

    def walk(chain: List[ProjectedNode]) -> None:
        if len(chain) - 1 == target:
            chains.append(chain)
            return
        for child in chain[-1].children:
            walk(chain + [child])

    if target >= 0:
        walk([root])
    return chains
