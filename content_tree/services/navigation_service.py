"""
Sequential navigation: next/previous record at the same level, crossing
parent boundaries when the current parent runs out of siblings.

Only active records take part. The tree comes from the projector (active
records only), so an inactive record prunes its whole branch.
"""

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, computed_field

from ..exceptions import HierarchyValidationError, NotFoundError
from ..hierarchy import LEVELS
from ..models.enums import Level, Status
from ..slug import find_by_id_or_slug
from .projection_service import ProjectedNode, TreeProjector
from .resolver_service import IdentityResolver

logger = logging.getLogger(__name__)

NEXT = 1
PREVIOUS = -1


class NavTarget(BaseModel):
    level: Level
    slugs: List[str]  # One per level, exam first
    ids: List[str]
    label: str

    @computed_field
    @property
    def path(self) -> str:
        return "/".join(self.slugs)

    @classmethod
    def from_chain(cls, chain: Sequence[ProjectedNode]) -> "NavTarget":
        return cls(
            level=chain[-1].level,
            slugs=[node.slug for node in chain],
            ids=[node.id for node in chain],
            label=chain[-1].name,
        )


class NavigationResult(BaseModel):
    current: NavTarget
    next: Optional[NavTarget] = None
    previous: Optional[NavTarget] = None


def _descend(node: ProjectedNode, remaining: int, direction: int) -> Optional[List[ProjectedNode]]:
    """First (direction=1) or last (direction=-1) chain ``remaining`` levels below ``node``"""
    if remaining == 0:
        return [node]
    children = node.children if direction == NEXT else list(reversed(node.children))
    for child in children:
        tail = _descend(child, remaining - 1, direction)
        if tail:
            return [node] + tail
    return None


def adjacent(chain: List[ProjectedNode], direction: int) -> Optional[List[ProjectedNode]]:
    """
    Chain of the neighbouring node at the same depth as ``chain[-1]``

    Walks upward one ancestor at a time; at each level tries the siblings in
    ``direction`` and descends into their first/last child at every
    intervening level. Siblings with no eligible descendant at the original
    depth are skipped. The root of the chain is never crossed.
    """
    target_depth = len(chain) - 1
    for position in range(target_depth, 0, -1):
        siblings = chain[position - 1].children
        index = next(
            (i for i, node in enumerate(siblings) if node.id == chain[position].id), None
        )
        if index is None:
            return None
        candidate = index + direction
        while 0 <= candidate < len(siblings):
            tail = _descend(siblings[candidate], target_depth - position, direction)
            if tail:
                return chain[:position] + tail
            candidate += direction
    return None


class NavigationResolver:
    def __init__(self, projector: TreeProjector, resolver: IdentityResolver):
        self.projector = projector
        self.resolver = resolver

    async def _current_chain(self, path: Sequence[str]) -> List[ProjectedNode]:
        tokens = [token for token in path if token]
        if not tokens or len(tokens) > len(LEVELS):
            raise HierarchyValidationError(
                f"Path must have between 1 and {len(LEVELS)} segments"
            )
        level = LEVELS[len(tokens) - 1]

        exam = await self.resolver.resolve(Level.EXAM, tokens[0])
        if exam.status != Status.ACTIVE:
            raise NotFoundError("Exam is not active")

        if level == Level.EXAM:
            return [ProjectedNode.from_record(exam)]

        root = await self.projector.project(exam.id, depth=level)
        chain = [root]
        for token in tokens[1:]:
            matches = find_by_id_or_slug(chain[-1].children, token)
            if not matches:
                raise NotFoundError(
                    f"'{token}' is not an active child of '{chain[-1].name}'"
                )
            chain.append(matches[0])
        return chain

    async def _exam_neighbor(self, exam: ProjectedNode, direction: int) -> Optional[NavTarget]:
        exams = await self.resolver.store.find(Level.EXAM, {"status": Status.ACTIVE})
        index = next((i for i, record in enumerate(exams) if record.id == exam.id), None)
        if index is None:
            return None
        candidate = index + direction
        if 0 <= candidate < len(exams):
            return NavTarget.from_chain([ProjectedNode.from_record(exams[candidate])])
        return None

    async def neighbors(self, path: Sequence[str]) -> NavigationResult:
        """
        Resolve the next and previous targets for a path

        Args:
            path: Tokens (slug or ID) from the exam down to the current record

        Returns:
            NavigationResult with the current record and its neighbours
        """
        chain = await self._current_chain(path)
        current = NavTarget.from_chain(chain)

        if len(chain) == 1:
            return NavigationResult(
                current=current,
                next=await self._exam_neighbor(chain[0], NEXT),
                previous=await self._exam_neighbor(chain[0], PREVIOUS),
            )

        following = adjacent(chain, NEXT)
        preceding = adjacent(chain, PREVIOUS)
        logger.debug(
            f"Navigation for {current.path}: next={following and following[-1].id} "
            f"previous={preceding and preceding[-1].id}"
        )
        return NavigationResult(
            current=current,
            next=NavTarget.from_chain(following) if following else None,
            previous=NavTarget.from_chain(preceding) if preceding else None,
        )

    async def next(self, path: Sequence[str]) -> Optional[NavTarget]:
        return (await self.neighbors(path)).next

    async def previous(self, path: Sequence[str]) -> Optional[NavTarget]:
        return (await self.neighbors(path)).previous


def split_path(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]
