from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    ensure_db,
    get_content_service,
    get_navigation_resolver,
    get_projector,
)
from ..exceptions import ContentTreeError
from ..models.enums import Level
from ..services.content_service import ContentService
from ..services.navigation_service import NavigationResolver, split_path
from ..services.projection_service import TreeProjector
from ..utils import format_response, http_error

router = APIRouter(prefix="/api/v1", tags=["Navigation"])


@router.get("/navigation/{path:path}")
async def get_navigation(
    path: str,
    navigator: NavigationResolver = Depends(get_navigation_resolver),
    db=Depends(ensure_db),
):
    """
    Next/previous targets for a slug path such as
    ``jee/physics/mechanics/kinematics/motion-in-a-straight-line``
    """
    try:
        result = await navigator.neighbors(split_path(path))
    except ContentTreeError as e:
        raise http_error(e)
    return format_response("Navigation resolved", data=result.model_dump(mode="json"))


@router.get("/tree/{exam_token}")
async def get_tree(
    exam_token: str,
    depth: Level = Query(Level.TOPIC, description="Deepest level to include"),
    include_inactive: bool = Query(False),
    service: ContentService = Depends(get_content_service),
    projector: TreeProjector = Depends(get_projector),
    db=Depends(ensure_db),
):
    """Compact sidebar tree for one exam"""
    try:
        exam = await service.get(Level.EXAM, exam_token)
        tree = await projector.project(exam.id, depth=depth, include_inactive=include_inactive)
    except ContentTreeError as e:
        raise http_error(e)
    return format_response("Tree retrieved successfully", data=tree.model_dump(mode="json"))


@router.get("/resolve/{path:path}")
async def resolve_path(
    path: str,
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Resolve every segment of a slug path to its record"""
    try:
        chain = await service.resolve_path(split_path(path))
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        "Path resolved", data=[record.to_response() for record in chain]
    )
