from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..auth import Principal
from ..dependencies import admin_required, ensure_db, get_content_service
from ..exceptions import ContentTreeError
from ..hierarchy import get_spec
from ..models.enums import Level
from ..services.content_service import ContentService
from ..utils import format_response, http_error, paginate

router = APIRouter(prefix="/api/v1", tags=["Content Tree"])


# ------------------------------
# Request models
# ------------------------------
class RecordIn(BaseModel):
    name: str
    order_number: Optional[int] = None
    status: Optional[str] = None

    # Parent and ancestor references; only the direct parent is required
    exam_id: Optional[str] = None
    subject_id: Optional[str] = None
    unit_id: Optional[str] = None
    chapter_id: Optional[str] = None
    topic_id: Optional[str] = None

    content: Optional[str] = None
    title: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: Optional[str] = None

    # Chapter metrics
    weightage: Optional[float] = Field(None, ge=0, le=100)
    time: Optional[int] = Field(None, ge=0)
    questions: Optional[int] = Field(None, ge=0)


class RecordUpdate(BaseModel):
    name: Optional[str] = None
    content: Optional[str] = None
    title: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: Optional[str] = None
    weightage: Optional[float] = Field(None, ge=0, le=100)
    time: Optional[int] = Field(None, ge=0)
    questions: Optional[int] = Field(None, ge=0)


class StatusOrderPatch(BaseModel):
    status: Optional[str] = None
    order_number: Optional[int] = None


class OrderAssignment(BaseModel):
    id: str
    order_number: int


class ReorderIn(BaseModel):
    items: List[OrderAssignment]


class MoveIn(BaseModel):
    new_index: int = Field(..., ge=0)


class DetailsIn(BaseModel):
    content: str = ""
    title: str = ""
    meta_description: str = ""
    keywords: str = ""


# ------------------------------
# Reads
# ------------------------------
@router.get("/{level}")
async def list_records(
    level: Level,
    parent_id: Optional[str] = Query(None, description="Direct parent ID"),
    exam_id: Optional[str] = Query(None, description="Filter by exam"),
    status_filter: str = Query("active", alias="status", description="active, inactive or all"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    try:
        records = await service.list_records(
            level, parent_id=parent_id, exam_id=exam_id, status=status_filter
        )
    except ContentTreeError as e:
        raise http_error(e)

    items, pagination = paginate(records, page, limit)
    return format_response(
        f"{get_spec(level).label} list retrieved successfully",
        data=[record.to_response() for record in items],
        pagination=pagination,
    )


@router.get("/{level}/{token}")
async def get_record(
    level: Level,
    token: str,
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Get a record by ID or slug"""
    try:
        record = await service.get(level, token)
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        f"{get_spec(level).label} retrieved successfully", data=record.to_response()
    )


# ------------------------------
# Writes
# ------------------------------
@router.post("/{level}", status_code=status.HTTP_201_CREATED)
async def create_record(
    level: Level,
    data: RecordIn,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    try:
        record = await service.create(
            level, data.model_dump(exclude_none=True), actor=admin.subject
        )
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        f"{get_spec(level).label} created successfully", data=record.to_response()
    )


@router.post("/{level}/reorder")
async def reorder_records(
    level: Level,
    data: ReorderIn,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Apply explicit order numbers within one parent"""
    assignments = {item.id: item.order_number for item in data.items}
    if len(assignments) != len(data.items):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Each record may appear only once",
        )
    try:
        ordered = await service.reorder(level, assignments, actor=admin.subject)
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        f"{get_spec(level).label} order updated successfully",
        data=[record.to_response() for record in ordered],
    )


@router.post("/{level}/{record_id}/move")
async def move_record(
    level: Level,
    record_id: str,
    data: MoveIn,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Drag-and-drop a record to a new position among its siblings"""
    try:
        ordered = await service.move(level, record_id, data.new_index, actor=admin.subject)
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        f"{get_spec(level).label} moved successfully",
        data=[record.to_response() for record in ordered],
    )


@router.put("/{level}/{record_id}")
async def update_record(
    level: Level,
    record_id: str,
    data: RecordUpdate,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Edit name and content; status and order go through PATCH"""
    try:
        record = await service.update(
            level, record_id, data.model_dump(exclude_none=True), actor=admin.subject
        )
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(
        f"{get_spec(level).label} updated successfully", data=record.to_response()
    )


@router.patch("/{level}/{record_id}")
async def patch_record(
    level: Level,
    record_id: str,
    data: StatusOrderPatch,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Change order and/or status; a status change cascades to all descendants"""
    try:
        record, cascade = await service.change_status_and_order(
            level,
            record_id,
            status=data.status,
            order_number=data.order_number,
            actor=admin.subject,
        )
    except ContentTreeError as e:
        raise http_error(e)

    message = (
        cascade.summary() if cascade else f"{get_spec(level).label} updated successfully"
    )
    return format_response(
        message,
        data=record.to_response(),
        cascade=cascade.to_response() if cascade else None,
    )


@router.delete("/{level}/{record_id}")
async def delete_record(
    level: Level,
    record_id: str,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    try:
        result = await service.delete(level, record_id, actor=admin.subject)
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(result.summary(), data=result.to_response())


@router.put("/{level}/{record_id}/details")
async def save_details(
    level: Level,
    record_id: str,
    data: DetailsIn,
    admin: Principal = Depends(admin_required),
    service: ContentService = Depends(get_content_service),
    db=Depends(ensure_db),
):
    """Store the rich text body of a topic or subtopic"""
    try:
        details = await service.save_details(
            level, record_id, data.model_dump(), actor=admin.subject
        )
    except ContentTreeError as e:
        raise http_error(e)
    return format_response(f"{get_spec(level).label} details saved", data=details)
