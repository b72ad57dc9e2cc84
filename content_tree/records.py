from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field

from .models.enums import Level, Status
from .hierarchy import get_spec


class TreeRecord(BaseModel):
    """Store-agnostic view of one record of the content tree"""

    id: str
    level: Level
    name: str
    order_number: int
    status: Status = Status.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    refs: Dict[str, str] = Field(default_factory=dict)  # ancestor field -> id
    data: Dict[str, Any] = Field(default_factory=dict)  # content/SEO/metrics

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    @property
    def parent_id(self) -> Optional[str]:
        field = get_spec(self.level).parent_field
        return self.refs.get(field) if field else None

    @property
    def exam_id(self) -> str:
        if self.level == Level.EXAM:
            return self.id
        return self.refs["exam_id"]

    def chain(self) -> Dict[str, str]:
        """Ancestor refs plus this record's own id under its ref field"""
        chain = dict(self.refs)
        chain[get_spec(self.level).ref_field] = self.id
        return chain

    def to_response(self) -> Dict[str, Any]:
        response = {
            "id": self.id,
            "level": self.level.value,
            "name": self.name,
            "order_number": self.order_number,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        response.update(self.refs)
        response.update(self.data)
        return response


def order_key(record) -> Tuple:
    """Sibling ordering: order_number, then insertion time, then id"""
    return (record.order_number, record.created_at, record.id)
