from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from beanie import Document
from pydantic import Field

from .enums import Level


class ActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS = "status"
    REORDER = "reorder"


class AdminAction(Document):
    """Audit entry for one admin write on the content tree"""

    admin_id: str
    action_type: ActionType
    target_level: Level
    target_id: str  # Record ID, or comma-joined IDs for a bulk reorder
    changes: Dict[str, Any] = Field(default_factory=dict)  # Submitted field values
    counts: Dict[str, int] = Field(default_factory=dict)  # Records touched per level by a cascade
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "admin_actions"
