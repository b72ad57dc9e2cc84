from datetime import datetime, timezone
from beanie import Document
from pydantic import Field

from .enums import Status


class HierarchyDocument(Document):
    """Base document for every level of the content tree"""

    name: str
    order_number: int = Field(..., ge=1)
    status: Status = Status.ACTIVE

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        abstract = True  # Make this an abstract base class

    def update_timestamp(self):
        """Update the last modified timestamp"""
        self.updated_at = datetime.now(timezone.utc)


class ContentDocument(HierarchyDocument):
    """Level carrying rich content and SEO fields"""

    content: str = ""
    title: str = ""
    meta_description: str = ""
    keywords: str = ""

    class Settings:
        abstract = True
