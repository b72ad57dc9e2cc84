from datetime import datetime, timezone
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field


class TopicDetails(Document):
    """Rich text body of a topic, stored apart from the tree record"""

    topic_id: Indexed(PydanticObjectId)
    content: str = ""
    title: str = ""
    meta_description: str = ""
    keywords: str = ""

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "topic_details"


class SubTopicDetails(Document):
    """Rich text body of a subtopic"""

    subtopic_id: Indexed(PydanticObjectId)
    content: str = ""
    title: str = ""
    meta_description: str = ""
    keywords: str = ""

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "subtopic_details"
