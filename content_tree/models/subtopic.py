import pymongo
from beanie import PydanticObjectId

from .base import HierarchyDocument


class SubTopic(HierarchyDocument):
    """Leaf of the content tree; its rich text lives in SubTopicDetails"""

    exam_id: PydanticObjectId
    subject_id: PydanticObjectId
    unit_id: PydanticObjectId
    chapter_id: PydanticObjectId
    topic_id: PydanticObjectId

    class Settings:
        name = "subtopics"
        indexes = [
            [("topic_id", pymongo.ASCENDING), ("order_number", pymongo.ASCENDING)],
            [("exam_id", pymongo.ASCENDING)],
            [("chapter_id", pymongo.ASCENDING)],
        ]
