import pymongo
from beanie import PydanticObjectId

from .base import ContentDocument


class Topic(ContentDocument):
    exam_id: PydanticObjectId
    subject_id: PydanticObjectId
    unit_id: PydanticObjectId
    chapter_id: PydanticObjectId

    class Settings:
        name = "topics"
        indexes = [
            [("chapter_id", pymongo.ASCENDING), ("order_number", pymongo.ASCENDING)],
            [("exam_id", pymongo.ASCENDING)],
            [("unit_id", pymongo.ASCENDING)],
        ]
