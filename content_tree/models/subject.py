import pymongo
from beanie import PydanticObjectId

from .base import ContentDocument


class Subject(ContentDocument):
    exam_id: PydanticObjectId

    class Settings:
        name = "subjects"
        indexes = [
            [("exam_id", pymongo.ASCENDING), ("order_number", pymongo.ASCENDING)],
        ]
