import pymongo
from beanie import PydanticObjectId

from .base import ContentDocument


class Unit(ContentDocument):
    exam_id: PydanticObjectId
    subject_id: PydanticObjectId

    class Settings:
        name = "units"
        indexes = [
            [("subject_id", pymongo.ASCENDING), ("order_number", pymongo.ASCENDING)],
            [("exam_id", pymongo.ASCENDING)],
        ]
