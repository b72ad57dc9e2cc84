import pymongo
from beanie import PydanticObjectId
from pydantic import Field

from .base import ContentDocument


class Chapter(ContentDocument):
    exam_id: PydanticObjectId
    subject_id: PydanticObjectId
    unit_id: PydanticObjectId

    # Exam metrics shown alongside the chapter
    weightage: float = Field(0, ge=0, le=100)  # Percentage of the paper
    time: int = Field(0, ge=0)  # Suggested study time in minutes
    questions: int = Field(0, ge=0)  # Expected question count

    class Settings:
        name = "chapters"
        indexes = [
            [("unit_id", pymongo.ASCENDING), ("order_number", pymongo.ASCENDING)],
            [("exam_id", pymongo.ASCENDING)],
            [("subject_id", pymongo.ASCENDING)],
        ]
