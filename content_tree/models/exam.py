import pymongo

from .base import ContentDocument


class Exam(ContentDocument):
    """Root of the content tree, e.g. JEE or NEET"""

    class Settings:
        name = "exams"
        indexes = [
            [("order_number", pymongo.ASCENDING)],
            [("name", pymongo.ASCENDING)],
        ]
