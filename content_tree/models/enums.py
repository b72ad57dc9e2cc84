from enum import Enum


class Status(str, Enum):
    """Lifecycle status shared by every level of the content tree"""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Level(str, Enum):
    """The six fixed depths of the content tree, root first"""

    EXAM = "exam"
    SUBJECT = "subject"
    UNIT = "unit"
    CHAPTER = "chapter"
    TOPIC = "topic"
    SUBTOPIC = "subtopic"


class UserRole(str, Enum):
    """User roles"""

    STUDENT = "student"
    ADMIN = "admin"


class CascadeOperation(str, Enum):
    STATUS = "status"
    DELETE = "delete"
