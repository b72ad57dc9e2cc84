from .enums import Level, Status, UserRole, CascadeOperation
from .exam import Exam
from .subject import Subject
from .unit import Unit
from .chapter import Chapter
from .topic import Topic
from .subtopic import SubTopic
from .details import TopicDetails, SubTopicDetails
from .admin_action import AdminAction, ActionType

__all__ = [
    "Level",
    "Status",
    "UserRole",
    "CascadeOperation",
    "Exam",
    "Subject",
    "Unit",
    "Chapter",
    "Topic",
    "SubTopic",
    "TopicDetails",
    "SubTopicDetails",
    "AdminAction",
    "ActionType",
]
