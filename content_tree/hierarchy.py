"""
Level table for the six-level content tree.

Every generic operation (cascade, projection, navigation, sequencing) is
written once over this table instead of once per collection.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from beanie import Document

from .exceptions import HierarchyValidationError
from .models.enums import Level, Status
from .models.base import HierarchyDocument
from .models.exam import Exam
from .models.subject import Subject
from .models.unit import Unit
from .models.chapter import Chapter
from .models.topic import Topic
from .models.subtopic import SubTopic
from .models.details import TopicDetails, SubTopicDetails
from .slug import slugify


@dataclass(frozen=True)
class LevelSpec:
    level: Level
    document: Type[HierarchyDocument]
    ref_field: str  # Field descendants use to point at a record of this level
    ancestor_fields: Tuple[str, ...]  # Ancestor refs stored on this level, root first
    details_document: Optional[Type[Document]] = None
    details_key: Optional[str] = None
    label: str = ""

    @property
    def parent_field(self) -> Optional[str]:
        return self.ancestor_fields[-1] if self.ancestor_fields else None


LEVELS: List[Level] = [
    Level.EXAM,
    Level.SUBJECT,
    Level.UNIT,
    Level.CHAPTER,
    Level.TOPIC,
    Level.SUBTOPIC,
]

LEVEL_SPECS: Dict[Level, LevelSpec] = {
    Level.EXAM: LevelSpec(Level.EXAM, Exam, "exam_id", (), label="Exam"),
    Level.SUBJECT: LevelSpec(
        Level.SUBJECT, Subject, "subject_id", ("exam_id",), label="Subject"
    ),
    Level.UNIT: LevelSpec(
        Level.UNIT, Unit, "unit_id", ("exam_id", "subject_id"), label="Unit"
    ),
    Level.CHAPTER: LevelSpec(
        Level.CHAPTER,
        Chapter,
        "chapter_id",
        ("exam_id", "subject_id", "unit_id"),
        label="Chapter",
    ),
    Level.TOPIC: LevelSpec(
        Level.TOPIC,
        Topic,
        "topic_id",
        ("exam_id", "subject_id", "unit_id", "chapter_id"),
        details_document=TopicDetails,
        details_key="topic_id",
        label="Topic",
    ),
    Level.SUBTOPIC: LevelSpec(
        Level.SUBTOPIC,
        SubTopic,
        "subtopic_id",
        ("exam_id", "subject_id", "unit_id", "chapter_id", "topic_id"),
        details_document=SubTopicDetails,
        details_key="subtopic_id",
        label="SubTopic",
    ),
}

ANCESTOR_FIELDS = tuple(LEVEL_SPECS[level].ref_field for level in LEVELS[:-1])


def get_spec(level: Level) -> LevelSpec:
    return LEVEL_SPECS[level]


def coerce_level(value) -> Level:
    """Accept a Level or its string value, reject anything else"""
    if isinstance(value, Level):
        return value
    try:
        return Level(str(value).lower())
    except ValueError:
        raise HierarchyValidationError(
            f"Invalid level: {value}. Allowed: {[lvl.value for lvl in Level]}"
        )


def coerce_status(value) -> Status:
    if isinstance(value, Status):
        return value
    try:
        return Status(str(value).lower())
    except ValueError:
        raise HierarchyValidationError(
            "Valid status is required (active or inactive)"
        )


def depth_of(level: Level) -> int:
    return LEVELS.index(level)


def parent_level(level: Level) -> Optional[Level]:
    index = depth_of(level)
    return LEVELS[index - 1] if index > 0 else None


def child_level(level: Level) -> Optional[Level]:
    index = depth_of(level)
    return LEVELS[index + 1] if index + 1 < len(LEVELS) else None


def descendant_levels(level: Level) -> List[Level]:
    """Levels strictly below ``level``, nearest first"""
    return LEVELS[depth_of(level) + 1 :]


def levels_between(top: Level, bottom: Level) -> List[Level]:
    """Levels strictly below ``top`` down to and including ``bottom``"""
    return LEVELS[depth_of(top) + 1 : depth_of(bottom) + 1]


def normalize_name(level: Level, name: Optional[str]) -> str:
    """Trim a display name and apply the level's casing rule.

    Exam names are upper-cased; every other level capitalises the first
    letter of each word. Names without a letter or digit have no slug
    and are rejected.
    """
    if name is None or not name.strip():
        raise HierarchyValidationError(f"{get_spec(level).label} name is required")
    cleaned = name.strip()
    if not slugify(cleaned):
        raise HierarchyValidationError(
            f"{get_spec(level).label} name must contain at least one letter or digit"
        )
    if level == Level.EXAM:
        return cleaned.upper()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), cleaned)
