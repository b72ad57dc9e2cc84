"""
Error taxonomy for content tree operations.

Services raise these; routers translate them into HTTP responses.
"""

from typing import Dict, List, Optional


class ContentTreeError(Exception):
    """Base class for content tree errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ContentTreeError):
    status_code = 404


class HierarchyValidationError(ContentTreeError):
    """Rejected before any mutation took place"""

    status_code = 400


class ConflictError(HierarchyValidationError):
    """Duplicate sibling name or order position"""

    status_code = 409


class PartialCascadeFailure(ContentTreeError):
    """A descendant level failed after shallower levels were committed"""

    status_code = 500

    def __init__(
        self,
        message: str,
        level: str,
        record_id: str,
        operation: str,
        failed_level: str,
        completed_levels: List[str],
        counts: Dict[str, int],
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.level = level
        self.record_id = record_id
        self.operation = operation
        self.failed_level = failed_level
        self.completed_levels = completed_levels
        self.counts = counts
        self.cause = cause

    def to_dict(self) -> Dict:
        return {
            "message": self.message,
            "level": self.level,
            "record_id": self.record_id,
            "operation": self.operation,
            "failed_level": self.failed_level,
            "completed_levels": self.completed_levels,
            "levels_completed": len(self.completed_levels),
            "counts": self.counts,
            "retryable": True,
        }
