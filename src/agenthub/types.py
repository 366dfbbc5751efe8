"""Core enums and type definitions for AgentHub."""

from enum import Enum


class ModelId(str, Enum):
    """Model identifiers an overlay may pin an agent to."""
    OPUS = "opus"
    SONNET = "sonnet"
    HAIKU = "haiku"


class FeedbackType(str, Enum):
    """Outcome reported for a completed task."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"
    EXCELLENT = "excellent"

    @property
    def is_success(self) -> bool:
        return self in (FeedbackType.SUCCESS, FeedbackType.EXCELLENT)

    @property
    def task_type(self) -> "TaskType":
        """Collapse the four outcomes into the three work-history buckets."""
        if self.is_success:
            return TaskType.SUCCESS
        if self is FeedbackType.FAILURE:
            return TaskType.FAILURE
        return TaskType.PARTIAL


class TaskType(str, Enum):
    """Work-history classification."""
    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL = "partial"
    PENALTY = "penalty"


class MissionStatus(str, Enum):
    """Lifecycle of an improvement mission."""
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class GenerationStatus(str, Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
