"""Score document models - one agent-scores.json per project."""

from datetime import date
from typing import Any, Optional, Union

from pydantic import Field, computed_field, model_validator

from agenthub.config import DEFAULT_FOCUS_GOAL, DEFAULT_FOCUS_PROGRESS, INITIAL_SCORE, LOWEST_RANK, RANK_THRESHOLDS
from agenthub.models.base import Document
from agenthub.types import MissionStatus

Number = Union[int, float]


def rank_for(score: int) -> str:
    """Letter grade for a total score: S >= 900, A >= 800, B >= 700, C >= 600, else D."""
    for rank, floor in RANK_THRESHOLDS:
        if score >= floor:
            return rank
    return LOWEST_RANK


class Metrics(Document):
    tasks_completed: int = 0
    successful_tasks: int = 0
    success_rate: int = 100
    avg_response_time: Number = 0
    quality_score: Number = 80
    user_satisfaction: Number = 4.0
    consistency: Number = 80


class TaskEntry(Document):
    date: str
    type: str
    description: str
    score_change: int
    new_score: int


class WorkHistoryEntry(Document):
    date: str
    task_type: str
    description: str
    outcome: str
    score_change: int


class FixPatterns(Document):
    incorrect_diagnosis: list[Any] = Field(default_factory=list)
    successful_patterns: list[Any] = Field(default_factory=list)


class Skill(Document):
    name: str
    proficiency: int = Field(default=50, ge=0, le=100)
    added_date: str
    last_updated: str
    notes: str = ""
    source: str = "external"


class TechnicalKnowledge(Document):
    file_expertise: dict[str, Any] = Field(default_factory=dict)
    tech_stack_proficiency: dict[str, Any] = Field(default_factory=dict)
    skills: list[Skill] = Field(default_factory=list)


class CodeReviewFeedback(Document):
    received_from_others: list[Any] = Field(default_factory=list)
    common_issues: dict[str, Any] = Field(default_factory=dict)


class CurrentFocus(Document):
    goal: str = DEFAULT_FOCUS_GOAL
    progress: str = DEFAULT_FOCUS_PROGRESS
    target_date: str = ""


class LearningJourney(Document):
    since: str = Field(default_factory=lambda: date.today().isoformat())
    milestones: list[Any] = Field(default_factory=list)
    current_focus: CurrentFocus = Field(default_factory=CurrentFocus)


class DevelopmentMemory(Document):
    work_history: list[WorkHistoryEntry] = Field(default_factory=list)
    fix_patterns: FixPatterns = Field(default_factory=FixPatterns)
    technical_knowledge: TechnicalKnowledge = Field(default_factory=TechnicalKnowledge)
    code_review_feedback: CodeReviewFeedback = Field(default_factory=CodeReviewFeedback)
    learning_journey: LearningJourney = Field(default_factory=LearningJourney)


class PenaltyEntry(Document):
    date: str
    category: str
    category_name: str
    severity: str
    level: int
    warning_level: str
    score_change: int
    description: str
    multiplier: int


class ImprovementMission(Document):
    assigned_date: str
    deadline: Optional[str] = None
    category: str
    level: int
    required_successes: int
    recovery_points: int
    time_limit: Union[int, str]
    completed_successes: int = 0
    status: MissionStatus = MissionStatus.ACTIVE
    completed_date: Optional[str] = None


class ScoreRecord(Document):
    """Per (project, agent) performance record.

    ``rank`` is always derived from ``total_score``; any stored value is
    discarded on load and recomputed on dump.
    """
    total_score: int = INITIAL_SCORE
    current_model: str = "sonnet"
    model_history: list[Any] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
    recent_tasks: list[TaskEntry] = Field(default_factory=list)
    development_memory: DevelopmentMemory = Field(default_factory=DevelopmentMemory)
    penalties: list[PenaltyEntry] = Field(default_factory=list)
    warnings: int = 0
    improvement_missions: list[ImprovementMission] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _discard_stored_rank(cls, data):
        if isinstance(data, dict) and "rank" in data:
            data = {k: v for k, v in data.items() if k != "rank"}
        return data

    @computed_field
    @property
    def rank(self) -> str:
        return rank_for(self.total_score)

    @property
    def skills(self) -> list[Skill]:
        return self.development_memory.technical_knowledge.skills

    def active_missions(self) -> list[ImprovementMission]:
        return [m for m in self.improvement_missions if m.status == MissionStatus.ACTIVE]


class ScoreDocument(Document):
    project: str
    last_updated: Optional[str] = None
    agents: dict[str, ScoreRecord] = Field(default_factory=dict)
