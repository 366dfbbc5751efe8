"""Score ledger - feedback scoring, improvement-mission progress and skills.

Scores are clamped to [MIN_SCORE, MAX_SCORE] on feedback. The rank is
never written independently; ScoreRecord derives it from the score.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from agenthub.config import MAX_RECENT_TASKS, MAX_SCORE, MAX_WORK_HISTORY, MIN_SCORE
from agenthub.errors import InvalidInputError, SkillNotFoundError, UnknownFeedbackTypeError
from agenthub.models.registry import AgentDefinition
from agenthub.models.score import (
    DevelopmentMemory,
    ImprovementMission,
    LearningJourney,
    Metrics,
    ScoreRecord,
    Skill,
    TaskEntry,
    WorkHistoryEntry,
)
from agenthub.models.scoring import FeedbackRule, ScoringRules
from agenthub.types import FeedbackType, MissionStatus

logger = logging.getLogger(__name__)


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def parse_time_limit(time_limit: Union[int, str, None]) -> Optional[int]:
    """Days allowed for a mission. Accepts 7 or strings like "7", "7d", "7 days"."""
    if isinstance(time_limit, int):
        return time_limit
    if isinstance(time_limit, str):
        match = re.match(r"\s*(\d+)", time_limit)
        if match:
            return int(match.group(1))
    return None


def prepend_work_history(record: ScoreRecord, entry: WorkHistoryEntry) -> None:
    """Newest first, capped at MAX_WORK_HISTORY."""
    history = record.development_memory.work_history
    history.insert(0, entry)
    del history[MAX_WORK_HISTORY:]


class ScoreLedger:
    """Applies feedback events to score records."""

    def __init__(self, rules: ScoringRules):
        self.rules = rules

    def new_record(self, agent: Optional[AgentDefinition] = None, now: Optional[datetime] = None) -> ScoreRecord:
        today = (now or datetime.now()).date().isoformat()
        return ScoreRecord(
            total_score=self.rules.initial_score,
            current_model=agent.recommended_model if agent else "sonnet",
            metrics=Metrics(),
            development_memory=DevelopmentMemory(learning_journey=LearningJourney(since=today)),
        )

    def feedback_rule(self, feedback_type: str) -> tuple[FeedbackType, FeedbackRule]:
        try:
            kind = FeedbackType(feedback_type)
        except ValueError:
            raise UnknownFeedbackTypeError(feedback_type, [t.value for t in FeedbackType]) from None
        rule = self.rules.feedback_scoring.get(kind.value)
        if rule is None:
            raise UnknownFeedbackTypeError(feedback_type, sorted(self.rules.feedback_scoring))
        return kind, rule

    def apply_feedback(
        self,
        record: ScoreRecord,
        feedback_type: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ScoreRecord:
        """Score a task outcome. Mutates and returns ``record``."""
        kind, rule = self.feedback_rule(feedback_type)
        today = (now or datetime.now()).date().isoformat()
        description = description or rule.description

        record.total_score = clamp_score(record.total_score + rule.score_change)

        metrics = record.metrics
        metrics.tasks_completed += 1
        if kind.is_success:
            metrics.successful_tasks += 1
        metrics.success_rate = round(metrics.successful_tasks / metrics.tasks_completed * 100)

        record.recent_tasks.insert(0, TaskEntry(
            date=today,
            type=kind.value,
            description=description,
            score_change=rule.score_change,
            new_score=record.total_score,
        ))
        del record.recent_tasks[MAX_RECENT_TASKS:]

        prepend_work_history(record, WorkHistoryEntry(
            date=today,
            task_type=kind.task_type.value,
            description=description,
            outcome=kind.value,
            score_change=rule.score_change,
        ))
        return record

    def advance_missions(
        self,
        record: ScoreRecord,
        feedback_type: str,
        now: Optional[datetime] = None,
    ) -> list[ImprovementMission]:
        """Expire overdue missions, then credit a success to the active ones.

        A mission that reaches its required successes is completed and its
        recovery points are added to the score. Returns the missions
        completed by this call.
        """
        kind, _ = self.feedback_rule(feedback_type)
        today = (now or datetime.now()).date()
        completed: list[ImprovementMission] = []

        for mission in record.active_missions():
            if mission.deadline and date.fromisoformat(mission.deadline) < today:
                mission.status = MissionStatus.EXPIRED
                logger.info(f"Mission expired ({mission.category}, level {mission.level})")
                continue
            if not kind.is_success:
                continue
            mission.completed_successes += 1
            if mission.completed_successes >= mission.required_successes:
                mission.status = MissionStatus.COMPLETED
                mission.completed_date = today.isoformat()
                record.total_score = clamp_score(record.total_score + mission.recovery_points)
                completed.append(mission)
        return completed

    # =========================================================================
    # Skills
    # =========================================================================

    def add_skill(
        self,
        record: ScoreRecord,
        name: str,
        proficiency: int = 50,
        notes: str = "",
        source: str = "external",
        now: Optional[datetime] = None,
    ) -> tuple[Skill, bool]:
        """Add or update a skill by name. Returns (skill, created)."""
        if not name or not name.strip():
            raise InvalidInputError("Skill name is required")
        if not 0 <= proficiency <= 100:
            raise InvalidInputError(f"Proficiency must be between 0 and 100, got {proficiency}")
        today = (now or datetime.now()).date().isoformat()
        skills = record.skills
        for i, existing in enumerate(skills):
            if existing.name == name:
                skills[i] = Skill(
                    name=name,
                    proficiency=proficiency,
                    added_date=existing.added_date,
                    last_updated=today,
                    notes=notes,
                    source=source,
                )
                return skills[i], False
        skill = Skill(
            name=name,
            proficiency=proficiency,
            added_date=today,
            last_updated=today,
            notes=notes,
            source=source,
        )
        skills.append(skill)
        return skill, True

    def remove_skill(self, record: ScoreRecord, name: str, agent_id: str = "") -> Skill:
        skills = record.skills
        for i, existing in enumerate(skills):
            if existing.name == name:
                return skills.pop(i)
        raise SkillNotFoundError(name, agent_id)


def mission_deadline(assigned: date, time_limit: Union[int, str, None]) -> Optional[str]:
    days = parse_time_limit(time_limit)
    if days is None:
        return None
    return (assigned + timedelta(days=days)).isoformat()
