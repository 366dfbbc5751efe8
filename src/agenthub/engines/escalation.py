"""Penalty escalator.

Repeat offences in the same category escalate:

    level 4  3+ violations in the last 60 days   x3
    level 3  2+ violations in the last 30 days   x3
    level 2  1 violation in the last 30 days     x2
    level 1  otherwise                           x1

Levels 2-4 also assign an improvement mission. Level 4 flags the agent for
a replacement review; nothing happens automatically.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from agenthub import config as cfg
from agenthub.engines.ledger import mission_deadline, prepend_work_history
from agenthub.errors import CategoryNotFoundError
from agenthub.models.score import ImprovementMission, PenaltyEntry, ScoreRecord, WorkHistoryEntry
from agenthub.models.scoring import PenaltyCategory, ScoringRules
from agenthub.types import MissionStatus, TaskType

logger = logging.getLogger(__name__)

REPLACEMENT_REVIEW_LEVEL = 4


@dataclass
class Escalation:
    level: int
    multiplier: int
    recent_violations: int
    escalated_violations: int


def parse_penalty(value: str) -> tuple[str, str]:
    """Split ``"category:description"``. The description may be empty."""
    category, _, description = value.partition(":")
    return category.strip(), description.strip()


def _penalty_time(entry: PenaltyEntry) -> datetime:
    stamp = datetime.fromisoformat(entry.date)
    return stamp.replace(tzinfo=None) if stamp.tzinfo else stamp


class PenaltyEscalator:
    """Applies category penalties with repeat-offence escalation."""

    def __init__(self, rules: ScoringRules):
        self.rules = rules

    def category(self, name: str) -> PenaltyCategory:
        rule = self.rules.categories.get(name)
        if rule is None:
            raise CategoryNotFoundError(name, sorted(self.rules.categories))
        return rule

    def escalation(self, record: ScoreRecord, category: str, now: datetime) -> Escalation:
        recent_cutoff = now - timedelta(days=cfg.RECENT_VIOLATION_DAYS)
        escalated_cutoff = now - timedelta(days=cfg.ESCALATED_VIOLATION_DAYS)
        same = [_penalty_time(p) for p in record.penalties if p.category == category]
        recent = sum(1 for t in same if t > recent_cutoff)
        escalated = sum(1 for t in same if t > escalated_cutoff)

        if escalated >= 3:
            level = 4
        elif recent >= 2:
            level = 3
        elif recent >= 1:
            level = 2
        else:
            level = 1
        multiplier = self.rules.escalation_for(level).multiplier
        return Escalation(level, multiplier, recent, escalated)

    def apply_penalty(
        self,
        record: ScoreRecord,
        category: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PenaltyEntry:
        """Penalize ``record`` in place and return the appended penalty entry."""
        rule = self.category(category)
        now = now or datetime.now()
        today = now.date()
        description = description or category

        esc = self.escalation(record, category, now)
        escalation_rule = self.rules.escalation_for(esc.level)
        score_change = rule.base_points * esc.multiplier

        record.total_score = max(cfg.MIN_SCORE, record.total_score + score_change)
        record.warnings = max(record.warnings, esc.level)

        entry = PenaltyEntry(
            date=today.isoformat(),
            category=category,
            category_name=rule.name,
            severity=rule.severity,
            level=esc.level,
            warning_level=escalation_rule.warning_level,
            score_change=score_change,
            description=description,
            multiplier=esc.multiplier,
        )
        record.penalties.append(entry)

        template = escalation_rule.improvement_mission
        if esc.level >= 2 and template is not None:
            record.improvement_missions.append(ImprovementMission(
                assigned_date=today.isoformat(),
                deadline=mission_deadline(today, template.time_limit),
                category=category,
                level=esc.level,
                required_successes=template.required_successes,
                recovery_points=template.recovery_points,
                time_limit=template.time_limit,
                completed_successes=0,
                status=MissionStatus.ACTIVE,
            ))

        prepend_work_history(record, WorkHistoryEntry(
            date=today.isoformat(),
            task_type=TaskType.PENALTY.value,
            description=f"[{rule.name}] {description}",
            outcome=TaskType.PENALTY.value,
            score_change=score_change,
        ))

        logger.info(
            f"Penalty {category} level {esc.level} x{esc.multiplier}: "
            f"{score_change} -> {record.total_score}"
        )
        if esc.level >= REPLACEMENT_REVIEW_LEVEL:
            logger.warning(f"Level {esc.level} violation in {category}: agent replacement review needed")
        return entry
