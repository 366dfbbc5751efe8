"""Scoring rule models, loaded from scoring/metrics.json and scoring/penalties.json."""

import copy
from typing import Any, Optional, Union

from pydantic import Field

from agenthub import config as cfg
from agenthub.models.base import Document


class FeedbackRule(Document):
    score_change: int
    description: str = ""


class PenaltyCategory(Document):
    base_points: int = Field(le=0)
    severity: str
    name: str


class MissionTemplate(Document):
    required_successes: int
    recovery_points: int
    time_limit: Union[int, str]


class EscalationRule(Document):
    multiplier: int
    warning_level: str = ""
    improvement_mission: Optional[MissionTemplate] = None


class ScoringRules(Document):
    """Everything the ledger and the escalator need to know about points."""
    initial_score: int = cfg.INITIAL_SCORE
    feedback_scoring: dict[str, FeedbackRule] = Field(default_factory=dict)
    categories: dict[str, PenaltyCategory] = Field(default_factory=dict)
    escalation: dict[str, EscalationRule] = Field(default_factory=dict)

    @classmethod
    def from_documents(
        cls,
        metrics: Optional[dict[str, Any]] = None,
        penalties: Optional[dict[str, Any]] = None,
    ) -> "ScoringRules":
        """Build rules from the two scoring files, filling gaps from config defaults.

        Escalation entries in penalties.json may omit ``multiplier``; the
        built-in multiplier for that level is used.
        """
        metrics = metrics or {}
        penalties = penalties or {}

        feedback = copy.deepcopy(cfg.FEEDBACK_SCORING)
        feedback.update(metrics.get("feedbackScoring", {}))

        categories = copy.deepcopy(cfg.PENALTY_CATEGORIES)
        categories.update(penalties.get("categories", {}))

        escalation = copy.deepcopy(cfg.ESCALATION_LEVELS)
        for key, rule in penalties.get("escalation", {}).items():
            merged = dict(escalation.get(key, {}))
            merged.update(rule)
            escalation[key] = merged

        return cls(
            initial_score=metrics.get("initialScore", cfg.INITIAL_SCORE),
            feedback_scoring=feedback,
            categories=categories,
            escalation=escalation,
        )

    def escalation_for(self, level: int) -> EscalationRule:
        rule = self.escalation.get(f"level{level}")
        if rule is None:
            return EscalationRule(multiplier=cfg.ESCALATION_LEVELS[f"level{level}"]["multiplier"])
        return rule
