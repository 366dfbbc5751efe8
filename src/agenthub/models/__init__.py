"""AgentHub data models."""

from agenthub.models.overlay import AgentOverride, GlobalOverrides, Overlay, TemplatePatches
from agenthub.models.registry import (
    AgentDefinition,
    LegacyCustomization,
    ModelCost,
    ProjectConfig,
    ProjectDefinition,
    Registry,
    Squad,
)
from agenthub.models.score import (
    ImprovementMission,
    PenaltyEntry,
    ScoreDocument,
    ScoreRecord,
    Skill,
    rank_for,
)
from agenthub.models.scoring import EscalationRule, FeedbackRule, PenaltyCategory, ScoringRules

__all__ = [
    "AgentDefinition",
    "AgentOverride",
    "EscalationRule",
    "FeedbackRule",
    "GlobalOverrides",
    "ImprovementMission",
    "LegacyCustomization",
    "ModelCost",
    "Overlay",
    "PenaltyCategory",
    "PenaltyEntry",
    "ProjectConfig",
    "ProjectDefinition",
    "Registry",
    "ScoreDocument",
    "ScoreRecord",
    "ScoringRules",
    "Skill",
    "Squad",
    "TemplatePatches",
    "rank_for",
]
