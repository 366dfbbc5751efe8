"""Registry models: agents, squads, projects and the model cost table."""

from typing import Optional, Union

from pydantic import Field

from agenthub.config import DEFAULT_MODEL
from agenthub.models.base import Document


class AgentDefinition(Document):
    """Base definition of an agent persona."""
    role: str
    role_en: str = ""
    name_en: str = ""
    squad: str = ""
    expertise: list[str] = Field(default_factory=list)
    recommended_model: str = DEFAULT_MODEL
    alternative_models: list[str] = Field(default_factory=list)
    model_rationale: str = ""
    personality: str = ""
    template_file: str
    command: str
    subagent_type: str = "general-purpose"


class Squad(Document):
    name: str
    name_kr: str = ""
    color: str = "#888888"


class ModelCost(Document):
    cost_per_million_tokens: Optional[Union[int, float]] = None
    speed: Optional[str] = None
    quality: Optional[str] = None
    recommended_for: list[str] = Field(default_factory=list)


class LegacyCustomization(Document):
    """Per-agent customization embedded in project configuration.

    Lower priority than any overlay. Never rewritten after migration.
    """
    role: Optional[str] = None
    expertise: Optional[list[str]] = None
    additional_context: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.role or self.expertise or self.additional_context)


class ProjectDefinition(Document):
    path: Optional[str] = None
    tech_stack: list[str] = Field(default_factory=list)
    active_agents: list[str] = Field(default_factory=list)
    disabled_agents: list[str] = Field(default_factory=list)
    customizations: dict[str, LegacyCustomization] = Field(default_factory=dict)
    description: Optional[str] = None


class Registry(Document):
    """The hub's registry.json."""
    version: Optional[str] = None
    last_updated: Optional[str] = None
    projects: dict[str, ProjectDefinition] = Field(default_factory=dict)
    agents: dict[str, AgentDefinition] = Field(default_factory=dict)
    squads: dict[str, Squad] = Field(default_factory=dict)
    model_cost_matrix: dict[str, ModelCost] = Field(default_factory=dict)


class ProjectConfig(Document):
    """A project's own .claude/agent-config.json (legacy customization source)."""
    project: str
    tech_stack: list[str] = Field(default_factory=list)
    customizations: dict[str, LegacyCustomization] = Field(default_factory=dict)
    disabled_agents: list[str] = Field(default_factory=list)
    model_overrides: dict[str, str] = Field(default_factory=dict)
    created_date: Optional[str] = None

