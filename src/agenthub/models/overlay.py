"""Overlay models - the highest-priority, project-scoped agent overrides.

An overlay file looks like::

    {
      "version": "1.0.0",
      "project": "wedding",
      "lastUpdated": "2026-10-18",
      "agents": {
        "jungkook": {
          "roleOverride": "Backend lead",
          "expertiseAppend": ["Redis"],
          "templatePatches": {"append": "Always run the test suite."}
        }
      },
      "globalOverrides": {"additionalContext": "Payments are frozen this sprint."}
    }

Blank strings and empty lists count as absent, and an agent whose override
ends up with nothing set is dropped from ``agents`` entirely.
"""

from datetime import date
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from agenthub.config import OVERLAY_VERSION
from agenthub.models.base import Document
from agenthub.types import ModelId


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, list):
        items = [v.strip() if isinstance(v, str) else v for v in value]
        items = [v for v in items if v not in ("", None)]
        return items or None
    return value


class TemplatePatches(Document):
    model_config = ConfigDict(extra="forbid")

    prepend: Optional[str] = None
    append: Optional[str] = None

    @field_validator("prepend", "append", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    def is_empty(self) -> bool:
        return not (self.prepend or self.append)


class AgentOverride(Document):
    """Per-agent override. Every field is optional."""
    model_config = ConfigDict(extra="forbid")

    role_override: Optional[str] = None
    model_override: Optional[ModelId] = None
    expertise_override: Optional[list[str]] = None
    expertise_append: Optional[list[str]] = None
    additional_context: Optional[str] = None
    template_patches: Optional[TemplatePatches] = None

    @field_validator(
        "role_override", "model_override", "expertise_override",
        "expertise_append", "additional_context", mode="before",
    )
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def _drop_empty_patches(self):
        if self.template_patches is not None and self.template_patches.is_empty():
            self.template_patches = None
        return self

    def is_empty(self) -> bool:
        return all(
            getattr(self, name) is None
            for name in type(self).model_fields
        )

    def field_names(self) -> list[str]:
        """camelCase names of the fields that are set, in declaration order."""
        return [
            info.alias or name
            for name, info in type(self).model_fields.items()
            if getattr(self, name) is not None
        ]


class GlobalOverrides(Document):
    additional_context: Optional[str] = None

    @field_validator("additional_context", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)


class Overlay(Document):
    version: str
    project: str
    last_updated: Optional[str] = None
    agents: dict[str, AgentOverride] = Field(default_factory=dict)
    global_overrides: GlobalOverrides = Field(default_factory=GlobalOverrides)

    @model_validator(mode="after")
    def _drop_empty_overrides(self):
        self.agents = {
            name: override
            for name, override in self.agents.items()
            if not override.is_empty()
        }
        return self

    @classmethod
    def empty(cls, project: str, today: Optional[date] = None) -> "Overlay":
        """The canonical empty overlay for a project."""
        return cls(
            version=OVERLAY_VERSION,
            project=project,
            last_updated=(today or date.today()).isoformat(),
        )

    def has_override(self, agent: str) -> bool:
        return agent in self.agents

    def to_json_dict(self) -> dict[str, Any]:
        data = super().to_json_dict()
        # Keep the document shape stable even when nothing is set
        data.setdefault("agents", {})
        data.setdefault("globalOverrides", {})
        return data
