"""Exception hierarchy for AgentHub.

Every operation reports failures through one of three families:

- NotFoundError: an unknown project, agent, template, overlay, category or skill
- InvalidInputError: a malformed identifier, payload or feedback type
- ConflictError: an attempt to create something that already exists

Interfaces translate these into exit codes (CLI) or status codes (HTTP).
"""

from typing import Any, Optional


class AgentHubError(Exception):
    """Base exception for all AgentHub errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# NotFound
# =============================================================================

class NotFoundError(AgentHubError):
    """Raised when a requested entity does not exist."""


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project: str):
        super().__init__(f"Project not found: {project}", {"project": project})
        self.project = project


class AgentNotFoundError(NotFoundError):
    def __init__(self, agent: str, project: Optional[str] = None):
        where = f" in project {project}" if project else ""
        super().__init__(f"Agent not found{where}: {agent}", {"agent": agent, "project": project})
        self.agent = agent
        self.project = project


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template: str):
        super().__init__(f"Template not found: {template}", {"template": template})
        self.template = template


class OverlayNotFoundError(NotFoundError):
    def __init__(self, project: str):
        super().__init__(f"Overlay not found: {project}", {"project": project})
        self.project = project


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category: str, available: Optional[list[str]] = None):
        super().__init__(
            f"Unknown penalty category: {category}",
            {"category": category, "available": available or []},
        )
        self.category = category


class SkillNotFoundError(NotFoundError):
    def __init__(self, skill: str, agent: str):
        super().__init__(f"Skill not found for {agent}: {skill}", {"skill": skill, "agent": agent})
        self.skill = skill


class ScoresNotFoundError(NotFoundError):
    def __init__(self, project: str, path: str):
        super().__init__(f"Score file not found for {project}: {path}", {"project": project, "path": path})
        self.project = project


# =============================================================================
# InvalidInput
# =============================================================================

class InvalidInputError(AgentHubError):
    """Raised when input is rejected before any read or write."""


class InvalidIdentifierError(InvalidInputError):
    def __init__(self, kind: str, value: str):
        super().__init__(f"Invalid {kind} name: {value!r}", {"kind": kind, "value": value})
        self.kind = kind
        self.value = value


class UnknownFeedbackTypeError(InvalidInputError):
    def __init__(self, feedback_type: str, available: list[str]):
        super().__init__(
            f"Unknown feedback type: {feedback_type} (available: {', '.join(available)})",
            {"type": feedback_type, "available": available},
        )
        self.feedback_type = feedback_type


# =============================================================================
# Conflict
# =============================================================================

class ConflictError(AgentHubError):
    """Raised when creating an entity that already exists."""


class ProjectExistsError(ConflictError):
    def __init__(self, project: str):
        super().__init__(f"Project already registered: {project}", {"project": project})
        self.project = project


def validate_identifier(value: Optional[str], kind: str = "project") -> str:
    """Reject empty identifiers and anything that could escape a directory."""
    if not value or ".." in value or "/" in value or "\\" in value:
        raise InvalidIdentifierError(kind, value or "")
    return value
