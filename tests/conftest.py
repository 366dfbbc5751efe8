"""Shared test fixtures for AgentHub."""

import json
import tempfile
from pathlib import Path

import pytest

from agenthub.hub import AgentHub
from agenthub.models.registry import Registry

SAMPLE_REGISTRY = {
    "version": "2.0.0",
    "lastUpdated": "2026-01-01",
    "projects": {
        "shop": {
            "path": "shop",
            "techStack": ["Next.js", "Supabase"],
            "activeAgents": ["boss", "jin", "rex"],
            "disabledAgents": ["mia"],
            "customizations": {
                "rex": {"additionalContext": "Owns the payment flow"},
            },
            "description": "Online shop",
        },
        "blog": {
            "path": "blog",
            "techStack": ["Astro"],
            "activeAgents": ["jin"],
            "disabledAgents": [],
            "customizations": {},
            "description": "Company blog",
        },
    },
    "agents": {
        "boss": {
            "role": "Project manager",
            "roleEn": "Project Manager",
            "nameEn": "Boss",
            "squad": "command",
            "expertise": ["planning", "delegation"],
            "recommendedModel": "opus",
            "alternativeModels": ["sonnet"],
            "modelRationale": "Needs the broadest reasoning",
            "personality": "Calm and decisive. Keeps everyone on track.",
            "templateFile": "boss.md",
            "command": "manager",
            "subagentType": "general-purpose",
        },
        "jin": {
            "role": "Frontend developer",
            "roleEn": "Frontend Developer",
            "nameEn": "Jin",
            "squad": "build",
            "expertise": ["CSS", "React"],
            "recommendedModel": "sonnet",
            "alternativeModels": ["haiku"],
            "modelRationale": "Fast iteration on UI",
            "personality": "Pixel perfectionist. Loves clean layouts.",
            "templateFile": "jin.md",
            "command": "frontend",
            "subagentType": "frontend-developer",
        },
        "rex": {
            "role": "Backend developer",
            "roleEn": "Backend Developer",
            "nameEn": "Rex",
            "squad": "build",
            "expertise": ["APIs", "SQL"],
            "recommendedModel": "sonnet",
            "personality": "Methodical builder. Tests everything twice.",
            "templateFile": "rex.md",
            "command": "backend",
        },
        "mia": {
            "role": "QA engineer",
            "expertise": ["testing"],
            "personality": "Curious. Breaks things on purpose.",
            "templateFile": "mia.md",
            "command": "qa",
        },
    },
    "squads": {
        "command": {"name": "Command", "nameKr": "지휘", "color": "#ff0000"},
        "build": {"name": "Build", "nameKr": "개발", "color": "#00ff00"},
    },
    "modelCostMatrix": {
        "opus": {"costPerMillionTokens": 15, "speed": "slow", "quality": "best", "recommendedFor": ["planning"]},
    },
}

AGENT_TEMPLATE = """# {{AGENT_NAME}} - {{AGENT_ROLE}}

Project: {{PROJECT_NAME}} ({{TECH_STACK}})
Model: {{RECOMMENDED_MODEL}}
Expertise: {{EXPERTISE}}

{{ADDITIONAL_CONTEXT}}
"""

MANAGER_TEMPLATE = """# {{AGENT_NAME}} - {{AGENT_ROLE}}

## Team
{{ACTIVE_AGENTS}}

## Delegation
{{AGENT_TASK_MAP}}
"""


def write_hub(hub_dir: Path, registry: dict = None) -> None:
    """Lay out a hub directory: registry, templates, empty overlay and scoring dirs."""
    hub_dir.mkdir(parents=True, exist_ok=True)
    (hub_dir / "registry.json").write_text(json.dumps(registry or SAMPLE_REGISTRY, indent=2))
    templates = hub_dir / "templates"
    templates.mkdir()
    (templates / "boss.md").write_text(MANAGER_TEMPLATE)
    for name in ("jin", "rex", "mia"):
        (templates / f"{name}.md").write_text(AGENT_TEMPLATE)
    (hub_dir / "overlays").mkdir()
    (hub_dir / "scoring").mkdir()


@pytest.fixture
def temp_dir():
    """Temporary directory for test data."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def hub(temp_dir):
    """AgentHub over a temporary hub directory and projects directory."""
    write_hub(temp_dir / "hub")
    h = AgentHub(hub_dir=temp_dir / "hub", projects_dir=temp_dir / "projects")
    h.initialize()
    return h


@pytest.fixture
def registry():
    return Registry.model_validate(SAMPLE_REGISTRY)


@pytest.fixture
def read_json():
    def _read(path: Path) -> dict:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    return _read
