"""Template engine - placeholder substitution, patches and derived tables.

Templates are Markdown with ``{{KEY}}`` tokens. Substitution is a single
pass: substituted values are never rescanned, and tokens whose key is not
in the variable map are left exactly as written.
"""

import re
from typing import Mapping, Optional

from agenthub.config import COMMAND_PREFIX, MANAGER_COMMAND
from agenthub.engines.resolver import PatchSet
from agenthub.errors import AgentNotFoundError
from agenthub.models.registry import AgentDefinition, ProjectDefinition, Registry

PLACEHOLDER = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


def render(template: str, variables: Mapping[str, Optional[str]]) -> str:
    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        return str(value) if value else ""

    return PLACEHOLDER.sub(_substitute, template)


def apply_patches(output: str, patches: Optional[PatchSet]) -> str:
    if patches is None:
        return output
    if patches.prepend:
        output = f"{patches.prepend}\n\n{output}"
    if patches.append:
        output = f"{output}\n\n{patches.append}"
    return output


# =============================================================================
# Derived variables
# =============================================================================

def _active(registry: Registry, project_id: str, project: ProjectDefinition) -> list[tuple[str, AgentDefinition]]:
    agents = []
    for name in project.active_agents:
        agent = registry.agents.get(name)
        if agent is None:
            raise AgentNotFoundError(name, project_id)
        agents.append((name, agent))
    return agents


def active_agents_summary(registry: Registry, project_id: str, project: ProjectDefinition) -> str:
    """One line per active agent: ``name (role) - /project:command``."""
    return "\n".join(
        f"{name} ({agent.role}) - {COMMAND_PREFIX}{agent.command}"
        for name, agent in _active(registry, project_id, project)
    )


def agent_matrix(registry: Registry, project_id: str, project: ProjectDefinition) -> str:
    header = "| Agent | Command | Expertise | Role |"
    separator = "|-------|---------|-----------|------|"
    rows = [
        f"| **{name}** | `{COMMAND_PREFIX}{agent.command}` | {', '.join(agent.expertise)} | {agent.role} |"
        for name, agent in _active(registry, project_id, project)
    ]
    return "\n".join([header, separator, *rows])


def agent_task_map(
    registry: Registry,
    project_id: str,
    project: ProjectDefinition,
    manager_command: str = MANAGER_COMMAND,
) -> str:
    """Delegation table for the manager: every other active agent."""
    header = "| Agent | Role | subagent_type | Recommended model | Persona |"
    separator = "|-------|------|---------------|-------------------|---------|"
    rows = [
        f"| **{name}** | {agent.role} | `{agent.subagent_type}` | `{agent.recommended_model}` "
        f"| {agent.personality.split('.')[0]} |"
        for name, agent in _active(registry, project_id, project)
        if agent.command != manager_command
    ]
    return "\n".join([header, separator, *rows])


def self_memory_footer(agent_id: str, scores_path: str) -> str:
    """Advisory appended to every non-manager agent: read your own record first."""
    return f"""

---

## Development memory - required reading

**Before starting any task, read your own record.**

```
Read this file with the Read tool:
{scores_path}
```

In that file, under `agents.{agent_id}.developmentMemory`:

1. **Past mistakes** (`fixPatterns.incorrectDiagnosis`)
   - Do not repeat a diagnosis that was recorded as wrong
2. **What worked** (`fixPatterns.successfulPatterns`)
   - Prefer approaches that succeeded before
3. **File expertise** (`technicalKnowledge.fileExpertise`)
   - Be extra careful with files that have a low success rate
4. **Code review feedback** (`codeReviewFeedback`)
   - Check recurring issues raised by reviewers and avoid them
5. **Improvement missions** (`agents.{agent_id}.improvementMissions`)
   - If a mission is active, treat this task as a chance to make progress on it

**If the record is missing or empty, carry on with the task.**
**A failure to read the record never blocks the task.**
"""
