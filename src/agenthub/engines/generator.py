"""Agent command-file generator.

For one (project, agent) pair: resolve the agent through the three
configuration layers, render its template, apply overlay patches, add the
self-memory footer and write ``commands/<command>.md`` into the project's
workspace. Batch variants run each unit independently and collect
successes, skips and failures instead of stopping at the first error.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from agenthub.config import MANAGER_COMMAND
from agenthub.engines.resolver import ResolvedAgent, resolve_agent
from agenthub.engines.templates import (
    active_agents_summary,
    agent_matrix,
    agent_task_map,
    apply_patches,
    render,
    self_memory_footer,
)
from agenthub.errors import AgentHubError, AgentNotFoundError, InvalidInputError, ProjectNotFoundError
from agenthub.models.overlay import Overlay
from agenthub.models.registry import AgentDefinition, LegacyCustomization, ProjectConfig, ProjectDefinition, Registry
from agenthub.storage.overlay_store import OverlayStore
from agenthub.storage.project_store import ProjectStore
from agenthub.storage.registry_store import RegistryStore
from agenthub.storage.template_store import TemplateStore
from agenthub.types import GenerationStatus

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    project: str
    agent: str
    status: GenerationStatus
    output_path: Optional[Path] = None
    role: Optional[str] = None
    overlay_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "agent": self.agent,
            "status": self.status.value,
            "outputPath": str(self.output_path) if self.output_path else None,
            "role": self.role,
            "overlayFields": self.overlay_fields,
        }


@dataclass
class BatchReport:
    """Outcome of a multi-unit operation. One failure never stops the rest."""
    succeeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def record_failure(self, target: str, error: Exception) -> None:
        self.failed.append({"target": target, "error": str(error)})

    def merge(self, other: "BatchReport") -> None:
        self.succeeded.extend(other.succeeded)
        self.skipped.extend(other.skipped)
        self.failed.extend(other.failed)

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def legacy_customization(config: Optional[ProjectConfig], agent_id: str) -> Optional[LegacyCustomization]:
    """The agent's customization from the project's own agent-config.json.

    Registry-inline customizations are not read here; they reach generated
    output only once migrated into the overlay.
    """
    if config is None:
        return None
    return config.customizations.get(agent_id)


class AgentGenerator:
    """Renders and writes agent command files for registered projects."""

    def __init__(
        self,
        registry_store: RegistryStore,
        project_store: ProjectStore,
        overlay_store: OverlayStore,
        template_store: TemplateStore,
        manager_command: str = MANAGER_COMMAND,
    ):
        self.registry_store = registry_store
        self.projects = project_store
        self.overlays = overlay_store
        self.templates = template_store
        self.manager_command = manager_command

    def load_overlay(self, project_id: str) -> Optional[Overlay]:
        """The project's overlay, or None when it is absent or unreadable."""
        try:
            return self.overlays.get(project_id)
        except InvalidInputError as e:
            logger.warning(f"Ignoring overlay for {project_id}: {e}")
            return None

    def build_variables(
        self,
        registry: Registry,
        project_id: str,
        project: ProjectDefinition,
        agent_id: str,
        agent: AgentDefinition,
        resolved: ResolvedAgent,
        config: Optional[ProjectConfig],
    ) -> dict[str, str]:
        tech_stack = config.tech_stack if config is not None else project.tech_stack
        return {
            "AGENT_NAME": agent_id,
            "AGENT_NAME_EN": agent.name_en,
            "AGENT_ROLE": resolved.role,
            "AGENT_ROLE_EN": agent.role_en,
            "AGENT_PERSONALITY": agent.personality,
            "AGENT_COMMAND": agent.command,
            "RECOMMENDED_MODEL": resolved.model,
            "ALTERNATIVE_MODELS": ", ".join(agent.alternative_models) or "N/A",
            "MODEL_RATIONALE": agent.model_rationale,
            "PROJECT_NAME": project_id,
            "PROJECT_DESCRIPTION": project.description or project_id,
            "TECH_STACK": ", ".join(tech_stack),
            "ACTIVE_AGENTS": active_agents_summary(registry, project_id, project),
            "AGENT_MATRIX": agent_matrix(registry, project_id, project),
            "AGENT_TASK_MAP": agent_task_map(registry, project_id, project, self.manager_command),
            "ADDITIONAL_CONTEXT": resolved.additional_context,
            "EXPERTISE": ", ".join(resolved.expertise),
            "CUSTOM_SECTIONS": "",
        }

    def render_agent(
        self,
        registry: Registry,
        project_id: str,
        agent_id: str,
        overlay: Optional[Overlay] = None,
    ) -> tuple[str, ResolvedAgent]:
        """Produce the command-file text for one agent without writing it."""
        project = registry.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        agent = registry.agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        config = self.projects.load_config(project_id, project)
        resolved = resolve_agent(agent, agent_id, overlay, legacy_customization(config, agent_id))

        template = self.templates.read(agent.template_file)
        variables = self.build_variables(registry, project_id, project, agent_id, agent, resolved, config)
        output = apply_patches(render(template, variables), resolved.template_patches)

        if agent.command != self.manager_command:
            scores_path = self.projects.scores_path(project_id, project).as_posix()
            output += self_memory_footer(agent_id, scores_path)
        return output, resolved

    def generate_agent(
        self,
        project_id: str,
        agent_id: str,
        registry: Optional[Registry] = None,
    ) -> GenerationResult:
        registry = registry or self.registry_store.load()
        project = registry.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        agent = registry.agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        if agent_id not in project.active_agents:
            logger.info(f"{agent_id} is not active in {project_id}, skipping")
            return GenerationResult(project_id, agent_id, GenerationStatus.SKIPPED)

        overlay = self.load_overlay(project_id)
        overlay_fields: list[str] = []
        if overlay is not None and agent_id in overlay.agents:
            overlay_fields = overlay.agents[agent_id].field_names()
            logger.info(f"Overlay applied to {agent_id}: {', '.join(overlay_fields)}")

        output, resolved = self.render_agent(registry, project_id, agent_id, overlay)
        path = self.projects.write_command(project_id, project, agent.command, output)
        logger.info(f"Generated {agent_id} ({resolved.role}) -> {path}")
        return GenerationResult(
            project=project_id,
            agent=agent_id,
            status=GenerationStatus.GENERATED,
            output_path=path,
            role=resolved.role,
            overlay_fields=overlay_fields,
        )

    def generate_project(self, project_id: str, registry: Optional[Registry] = None) -> BatchReport:
        """Generate every active agent of one project. Targets are ``project/agent``."""
        registry = registry or self.registry_store.load()
        project = registry.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        report = BatchReport()
        for agent_id in project.active_agents:
            self._generate_into(report, registry, project_id, agent_id)
        return report

    def generate_all(self) -> BatchReport:
        registry = self.registry_store.load()
        report = BatchReport()
        for project_id in registry.projects:
            report.merge(self.generate_project(project_id, registry))
        return report

    def regenerate_agent(self, agent_id: str, registry: Optional[Registry] = None) -> BatchReport:
        """Regenerate one agent in every project where it is active. Targets are project ids."""
        registry = registry or self.registry_store.load()
        report = BatchReport()
        for project_id, project in registry.projects.items():
            if agent_id not in project.active_agents:
                continue
            try:
                self.generate_agent(project_id, agent_id, registry)
                report.succeeded.append(project_id)
            except (AgentHubError, OSError) as e:
                logger.warning(f"Regeneration failed for {project_id}/{agent_id}: {e}")
                report.record_failure(project_id, e)
        return report

    def _generate_into(self, report: BatchReport, registry: Registry, project_id: str, agent_id: str) -> None:
        target = f"{project_id}/{agent_id}"
        try:
            result = self.generate_agent(project_id, agent_id, registry)
        except (AgentHubError, OSError) as e:
            logger.warning(f"Generation failed for {target}: {e}")
            report.record_failure(target, e)
            return
        if result.status is GenerationStatus.SKIPPED:
            report.skipped.append(target)
        else:
            report.succeeded.append(target)
