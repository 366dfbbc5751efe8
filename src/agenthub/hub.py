"""AgentHub - the coordinator that wires stores and engines together.

This is the primary API used by the CLI and the HTTP server. It owns:

- RegistryStore (registry.json) and ScoringRulesStore (scoring/*.json)
- OverlayStore (overlays/<project>.json)
- TemplateStore (templates/*.md)
- ProjectStore (each project's .claude/ workspace)

and exposes the operations built on top of them:

1. project registration and cloning
2. agent command-file generation (single, per project, everything)
3. template and overlay editing
4. feedback, penalties, improvement missions and skills
5. legacy customization -> overlay migration

Every operation is a read-modify-write on flat files with no locking;
concurrent writers race and the last one wins.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from agenthub import config as cfg
from agenthub.engines.escalation import PenaltyEscalator, parse_penalty
from agenthub.engines.generator import AgentGenerator, BatchReport, GenerationResult
from agenthub.engines.ledger import ScoreLedger
from agenthub.errors import (
    AgentNotFoundError,
    InvalidInputError,
    OverlayNotFoundError,
    ProjectExistsError,
    ProjectNotFoundError,
    ScoresNotFoundError,
    TemplateNotFoundError,
    validate_identifier,
)
from agenthub.migration.overlay_migration import MigrationSummary, OverlayMigrator
from agenthub.models.overlay import AgentOverride, Overlay
from agenthub.models.registry import LegacyCustomization, ProjectConfig, ProjectDefinition, Registry
from agenthub.models.score import ImprovementMission, PenaltyEntry, ScoreDocument, ScoreRecord, Skill
from agenthub.models.scoring import ScoringRules
from agenthub.storage.overlay_store import OverlayStore
from agenthub.storage.project_store import ProjectStore, validate_project_path
from agenthub.storage.registry_store import RegistryStore, ScoringRulesStore
from agenthub.storage.template_store import TemplateStore, template_stem

logger = logging.getLogger(__name__)


def split_csv(value: Optional[str]) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class AgentHub:
    """Registry, overlays, templates and scores behind one API."""

    def __init__(
        self,
        hub_dir: Optional[Path] = None,
        projects_dir: Optional[Path] = None,
        manager_command: Optional[str] = None,
    ):
        self.hub_dir = Path(hub_dir) if hub_dir else cfg.HUB_DIR
        if projects_dir:
            self.projects_dir = Path(projects_dir)
        elif hub_dir:
            self.projects_dir = self.hub_dir.parent
        else:
            self.projects_dir = cfg.PROJECTS_DIR
        self.manager_command = manager_command or cfg.MANAGER_COMMAND

        self.registry_store = RegistryStore(self.hub_dir / cfg.REGISTRY_FILENAME)
        self.rules_store = ScoringRulesStore(self.hub_dir / cfg.SCORING_DIRNAME)
        self.overlays = OverlayStore(self.hub_dir / cfg.OVERLAYS_DIRNAME)
        self.templates = TemplateStore(self.hub_dir / cfg.TEMPLATES_DIRNAME)
        self.projects = ProjectStore(self.projects_dir)

        self.generator = AgentGenerator(
            self.registry_store, self.projects, self.overlays, self.templates, self.manager_command,
        )
        self.migrator = OverlayMigrator(self.registry_store, self.projects, self.overlays)

    def initialize(self) -> None:
        """Create the hub directory layout. The registry itself is never created here."""
        for directory in (
            self.hub_dir,
            self.templates.templates_dir,
            self.overlays.overlays_dir,
            self.rules_store.scoring_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)
        if not self.registry_store.exists():
            logger.warning(f"No registry at {self.registry_store.path}")

    # =========================================================================
    # Registry
    # =========================================================================

    def load_registry(self) -> Registry:
        return self.registry_store.load()

    def scoring_rules(self) -> ScoringRules:
        return self.rules_store.load()

    def _project(self, registry: Registry, project_id: str) -> ProjectDefinition:
        validate_identifier(project_id, "project")
        project = registry.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def get_project(self, project_id: str) -> ProjectDefinition:
        return self._project(self.load_registry(), project_id)

    def list_projects(self) -> dict[str, ProjectDefinition]:
        return self.load_registry().projects

    def register_project(
        self,
        name: str,
        stack: str | list[str],
        path: Optional[str] = None,
        agents: Optional[list[str]] = None,
        description: Optional[str] = None,
        generate: bool = True,
        now: Optional[datetime] = None,
    ) -> BatchReport:
        """Register a project, create its workspace and generate its agents.

        Returns the generation report (empty when ``generate`` is False).
        """
        if not name:
            raise InvalidInputError("Project name is required")
        validate_identifier(name, "project")
        tech_stack = split_csv(stack) if isinstance(stack, str) else [s.strip() for s in stack if s.strip()]
        if not tech_stack:
            raise InvalidInputError("Tech stack is required")
        project_path = validate_project_path(path or name)

        registry = self.load_registry()
        if name in registry.projects:
            raise ProjectExistsError(name)

        active = list(agents) if agents else list(registry.agents)
        for agent_id in active:
            if agent_id not in registry.agents:
                raise AgentNotFoundError(agent_id)
        disabled = [a for a in registry.agents if a not in active]

        now = now or datetime.now()
        project = ProjectDefinition(
            path=project_path,
            tech_stack=tech_stack,
            active_agents=active,
            disabled_agents=disabled,
            customizations={},
            description=description or name,
        )
        registry.projects[name] = project
        self.registry_store.save(registry, today=now.date())
        logger.info(f"Registered project {name} ({len(active)} agents, stack: {', '.join(tech_stack)})")

        self.projects.commands_dir(name, project).mkdir(parents=True, exist_ok=True)
        self.projects.save_config(name, project, ProjectConfig(
            project=name,
            tech_stack=tech_stack,
            customizations={},
            disabled_agents=disabled,
            model_overrides={},
            created_date=now.date().isoformat(),
        ))
        self.init_scores(name, now=now)

        if not generate:
            return BatchReport()
        return self.generator.generate_project(name)

    def clone_project(
        self,
        source: str,
        target: str,
        stack: Optional[str] = None,
        customize: Optional[str] = None,
        path: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BatchReport:
        """Copy a project's agent lineup into a new project.

        ``customize`` is ``"agent:context,agent:context"`` and lands in the new
        project's agent-config.json before anything is generated.
        """
        registry = self.load_registry()
        source_project = self._project(registry, source)
        validate_identifier(target, "project")
        if target in registry.projects:
            raise ProjectExistsError(target)

        customizations: dict[str, LegacyCustomization] = {}
        for pair in split_csv(customize):
            agent_id, sep, context = pair.partition(":")
            if not sep or not agent_id.strip() or not context.strip():
                raise InvalidInputError(f"Invalid customization {pair!r}, expected agent:context")
            customizations[agent_id.strip()] = LegacyCustomization(additional_context=context.strip())

        self.register_project(
            target,
            stack or source_project.tech_stack,
            path=path,
            agents=list(source_project.active_agents),
            description=f"{target} (cloned from {source})",
            generate=False,
            now=now,
        )

        if customizations:
            project = self.get_project(target)
            config = self.projects.load_config(target, project) or ProjectConfig(project=target)
            config.customizations.update(customizations)
            self.projects.save_config(target, project, config)
            logger.info(f"Applied customizations to {target}: {', '.join(customizations)}")

        return self.generator.generate_project(target)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_agent(self, project_id: str, agent_id: str) -> GenerationResult:
        validate_identifier(project_id, "project")
        validate_identifier(agent_id, "agent")
        return self.generator.generate_agent(project_id, agent_id)

    def generate_project(self, project_id: str) -> BatchReport:
        validate_identifier(project_id, "project")
        return self.generator.generate_project(project_id)

    def generate_all(self) -> BatchReport:
        return self.generator.generate_all()

    # =========================================================================
    # Templates
    # =========================================================================

    def list_templates(self) -> list[dict]:
        return self.templates.list_templates()

    def read_template(self, name: str) -> str:
        return self.templates.read(name)

    def agents_for_template(self, registry: Registry, name: str) -> list[str]:
        """Agents rendered from a template: by templateFile, else by id prefix."""
        filename = f"{template_stem(name)}.md"
        matches = [agent_id for agent_id, agent in registry.agents.items() if agent.template_file == filename]
        if matches:
            return matches
        prefix = template_stem(name).split("-")[0]
        return [prefix] if prefix in registry.agents else []

    def save_template(self, name: str, content: Any, now: Optional[datetime] = None) -> dict:
        """Replace a template, back up the old one and regenerate affected projects."""
        if not isinstance(content, str) or not content:
            raise InvalidInputError("Template content is required")
        if not self.templates.path_for(name).exists():
            raise TemplateNotFoundError(name)

        backup = self.templates.save(name, content, now=now)

        registry = self.load_registry()
        report = BatchReport()
        for agent_id in self.agents_for_template(registry, name):
            report.merge(self.generator.regenerate_agent(agent_id, registry))
        return {
            "updated": report.succeeded,
            "errors": [{"project": f["target"], "error": f["error"]} for f in report.failed],
            "backup": backup.name,
        }

    # =========================================================================
    # Overlays
    # =========================================================================

    def get_overlay(self, project_id: str) -> Optional[Overlay]:
        return self.overlays.get(project_id)

    def list_overlays(self) -> dict[str, Overlay]:
        return self.overlays.list_all()

    def save_overlay(self, project_id: str, payload: dict[str, Any], today: Optional[date] = None) -> Overlay:
        """Validate and persist a whole overlay document.

        ``version`` and ``project`` are required. Empty per-agent overrides
        are dropped rather than stored.
        """
        validate_identifier(project_id, "project")
        if not isinstance(payload, dict) or not payload.get("version") or not payload.get("project"):
            raise InvalidInputError("Invalid overlay format: version and project required")
        try:
            overlay = Overlay.model_validate(payload)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid overlay: {e}") from e
        overlay.last_updated = (today or date.today()).isoformat()
        self.overlays.save(project_id, overlay)
        return overlay

    def reset_overlay(self, project_id: str, today: Optional[date] = None) -> Overlay:
        """Replace an existing overlay with the canonical empty one."""
        if not self.overlays.exists(project_id):
            raise OverlayNotFoundError(project_id)
        overlay = Overlay.empty(project_id, today)
        self.overlays.save(project_id, overlay)
        logger.info(f"Overlay reset: {project_id}")
        return overlay

    def set_agent_override(
        self,
        project_id: str,
        agent_id: str,
        fields: dict[str, Any],
        global_context: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Overlay:
        """Edit one agent's override. Fields that end up empty remove the agent key.

        ``global_context`` of None leaves the project-wide context alone; an
        empty string clears it.
        """
        validate_identifier(agent_id, "agent")
        overlay = self.overlays.get(project_id) or Overlay.empty(project_id, today)
        try:
            override = AgentOverride.model_validate(fields)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid override for {agent_id}: {e}") from e

        if override.is_empty():
            overlay.agents.pop(agent_id, None)
        else:
            overlay.agents[agent_id] = override
        if global_context is not None:
            overlay.global_overrides.additional_context = global_context.strip() or None

        overlay.version = cfg.OVERLAY_VERSION
        overlay.project = project_id
        overlay.last_updated = (today or date.today()).isoformat()
        self.overlays.save(project_id, overlay)
        return overlay

    def clear_agent_override(self, project_id: str, agent_id: str, today: Optional[date] = None) -> Overlay:
        overlay = self.overlays.get(project_id)
        if overlay is None or agent_id not in overlay.agents:
            raise OverlayNotFoundError(f"{project_id}/{agent_id}")
        return self.set_agent_override(project_id, agent_id, {}, today=today)

    # =========================================================================
    # Scores
    # =========================================================================

    def _new_document(self, registry: Registry, project_id: str, ledger: ScoreLedger, now: datetime) -> ScoreDocument:
        project = self._project(registry, project_id)
        return ScoreDocument(
            project=project_id,
            agents={
                agent_id: ledger.new_record(registry.agents.get(agent_id), now=now)
                for agent_id in project.active_agents
            },
        )

    def init_scores(self, project_id: str, now: Optional[datetime] = None) -> ScoreDocument:
        """Write a fresh score document for every active agent."""
        now = now or datetime.now()
        registry = self.load_registry()
        project = self._project(registry, project_id)
        scores = self._new_document(registry, project_id, ScoreLedger(self.scoring_rules()), now)
        self.projects.save_scores(project_id, project, scores, now=now)
        logger.info(f"Initialized scores for {project_id} ({len(scores.agents)} agents)")
        return scores

    def get_scores(self, project_id: str) -> ScoreDocument:
        registry = self.load_registry()
        project = self._project(registry, project_id)
        scores = self.projects.load_scores(project_id, project)
        if scores is None:
            raise ScoresNotFoundError(project_id, str(self.projects.scores_path(project_id, project)))
        return scores

    def _record_for_update(
        self,
        project_id: str,
        agent_id: str,
        ledger: ScoreLedger,
        now: datetime,
    ) -> tuple[ProjectDefinition, ScoreDocument, ScoreRecord]:
        """Load (or lazily create) the document and the agent's record."""
        validate_identifier(agent_id, "agent")
        registry = self.load_registry()
        project = self._project(registry, project_id)
        scores = self.projects.load_scores(project_id, project)
        if scores is None:
            scores = self._new_document(registry, project_id, ledger, now)
        record = scores.agents.get(agent_id)
        if record is None:
            agent = registry.agents.get(agent_id)
            if agent is None:
                raise AgentNotFoundError(agent_id, project_id)
            record = ledger.new_record(agent, now=now)
            scores.agents[agent_id] = record
        return project, scores, record

    def apply_feedback(
        self,
        project_id: str,
        agent_id: str,
        feedback_type: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> tuple[ScoreRecord, list[ImprovementMission]]:
        """Score a task outcome, then progress improvement missions."""
        now = now or datetime.now()
        ledger = ScoreLedger(self.scoring_rules())
        ledger.feedback_rule(feedback_type)
        project, scores, record = self._record_for_update(project_id, agent_id, ledger, now)

        old_score = record.total_score
        ledger.apply_feedback(record, feedback_type, description, now=now)
        completed = ledger.advance_missions(record, feedback_type, now=now)
        self.projects.save_scores(project_id, project, scores, now=now)

        logger.info(f"Feedback {feedback_type} for {project_id}/{agent_id}: {old_score} -> {record.total_score} ({record.rank})")
        for mission in completed:
            logger.info(f"Mission completed for {agent_id}: {mission.category} (+{mission.recovery_points})")
        return record, completed

    def apply_penalty(
        self,
        project_id: str,
        agent_id: str,
        penalty: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> tuple[ScoreRecord, PenaltyEntry]:
        """Apply ``"category[:description]"`` to an agent.

        Without an explicit ``description`` the raw penalty string is recorded.
        """
        now = now or datetime.now()
        category, _ = parse_penalty(penalty)
        escalator = PenaltyEscalator(self.scoring_rules())
        escalator.category(category)
        ledger = ScoreLedger(escalator.rules)
        project, scores, record = self._record_for_update(project_id, agent_id, ledger, now)

        entry = escalator.apply_penalty(record, category, description or penalty, now=now)
        self.projects.save_scores(project_id, project, scores, now=now)
        return record, entry

    # =========================================================================
    # Skills
    # =========================================================================

    def _existing_record(self, project_id: str, agent_id: str) -> tuple[ProjectDefinition, ScoreDocument, ScoreRecord]:
        validate_identifier(agent_id, "agent")
        registry = self.load_registry()
        project = self._project(registry, project_id)
        scores = self.projects.load_scores(project_id, project)
        if scores is None:
            raise ScoresNotFoundError(project_id, str(self.projects.scores_path(project_id, project)))
        record = scores.agents.get(agent_id)
        if record is None:
            raise AgentNotFoundError(agent_id, project_id)
        return project, scores, record

    def add_skill(
        self,
        project_id: str,
        agent_id: str,
        name: str,
        proficiency: int = 50,
        notes: str = "",
        source: str = "external",
        now: Optional[datetime] = None,
    ) -> tuple[Skill, bool]:
        now = now or datetime.now()
        project, scores, record = self._existing_record(project_id, agent_id)
        skill, created = ScoreLedger(self.scoring_rules()).add_skill(
            record, name, proficiency, notes, source, now=now,
        )
        self.projects.save_scores(project_id, project, scores, now=now)
        logger.info(f"{'Added' if created else 'Updated'} skill {name} for {project_id}/{agent_id}")
        return skill, created

    def list_skills(self, project_id: str, agent_id: str) -> list[Skill]:
        _, _, record = self._existing_record(project_id, agent_id)
        return list(record.skills)

    def remove_skill(self, project_id: str, agent_id: str, name: str, now: Optional[datetime] = None) -> Skill:
        project, scores, record = self._existing_record(project_id, agent_id)
        removed = ScoreLedger(self.scoring_rules()).remove_skill(record, name, agent_id)
        self.projects.save_scores(project_id, project, scores, now=now)
        logger.info(f"Removed skill {name} from {project_id}/{agent_id}")
        return removed

    # =========================================================================
    # Migration
    # =========================================================================

    def migrate_overlays(self, dry_run: bool = False, today: Optional[date] = None) -> MigrationSummary:
        return self.migrator.migrate_all(dry_run=dry_run, today=today)

    def stats(self) -> dict[str, Any]:
        registry = self.load_registry()
        return {
            "projects": len(registry.projects),
            "agents": len(registry.agents),
            "squads": len(registry.squads),
            "templates": len(self.templates.list_templates()),
            "overlays": len(self.overlays.list_all()),
        }
