"""Convert legacy per-project customizations into overlay files.

Legacy sources, in the order they are read:

1. the project's .claude/agent-config.json ``customizations``
2. its ``modelOverrides`` map
3. the registry's inline ``projects[id].customizations``

Field mapping: ``expertise`` -> ``expertiseOverride``, ``additionalContext``
-> ``additionalContext`` (copied, not merged), ``role`` -> ``roleOverride``,
model override -> ``modelOverride``.

An agent that already had a non-empty override before the run is never
touched, so running the migration again changes nothing. Within a run, a
customization is skipped once its agent holds an override from an earlier
source; only ``modelOverrides`` adds to an override made in the same run.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from agenthub.errors import AgentHubError
from agenthub.models.overlay import AgentOverride, Overlay
from agenthub.models.registry import LegacyCustomization, ProjectConfig, ProjectDefinition
from agenthub.storage.overlay_store import OverlayStore
from agenthub.storage.project_store import ProjectStore
from agenthub.storage.registry_store import RegistryStore
from agenthub.types import ModelId

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Report from migrating one project's legacy customizations."""
    project: str
    overlay: Overlay
    migrated_count: int = 0
    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    written: bool = False

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "migratedCount": self.migrated_count,
            "migrated": self.migrated,
            "skipped": self.skipped,
            "errors": self.errors,
            "written": self.written,
        }


@dataclass
class MigrationSummary:
    reports: list[MigrationReport] = field(default_factory=list)
    dry_run: bool = False
    duration_seconds: float = 0.0

    @property
    def total_migrated(self) -> int:
        return sum(r.migrated_count for r in self.reports)

    def to_dict(self) -> dict:
        return {
            "dryRun": self.dry_run,
            "totalMigrated": self.total_migrated,
            "projects": [r.to_dict() for r in self.reports],
            "duration_seconds": round(self.duration_seconds, 2),
        }


def _override_from_legacy(customization: LegacyCustomization) -> dict:
    fields = {}
    if customization.expertise:
        fields["expertise_override"] = list(customization.expertise)
    if customization.additional_context:
        fields["additional_context"] = customization.additional_context
    if customization.role:
        fields["role_override"] = customization.role
    return fields


def migrate(
    project_id: str,
    project: ProjectDefinition,
    config: Optional[ProjectConfig] = None,
    existing: Optional[Overlay] = None,
    today: Optional[date] = None,
) -> MigrationReport:
    """Fold legacy customizations into an overlay. Pure: nothing is written."""
    if existing is not None:
        overlay = existing.model_copy(deep=True)
    else:
        overlay = Overlay.empty(project_id, today)
    report = MigrationReport(project=project_id, overlay=overlay)

    # Agents with an override before this run belong to the overlay, not to migration
    protected = set(overlay.agents)

    def _apply(agent_id: str, fields: dict, label: str) -> None:
        current = overlay.agents.get(agent_id)
        merged = current.model_dump(exclude_none=True) if current is not None else {}
        merged.update(fields)
        overlay.agents[agent_id] = AgentOverride(**merged)
        report.migrated_count += 1
        report.migrated.append(f"{agent_id}: {label}")
        logger.info(f"  {project_id}/{agent_id}: {label}")

    def _migrate_customizations(customizations: dict[str, LegacyCustomization], source: str) -> None:
        for agent_id, customization in customizations.items():
            if customization is None or customization.is_empty():
                continue
            # Any override, old or made earlier in this run, owns the agent
            if agent_id in overlay.agents:
                report.skipped.append(f"{agent_id} ({source})")
                continue
            fields = _override_from_legacy(customization)
            label = ", ".join(AgentOverride.model_fields[name].alias or name for name in fields)
            _apply(agent_id, fields, f"{label} ({source})")

    if config is not None:
        _migrate_customizations(config.customizations, "agent-config")

        for agent_id, model in config.model_overrides.items():
            if agent_id in protected:
                report.skipped.append(f"{agent_id} (modelOverrides)")
                continue
            current = overlay.agents.get(agent_id)
            if current is not None and current.model_override is not None:
                continue
            try:
                model_id = ModelId(model)
            except ValueError:
                report.errors.append(f"{agent_id}: unknown model {model!r}")
                continue
            _apply(agent_id, {"model_override": model_id}, f"modelOverride -> {model_id.value}")

    _migrate_customizations(project.customizations, "registry")

    if report.migrated_count:
        overlay.last_updated = (today or date.today()).isoformat()
    return report


class OverlayMigrator:
    """Runs ``migrate`` over every registered project and persists the results."""

    def __init__(self, registry_store: RegistryStore, project_store: ProjectStore, overlay_store: OverlayStore):
        self.registry_store = registry_store
        self.projects = project_store
        self.overlays = overlay_store

    def migrate_project(
        self,
        project_id: str,
        project: ProjectDefinition,
        dry_run: bool = False,
        today: Optional[date] = None,
    ) -> MigrationReport:
        config = self.projects.load_config(project_id, project)
        existing = self.overlays.get(project_id)
        report = migrate(project_id, project, config, existing, today)

        if report.migrated_count == 0:
            logger.info(f"{project_id}: nothing to migrate")

        # A fresh empty overlay is still written so every project ends up with a file
        if not dry_run and (report.migrated_count or existing is None):
            self.overlays.save(project_id, report.overlay)
            report.written = True
        return report

    def migrate_all(self, dry_run: bool = False, today: Optional[date] = None) -> MigrationSummary:
        summary = MigrationSummary(dry_run=dry_run)
        start = time.time()
        registry = self.registry_store.load()
        for project_id, project in registry.projects.items():
            try:
                summary.reports.append(self.migrate_project(project_id, project, dry_run, today))
            except AgentHubError as e:
                logger.warning(f"{project_id}: migration failed: {e}")
                failed = MigrationReport(project=project_id, overlay=Overlay.empty(project_id, today))
                failed.errors.append(str(e))
                summary.reports.append(failed)
        summary.duration_seconds = time.time() - start
        logger.info(
            f"Overlay migration complete: {summary.total_migrated} entries"
            f"{' (dry run, nothing written)' if dry_run else ''}"
        )
        return summary
