"""Per-project workspace files: agent-config.json, agent-scores.json, commands/*.md.

Layout::

    <projects_dir>/<project.path>/.claude/
        agent-config.json
        agent-scores.json
        commands/<command>.md
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from agenthub.config import (
    COMMANDS_DIRNAME,
    PROJECT_CONFIG_FILENAME,
    SCORES_FILENAME,
    WORKSPACE_DIRNAME,
)
from agenthub.errors import InvalidIdentifierError, validate_identifier
from agenthub.models.registry import ProjectConfig, ProjectDefinition
from agenthub.models.score import ScoreDocument
from agenthub.storage.base import JSONDocumentStore

logger = logging.getLogger(__name__)


def validate_project_path(path: str) -> str:
    """Project paths may nest (``chatgame/sns-app``) but never climb or go absolute."""
    if not path or ".." in path.replace("\\", "/").split("/") or Path(path).is_absolute():
        raise InvalidIdentifierError("project path", path or "")
    return path


class ProjectStore:
    """Resolves and reads/writes the files inside each project's workspace."""

    def __init__(self, projects_dir: Path):
        self.projects_dir = Path(projects_dir)

    # -- paths ----------------------------------------------------------------

    def project_root(self, project_id: str, project: ProjectDefinition) -> Path:
        validate_identifier(project_id, "project")
        return self.projects_dir / validate_project_path(project.path or project_id)

    def workspace(self, project_id: str, project: ProjectDefinition) -> Path:
        return self.project_root(project_id, project) / WORKSPACE_DIRNAME

    def commands_dir(self, project_id: str, project: ProjectDefinition) -> Path:
        return self.workspace(project_id, project) / COMMANDS_DIRNAME

    def scores_path(self, project_id: str, project: ProjectDefinition) -> Path:
        return self.workspace(project_id, project) / SCORES_FILENAME

    def config_path(self, project_id: str, project: ProjectDefinition) -> Path:
        return self.workspace(project_id, project) / PROJECT_CONFIG_FILENAME

    # -- agent-config.json ----------------------------------------------------

    def load_config(self, project_id: str, project: ProjectDefinition) -> Optional[ProjectConfig]:
        return JSONDocumentStore(self.config_path(project_id, project), ProjectConfig).load()

    def save_config(self, project_id: str, project: ProjectDefinition, config: ProjectConfig) -> Path:
        path = self.config_path(project_id, project)
        JSONDocumentStore(path, ProjectConfig).save(config)
        return path

    # -- agent-scores.json ----------------------------------------------------

    def load_scores(self, project_id: str, project: ProjectDefinition) -> Optional[ScoreDocument]:
        return JSONDocumentStore(self.scores_path(project_id, project), ScoreDocument).load()

    def save_scores(
        self,
        project_id: str,
        project: ProjectDefinition,
        scores: ScoreDocument,
        now: Optional[datetime] = None,
    ) -> Path:
        scores.last_updated = (now or datetime.now()).isoformat()
        path = self.scores_path(project_id, project)
        JSONDocumentStore(path, ScoreDocument).save(scores)
        return path

    # -- commands/*.md --------------------------------------------------------

    def write_command(self, project_id: str, project: ProjectDefinition, command: str, content: str) -> Path:
        validate_identifier(command, "command")
        commands = self.commands_dir(project_id, project)
        commands.mkdir(parents=True, exist_ok=True)
        path = commands / f"{command}.md"
        path.write_text(content, encoding="utf-8")
        return path
