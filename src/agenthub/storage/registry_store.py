"""Registry and scoring-rule files in the hub directory."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from agenthub.config import METRICS_FILENAME, PENALTIES_FILENAME
from agenthub.errors import NotFoundError
from agenthub.models.registry import Registry
from agenthub.models.scoring import ScoringRules
from agenthub.storage.base import JSONDocumentStore, read_json

logger = logging.getLogger(__name__)


class RegistryStore(JSONDocumentStore[Registry]):
    """registry.json: agents, squads, projects and model costs."""

    def __init__(self, path: Path):
        super().__init__(path, Registry)

    def load(self) -> Registry:
        registry = super().load()
        if registry is None:
            raise NotFoundError(f"Registry not found: {self.path}", {"path": str(self.path)})
        return registry

    def save(self, registry: Registry, today: Optional[date] = None) -> None:
        registry.last_updated = (today or date.today()).isoformat()
        super().save(registry)
        logger.info(f"Registry saved ({len(registry.projects)} projects, {len(registry.agents)} agents)")


class ScoringRulesStore:
    """scoring/metrics.json + scoring/penalties.json, both optional."""

    def __init__(self, scoring_dir: Path):
        self.scoring_dir = Path(scoring_dir)

    def load(self) -> ScoringRules:
        metrics = read_json(self.scoring_dir / METRICS_FILENAME)
        penalties = read_json(self.scoring_dir / PENALTIES_FILENAME)
        if metrics is None and penalties is None:
            logger.debug(f"No scoring files in {self.scoring_dir}, using defaults")
        return ScoringRules.from_documents(metrics, penalties)
