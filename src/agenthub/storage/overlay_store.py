"""One overlay JSON file per project under <hub>/overlays/."""

import logging
from pathlib import Path
from typing import Optional

from agenthub.errors import AgentHubError, validate_identifier
from agenthub.models.overlay import Overlay
from agenthub.storage.base import parse_document, read_json, write_json

logger = logging.getLogger(__name__)


class OverlayStore:
    """Overlay files keyed by project id. A missing file means no overlay."""

    def __init__(self, overlays_dir: Path):
        self.overlays_dir = Path(overlays_dir)

    def path_for(self, project: str) -> Path:
        validate_identifier(project, "project")
        return self.overlays_dir / f"{project}.json"

    def exists(self, project: str) -> bool:
        return self.path_for(project).exists()

    def get(self, project: str) -> Optional[Overlay]:
        path = self.path_for(project)
        data = read_json(path)
        if data is None:
            return None
        return parse_document(Overlay, data, str(path))

    def list_all(self) -> dict[str, Overlay]:
        """Every readable overlay. Files starting with ``_`` and malformed files are skipped."""
        if not self.overlays_dir.is_dir():
            return {}
        overlays: dict[str, Overlay] = {}
        for path in sorted(self.overlays_dir.glob("*.json")):
            if path.name.startswith("_"):
                continue
            try:
                overlays[path.stem] = parse_document(Overlay, read_json(path), str(path))
            except AgentHubError as e:
                logger.warning(f"Skipping overlay {path.name}: {e}")
        return overlays

    def save(self, project: str, overlay: Overlay) -> Path:
        path = self.path_for(project)
        write_json(path, overlay.to_json_dict())
        logger.info(f"Overlay saved: {project} ({len(overlay.agents)} agent overrides)")
        return path
