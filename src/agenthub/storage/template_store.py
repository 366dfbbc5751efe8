"""Markdown agent templates under <hub>/templates/."""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from agenthub.config import TEMPLATE_BACKUPS_DIRNAME
from agenthub.errors import TemplateNotFoundError, validate_identifier

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".md"


def template_stem(name: str) -> str:
    """Accept either ``jin`` or ``jin.md``."""
    return name[: -len(TEMPLATE_SUFFIX)] if name.endswith(TEMPLATE_SUFFIX) else name


class TemplateStore:
    def __init__(self, templates_dir: Path):
        self.templates_dir = Path(templates_dir)

    @property
    def backups_dir(self) -> Path:
        return self.templates_dir / TEMPLATE_BACKUPS_DIRNAME

    def path_for(self, name: str) -> Path:
        stem = template_stem(validate_identifier(name, "template"))
        return self.templates_dir / f"{stem}{TEMPLATE_SUFFIX}"

    def list_templates(self) -> list[dict]:
        if not self.templates_dir.is_dir():
            return []
        return [
            {
                "filename": path.name,
                "agentName": path.stem,
                "size": path.stat().st_size,
            }
            for path in sorted(self.templates_dir.glob(f"*{TEMPLATE_SUFFIX}"))
        ]

    def read(self, name: str) -> str:
        path = self.path_for(name)
        if not path.exists():
            raise TemplateNotFoundError(path.name)
        return path.read_text(encoding="utf-8")

    def backup(self, name: str, now: Optional[datetime] = None) -> Path:
        """Copy the current template to .backups/<stem>_<timestamp>.md."""
        path = self.path_for(name)
        if not path.exists():
            raise TemplateNotFoundError(path.name)
        self.backups_dir.mkdir(parents=True, exist_ok=True)
        stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
        backup_path = self.backups_dir / f"{path.stem}_{stamp}{TEMPLATE_SUFFIX}"
        shutil.copyfile(path, backup_path)
        return backup_path

    def save(self, name: str, content: str, now: Optional[datetime] = None) -> Path:
        """Overwrite an existing template, returning the backup path."""
        backup_path = self.backup(name, now=now)
        logger.info(f"Template backup created: {backup_path.name}")
        self.path_for(name).write_text(content, encoding="utf-8")
        logger.info(f"Template saved: {template_stem(name)}{TEMPLATE_SUFFIX}")
        return backup_path
