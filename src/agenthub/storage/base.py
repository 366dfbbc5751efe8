"""Shared JSON file helpers for the flat-file stores."""

import json
import logging
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError

from agenthub.errors import InvalidInputError
from agenthub.models.base import Document

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)


def read_json(path: Path) -> Optional[Any]:
    """Parse a JSON file, or return None when it does not exist.

    Parse errors propagate with the offending path in the message.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Malformed JSON in {path}: {e}", {"path": str(path)}) from e


def write_json(path: Path, data: Any) -> None:
    """Write pretty-printed JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def parse_document(model: type[D], data: Any, source: str) -> D:
    """Validate raw JSON into a document model, as an InvalidInputError on failure."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__} in {source}: {e}", {"source": source}) from e


class JSONDocumentStore(Generic[D]):
    """A single JSON document on disk, validated through a pydantic model."""

    def __init__(self, path: Path, model: type[D]):
        self.path = Path(path)
        self.model = model

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[D]:
        data = read_json(self.path)
        if data is None:
            return None
        return parse_document(self.model, data, str(self.path))

    def save(self, document: Document) -> None:
        write_json(self.path, document.to_json_dict())
        logger.debug(f"Wrote {self.path}")
