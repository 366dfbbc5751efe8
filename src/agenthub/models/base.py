"""Shared base for the camelCase JSON documents AgentHub reads and writes."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Pydantic model that speaks camelCase on disk and snake_case in Python.

    Unknown keys are preserved so hand-edited files survive a round trip.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
