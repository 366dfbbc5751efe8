"""Overlay resolver - merges base agent, legacy customization and overlay.

Priority, lowest to highest:

1. base agent definition from the registry
2. legacy customization (role, expertise, additionalContext replace)
3. overlay: global context is appended, then the per-agent override
   replaces role/model, replaces or extends expertise, appends its own
   context and sets template patches

A field missing at any layer inherits whatever has accumulated so far.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional

from agenthub.models.overlay import Overlay
from agenthub.models.registry import AgentDefinition, LegacyCustomization


@dataclass
class PatchSet:
    prepend: str = ""
    append: str = ""


@dataclass
class ResolvedAgent:
    """Fully merged values used to render one agent's command file."""
    role: str
    expertise: list[str]
    model: str
    additional_context: str = ""
    template_patches: PatchSet = field(default_factory=PatchSet)

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "role": data["role"],
            "expertise": data["expertise"],
            "model": data["model"],
            "additionalContext": data["additional_context"],
            "templatePatches": data["template_patches"],
        }


def join_context(current: str, extra: Optional[str]) -> str:
    """Append ``extra`` to ``current`` separated by a blank line."""
    if not extra:
        return current
    return f"{current}\n\n{extra}" if current else extra


def resolve_agent(
    base: AgentDefinition,
    agent_id: str,
    overlay: Optional[Overlay] = None,
    legacy: Optional[LegacyCustomization] = None,
) -> ResolvedAgent:
    resolved = ResolvedAgent(
        role=base.role,
        expertise=list(base.expertise),
        model=base.recommended_model,
    )

    if legacy is not None:
        if legacy.role:
            resolved.role = legacy.role
        if legacy.expertise:
            resolved.expertise = list(legacy.expertise)
        if legacy.additional_context:
            resolved.additional_context = legacy.additional_context

    if overlay is None:
        return resolved

    resolved.additional_context = join_context(
        resolved.additional_context, overlay.global_overrides.additional_context
    )

    override = overlay.agents.get(agent_id)
    if override is None:
        return resolved

    if override.role_override:
        resolved.role = override.role_override
    if override.model_override:
        resolved.model = override.model_override.value

    # expertiseOverride wins when both are present
    if override.expertise_override:
        resolved.expertise = list(override.expertise_override)
    elif override.expertise_append:
        resolved.expertise = resolved.expertise + list(override.expertise_append)

    resolved.additional_context = join_context(resolved.additional_context, override.additional_context)

    patches = override.template_patches
    if patches is not None:
        if patches.prepend:
            resolved.template_patches.prepend = patches.prepend
        if patches.append:
            resolved.template_patches.append = patches.append

    return resolved
