"""Runtime settings management for AgentHub.

Layers (lowest → highest priority):
    config.py defaults → <hub>/settings.json

Usage:
    from agenthub.settings import load_on_startup, get_current_settings, apply_settings

    load_on_startup()                    # Call once at process start
    settings = get_current_settings()    # Read merged config
    apply_settings({"scoring": {"initial_score": 750}})  # Partial update
"""

import json
import logging
from typing import Any

import agenthub.config as cfg
from agenthub.errors import InvalidInputError

logger = logging.getLogger("agenthub-settings")

SETTINGS_FILE = cfg.HUB_DIR / cfg.SETTINGS_FILENAME

# Mapping: settings JSON path → config.py attribute name
_SETTING_MAP: dict[str, str] = {
    # Scoring
    "scoring.initial_score": "INITIAL_SCORE",
    # Penalties
    "penalties.recent_violation_days": "RECENT_VIOLATION_DAYS",
    "penalties.escalated_violation_days": "ESCALATED_VIOLATION_DAYS",
    # Generation
    "generation.manager_command": "MANAGER_COMMAND",
    # API
    "api.host": "API_HOST",
    "api.port": "API_PORT",
}


# =========================================================================
# JSON persistence
# =========================================================================

def _load_settings_json() -> dict[str, Any]:
    """Load settings.json, returning empty dict if missing/corrupt."""
    if not SETTINGS_FILE.exists():
        return {}
    try:
        data = json.loads(SETTINGS_FILE.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load {SETTINGS_FILE}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {SETTINGS_FILE}: expected an object")
        return {}
    return data


def _save_settings_json(data: dict[str, Any]) -> None:
    SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_FILE.write_text(json.dumps(data, indent=2) + "\n")


# =========================================================================
# Read current config from config.py module attributes
# =========================================================================

def _read_config_defaults() -> dict[str, Any]:
    """Build nested dict from current config.py module attributes."""
    result: dict[str, dict[str, Any]] = {}
    for dotpath, attr in _SETTING_MAP.items():
        section, _, key = dotpath.partition(".")
        result.setdefault(section, {})[key] = getattr(cfg, attr, None)
    return result


# =========================================================================
# Public API
# =========================================================================

def get_current_settings() -> dict[str, Any]:
    """Return merged config as nested dict."""
    settings = _read_config_defaults()
    settings["paths"] = {
        "hub_dir": str(cfg.HUB_DIR),
        "projects_dir": str(cfg.PROJECTS_DIR),
        "settings_file": str(SETTINGS_FILE),
    }
    return settings


def apply_settings(updates: dict[str, Any]) -> dict[str, str]:
    """Apply partial settings update.

    1. Merge into settings.json
    2. Hot-reload config.py module attributes via setattr

    Args:
        updates: Nested dict of sections → key/value pairs.

    Returns:
        Dict of applied changes: {"section.key": "new_value", ...}

    Raises:
        InvalidInputError: unknown key, or a value that cannot be coerced.
    """
    current = _load_settings_json()
    coerced: dict[str, Any] = {}

    for section, values in updates.items():
        if not isinstance(values, dict):
            raise InvalidInputError(f"Settings section {section!r} must be an object")
        for key, value in values.items():
            dotpath = f"{section}.{key}"
            attr = _SETTING_MAP.get(dotpath)
            if attr is None:
                raise InvalidInputError(f"Unknown setting: {dotpath}", {"available": sorted(_SETTING_MAP)})
            try:
                coerced[dotpath] = _coerce(value, getattr(cfg, attr))
            except (ValueError, TypeError) as e:
                raise InvalidInputError(f"Invalid value for {dotpath}: {value!r}") from e

    applied: dict[str, str] = {}
    for dotpath, value in coerced.items():
        section, _, key = dotpath.partition(".")
        current.setdefault(section, {})[key] = value
        setattr(cfg, _SETTING_MAP[dotpath], value)
        applied[dotpath] = str(value)

    _save_settings_json(current)
    if applied:
        logger.info(f"Applied settings: {', '.join(applied)}")
    return applied


def _coerce(value: Any, existing: Any) -> Any:
    """Coerce value to match the type of existing."""
    if existing is None:
        return value
    if isinstance(existing, bool):
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value)
    if isinstance(existing, int):
        return int(value)
    if isinstance(existing, float):
        return float(value)
    if isinstance(existing, str):
        return str(value)
    return value


def reset_settings() -> None:
    """Delete settings.json. Defaults apply again on the next start."""
    if SETTINGS_FILE.exists():
        SETTINGS_FILE.unlink()
    logger.info("Settings reset to defaults")


def load_on_startup() -> None:
    """Load settings.json overrides into config.py."""
    saved = _load_settings_json()
    count = 0
    for section, values in saved.items():
        if not isinstance(values, dict):
            continue
        for key, value in values.items():
            dotpath = f"{section}.{key}"
            attr = _SETTING_MAP.get(dotpath)
            if attr is None:
                logger.warning(f"Ignoring unknown setting {dotpath}")
                continue
            try:
                value = _coerce(value, getattr(cfg, attr))
            except (ValueError, TypeError):
                logger.warning(f"Ignoring invalid value for {dotpath}: {value!r}")
                continue
            setattr(cfg, attr, value)
            count += 1

    if count:
        logger.info(f"Loaded {count} settings overrides")
