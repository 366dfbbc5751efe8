"""Configuration constants for AgentHub."""

import os
from pathlib import Path


# =============================================================================
# Paths
# =============================================================================
def _resolve_hub_dir() -> Path:
    """Resolve hub directory: AGENTHUB_HOME env var, or ~/.agenthub/"""
    env_dir = os.environ.get("AGENTHUB_HOME")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".agenthub"


def _resolve_projects_dir(hub_dir: Path) -> Path:
    """Projects live next to the hub unless AGENTHUB_PROJECTS_DIR says otherwise."""
    env_dir = os.environ.get("AGENTHUB_PROJECTS_DIR")
    if env_dir:
        return Path(env_dir)
    return hub_dir.parent


HUB_DIR = _resolve_hub_dir()
PROJECTS_DIR = _resolve_projects_dir(HUB_DIR)

REGISTRY_FILENAME = "registry.json"
TEMPLATES_DIRNAME = "templates"
TEMPLATE_BACKUPS_DIRNAME = ".backups"
OVERLAYS_DIRNAME = "overlays"
SCORING_DIRNAME = "scoring"
METRICS_FILENAME = "metrics.json"
PENALTIES_FILENAME = "penalties.json"
SETTINGS_FILENAME = "settings.json"

# Per-project workspace, relative to <PROJECTS_DIR>/<project.path>
WORKSPACE_DIRNAME = ".claude"
COMMANDS_DIRNAME = "commands"
PROJECT_CONFIG_FILENAME = "agent-config.json"
SCORES_FILENAME = "agent-scores.json"

# =============================================================================
# Scoring
# =============================================================================
INITIAL_SCORE = 800
MIN_SCORE = 0
MAX_SCORE = 1000
MAX_RECENT_TASKS = 50
MAX_WORK_HISTORY = 50

# Rank floors, highest first
RANK_THRESHOLDS = [
    ("S", 900),
    ("A", 800),
    ("B", 700),
    ("C", 600),
]
LOWEST_RANK = "D"

FEEDBACK_SCORING = {
    "success": {"scoreChange": 15, "description": "Task completed successfully"},
    "partial": {"scoreChange": 5, "description": "Task partially completed"},
    "failure": {"scoreChange": -20, "description": "Task failed"},
    "excellent": {"scoreChange": 30, "description": "Outstanding result"},
}

DEFAULT_FOCUS_GOAL = "Learn the project and ship the first tasks"
DEFAULT_FOCUS_PROGRESS = "0/10 tasks"

# =============================================================================
# Penalties
# =============================================================================
RECENT_VIOLATION_DAYS = 30
ESCALATED_VIOLATION_DAYS = 60

PENALTY_CATEGORIES = {
    "process": {"basePoints": -10, "severity": "minor", "name": "Process violation"},
    "quality": {"basePoints": -20, "severity": "major", "name": "Quality issue"},
    "communication": {"basePoints": -5, "severity": "minor", "name": "Communication lapse"},
    "critical": {"basePoints": -50, "severity": "critical", "name": "Critical incident"},
}

ESCALATION_LEVELS = {
    "level1": {"multiplier": 1, "warningLevel": "warning"},
    "level2": {
        "multiplier": 2,
        "warningLevel": "serious",
        "improvementMission": {"requiredSuccesses": 3, "recoveryPoints": 10, "timeLimit": 7},
    },
    "level3": {
        "multiplier": 3,
        "warningLevel": "severe",
        "improvementMission": {"requiredSuccesses": 5, "recoveryPoints": 20, "timeLimit": 14},
    },
    "level4": {
        "multiplier": 3,
        "warningLevel": "severe",
        "improvementMission": {"requiredSuccesses": 10, "recoveryPoints": 30, "timeLimit": 30},
    },
}

# =============================================================================
# Generation
# =============================================================================
MANAGER_COMMAND = "manager"
OVERLAY_VERSION = "1.0.0"
COMMAND_PREFIX = "/project:"
DEFAULT_MODEL = "sonnet"

# =============================================================================
# Server
# =============================================================================
SERVER_NAME = "agenthub"
try:
    from agenthub import __version__ as SERVER_VERSION
except ImportError:
    SERVER_VERSION = "0.1.0"
API_HOST = "0.0.0.0"
API_PORT = 8770
