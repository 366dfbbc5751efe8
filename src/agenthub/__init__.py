"""AgentHub - agent persona registry, overlay resolution and score tracking."""

__version__ = "0.1.0"
