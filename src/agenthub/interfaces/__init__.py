"""Command line and HTTP front ends for AgentHub."""
