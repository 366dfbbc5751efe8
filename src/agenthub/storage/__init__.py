"""Flat-file storage backends for AgentHub."""
