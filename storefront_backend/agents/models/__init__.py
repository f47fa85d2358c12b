# agents/models/__init__.py

"""
AGENTS MODELS PACKAGE EXPORTS

Keep this file imports-only (no business logic).
"""

from agents.models.agent import Agent

__all__ = ["Agent"]
