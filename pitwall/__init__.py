"""Pitwall: fantasy league scoring rollups and signup guardrails."""

__version__ = "1.0.0"
