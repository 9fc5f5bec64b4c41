"""
FastAPI server module for Shop Agent.

Provides session-based REST endpoints around the agent loop.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
