"""
Cadeala Rewards API package.

Public exports:
- create_app: FastAPI factory
- AppState: app.state container used by tests
"""

from __future__ import annotations

from cadeala.api.app import create_app
from cadeala.api.state import AppState

__all__ = ["AppState", "create_app"]
