"""Linked field answer collection and synchronisation service.

Translates between sparse form answers (question id to value) and the
relational store behind them. The engine lives in `linked_fields/logic/`;
this package also exposes a small FastAPI application factory whose routes
live in `linked_fields/routes/`.
"""

from __future__ import annotations

from linked_fields.main import create_app

__all__ = ["create_app"]
