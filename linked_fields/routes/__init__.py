"""APIRouter registration for the linked field service."""

from __future__ import annotations

from fastapi import APIRouter

from linked_fields.routes.linked_fields import router as linked_fields_router

api_router = APIRouter()
api_router.include_router(linked_fields_router, tags=["LinkedFields"])

__all__ = ["api_router"]
