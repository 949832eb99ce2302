# gst_engine/api/v1/__init__.py
"""
Versioned API v1: aggregates all sub-routers under ``/api/v1``.

Usage in ``main.py``::

    from gst_engine.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from gst_engine.api.v1.routes.credit_notes import router as credit_notes_router
from gst_engine.api.v1.routes.gst import router as gst_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(gst_router)
v1_router.include_router(credit_notes_router)

__all__ = ["v1_router"]
