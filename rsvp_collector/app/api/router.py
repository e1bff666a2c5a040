"""
Top-level API router.

Aggregates the resource routers under a common prefix.  When a new
resource is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import rsvps

router = APIRouter()

router.include_router(rsvps.router, prefix="/rsvps", tags=["rsvps"])
