"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notekeeper.backend.api.v1.endpoints import auth, notes, users

router = APIRouter()

# Auth endpoints
router.include_router(auth.router, prefix="/auth", tags=["auth"])

# User administration endpoints
router.include_router(users.router, prefix="/users", tags=["users"])

# Notes endpoints
router.include_router(notes.router, prefix="/notes", tags=["notes"])
