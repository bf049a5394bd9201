# backend/voicepost/api/routes.py
"""
Main API routing configuration for the backend.

Combines the sub-routers into one router mounted under "/api":
   - routes_actions: AI pipeline endpoints (transcribe, polish, translate).
   - routes_db: accounts and saved texts.
"""

from .routes_db import router as db_router
from .routes_actions import router as actions_router
from fastapi import APIRouter

# Initialize the main API router
router = APIRouter()

# Include account and saved-text routes
router.include_router(db_router)

# Include pipeline routes
router.include_router(actions_router)
