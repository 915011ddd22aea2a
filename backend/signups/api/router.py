"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from signups.api.routes import games

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(games.router)
