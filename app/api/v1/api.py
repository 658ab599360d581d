"""
API Router configuration.

Aggregates all v1 API endpoints with proper tagging and prefixes.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, tasks

api_router = APIRouter()

# Authentication (register/login are public, /me requires a token)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Tasks (all routes require a token)
api_router.include_router(
    tasks.router,
    prefix="/tasks",
    tags=["tasks"]
)
