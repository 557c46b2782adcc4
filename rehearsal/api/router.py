"""
Main API router for Interview Rehearsal

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from rehearsal.api.endpoints import sessions, schedule, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    sessions.router,
    prefix="/sessions",
    tags=["Sessions"]
)

api_router.include_router(
    schedule.router,
    prefix="/schedule",
    tags=["Schedule"]
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"]
)
