"""
API layer for Interview Rehearsal

Contains FastAPI routers for:
- Practice session lifecycle
- Scheduling
- Per-user streaks, recommendations and analytics
"""

from rehearsal.api.router import api_router

__all__ = ["api_router"]
