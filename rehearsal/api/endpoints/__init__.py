"""
API endpoint modules for Interview Rehearsal
"""

from rehearsal.api.endpoints import sessions, schedule, users

__all__ = ["sessions", "schedule", "users"]
