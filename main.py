"""
Interview Rehearsal - practice interview sessions with scoring and reminders

Main application entry point.
"""

from rehearsal.app import create_app
from rehearsal.config.settings import get_settings

settings = get_settings()
app = create_app(settings)


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
