"""
Translation of core errors into HTTP errors.
"""

import logging

from fastapi import HTTPException

from rehearsal.exceptions import (
    DependencyError,
    InvalidStateError,
    NotFoundError,
    RehearsalError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def http_error(error: RehearsalError) -> HTTPException:
    """Map a RehearsalError onto the HTTPException an endpoint should raise."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail={"errors": error.errors})
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidStateError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, DependencyError):
        logger.error(f"Dependency failure: {error}")
        return HTTPException(status_code=503, detail=error.to_dict())
    return HTTPException(status_code=400, detail=str(error))
