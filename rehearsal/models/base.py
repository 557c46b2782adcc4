"""
Shared helpers for the Interview Rehearsal models.
"""

from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rehearsal.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound="ValidatedModel")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten pydantic's collected errors into readable messages."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"]
        messages.append(f"{location}: {message}" if location else message)
    return messages


class ValidatedModel(BaseModel):
    """
    Base model whose untrusted construction raises the project's
    ValidationError carrying every violated constraint.
    """

    @classmethod
    def build(cls: type[ModelT], **data: Any) -> ModelT:
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_errors(e)) from e

    def field_errors(self) -> list[str]:
        """Re-check field constraints, which are not enforced on assignment."""
        try:
            type(self).model_validate(self.model_dump())
        except PydanticValidationError as e:
            return format_errors(e)
        return []
