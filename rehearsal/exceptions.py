"""
Error taxonomy for Interview Rehearsal.

Every error raised by the core derives from RehearsalError so the API
layer can translate them into HTTP responses in one place.
"""

from typing import Any


class RehearsalError(Exception):
    """Base class for all interview rehearsal errors."""
    pass


class ValidationError(RehearsalError):
    """
    Raised when input violates one or more invariants.

    Carries the complete list of problems, never just the first one.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class QuestionMismatchError(ValidationError):
    """Raised when a response targets a question other than the current one."""

    def __init__(self, expected_id: str | None, actual_id: str):
        self.expected_id = expected_id
        self.actual_id = actual_id
        super().__init__(
            f"Response targets question {actual_id}, expected {expected_id or 'none'}"
        )


class NotFoundError(RehearsalError):
    """Raised for an unknown session, question or scheduled-item id."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class InvalidStateError(RehearsalError):
    """Raised when an operation is illegal in the current state."""
    pass


class DependencyError(RehearsalError):
    """
    Raised when an external collaborator (storage, question supply) fails.

    Storage failures are flagged retryable; the caller may retry once.
    """

    def __init__(self, dependency: str, cause: BaseException, retryable: bool = False):
        self.dependency = dependency
        self.cause = cause
        self.retryable = retryable
        super().__init__(f"{dependency} failed: {cause}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependency": self.dependency,
            "retryable": self.retryable,
            "message": str(self.cause),
        }
