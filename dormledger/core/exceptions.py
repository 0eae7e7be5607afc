"""Custom application exceptions.

Every error raised by the billing core carries a stable ``kind`` so callers
can branch on it, and a human-readable ``detail`` naming the unmet rule.
"""

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    kind: str = "internal_error"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Malformed input: bad date range, missing reason, refund out of bounds."""

    kind = "validation_error"

    def __init__(self, detail: str = "Validation failed") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ConfigurationError(AppException):
    """Room rate configuration is incompatible with its billing policy."""

    kind = "configuration_error"

    def __init__(self, detail: str = "Rate configuration is invalid") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidTransition(AppException):
    """Status change not permitted from the current state."""

    kind = "invalid_transition"

    def __init__(self, detail: str = "This status change is not allowed") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PreconditionFailed(AppException):
    """Transition blocked by the state of a related entity."""

    kind = "precondition_failed"

    def __init__(self, detail: str = "A precondition for this operation is not met") -> None:
        super().__init__(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=detail)


class ConflictError(AppException):
    """Concurrent modification detected."""

    kind = "conflict"

    def __init__(
        self, detail: str = "The resource was modified concurrently. Reload and try again."
    ) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    kind = "not_found"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
