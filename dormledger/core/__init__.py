"""Core utilities: exceptions and middleware."""

from dormledger.core.exceptions import (
    AppException,
    ConfigurationError,
    ConflictError,
    InvalidTransition,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "ConflictError",
    "InvalidTransition",
    "NotFoundError",
    "PreconditionFailed",
    "ValidationError",
]
