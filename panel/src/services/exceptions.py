"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Dict, Iterable, List, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class FormValidationError(ValidationError):
    """
    Raised when a submitted form fails validation.

    Carries every failure keyed by field name so the form can be
    re-presented with messages next to each input. The creation context
    that raised it stays open for correction.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        summary = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in self.errors.items()
        )
        super().__init__(
            f"Validation failed: {summary}",
            field=next(iter(self.errors), None),
        )


class InvalidTargetTypeError(ServiceError):
    """Raised when a polymorphic relation is resolved with a type it does not allow."""

    def __init__(self, relation_name: str, target_type: any, allowed: Iterable[str]):
        self.relation_name = relation_name
        self.target_type = target_type
        self.allowed = sorted(allowed)
        self.message = (
            f"Invalid target type '{target_type}' for '{relation_name}'. "
            f"Allowed types: {', '.join(self.allowed)}"
        )
        super().__init__(self.message)


class DataSourceUnavailableError(ServiceError):
    """
    Raised when the data store cannot be queried.

    Transient; retrying is left to the caller.
    """

    def __init__(self, operation: str, target_type: any, reason: Optional[str] = None):
        self.operation = operation
        self.target_type = target_type
        self.reason = reason
        self.message = f"Data source unavailable while running {operation} on {target_type}"
        if reason:
            self.message = f"{self.message}: {reason}"
        super().__init__(self.message)


class CreationDisabledError(ServiceError):
    """Raised when inline creation is invoked on a field that does not allow it."""

    def __init__(self, relation_name: str):
        self.relation_name = relation_name
        self.message = f"Creating records is disabled for field '{relation_name}'"
        super().__init__(self.message)
