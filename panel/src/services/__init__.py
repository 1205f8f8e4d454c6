"""
Service layer for business logic.

Only exceptions and the GUID service are exported here: models import the
GUID service at class-definition time, so pulling the service classes in
at package import would be circular. Import services from their modules.
"""

from panel.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ConflictError,
    ValidationError,
    FormValidationError,
    InvalidTargetTypeError,
    DataSourceUnavailableError,
    CreationDisabledError,
)
from panel.src.services.guid import GuidService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "FormValidationError",
    "InvalidTargetTypeError",
    "DataSourceUnavailableError",
    "CreationDisabledError",
    "GuidService",
]
