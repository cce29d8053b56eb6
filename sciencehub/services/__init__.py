from sciencehub.services.capacity_service import Availability, check_event_availability
from sciencehub.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)
from sciencehub.services.result import Err, ErrorKind, Ok, Page, Result

__all__ = [
    "Availability",
    "check_event_availability",
    "ServiceError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "ValidationError",
    "Err",
    "ErrorKind",
    "Ok",
    "Page",
    "Result",
]
