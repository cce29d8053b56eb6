"""Tagged results returned by every repository operation.

Repository functions never raise to their callers. They return ``Ok(value)``
or ``Err(kind, code, message)`` so callers can tell a missing row from a
rejected request from a store outage without parsing messages.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Generic, TypeVar, Union

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sciencehub.services.error_codes import ErrorCode
from sciencehub.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    TRANSPORT = "transport"


class ResultError(Exception):
    def __init__(self, err: Err) -> None:
        self.err = err
        super().__init__(f"{err.kind.value}: {err.code}: {err.message}")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    code: str
    message: str

    ok: ClassVar[bool] = False

    def unwrap(self) -> Any:
        raise ResultError(self)


Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    @classmethod
    def empty(cls, page: int, limit: int) -> Page[T]:
        return cls(items=[], total=0, page=page, limit=limit)


def kind_for(err: ServiceError) -> ErrorKind:
    if isinstance(err, NotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(err, PermissionDeniedError):
        return ErrorKind.PERMISSION
    if isinstance(err, ConflictError):
        return ErrorKind.CONFLICT
    if isinstance(err, ValidationError):
        return ErrorKind.VALIDATION
    return ErrorKind.TRANSPORT


def service_result(func: Callable[..., T]) -> Callable[..., Result[T]]:
    """Run ``func(db, ...)`` and fold its outcome into a ``Result``.

    The session is rolled back on any failure so it stays usable for the
    caller's next operation.
    """

    @functools.wraps(func)
    def wrapper(db: Session, *args: Any, **kwargs: Any) -> Result[T]:
        try:
            return Ok(func(db, *args, **kwargs))
        except ServiceError as exc:
            db.rollback()
            logger.warning(
                "service_error",
                operation=func.__name__,
                code=exc.code,
                error_message=exc.message,
            )
            return Err(kind_for(exc), exc.code, exc.message)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("store_error", operation=func.__name__)
            detail = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
            return Err(ErrorKind.TRANSPORT, ErrorCode.STORE_UNAVAILABLE.value, detail)

    return wrapper
