from typing import TypeVar

from fastapi import HTTPException

from sciencehub.services.result import Err, ErrorKind, Result

T = TypeVar("T")

STATUS_FOR_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.TRANSPORT: 503,
}


def http_error(err: Err) -> HTTPException:
    return HTTPException(
        status_code=STATUS_FOR_KIND.get(err.kind, 500),
        detail={"code": err.code, "message": err.message},
    )


def unwrap_or_raise(result: Result[T]) -> T:
    if isinstance(result, Err):
        raise http_error(result)
    return result.value

