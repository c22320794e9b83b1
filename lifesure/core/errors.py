"""Error taxonomy shared by the identity layer, role guard and route handlers.

Every error is an ``HTTPException`` so handlers raise them the same way they
raise any other FastAPI error. ``register_exception_handlers`` renders them
as the ``{success, message, error?}`` envelope used by every response.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Unexpected error'

    def __init__(self, message: str | None = None, *, error: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=message or self.default_message)
        self.error = error

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid request'


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Unauthorized access'


class MissingSubject(Unauthenticated):
    default_message = 'User ID is required'


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'Access denied'


class InvalidCredential(Forbidden):
    default_message = 'Forbidden access'


class RoleMismatch(Forbidden):
    pass


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class UserNotFound(NotFound):
    default_message = 'User not found'


class UpstreamFailure(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Upstream service failure'


def missing_fields(payload: dict, required: list[str]) -> list[str]:
    """Return the required keys whose value is absent or falsy, in declared order."""
    return [field for field in required if not payload.get(field)]


def require_fields(payload: dict, required: list[str]) -> None:
    missing = missing_fields(payload, required)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def error_body(message: str, error: str | None = None) -> dict:
    body = {'success': False, 'message': message}
    if error:
        body['error'] = error
    return body


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.error))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, 'headers', None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for item in exc.errors():
        location = [str(part) for part in item.get('loc', ()) if part not in ('body', 'query', 'path')]
        if location:
            fields.append('.'.join(location))
    message = f"Invalid or missing fields: {', '.join(fields)}" if fields else 'Invalid request'
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception('Unhandled database error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body('Database operation failed', str(exc)),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body('Internal server error'),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
