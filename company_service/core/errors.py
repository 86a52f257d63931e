"""Service error taxonomy and the handlers that render it.

Every failure leaves the service as a single JSON object ``{"error": ...}``.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input data"


class InvalidIdentifier(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "the parameter id is not UUID"


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "validation failed"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "a company with this name already exists"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "record not found"


class Unauthenticated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password"


class PersistenceFailed(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "could not complete the database operation"


class PublishFailed(ServiceError):
    # Downgraded to an advisory field by the command processor; never rendered.
    default_message = "event publishing failed"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return MalformedInput.default_message
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    if first.get("type") == "json_invalid":
        return f"{MalformedInput.default_message}: malformed JSON"
    if first.get("type") == "extra_forbidden" and loc:
        return f"{MalformedInput.default_message}: unknown field \"{loc[-1]}\""
    if loc:
        return f"{MalformedInput.default_message}: {'.'.join(loc)}: {first.get('msg')}"
    return f"{MalformedInput.default_message}: {first.get('msg')}"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(ServiceError.status_code, ServiceError.default_message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _describe_validation_error(exc)
    logger.info("Rejected malformed request %s %s: %s", request.method, request.url.path, message)
    return error_response(MalformedInput.status_code, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
