# school_api/core/errors.py
"""
Domain errors raised by the service layer.

Services never import FastAPI; routers either let these propagate to the
handlers registered in ``register_exception_handlers`` or translate them
to ``HTTPException`` themselves.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(ValueError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {_field_name(tuple(e.get("loc", ()))): e.get("msg", "invalid") for e in exc.errors()}
    logger.info(f"Validation failed on {request.url.path}: {list(errors)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
