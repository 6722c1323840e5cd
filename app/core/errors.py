# app/core/errors.py
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logger import logger


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    status_code = 400


class NotFoundError(PortalError):
    status_code = 404


class ConflictError(PortalError):
    status_code = 409


class StorageError(PortalError):
    status_code = 500


def _error_body(message: str, detail: str | None = None) -> dict:
    body = {"error": message}
    if detail and not settings.is_production:
        body["detail"] = detail
    return body


async def portal_error_handler(request: Request, exc: PortalError):
    if isinstance(exc, StorageError):
        logger.opt(exception=exc.__cause__ or exc).error(f"Storage failure on {request.url.path}: {exc.message}")
        cause = str(exc.__cause__) if exc.__cause__ else None
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, cause))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid {where}: {first.get('msg')}" if where else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    storage_exc = StorageError("Database operation failed")
    storage_exc.__cause__ = exc
    return await portal_error_handler(request, storage_exc)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"UNHANDLED ERROR on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=_error_body("Internal Server Error", str(exc)))


def register_error_handlers(app):
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
