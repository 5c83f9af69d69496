"""
Error taxonomy and the FastAPI handlers that render it.

Every error body has the shape ``{"error": str, "details"?: str}``.
Store failures pass the driver message through verbatim and are never retried.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger("homedash.errors")

class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def body(self) -> dict:
        out = {"error": self.message}
        if self.details:
            out["details"] = self.details
        return out

class ValidationError(ApiError):
    status_code = 400

class NotFoundError(ApiError):
    status_code = 404

class ConflictError(ApiError):
    status_code = 409

class StoreError(ApiError):
    status_code = 500

def store_message(exc: SQLAlchemyError) -> str:
    # DBAPI errors wrap the driver exception; surface that text, not the SQL echo
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)

@contextmanager
def store_step(details: str | None = None) -> Iterator[None]:
    """Re-raise store failures inside the block as StoreError with `details`."""
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(store_message(e), details=details) from e

def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
        return JSONResponse(exc.body(), status_code=exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        log.exception("store error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": store_message(exc)}, status_code=500)

    @app.exception_handler(RequestValidationError)
    async def _bad_body(request: Request, exc: RequestValidationError):
        msgs = "; ".join(f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in exc.errors())
        return JSONResponse({"error": "Invalid request body", "details": msgs}, status_code=400)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        log.exception("unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": str(exc), "details": "Unexpected error"}, status_code=500)
