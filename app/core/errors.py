# app/core/errors.py
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base for every failure that crosses a component boundary."""

    status_code: int = 500
    error_type: str = "AppError"
    retryable: bool = False

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_body(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {
            "type": self.error_type,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            error["details"] = self.details
        return {"ok": False, "error": error}


class ValidationError(AppError):
    status_code = 400
    error_type = "ValidationError"


class NotFound(AppError):
    status_code = 404
    error_type = "NotFound"


class RangeNotSatisfiable(AppError):
    status_code = 416
    error_type = "RangeNotSatisfiable"


class StorageUnavailable(AppError):
    status_code = 502
    error_type = "StorageUnavailable"
    retryable = True


class PersistenceError(AppError):
    status_code = 503
    error_type = "PersistenceError"
    retryable = True


class ConflictError(PersistenceError):
    """A conditional write lost a race against a concurrent writer."""

    status_code = 409
    error_type = "Conflict"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request_failed",
            error_type=exc.error_type,
            message=exc.message,
            path=str(request.url.path),
            method=request.method,
        )
        headers = {}
        if isinstance(exc, RangeNotSatisfiable) and "size" in exc.details:
            headers["Content-Range"] = f"bytes */{exc.details['size']}"
        return JSONResponse(exc.to_body(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Ontbrekende/foute velden zijn user-correctable -> 400, niet 422
        missing = [
            ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            for err in exc.errors()
        ]
        err = ValidationError(
            "Missing or invalid parameters: " + ", ".join(m for m in missing if m),
            details={"fields": missing},
        )
        logger.info("request_invalid", path=str(request.url.path), fields=missing)
        return JSONResponse(err.to_body(), status_code=err.status_code)
