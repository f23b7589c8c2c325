"""
Error taxonomy for the intake backend.

Services raise these; the handlers registered by register_exception_handlers()
turn them into `{"error": ..., "code": ...}` JSON bodies so nothing escapes a
request as an uncaught fault.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("intake_backend.errors")

GENERIC_TOKEN_MESSAGE = "Invalid or expired token"


class AppError(Exception):
    """Base exception carrying a stable error code and HTTP status."""

    code: str = "internal_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Unexpected error."

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        return self.message


class MissingParameter(AppError):
    code = "missing_parameter"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required parameter."


class InvalidFilename(AppError):
    code = "invalid_filename"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid filename."


class TokenError(AppError):
    """Any presigned-token failure. Clients only ever see the generic message."""

    code = "invalid_token"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token rejected."

    @property
    def public_message(self) -> str:
        return GENERIC_TOKEN_MESSAGE


class MalformedToken(TokenError):
    default_message = "Malformed token"


class InvalidFormat(TokenError):
    default_message = "Invalid token format"


class InvalidExpiry(TokenError):
    default_message = "Invalid expiry"


class SignatureMismatch(TokenError):
    default_message = "Signature mismatch"


class TokenExpired(TokenError):
    default_message = "Token expired"


class UnsupportedFileType(AppError):
    code = "unsupported_file_type"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Unsupported file type."


class FileTooLarge(AppError):
    code = "file_too_large"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "File too large."


class FileNotFound(AppError):
    code = "file_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "File not found."


class StorageWriteFailure(AppError):
    code = "storage_write_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to write file."


class InvalidStatusValue(AppError):
    code = "invalid_status"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid status value."


class RecordNotFound(AppError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Record not found."


class DuplicateRecord(AppError):
    code = "duplicate"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Record already exists."


class Unauthorized(AppError):
    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Missing or invalid Authorization header."


class Forbidden(AppError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden: insufficient permissions."


def _error_body(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Attach the JSON error handlers to an app instance."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, TokenError):
            # Reason stays server-side.
            logger.warning(
                "Token rejected on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
        elif exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        else:
            logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.public_message),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in errors]
        message = "Invalid or missing fields: " + ", ".join(f for f in fields if f)
        logger.info("Validation error on %s %s: %s", request.method, request.url.path, fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(MissingParameter.code, message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                "internal_error",
                "Unexpected server error. Please try again later.",
                details=repr(exc) if debug else None,
            ),
        )
