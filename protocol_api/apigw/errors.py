"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module fournit une gestion centralisée des erreurs avec des enveloppes standardisées, des codes
d'erreur cohérents et un support pour le tracing des requêtes. Les réponses ne contiennent jamais
de trace d'exécution ni de détail interne du stockage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from protocol_api.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNAUTHORIZED,
)
from protocol_api.domain.errors import ProtocolAccessError

log = logging.getLogger(__name__)


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None


class APIError(HTTPException):
    """Custom API error with standard envelope."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        trace_id: str | None = None,
    ) -> None:
        """Initialize an API error with standardized envelope."""
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.trace_id = trace_id


# Common error codes
class ErrorCodes:
    """Standard error codes for the API."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


KIND_TO_STATUS = {
    ErrorCodes.UNAUTHORIZED: HTTP_UNAUTHORIZED,
    ErrorCodes.BAD_REQUEST: HTTP_BAD_REQUEST,
    ErrorCodes.NOT_FOUND: HTTP_NOT_FOUND,
    ErrorCodes.INTERNAL_ERROR: HTTP_INTERNAL_SERVER_ERROR,
}


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or request state."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id

    # Set by RequestIDMiddleware
    return getattr(request.state, "trace_id", None)


def handle_protocol_access_error(request: Request, exc: ProtocolAccessError) -> JSONResponse:
    """Map domain access errors (Unauthorized/BadRequest/NotFound/InternalError) to HTTP."""
    trace_id = extract_trace_id(request)
    status_code = KIND_TO_STATUS.get(exc.kind, HTTP_INTERNAL_SERVER_ERROR)
    level = logging.ERROR if status_code >= HTTP_INTERNAL_SERVER_ERROR else logging.INFO
    log.log(
        level,
        "Protocol access error",
        extra={
            "code": exc.kind,
            "error_message": exc.message,
            "status_code": status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(status_code, exc.kind, exc.message, trace_id)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI/Starlette HTTPException (incl. APIError) with standard envelope."""
    trace_id = extract_trace_id(request)
    if isinstance(exc, APIError):
        code = exc.code
        message = exc.message
    else:
        error_codes = {
            400: ErrorCodes.BAD_REQUEST,
            401: ErrorCodes.UNAUTHORIZED,
            404: ErrorCodes.NOT_FOUND,
            405: ErrorCodes.METHOD_NOT_ALLOWED,
            422: ErrorCodes.VALIDATION_ERROR,
            500: ErrorCodes.INTERNAL_ERROR,
        }
        code = error_codes.get(exc.status_code, "HTTP_ERROR")
        message = str(exc.detail)

    log.info(
        "HTTP exception occurred",
        extra={
            "code": code,
            "error_message": message,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(exc.status_code, code, message, trace_id)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    trace_id = extract_trace_id(request)

    log.error(
        "Unexpected error occurred",
        extra={
            "code": ErrorCodes.INTERNAL_ERROR,
            "trace_id": trace_id,
            "exception_type": type(exc).__name__,
        },
        exc_info=True,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorCodes.INTERNAL_ERROR,
        "An unexpected error occurred",
        trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Enregistre les gestionnaires d'erreurs standardisés sur l'application."""
    app.add_exception_handler(ProtocolAccessError, handle_protocol_access_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)


# Convenience function for the authentication layer
def unauthorized(message: str, trace_id: str | None = None) -> APIError:
    """Create a 401 Unauthorized error."""
    return APIError(HTTP_UNAUTHORIZED, ErrorCodes.UNAUTHORIZED, message, trace_id)
