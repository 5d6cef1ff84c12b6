"""
Custom exception handling for the Educademy report service.

This module defines the report error taxonomy and the FastAPI handlers that
translate it into the uniform error envelope
``{"success": false, "message": ..., "error": ..., "requestId": ...}``.
"""

import uuid
from typing import Optional, Dict, Any, Iterable
from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


# ============================================================================
# Base Exception Classes
# ============================================================================

class EducademyException(Exception):
    """Base exception class for all report service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error = error or message
        self.details = details or {}
        self.correlation_id = str(uuid.uuid4())
        super().__init__(message)


# ============================================================================
# Validation Exceptions
# ============================================================================

class InvalidReportTypeError(EducademyException):
    """Raised when reportType is missing or not a known report domain."""

    def __init__(self, report_type: Optional[str], valid_types: Iterable[str]):
        valid = ", ".join(valid_types)
        if not report_type:
            message = "Report type is required"
        else:
            message = f"Invalid report type. Valid types: {valid}"
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error="invalid_report_type",
            details={"reportType": report_type},
        )
        self.report_type = report_type


class InvalidFormatError(EducademyException):
    """Raised when format is not a supported serialization."""

    def __init__(self, report_format: Optional[str], valid_formats: Iterable[str]):
        super().__init__(
            message=f"Invalid format. Valid formats: {', '.join(valid_formats)}",
            status_code=status.HTTP_400_BAD_REQUEST,
            error="invalid_format",
            details={"format": report_format},
        )
        self.report_format = report_format


# ============================================================================
# Pipeline Exceptions
# ============================================================================

class DataFetchError(EducademyException):
    """Raised when the data provider fails to produce report data."""

    def __init__(self, report_type: str, cause: BaseException):
        super().__init__(
            message="Failed to generate report",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=str(cause),
            details={"reportType": report_type, "stage": "fetch"},
        )
        self.report_type = report_type
        self.cause = cause


class RenderError(EducademyException):
    """Raised when a format renderer fails."""

    def __init__(self, report_format: str, cause: BaseException):
        super().__init__(
            message=f"Error generating {report_format.upper()} format",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=str(cause),
            details={"format": report_format, "stage": "render"},
        )
        self.report_format = report_format
        self.cause = cause


# ============================================================================
# Exception Handlers
# ============================================================================

def _request_id(request: Request, fallback: str) -> str:
    return getattr(request.state, "request_id", None) or fallback


async def educademy_exception_handler(request: Request, exc: EducademyException) -> JSONResponse:
    """
    Generic handler for all EducademyException instances.

    Client errors are logged at warning level; server errors with the
    original cause's stack trace.
    """
    request_id = _request_id(request, exc.correlation_id)
    log_extra = {
        "correlation_id": exc.correlation_id,
        "request_id": request_id,
        "status_code": exc.status_code,
        "details": exc.details,
        "path": request.url.path,
        "method": request.method,
    }

    if exc.status_code >= 500:
        cause = getattr(exc, "cause", None)
        logger.error(
            f"[{request_id}] {exc.__class__.__name__}: {exc.message} ({exc.error})",
            exc_info=(type(cause), cause, cause.__traceback__) if cause else None,
            extra=log_extra,
        )
    else:
        logger.warning(
            f"[{request_id}] {exc.__class__.__name__}: {exc.message}",
            extra=log_extra,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "error": exc.error,
            "requestId": request_id,
        },
        headers={"X-Correlation-ID": exc.correlation_id}
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Fallback handler for unhandled exceptions.

    Logs the error and returns the generic error envelope.
    """
    correlation_id = str(uuid.uuid4())
    request_id = _request_id(request, correlation_id)

    logger.exception(
        f"[{request_id}] Unhandled exception: {str(exc)}",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc),
            "requestId": request_id,
        },
        headers={"X-Correlation-ID": correlation_id}
    )


# ============================================================================
# Exception Handler Registration
# ============================================================================

def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(EducademyException, educademy_exception_handler)

    # Register fallback handler for unhandled exceptions
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
