"""Dependency injection for FastAPI endpoints."""

import uuid
from fastapi import Request

from ..core.database import get_db
from ..schemas.report import RequestContext

__all__ = ["get_db", "get_request_context", "ADMIN_ID_HEADER"]

ADMIN_ID_HEADER = "X-Admin-ID"


def get_request_context(request: Request) -> RequestContext:
    """
    Build the per-request context passed explicitly to services.

    The caller identity comes from the header set by the upstream auth
    gateway; the request id from RequestLoggingMiddleware.

    Args:
        request: Incoming request

    Returns:
        RequestContext for this request
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    user_id = request.headers.get(ADMIN_ID_HEADER) or "anonymous"
    return RequestContext(request_id=request_id, user_id=user_id)
