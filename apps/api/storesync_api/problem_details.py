"""
RFC 9457 Problem Details responses.

Every error body carries an opaque instance (urn:storesync:trace:{request_id})
so a client report can be matched to server logs without exposing paths.
"""

import uuid
from typing import Any, Optional

from fastapi.responses import JSONResponse

from storesync_api.context import request_id_var
from storesync_api.schemas import ProblemDetail

PROBLEM_BASE_URI = "https://storesync.dev/problems"


def trace_instance() -> str:
    """Opaque instance identifier for the current request."""
    request_id = request_id_var.get()
    return f"urn:storesync:trace:{request_id or uuid.uuid4()}"


def problem_response(
    *,
    status: int,
    type_uri: str,
    title: str,
    detail: str | dict[str, Any],
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Create an application/problem+json response."""
    problem = ProblemDetail(
        type=type_uri,
        title=title,
        status=status,
        detail=detail,
        instance=trace_instance(),
    )
    return JSONResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )


def operation_problem(title: str, detail: str) -> JSONResponse:
    """500 for a failed operator action (ingestion, OAuth, webhook registration).

    The detail carries the remediation, e.g. "Please reconnect this store via OAuth."
    """
    return problem_response(
        status=500,
        type_uri=f"{PROBLEM_BASE_URI}/operation-failed",
        title=title,
        detail=detail,
    )
