"""Session authentication for dashboard endpoints.

Supabase JWT-based session auth.

FLOW:
1. Dashboard signs the user in with Supabase and receives an access_token
2. Dashboard calls /api/* with Authorization: Bearer <jwt>
3. Dependency validates the JWT with Supabase and extracts the subject id
4. Store access is then checked against user_stores (stealth 404 on mismatch)
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storesync_api.problem_details import trace_instance
from storesync_api.schemas import ProblemDetail
from storesync_api.supabase_client import get_supabase_client
from storesync_api.sync.tenants import is_user_linked

logger = logging.getLogger(__name__)

# HTTPBearer scheme for session JWT
session_security = HTTPBearer(auto_error=False, description="Supabase JWT Session Token")


class SessionAuthContext:
    """Authenticated dashboard user."""

    def __init__(self, subject_id: str, email: Optional[str] = None):
        self.subject_id = subject_id
        self.email = email


def _create_session_problem(
    status_code: int,
    title: str,
    detail: str,
) -> HTTPException:
    """Create RFC 9457 Problem Detail for session auth errors."""
    problem = ProblemDetail(
        type=f"https://storesync.dev/problems/{title.lower().replace(' ', '-')}",
        title=title,
        status=status_code,
        detail=detail,
        instance=trace_instance(),
    )

    return HTTPException(
        status_code=status_code,
        detail=problem.model_dump(exclude_none=True),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_session_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(session_security),
) -> SessionAuthContext:
    """Validate the bearer JWT with Supabase.

    Raises:
        HTTPException: 401 if authentication fails (RFC 9457 Problem Detail)
    """
    if not credentials:
        raise _create_session_problem(
            status_code=status.HTTP_401_UNAUTHORIZED,
            title="Unauthorized",
            detail="Missing Authorization header. Please log in first.",
        )

    try:
        supabase = get_supabase_client()
        # Supabase validates JWT signature and expiration
        user_response = supabase.auth.get_user(credentials.credentials)

        if not user_response or not user_response.user:
            raise _create_session_problem(
                status_code=status.HTTP_401_UNAUTHORIZED,
                title="Unauthorized",
                detail="Invalid or expired session token. Please log in again.",
            )

        user = user_response.user

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"JWT validation failed: {type(e).__name__}", exc_info=True)
        raise _create_session_problem(
            status_code=status.HTTP_401_UNAUTHORIZED,
            title="Unauthorized",
            detail="Session validation failed. Please log in again.",
        )

    logger.info(
        "Session JWT validated",
        extra={"event": "session.jwt.validated", "subject_id": user.id},
    )
    return SessionAuthContext(subject_id=user.id, email=user.email)


def require_store_access(db: Session, auth: SessionAuthContext, shop_domain: str) -> str:
    """Tenant id of shop_domain if the session user is linked to it.

    Implements "stealth 404": an existing store the user is not linked to is
    indistinguishable from one that does not exist.

    Raises:
        HTTPException: 404 if not linked
    """
    tenant_id = is_user_linked(db, auth.subject_id, shop_domain)
    if tenant_id is None:
        logger.warning(
            "Store access denied for session user",
            extra={"event": "store.access_denied", "subject_id": auth.subject_id},
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Store not found",
        )
    return tenant_id
