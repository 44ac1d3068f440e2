"""
Auth Gateway

Resolves the ``Authorization: Bearer <token>`` header of a request to a
session of the required role before a protected route runs.

Usage:
    @router.get("/orders/my")
    async def my_orders(auth: AuthContext = Depends(require_student)):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from hostel_orders.core.exceptions import AuthError
from hostel_orders.database import get_document_store
from hostel_orders.models import Role, Session, StoreDocument

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass
class AuthContext:
    """
    An authenticated request.

    Attributes:
        document: The snapshot the session was resolved against
        session: The matched session
    """
    document: StoreDocument
    session: Session


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token of a Bearer header, or '' when absent or malformed."""
    header = authorization or ""
    if not header.startswith(BEARER_PREFIX):
        return ""
    return header[len(BEARER_PREFIX):].strip()


def resolve_session(document: StoreDocument, token: str, required_role: Role) -> AuthContext:
    """
    Match ``token`` against the sessions of ``document``.

    Raises:
        AuthError: if the token is empty, or no session has both this
            token and ``required_role``
    """
    if not token:
        raise AuthError("missing auth token")

    session = document.find_session(token, required_role)
    if session is None:
        logger.debug(f"No {required_role.value} session for presented token")
        raise AuthError("invalid or expired token")

    return AuthContext(document=document, session=session)


async def authenticate(authorization: Optional[str], required_role: Role) -> AuthContext:
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthError("missing auth token")

    document = await get_document_store().load()
    return resolve_session(document, token, required_role)


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

async def require_student(authorization: Optional[str] = Header(None)) -> AuthContext:
    return await authenticate(authorization, Role.STUDENT)


async def require_admin(authorization: Optional[str] = Header(None)) -> AuthContext:
    return await authenticate(authorization, Role.ADMIN)


async def optional_token(authorization: Optional[str] = Header(None)) -> str:
    """Bearer token if one was sent, else ''. Never fails."""
    return extract_bearer_token(authorization)
