"""
Domain Exceptions

Every failure the core can report to a client derives from
HostelOrderError and carries the HTTP status it maps to. The
application translates them into ``{"message": ...}`` bodies at the
request boundary (see hostel_orders.main).
"""

from typing import Optional


class HostelOrderError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(HostelOrderError):
    """Malformed, missing or out-of-range input. Always client-fixable."""

    status_code = 400
    default_message = "invalid request"


class AuthError(HostelOrderError):
    """Missing or unknown token, wrong role, or wrong admin PIN."""

    status_code = 401
    default_message = "unauthorized"


class NotFoundError(HostelOrderError):
    status_code = 404
    default_message = "not found"


class PersistenceError(HostelOrderError):
    """The document store could not be read or written."""

    status_code = 500
    default_message = "storage unavailable"
