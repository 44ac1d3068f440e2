"""
Identity & Session Store

Student and admin sign-in, and the bearer-token sessions they produce.

Rules:
    - Students are keyed by normalized email (trimmed, lower-cased).
      The first login creates the record; later logins overwrite the
      display name and provider but keep the id.
    - At most one session exists per (role, user id). Every login
      deletes the previous sessions of that identity before adding the
      new one, so an older token stops working immediately.
    - Sessions never expire; logout deletes by token.

Every mutating call runs inside one DocumentStore transaction.

Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from hostel_orders.core.exceptions import AuthError, ValidationError
from hostel_orders.core.security import (
    generate_student_id,
    generate_token,
    verify_pin,
)
from hostel_orders.database import DocumentStore, get_document_store
from hostel_orders.models import (
    AuthProvider,
    Role,
    Session,
    StoreDocument,
    Student,
)

logger = logging.getLogger(__name__)


def clean_text(value: Any) -> str:
    """Coerce an optional input to a stripped string."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_email(email: Any) -> str:
    return clean_text(email).lower()


@dataclass
class StudentLogin:
    """Result of a successful student login."""
    token: str
    student: Student


@dataclass
class AdminLogin:
    """Result of a successful admin login."""
    token: str
    admin_id: str


class IdentityService:
    """Logs identities in and out against the document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # =========================================================================
    # STUDENTS
    # =========================================================================

    async def login_student_by_email(self, name: Any, email: Any) -> StudentLogin:
        name, email = clean_text(name), normalize_email(email)
        if not name or not email or "@" not in email:
            raise ValidationError("valid name and email are required")

        return await self._login_student(name, email, AuthProvider.EMAIL)

    async def login_student_by_google(
        self,
        name: Any,
        email: Any,
        google_id: Any,
    ) -> StudentLogin:
        name, email = clean_text(name), normalize_email(email)
        if not name or not email or not clean_text(google_id) or "@" not in email:
            raise ValidationError("google login requires name, email, and googleId")

        return await self._login_student(name, email, AuthProvider.GOOGLE)

    async def _login_student(
        self,
        name: str,
        email: str,
        provider: AuthProvider,
    ) -> StudentLogin:
        async with self.store.transaction() as document:
            student = upsert_student(document, name, email, provider)
            session = rotate_session(document, Role.STUDENT, student.id)

        logger.info(f"Student {student.id} logged in via {provider.value}")
        return StudentLogin(token=session.token, student=student)

    # =========================================================================
    # ADMIN
    # =========================================================================

    async def login_admin(self, pin: Any) -> AdminLogin:
        """
        Log the shared admin account in.

        Raises:
            ValidationError: if no PIN was supplied
            AuthError: if there is no admin record or the PIN is wrong
        """
        pin = clean_text(pin)
        if not pin:
            raise ValidationError("pin is required")

        async with self.store.transaction() as document:
            admin = document.admin
            if admin is None or not verify_pin(pin, admin.pin_hash):
                logger.warning("Rejected admin login with a bad PIN")
                raise AuthError("invalid admin pin")
            session = rotate_session(document, Role.ADMIN, admin.id)

        logger.info(f"Admin {admin.id} logged in")
        return AdminLogin(token=session.token, admin_id=admin.id)

    # =========================================================================
    # LOGOUT
    # =========================================================================

    async def logout(self, token: Optional[str]) -> bool:
        """
        Delete the session holding ``token``.

        A missing token is a successful no-op.

        Returns:
            True if a session was removed
        """
        if not token:
            return False

        async with self.store.transaction() as document:
            before = len(document.sessions)
            document.sessions = [s for s in document.sessions if s.token != token]
            removed = len(document.sessions) != before

        if removed:
            logger.info("Session logged out")
        return removed


# =============================================================================
# DOCUMENT MUTATIONS
# =============================================================================

def upsert_student(
    document: StoreDocument,
    name: str,
    email: str,
    provider: AuthProvider,
) -> Student:
    """Insert a student for ``email`` or refresh the existing record in place."""
    student = document.students_by_email().get(email)
    if student is None:
        student = Student(
            id=generate_student_id(),
            name=name,
            email=email,
            provider=provider,
        )
        document.students.append(student)
        logger.info(f"Registered new student {student.id}")
    else:
        student.name = name
        student.provider = provider
    return student


def rotate_session(document: StoreDocument, role: Role, user_id: str) -> Session:
    """Replace every session of (role, user_id) with a freshly minted one."""
    document.sessions = [
        s for s in document.sessions
        if not (s.role == role and s.user_id == user_id)
    ]
    session = Session(
        token=generate_token(),
        role=role,
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
    )
    document.sessions.append(session)
    return session


def get_identity_service() -> IdentityService:
    return IdentityService(get_document_store())
