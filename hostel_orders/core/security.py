"""
Token and PIN helpers.

Tokens are the only bearer credential and never expire, so they come
from the ``secrets`` CSPRNG. The admin PIN hash is plain SHA-256 hex,
which keeps the persisted admin record compatible with existing data
files.
"""

import hashlib
import hmac
import secrets
import uuid

TOKEN_BYTES = 24


def generate_token() -> str:
    """Return a 48-character hex bearer token."""
    return secrets.token_hex(TOKEN_BYTES)


def generate_student_id() -> str:
    return f"stu-{uuid.uuid4().hex[:16]}"


def hash_pin(pin: str) -> str:
    # Unsalted, single-round. Changing this changes the stored pinHash format.
    return hashlib.sha256(pin.encode("utf-8")).hexdigest()


def verify_pin(pin: str, pin_hash: str) -> bool:
    return hmac.compare_digest(hash_pin(pin), pin_hash)
