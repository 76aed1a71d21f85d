"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; routes map these onto the pydantic models in api/models.py.

Layer rule: no imports from api/, web/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered NoteNest user.

    password_hash is the full bcrypt string (cost and salt embedded). salt is
    the bcrypt salt used to produce it, stored alongside so the record is
    self-describing. id is None until the store assigns one on insert.
    """

    email: str
    password_hash: str
    salt: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PasswordHash:
    """Result of hashing a password: the bcrypt hash and the salt it used."""

    hash: str
    salt: str


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims of a verified session token."""

    subject: int  # account id
    issued_at: datetime | None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class IssuedSession:
    """What a successful registration or login hands back to the route."""

    account: Account
    token: str
