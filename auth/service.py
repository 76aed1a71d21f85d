"""
auth/service.py -- Registration and login flows.

AuthService ties the three collaborators together: AccountStore (storage),
PasswordHasher (credentials) and TokenService (session tokens). Each flow
either returns an IssuedSession or raises a typed AuthFlowError; routes only
decide how to put the result on the wire.

Anti-enumeration: login returns the same AuthenticationError for an unknown
email and a wrong password, and runs a full bcrypt check in both cases so the
two are indistinguishable by response time as well.

Password hashing is CPU-bound. The HTTP routes calling these methods are sync
handlers, which FastAPI runs in its threadpool rather than on the event loop.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email

from auth.errors import AuthenticationError, ConflictError, DuplicateAccountError, ValidationError
from auth.models import Account, IssuedSession
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService

logger = logging.getLogger("notenest.auth")

MIN_PASSWORD_LENGTH = 8

BAD_CREDENTIALS_MESSAGE = "Username or password is invalid."


def normalize_email(email: str) -> str:
    """Validate email syntax and return its normalized form.

    Deliverability (DNS) is not checked; registration must not depend on the
    network. Raises ValidationError with field="email".
    """
    try:
        result = validate_email(email or "", check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email, please change.", code="invalid_email", field="email") from exc
    return result.normalized


def check_password(password: str) -> None:
    """Enforce the password policy: at least 8 characters, at most 72 UTF-8 bytes.

    No character-class requirements. Raises ValidationError with field="password".
    """
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "Password is not minimum 8 characters, please change.",
            code="weak_password",
            field="password",
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            "Password must be at most 72 bytes.",
            code="password_too_long",
            field="password",
        )


class AuthService:
    """Registration and login over an AccountStore."""

    def __init__(self, store: AccountStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, email: str, password: str) -> IssuedSession:
        """Create an account and issue its first session token.

        Raises:
            ValidationError: malformed email or password outside policy (400).
            ConflictError:   email already registered (409).
        Any other storage error propagates unchanged.
        """
        normalized = normalize_email(email)
        check_password(password)

        hashed = self.hasher.hash(password)
        account = Account(email=normalized, password_hash=hashed.hash, salt=hashed.salt)
        try:
            account.id = self.store.create_account(account)
        except DuplicateAccountError as exc:
            logger.info("Registration rejected: email already registered")
            raise ConflictError("An email with this address already exists.") from exc

        logger.info("Account %d registered", account.id)
        return IssuedSession(account=account, token=self.tokens.issue(account.id))

    def login(self, email: str, password: str) -> IssuedSession:
        """Authenticate email + password and issue a session token.

        Raises:
            ValidationError:     malformed email or password outside policy (400).
            AuthenticationError: unknown email or wrong password (400, same message).
        """
        normalized = normalize_email(email)
        check_password(password)

        account = self.store.get_by_email(normalized)
        if account is None:
            # Equalize timing before rejecting.
            self.hasher.verify_dummy(password)
            logger.info("Login failed: bad credentials")
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)

        if not self.hasher.verify(password, account.password_hash):
            logger.info("Login failed: bad credentials")
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)

        logger.info("Account %d logged in", account.id)
        return IssuedSession(account=account, token=self.tokens.issue(account.id))
