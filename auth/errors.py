"""
auth/errors.py -- Typed outcomes for the authentication flows.

Every failure the auth layer can report is an AuthFlowError subclass tagged
with an ErrorKind. Route code picks the response (400, 409, 401, redirect)
from the class or kind, never from the message text.

  ValidationError      VALIDATION      400  bad email / password shape
  ConflictError        CONFLICT        409  email already registered
  AuthenticationError  AUTHENTICATION  400  bad login credentials
  TokenError           AUTHENTICATION  401  session token rejected

DuplicateAccountError is the storage-level signal raised by AccountStore. It
is deliberately not an AuthFlowError: the service layer translates it into a
ConflictError so the HTTP mapping stays in one place.

Layer rule: no imports from api/, web/ or core/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"


class TokenErrorKind(str, Enum):
    """Why a session token failed verification."""

    INVALID = "invalid"  # malformed, bad signature, or unusable subject
    EXPIRED = "expired"  # exp claim in the past
    NOT_YET_VALID = "not_yet_valid"  # nbf claim in the future


class AuthFlowError(Exception):
    """Base class for auth outcomes that map to a client-facing HTTP error."""

    kind: ErrorKind
    status_code: int = 400
    code: str = "auth_error"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        if code is not None:
            self.code = code


class ValidationError(AuthFlowError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    code = "validation_error"


class ConflictError(AuthFlowError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    code = "account_exists"


class AuthenticationError(AuthFlowError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 400
    code = "bad_credentials"


_TOKEN_ERROR_CODES: dict[TokenErrorKind, str] = {
    TokenErrorKind.INVALID: "invalid_token",
    TokenErrorKind.EXPIRED: "expired_token",
    TokenErrorKind.NOT_YET_VALID: "token_not_yet_valid",
}


class TokenError(AuthFlowError):
    """A session token could not be verified.

    token_kind distinguishes tampered/malformed tokens from expired or
    not-yet-valid ones so callers can react differently if they choose to.
    """

    kind = ErrorKind.AUTHENTICATION
    status_code = 401

    def __init__(self, token_kind: TokenErrorKind, message: str = "Session token is not valid.") -> None:
        super().__init__(message, code=_TOKEN_ERROR_CODES[token_kind])
        self.token_kind = token_kind


class DuplicateAccountError(Exception):
    """Raised by the store when the email UNIQUE constraint is violated."""

    def __init__(self, email: str) -> None:
        super().__init__("An account with this email already exists.")
        self.email = email
