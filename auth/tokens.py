"""
auth/tokens.py -- Session token issuance/verification and the session cookie.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (account id as a string),
       iat, and exp when an expiry is configured. The signing secret is passed
       to TokenService at construction; nothing here reads it from a global,
       so tests can run services with different secrets side by side.

  Verification raises TokenError with a TokenErrorKind instead of returning
       None. Callers that only care about pass/fail catch TokenError; callers
       that want to treat expiry differently (e.g. the page guard) read
       token_kind.

  Expiry: expire_seconds=0 issues tokens without exp, which is how NoteNest
       has always behaved. exp and nbf are still enforced whenever a token
       carries them.

  Cookie: httponly/secure/samesite come from Settings rather than being
       hardcoded, with the safe values as defaults.

Layer rule: no imports from api/ or web/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import TokenError, TokenErrorKind
from auth.models import TokenPayload
from core.config import Settings

logger = logging.getLogger("notenest.auth")

DEFAULT_ALGORITHM = "HS256"


class TokenService:
    """Issue and verify signed session tokens bound to an account id.

    Usage:
        tokens = TokenService(settings.secret_key, expire_seconds=3600)
        token = tokens.issue(account.id)
        payload = tokens.verify(token)  # raises TokenError
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        expire_seconds: int = 0,
        leeway_seconds: int = 0,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a signing secret.")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_seconds = expire_seconds
        self.leeway_seconds = leeway_seconds

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return f"TokenService(algorithm={self.algorithm!r}, expire_seconds={self.expire_seconds})"

    def issue(self, subject: int) -> str:
        """Encode a signed token for the given account id."""
        now = datetime.now(timezone.utc)
        claims: dict = {"sub": str(subject), "iat": now}
        if self.expire_seconds > 0:
            claims["exp"] = now + timedelta(seconds=self.expire_seconds)
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Verify signature and time claims, then decode the payload.

        Raises TokenError(EXPIRED) for a past exp, TokenError(NOT_YET_VALID)
        for a future nbf, and TokenError(INVALID) for everything else:
        undecodable input, bad signature, wrong algorithm, missing subject.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"leeway": self.leeway_seconds},
            )
        except ExpiredSignatureError as exc:
            raise TokenError(TokenErrorKind.EXPIRED, "Session token has expired.") from exc
        except JWTClaimsError as exc:
            # Signature already checked out; find out whether nbf is the problem.
            if self._not_yet_valid(token):
                raise TokenError(TokenErrorKind.NOT_YET_VALID, "Session token is not valid yet.") from exc
            raise TokenError(TokenErrorKind.INVALID) from exc
        except JWTError as exc:
            raise TokenError(TokenErrorKind.INVALID) from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.isdigit():
            raise TokenError(TokenErrorKind.INVALID)
        return TokenPayload(
            subject=int(subject),
            issued_at=_to_datetime(claims.get("iat")),
            expires_at=_to_datetime(claims.get("exp")),
        )

    def _not_yet_valid(self, token: str) -> bool:
        try:
            nbf = jwt.get_unverified_claims(token).get("nbf")
        except JWTError:
            return False
        if not isinstance(nbf, (int, float)):
            return False
        now = datetime.now(timezone.utc).timestamp()
        return nbf > now + self.leeway_seconds


def _to_datetime(value) -> datetime | None:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str, settings: Settings) -> None:
    """Write the session token as a cookie on the response.

    httponly: JS cannot read the cookie (XSS mitigation).
    samesite: "lax" by default -- not sent on cross-site POST.
    secure: only sent over HTTPS unless COOKIE_SECURE=false.
    max_age: matches the token expiry when one is configured; otherwise the
        cookie lives for the browser session.
    """
    max_age = settings.token_expire_seconds if settings.token_expire_seconds > 0 else None
    response.set_cookie(
        settings.session_cookie_name,
        value=token,
        httponly=settings.cookie_httponly,
        samesite=settings.cookie_samesite,
        secure=settings.cookie_secure,
        max_age=max_age,
    )


def clear_session_cookie(response, settings: Settings) -> None:
    """Delete the session cookie. The token itself stays valid until it expires."""
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=settings.cookie_httponly,
        samesite=settings.cookie_samesite,
        secure=settings.cookie_secure,
    )
