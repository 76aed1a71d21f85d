"""
auth/guard.py -- Access guard state machine for protected pages and endpoints.

One evaluation walks these states:

    UNAUTHENTICATED --(no token)--------------------------> REJECTED (MISSING_TOKEN)
    UNAUTHENTICATED --(token present)--> CHECKING
    CHECKING --(verified, subject resolves)---------------> AUTHENTICATED
    CHECKING --(TokenError)-------------------------------> REJECTED (INVALID/EXPIRED/NOT_YET_VALID)
    CHECKING --(verified, subject has no account)---------> REJECTED (UNKNOWN_ACCOUNT)

The guard only decides. It never refreshes, rotates or deletes a token; the
caller turns REJECTED into a redirect (web pages) or a 401 (API).

It needs the signing secret, so it only ever runs inside the server process.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from auth.errors import TokenError, TokenErrorKind
from auth.models import Account, TokenPayload
from auth.store import AccountStore
from auth.tokens import TokenService

logger = logging.getLogger("notenest.auth")


class GuardState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class RejectReason(str, Enum):
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    TOKEN_NOT_YET_VALID = "token_not_yet_valid"
    UNKNOWN_ACCOUNT = "unknown_account"


_REASON_BY_TOKEN_KIND: dict[TokenErrorKind, RejectReason] = {
    TokenErrorKind.INVALID: RejectReason.INVALID_TOKEN,
    TokenErrorKind.EXPIRED: RejectReason.EXPIRED_TOKEN,
    TokenErrorKind.NOT_YET_VALID: RejectReason.TOKEN_NOT_YET_VALID,
}


@dataclass(frozen=True)
class GuardResult:
    """Terminal state of one guard evaluation.

    account and payload are set only when state is AUTHENTICATED; reason only
    when state is REJECTED.
    """

    state: GuardState
    reason: RejectReason | None = None
    account: Account | None = None
    payload: TokenPayload | None = None

    @property
    def allowed(self) -> bool:
        return self.state is GuardState.AUTHENTICATED


class AccessGuard:
    """Decide whether a request carrying `token` may reach a protected resource."""

    def __init__(self, tokens: TokenService, store: AccountStore) -> None:
        self.tokens = tokens
        self.store = store

    def evaluate(self, token: str | None) -> GuardResult:
        state = GuardState.UNAUTHENTICATED
        if not token:
            return self._reject(state, RejectReason.MISSING_TOKEN)

        state = GuardState.CHECKING
        try:
            payload = self.tokens.verify(token)
        except TokenError as exc:
            return self._reject(state, _REASON_BY_TOKEN_KIND[exc.token_kind])

        account = self.store.get_by_id(payload.subject)
        if account is None:
            return self._reject(state, RejectReason.UNKNOWN_ACCOUNT)

        return GuardResult(state=GuardState.AUTHENTICATED, account=account, payload=payload)

    @staticmethod
    def _reject(from_state: GuardState, reason: RejectReason) -> GuardResult:
        logger.debug("Access guard %s -> rejected (%s)", from_state.value, reason.value)
        return GuardResult(state=GuardState.REJECTED, reason=reason)
