"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug
detection hashes a password longer than 72 bytes, which current bcrypt
releases reject with an explicit error.

The salt is generated per call with bcrypt.gensalt(rounds), so hashing the
same password twice yields different hashes while derive() with a fixed salt
is deterministic. verify() fails closed: a missing or malformed stored hash is
a mismatch, never an exception the caller has to remember to catch.

Layer rule: no imports from api/, web/ or core/.
"""

from __future__ import annotations

import bcrypt

from auth.models import PasswordHash

# bcrypt ignores input past 72 bytes and bcrypt>=5 raises on it. The service
# layer rejects longer passwords before they reach this module.
MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted, adaptive password hashing with a configurable cost factor.

    Usage:
        hasher = PasswordHasher(rounds=10)
        hashed = hasher.hash("correct horse")
        hasher.verify("correct horse", hashed.hash)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31.")
        self.rounds = rounds
        # Computed up front so the first unknown-email login is not measurably
        # faster than later ones.
        self._dummy_hash = self.hash("notenest_timing_dummy").hash

    def hash(self, plaintext: str) -> PasswordHash:
        """Hash plaintext with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self.rounds).decode("ascii")
        return PasswordHash(hash=self.derive(plaintext, salt), salt=salt)

    def derive(self, plaintext: str, salt: str) -> str:
        """Hash plaintext with the given bcrypt salt. Deterministic per salt."""
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt.encode("ascii")).decode("ascii")

    def verify(self, plaintext: str, stored_hash: str | None) -> bool:
        """Return True if plaintext matches stored_hash.

        bcrypt.checkpw re-derives with the cost and salt embedded in the stored
        hash and compares in constant time. Anything unusable returns False.
        """
        if not stored_hash:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), stored_hash.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """Spend one full bcrypt check and return False.

        Login calls this when no account matches the email so the response
        time does not reveal whether the email is registered. The dummy hash
        uses the same cost factor as real hashes.
        """
        self.verify(plaintext, self._dummy_hash)
        return False
