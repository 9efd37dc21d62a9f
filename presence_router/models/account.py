"""Account model for registered identities."""

import hashlib
import hmac
import secrets
from dataclasses import dataclass, field

HASH_ITERATIONS = 100_000


def new_salt() -> bytes:
    return secrets.token_bytes(16)


def hash_password(password: str, salt: bytes) -> bytes:
    """PBKDF2-HMAC-SHA256; slow on purpose, keep it off the event loop."""
    return hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, HASH_ITERATIONS)


@dataclass
class Account:
    """A registered identity and its password hash."""

    username: str
    password_hash: bytes = field(repr=False)
    salt: bytes = field(repr=False)

    def matches(self, candidate_hash: bytes) -> bool:
        """Constant-time comparison against a hash computed with ``self.salt``."""
        return hmac.compare_digest(self.password_hash, candidate_hash)
