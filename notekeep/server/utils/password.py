"""Password hashing.

Hashes are stored as `pbkdf2_sha256$<iterations>$<salt>$<hex digest>` so the
iteration count can be raised later without invalidating existing hashes.
"""

import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger(__name__)

__all__ = [
    "PasswordHasher",
]

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260_000
SALT_BYTES = 16


class PasswordHasher:
    """Hash and verify passwords with PBKDF2-HMAC-SHA256."""

    def __init__(self, iterations: int = DEFAULT_ITERATIONS) -> None:
        if iterations < 1:
            raise ValueError("Iterations must be positive")
        self.iterations = iterations

    def hash(self, password: str) -> str:
        """Return an encoded hash for the password."""
        salt = secrets.token_hex(SALT_BYTES)
        digest = _derive(password, salt, self.iterations)
        return f"{ALGORITHM}${self.iterations}${salt}${digest}"

    def verify(self, password: str, encoded: str) -> bool:
        """Check a password against an encoded hash."""
        try:
            algorithm, iterations, salt, digest = encoded.split("$", 3)
            rounds = int(iterations)
        except ValueError:
            logger.warning("Malformed password hash")
            return False
        if algorithm != ALGORITHM:
            logger.warning("Unsupported password hash algorithm: %s", algorithm)
            return False
        return hmac.compare_digest(_derive(password, salt, rounds), digest)


def _derive(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
    ).hex()
