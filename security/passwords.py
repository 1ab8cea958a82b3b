"""
security/passwords.py
---------------------
One-way password hashing with bcrypt.
The work factor comes from Settings so tests can run with a cheap cost.
"""

import bcrypt

from utils.errors import InvalidInput

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72
_MIN_ROUNDS = 4


class PasswordHasher:
    """Hashes and verifies passwords with a configurable bcrypt work factor."""

    def __init__(self, work_factor: int = 12):
        self.rounds = max(_MIN_ROUNDS, work_factor)

    def hash(self, password: str) -> str:
        """
        Hash a plaintext password.

        Raises:
            InvalidInput: If the password is longer than bcrypt accepts.
        """
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise InvalidInput("Password is too long")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Return True if ``password`` matches the stored ``hashed`` value."""
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, hashed.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False
